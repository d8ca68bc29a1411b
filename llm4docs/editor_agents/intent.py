"""
Decide whether an instruction asks for a change to the document or for
information about it.

An edit replaces text in the document; an answer is only shown to the user.
Getting this wrong either overwrites text nobody asked to change or silently
fails to apply an edit, so the vocabulary below is the thing to tune.

"""

from llm4docs.models import Intent

# Matched as case-insensitive substrings, so "rewrite" also catches
# "rewrites" and "correct" also catches "correction". Stems are not
# derived: "rewriting" does not contain "rewrite".
EDIT_VOCABULARY = (
    "edit",
    "rewrite",
    "revise",
    "replace",
    "update",
    "modify",
    "change",
    "fix",
    "correct",
    "improve",
    "polish",
    "clean up",
    "formal",
    "casual",
    "shorten",
    "expand",
    "simplify",
    "summarize",
)


def classify(instruction: str) -> Intent:
    lowered = instruction.lower()
    if any(verb in lowered for verb in EDIT_VOCABULARY):
        return Intent.edit
    return Intent.answer
