"""
This file holds the prompt templates sent to the generation service. The
templates are plain `str.format` strings. If you are about to edit one of
these prompts, consider adding a new one instead so that different prompts
can be compared.

All templates accept the following variables:

- document: The full plain text of the document.
- selection: The selected text, or NO_SELECTION when there is none.
- instruction: The user's request (e.g., "make this more formal").
- history: A transcript of earlier turns, or an empty string.

"""

from llm4docs.models import ConversationTurn, Role

NO_SELECTION = "(none)"


class EditorPrompts:
    BASIC_v1 = '''You are an assistant embedded in a text editor.

Current document:
"""
{document}
"""

Current selection:
"""
{selection}
"""
{history}
User request:
"""
{instruction}
"""

Return only the revised or inserted text. Do not add explanations.
'''


def render_history(turns: list[ConversationTurn]) -> str:
    if not turns:
        return ""
    lines = [
        f"{'User' if turn.role == Role.user else 'Assistant'}: {turn.text}"
        for turn in turns
    ]
    return "\nEarlier conversation:\n" + "\n".join(lines) + "\n"


def build(
    instruction: str,
    doc_text: str,
    selection_text: str,
    history: list[ConversationTurn] | None = None,
    template: str = EditorPrompts.BASIC_v1,
) -> str:
    """
    Build the prompt for a single request.

    Arguments:
        instruction: What the user asked for.
        doc_text: The document as it was when the request was made.
        selection_text: The text the model should work on. Empty means no
            selection, which is spelled out to the model explicitly.
        history: Earlier turns to show the model, if any.
        template: The prompt template to fill in.

    Returns:
        str: The prompt text.

    """
    return template.format(
        document=doc_text or "(empty)",
        selection=selection_text if selection_text.strip() else NO_SELECTION,
        instruction=instruction,
        history=render_history(history or []),
    )
