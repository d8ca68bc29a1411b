"""
Turn raw model output into text that can be inserted into a document.

Models rarely answer with just the text they were asked for. They wrap it in
code fences or quotes, open with "Sure, here's...", close with "Let me know
if...", bracket the real answer between separator lines, or repeat
themselves. Each of those habits is undone by one small stage below; STAGES
lists them in the order they run.

Every stage only ever removes text, so running the whole list until nothing
changes always terminates, and the result is a fixed point: cleaning clean
text changes nothing.

"""

import re
from typing import Callable

from llm4docs.logger import logger

_THINK_BLOCK_RE = re.compile(r"<think>.*?</think>", re.IGNORECASE | re.DOTALL)
_THINK_CLOSE_RE = re.compile(r"</think>", re.IGNORECASE)
_FENCED_BLOCK_RE = re.compile(r"```(?:[^\n`]*\n)?(.*?)```", re.DOTALL)
_LEADING_FENCE_RE = re.compile(r"^```[^\n`]*(?:\n|$)")
_TRAILING_FENCE_RE = re.compile(r"(?:^|\n)```\s*$")
_DELIMITER_LINE_RE = re.compile(r"^\s*-{3,}\s*$")
_FINAL_ANSWER_RE = re.compile(
    r"\**\bfinal answer\b\**\s*:?\s*\**", re.IGNORECASE
)
_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t]*\n")
_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")

QUOTE_PAIRS = (
    ('"', '"'),
    ("'", "'"),
    ("“", "”"),
    ("‘", "’"),
)

# Lines that open an answer without being part of it.
PLEASANTRY_OPENERS = re.compile(
    r"^\s*(?:sure|here['’]?s|here is|here are|of course|certainly|okay|ok|"
    r"got it|absolutely|i will|i['’]ll|below is)\b",
    re.IGNORECASE,
)

# Lines that close an answer without being part of it.
CLOSING_REMARKS = re.compile(
    r"(let me know|hope this helps|feel free|anything else|happy to help)",
    re.IGNORECASE,
)


def strip_reasoning(text: str) -> str:
    """
    Remove <think>...</think> reasoning traces, including an unterminated
    trace whose opening tag was cut off.

    """
    text = _THINK_BLOCK_RE.sub("", text)
    closes = list(_THINK_CLOSE_RE.finditer(text))
    if closes:
        text = text[closes[-1].end() :]
    return text


def strip_outer_whitespace(text: str) -> str:
    return text.strip()


def extract_fenced_block(text: str) -> str:
    match = _FENCED_BLOCK_RE.search(text)
    if match is None:
        return text
    return match.group(1).strip()


def strip_stray_fences(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        text = _LEADING_FENCE_RE.sub("", text, count=1)
        text = _TRAILING_FENCE_RE.sub("", text, count=1)
        text = text.strip()
    return text


def strip_wrapping_quotes(text: str) -> str:
    for open_quote, close_quote in QUOTE_PAIRS:
        if len(text) < 2:
            break
        if text.startswith(open_quote) and text.endswith(close_quote):
            inner = text[len(open_quote) : -len(close_quote)]
            # Only a single pair around everything, not "a" and "b".
            if open_quote not in inner and close_quote not in inner:
                return inner
    return text


def unescape_sequences(text: str) -> str:
    return (
        text.replace("\r\n", "\n")
        .replace("\\r\\n", "\n")
        .replace("\\n", "\n")
        .replace("\\t", "\t")
    )


def extract_delimited_block(text: str) -> str:
    lines = text.split("\n")
    delimiters = [i for i, line in enumerate(lines) if _DELIMITER_LINE_RE.match(line)]
    if len(delimiters) < 2:
        return text
    first, second = delimiters[0], delimiters[1]
    inner = "\n".join(lines[first + 1 : second]).strip()
    # Two separators with nothing between them bracket nothing.
    return inner or text


def _is_blank(line: str) -> bool:
    return not line.strip()


def drop_leading_pleasantries(text: str) -> str:
    lines = text.split("\n")
    while len(lines) > 1 and (
        _is_blank(lines[0]) or PLEASANTRY_OPENERS.match(lines[0])
    ):
        lines.pop(0)
    return "\n".join(lines)


def drop_trailing_remarks(text: str) -> str:
    lines = text.split("\n")
    while len(lines) > 1 and (
        _is_blank(lines[-1]) or CLOSING_REMARKS.search(lines[-1])
    ):
        lines.pop()
    return "\n".join(lines)


def keep_final_answer(text: str) -> str:
    markers = list(_FINAL_ANSWER_RE.finditer(text))
    if not markers:
        return text
    remainder = text[markers[-1].end() :].strip()
    return remainder or text


def _normalize_paragraph(paragraph: str) -> str:
    lowered = _PUNCTUATION_RE.sub("", paragraph.lower())
    return _WHITESPACE_RE.sub(" ", lowered).strip()


def _overlaps(candidate: str, kept: str) -> bool:
    # Compare on word boundaries: "yes" should not swallow "yesterday".
    padded_candidate, padded_kept = f" {candidate} ", f" {kept} "
    return padded_candidate in padded_kept or padded_kept in padded_candidate


def dedupe_paragraphs(text: str) -> str:
    paragraphs = _PARAGRAPH_BREAK_RE.split(text)
    if len(paragraphs) < 2:
        return text

    kept: list[str] = []
    kept_normalized: list[str] = []
    for paragraph in paragraphs:
        normalized = _normalize_paragraph(paragraph)
        if normalized and any(_overlaps(normalized, seen) for seen in kept_normalized):
            continue
        kept.append(paragraph)
        if normalized:
            kept_normalized.append(normalized)

    if len(kept) == len(paragraphs):
        return text
    return "\n\n".join(kept)


Stage = Callable[[str], str]

STAGES: tuple[Stage, ...] = (
    strip_reasoning,
    strip_outer_whitespace,
    extract_fenced_block,
    strip_stray_fences,
    strip_wrapping_quotes,
    unescape_sequences,
    extract_delimited_block,
    drop_leading_pleasantries,
    drop_trailing_remarks,
    keep_final_answer,
    dedupe_paragraphs,
    strip_outer_whitespace,
)


def run_stages(text: str, stages: tuple[Stage, ...] = STAGES) -> str:
    """
    Run each stage once, in order.

    """
    for stage in stages:
        cleaned = stage(text)
        if cleaned != text:
            logger.debug(f"{stage.__name__}: {len(text)} -> {len(cleaned)} chars")
        text = cleaned
    return text


def clean(raw: str) -> str:
    """
    Clean a raw model response.

    Arguments:
        raw: The text returned by the generation service.

    Returns:
        str: Text safe to insert verbatim. May be empty, e.g. if the model
            answered with an empty code block.

    """
    text = raw or ""
    while True:
        cleaned = run_stages(text)
        if cleaned == text:
            return cleaned
        text = cleaned
