"""
Write sanitized model output into a document.

The target is resolved in this order: the range captured when the request was
made, else the user's live selection, else the end of the document. A captured
range that no longer resolves sends the text to the end of the document rather
than to wherever the cursor happens to be now.

"""

from llm4docs.document_remote.DocumentRemote import DocumentRemote, TextRange
from llm4docs.logger import logger


def resolve_target(
    document: DocumentRemote, target_range: TextRange | None
) -> TextRange:
    if target_range is not None:
        if target_range.is_valid():
            return target_range.clone()
        logger.warning(
            f"Target {target_range!r} is stale, appending at end of document."
        )
        return document.end_range()

    live = document.current_range()
    if live is not None and live.is_valid():
        return live
    return document.end_range()


def apply(
    document: DocumentRemote, text: str, target_range: TextRange | None = None
) -> TextRange | None:
    """
    Replace the target span with `text` and leave the caret right after it.

    Arguments:
        document: The document to mutate.
        text: Sanitized text. Internal newlines become the document's line
            breaks.
        target_range: The span to replace, if one was captured.

    Returns:
        TextRange | None: The collapsed caret after the inserted text, or None
            if there was nothing to apply.

    """
    if not text:
        logger.info("Nothing to apply.")
        return None

    doc_range = resolve_target(document, target_range)
    replaced = doc_range.get_text()
    doc_range.delete_contents()
    doc_range.insert_content(text.split("\n"))
    doc_range.collapse()
    document.set_selection(doc_range)

    logger.info(f"Applied edit at revision {document.current_revision_id}:")
    logger.info(f"- {replaced}")
    logger.info(f"+ {text}")
    return doc_range
