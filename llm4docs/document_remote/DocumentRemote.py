from typing import Protocol

from llm4docs.models import SelectionSnapshot, TextRange


class DocumentRemote(Protocol):
    """
    A DocumentRemote is the pipeline's view of one open document.

    The pipeline only ever depends on plain-text content and positions. How
    the document is displayed or formatted (bold, headings, lists...) is the
    editor's business and never crosses this boundary.

    """

    # Token placed between lines when multi-line text is inserted.
    line_break: str

    # Increases by one every time the content changes.
    current_revision_id: int

    def get_full_text(self) -> str:
        """
        Get the full plain text of the document.

        """
        ...

    def get_selection(self) -> SelectionSnapshot:
        """
        Capture the user's current selection.

        Returns:
            SelectionSnapshot: the selected text and a cloned range over it.
                The range is None if nothing is selected (an empty caret does
                not count as a selection).

        """
        ...

    def current_range(self) -> TextRange | None:
        """
        Return a clone of the live selection or caret, collapsed or not, or
        None if the document has no cursor.

        """
        ...

    def set_selection(self, text_range: TextRange):
        """
        Make `text_range` the active selection.

        """
        ...

    def whole_range(self) -> TextRange:
        """
        Return a range that covers the entire document.

        """
        ...

    def end_range(self) -> TextRange:
        """
        Return a collapsed range at the very end of the document.

        """
        ...
