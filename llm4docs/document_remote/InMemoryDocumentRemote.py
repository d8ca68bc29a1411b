import weakref

from llm4docs.errors import RangeError
from llm4docs.models import SelectionSnapshot
from llm4docs.document_remote.DocumentRemote import DocumentRemote


class InMemoryRange:
    """
    A character-offset range over an InMemoryDocumentRemote.

    Ranges register themselves with their document so that edits made
    elsewhere in the document move them along, much like a live DOM range.
    A range that overlaps an outside edit can no longer say what it covers,
    so it is detached and stops resolving.

    """

    def __init__(self, document: "InMemoryDocumentRemote", start: int, end: int):
        if start > end:
            start, end = end, start
        self._document = document
        self.start = start
        self.end = end
        self._detached = False
        document._track(self)

    def __repr__(self):
        state = "" if self.is_valid() else ", stale"
        return f"InMemoryRange({self.start}, {self.end}{state})"

    @property
    def collapsed(self) -> bool:
        return self.start == self.end

    def clone(self) -> "InMemoryRange":
        copy = InMemoryRange(self._document, self.start, self.end)
        copy._detached = self._detached
        return copy

    def is_valid(self) -> bool:
        return (
            not self._detached
            and 0 <= self.start <= self.end <= len(self._document.get_full_text())
        )

    def get_text(self) -> str:
        self._require_valid()
        return self._document.get_full_text()[self.start : self.end]

    def delete_contents(self):
        self._require_valid()
        if self.collapsed:
            return
        self._document._splice(self.start, self.end, "", owner=self)
        self.end = self.start

    def insert_content(self, segments: list[str]):
        self._require_valid()
        text = self._document.line_break.join(segments)
        self._document._splice(self.start, self.start, text, owner=self)
        self.end = self.start + len(text)

    def collapse(self, to_start: bool = False):
        if to_start:
            self.end = self.start
        else:
            self.start = self.end

    def _detach(self):
        self._detached = True

    def _require_valid(self):
        if not self.is_valid():
            raise RangeError(f"{self!r} no longer resolves inside its document.")


class InMemoryDocumentRemote(DocumentRemote):
    """
    This DocumentRemote implementation keeps the document as a single string
    and addresses it with character offsets.

    It stands in for a real editor widget: `select` and `edit` play the part
    of a user moving the selection and typing while a request is in flight.

    """

    current_revision_id: int

    def __init__(self, text: str = "", line_break: str = "\n"):
        """
        Create a new InMemoryDocumentRemote.

        Arguments:
            text: The initial content of the document.
            line_break: Token used to join inserted lines.

        """
        self._text = text
        self.line_break = line_break
        self.current_revision_id = 0
        self._ranges: "weakref.WeakSet[InMemoryRange]" = weakref.WeakSet()
        self._selection: InMemoryRange | None = None

    def get_full_text(self) -> str:
        return self._text

    def set_text(self, text: str):
        """
        Replace the whole content. Every existing range stops resolving and
        the selection is dropped.

        """
        for text_range in list(self._ranges):
            text_range._detach()
        self._ranges = weakref.WeakSet()
        self._text = text
        self._selection = None
        self.current_revision_id += 1

    def select(self, start: int, end: int | None = None):
        """
        Move the user's selection. With no `end` this places a caret.

        """
        if end is None:
            end = start
        length = len(self._text)
        if not (0 <= start <= length and 0 <= end <= length):
            raise IndexError(
                f"Invalid selection ({start}, {end}) for document of length {length}."
            )
        self._selection = InMemoryRange(self, start, end)

    def clear_selection(self):
        self._selection = None

    def edit(self, start: int, end: int, text: str):
        """
        Replace the text between `start` and `end` the way a user would, and
        leave the caret after the typed text.

        """
        self._splice(start, end, text)
        self._selection = InMemoryRange(self, start + len(text), start + len(text))

    def get_selection(self) -> SelectionSnapshot:
        live = self._selection
        if live is None or not live.is_valid() or live.collapsed:
            return SelectionSnapshot(text="", range=None)
        return SelectionSnapshot(text=live.get_text(), range=live.clone())

    def current_range(self) -> InMemoryRange | None:
        if self._selection is None or not self._selection.is_valid():
            return None
        return self._selection.clone()

    def set_selection(self, text_range: InMemoryRange):
        self._selection = text_range.clone()

    def whole_range(self) -> InMemoryRange:
        return InMemoryRange(self, 0, len(self._text))

    def end_range(self) -> InMemoryRange:
        return InMemoryRange(self, len(self._text), len(self._text))

    def _track(self, text_range: InMemoryRange):
        self._ranges.add(text_range)

    def _splice(
        self, start: int, end: int, text: str, owner: InMemoryRange | None = None
    ):
        length = len(self._text)
        if not (0 <= start <= end <= length):
            raise IndexError(
                f"Invalid span ({start}, {end}) for document of length {length}."
            )
        delta = len(text) - (end - start)
        for text_range in list(self._ranges):
            if text_range is owner or text_range._detached:
                continue
            if text_range.end <= start:
                # Entirely before the change.
                continue
            if text_range.start >= end:
                text_range.start += delta
                text_range.end += delta
            else:
                text_range._detach()
        self._text = self._text[:start] + text + self._text[end:]
        self.current_revision_id += 1
