from typing import Protocol, runtime_checkable
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Intent(str, Enum):
    edit = "edit"
    answer = "answer"


class Role(str, Enum):
    user = "user"
    assistant = "assistant"


class PipelineStatus(str, Enum):
    idle = "idle"
    submitting = "submitting"
    applying = "applying"
    displaying = "displaying"
    error = "error"


class OutcomeType(str, Enum):
    applied = "applied"
    displayed = "displayed"
    failed = "failed"
    rejected = "rejected"
    discarded = "discarded"


class ConversationTurn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    text: str


@runtime_checkable
class TextRange(Protocol):
    """
    An addressable span of a document's content.

    A TextRange is independent of the visual selection: once cloned it can be
    used later for deletion or insertion even if the user's selection has moved
    somewhere else. Ranges can stop resolving when the document changes under
    them; callers must check `is_valid()` before mutating through a range.

    """

    start: int
    end: int

    @property
    def collapsed(self) -> bool:
        ...

    def clone(self) -> "TextRange":
        """
        Return an independent copy of this range.

        """
        ...

    def is_valid(self) -> bool:
        """
        Return True if the span still resolves inside its document.

        """
        ...

    def get_text(self) -> str:
        ...

    def delete_contents(self):
        """
        Remove the text covered by this range, leaving it collapsed at start.

        Raises:
            RangeError: if the range no longer resolves.

        """
        ...

    def insert_content(self, segments: list[str]):
        """
        Insert text segments at the start of this range, joined by the
        document's line break. Afterwards the range spans the inserted text.

        Raises:
            RangeError: if the range no longer resolves.

        """
        ...

    def collapse(self, to_start: bool = False):
        """
        Collapse the range to its end (or its start).

        """
        ...


class SelectionSnapshot(BaseModel):
    """
    The user's selection at the moment a request was started.

    `range` is an independent clone of the selected span, or None when nothing
    was selected. It was valid when captured but may stop resolving later if
    the document is edited while the request is in flight.

    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    text: str = ""
    range: TextRange | None = None


class RevisionRequest(BaseModel):
    """
    Everything captured when an instruction is submitted.

    Built once by the session before the generation call and never changed
    afterwards.

    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    instruction: str
    intent: Intent
    doc_snapshot: str
    selection_snapshot: SelectionSnapshot
    # Selection text that was sent to the model; may be the whole document
    # for edits without a selection.
    prompt_selection: str
    prompt: str
    # Where an edit will land. None for answers.
    apply_target: TextRange | None = None
    # Session epoch at submission time. A reset bumps the epoch.
    epoch: int = 0


class RevisionOutcome(BaseModel):
    type: OutcomeType
    intent: Intent | None = None
    text: str = ""
    message: str = ""


class PipelineState(BaseModel):
    """
    Mutable state for one editing session.

    Owned by a single RevisionSession; `busy` guards against a second submit
    while a request is outstanding.

    """

    busy: bool = False
    status: PipelineStatus = PipelineStatus.idle
    last_response: str = ""
    history: list[ConversationTurn] = []
    epoch: int = 0
