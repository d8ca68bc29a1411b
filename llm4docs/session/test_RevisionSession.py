import pytest

from .RevisionSession import RevisionSession
from ..config import Settings
from ..document_remote.InMemoryDocumentRemote import InMemoryDocumentRemote
from ..errors import ServiceError, SessionBusyError, TransportError, ValidationError
from ..model_gateway.ModelGateway import ScriptedModelGateway
from ..models import Intent, OutcomeType, PipelineStatus, Role


def _session(text: str, responses, **settings) -> RevisionSession:
    return RevisionSession(
        InMemoryDocumentRemote(text),
        ScriptedModelGateway(responses),
        settings=Settings(**settings),
    )


def _history(session: RevisionSession):
    return [(turn.role, turn.text) for turn in session.history.turns]


def test_edit_without_selection_replaces_whole_document():
    session = _session("Old text", ["New text"])
    outcome = session.submit("rewrite this")

    assert outcome.type == OutcomeType.applied
    assert session.document.get_full_text() == "New text"
    caret = session.document.current_range()
    assert caret.collapsed
    assert caret.start == len("New text")
    assert _history(session) == [
        (Role.user, "rewrite this"),
        (Role.assistant, "New text"),
    ]


def test_edit_without_selection_sends_whole_document_as_selection():
    session = _session("Old text", ["New text"])
    session.submit("rewrite this")
    assert '"""\nOld text\n"""\n\nUser request' in session.gateway.prompts[0]


def test_edit_with_selection_replaces_only_the_selection():
    session = _session("A B C", ["X"])
    session.document.select(2, 3)
    outcome = session.submit("replace this letter")

    assert outcome.type == OutcomeType.applied
    assert session.document.get_full_text() == "A X C"
    assert session.document.current_range().start == 3


def test_model_chatter_is_cleaned_before_applying():
    session = _session("A B C", ["Sure, here's the revised line:\n```\nX\n```"])
    session.document.select(2, 3)
    session.submit("fix it")
    assert session.document.get_full_text() == "A X C"
    assert session.state.last_response == "X"


def test_answer_is_displayed_not_applied():
    session = _session("The butler did it.", ["Mystery."])
    shown = []
    session.subscribe_responses(shown.append)
    outcome = session.submit("what genre is this")

    assert outcome.type == OutcomeType.displayed
    assert outcome.intent == Intent.answer
    assert session.document.get_full_text() == "The butler did it."
    assert session.document.current_revision_id == 0
    assert session.state.last_response == "Mystery."
    assert [o.text for o in shown] == ["Mystery."]
    assert "(none)" in session.gateway.prompts[0]


def test_answer_sends_selected_text():
    session = _session("The butler did it.", ["A butler."])
    session.document.select(4, 10)
    session.submit("who is this")
    assert '"""\nbutler\n"""' in session.gateway.prompts[0]


@pytest.mark.parametrize("instruction", ["", "   ", "\n\t"])
def test_blank_instruction_is_rejected_before_any_io(instruction):
    session = _session("Text", [])
    outcome = session.submit(instruction)

    assert outcome.type == OutcomeType.rejected
    assert session.gateway.prompts == []
    assert session.history.turns == []
    assert not session.busy
    assert session.status == PipelineStatus.idle


def test_begin_raises_validation_error():
    session = _session("Text", [])
    with pytest.raises(ValidationError):
        session.begin("  ")


class _ReentrantGateway:
    """Submits a second instruction while the first is still in flight."""

    def __init__(self):
        self.session = None
        self.inner_outcome = None

    def generate(self, prompt: str) -> str:
        self.inner_outcome = self.session.submit("fix it again")
        return "Done."


def test_second_submit_while_submitting_is_rejected():
    gateway = _ReentrantGateway()
    session = RevisionSession(InMemoryDocumentRemote("abc"), gateway)
    gateway.session = session

    outcome = session.submit("fix it")

    assert gateway.inner_outcome.type == OutcomeType.rejected
    assert outcome.type == OutcomeType.applied
    assert session.document.get_full_text() == "Done."
    assert _history(session) == [(Role.user, "fix it"), (Role.assistant, "Done.")]


def test_begin_twice_raises_busy():
    session = _session("abc", [])
    session.begin("fix it")
    with pytest.raises(SessionBusyError):
        session.begin("fix it again")


@pytest.mark.parametrize(
    "error",
    [ServiceError(500, "model crashed"), TransportError("connection refused")],
)
def test_gateway_failure_is_recorded_and_document_untouched(error):
    session = _session("Keep me", [error])
    statuses = []
    session.subscribe_status(lambda status, label: statuses.append(label))

    outcome = session.submit("rewrite this")

    assert outcome.type == OutcomeType.failed
    assert outcome.message == str(error)
    assert session.document.get_full_text() == "Keep me"
    assert _history(session) == [(Role.assistant, str(error))]
    assert statuses == ["Thinking...", "Error", "Ready"]
    assert not session.busy
    assert session.status == PipelineStatus.idle


def test_unexpected_gateway_exception_does_not_wedge_the_session():
    class _BrokenGateway:
        def generate(self, prompt):
            raise KeyError("response")

    session = RevisionSession(InMemoryDocumentRemote("x"), _BrokenGateway())
    outcome = session.submit("fix it")
    assert outcome.type == OutcomeType.failed
    assert not session.busy


def test_empty_result_for_edit_is_a_recorded_no_op():
    session = _session("Original", ["```\n```"])
    outcome = session.submit("improve this")

    assert outcome.type == OutcomeType.displayed
    assert outcome.text == ""
    assert session.document.get_full_text() == "Original"
    assert _history(session) == [(Role.user, "improve this"), (Role.assistant, "")]


def test_status_sequence_for_an_edit():
    session = _session("abc", ["xyz"])
    statuses = []
    session.subscribe_status(lambda status, label: statuses.append(status))
    session.submit("change it")
    assert statuses == [
        PipelineStatus.submitting,
        PipelineStatus.applying,
        PipelineStatus.idle,
    ]


def test_history_listener_sees_every_change():
    session = _session("abc", ["xyz"])
    lengths = []
    session.subscribe_history(lambda turns: lengths.append(len(turns)))
    session.submit("change it")
    session.reset()
    assert lengths == [1, 2, 0]


def test_stale_selection_falls_back_to_end_of_document():
    session = _session("one two three", [])
    session.document.select(4, 7)
    request = session.begin("rewrite this word")

    # The user keeps typing inside the selected word.
    session.document.edit(5, 6, "W")

    outcome = session.complete(request, "2")
    assert outcome.type == OutcomeType.applied
    assert session.document.get_full_text() == "one tWo three2"


def test_no_selection_edit_target_is_fixed_before_the_request():
    session = _session("Old text", [])
    request = session.begin("rewrite this")

    # Selecting something while the model works must not redirect the edit.
    session.document.select(0, 3)
    session.complete(request, "New text")
    assert session.document.get_full_text() == "New text"


def test_reset_clears_history_and_last_response():
    session = _session("abc", ["Mystery."])
    session.submit("what genre is this")
    session.reset()
    assert session.history.turns == []
    assert session.state.last_response == ""
    assert session.status == PipelineStatus.idle


def test_result_of_request_superseded_by_reset_is_discarded():
    session = _session("Old text", [])
    request = session.begin("rewrite this")
    session.reset()
    assert not session.busy

    outcome = session.complete(request, "New text")
    assert outcome.type == OutcomeType.discarded
    assert session.document.get_full_text() == "Old text"
    assert session.history.turns == []
    assert session.state.last_response == ""


def test_superseded_result_does_not_unlock_a_newer_request():
    session = _session("Old text", [])
    stale = session.begin("rewrite this")
    session.reset()
    fresh = session.begin("what is this")

    session.complete(stale, "ignored")
    assert session.busy
    assert session.status == PipelineStatus.submitting

    session.complete(fresh, "A text.")
    assert not session.busy
    assert _history(session) == [
        (Role.user, "what is this"),
        (Role.assistant, "A text."),
    ]


def test_superseded_failure_is_discarded():
    session = _session("Old text", [])
    request = session.begin("rewrite this")
    session.reset()
    outcome = session.fail(request, TransportError("timed out"))
    assert outcome.type == OutcomeType.discarded
    assert session.history.turns == []


def test_superseded_result_can_still_be_applied_outside_history():
    session = _session("Old text", [], apply_superseded_results=True)
    request = session.begin("rewrite this")
    session.reset()

    outcome = session.complete(request, "New text")
    assert outcome.type == OutcomeType.applied
    assert session.document.get_full_text() == "New text"
    assert session.history.turns == []
    assert session.state.last_response == "New text"


def test_apply_last_response_inserts_at_caret():
    session = _session("Title\n", ["A short story."])
    session.submit("what should the first line be")
    session.document.select(6)

    outcome = session.apply_last_response()
    assert outcome.type == OutcomeType.applied
    assert session.document.get_full_text() == "Title\nA short story."


def test_apply_last_response_with_nothing_to_apply():
    session = _session("Title", [])
    assert session.apply_last_response().type == OutcomeType.rejected
    assert session.document.get_full_text() == "Title"


def test_apply_last_response_while_busy_is_rejected():
    session = _session("Title", ["Text."])
    session.submit("what now")
    session.begin("what next")
    assert session.apply_last_response().type == OutcomeType.rejected
    assert session.document.get_full_text() == "Title"


def test_history_is_included_in_prompt_when_enabled():
    session = _session(
        "Doc", ["Mystery.", "Horror."], include_history_in_prompt=True
    )
    session.submit("what genre is this")
    session.submit("what else could it be")
    assert "Earlier conversation" not in session.gateway.prompts[0]
    assert "Assistant: Mystery." in session.gateway.prompts[1]


def test_history_is_left_out_of_prompt_by_default():
    session = _session("Doc", ["Mystery.", "Horror."])
    session.submit("what genre is this")
    session.submit("what else could it be")
    assert "Mystery." not in session.gateway.prompts[1]


def _raise(*args):
    raise RuntimeError("listener broke")


def test_raising_response_listener_does_not_wedge_the_session():
    session = _session("Old text", ["New text", "Newer text"])
    session.subscribe_responses(_raise)

    outcome = session.submit("rewrite this")
    assert outcome.type == OutcomeType.applied
    assert not session.busy
    assert session.status == PipelineStatus.idle

    assert session.submit("rewrite this").type == OutcomeType.applied
    assert session.document.get_full_text() == "Newer text"


def test_raising_status_and_history_listeners_are_survivable():
    session = _session("abc", [TransportError("down"), "xyz"])
    session.subscribe_status(_raise)
    session.subscribe_history(_raise)

    assert session.submit("change it").type == OutcomeType.failed
    assert not session.busy
    assert session.submit("change it").type == OutcomeType.applied
    assert session.status == PipelineStatus.idle


def test_document_error_while_applying_releases_the_session():
    class _ReadOnlyDocument(InMemoryDocumentRemote):
        def set_selection(self, text_range):
            raise RuntimeError("document is read-only")

    session = RevisionSession(
        _ReadOnlyDocument("abc"), ScriptedModelGateway(["xyz", "Mystery."])
    )
    outcome = session.submit("change it")

    assert outcome.type == OutcomeType.failed
    assert outcome.intent == Intent.edit
    assert "read-only" in outcome.message
    assert not session.busy
    assert session.status == PipelineStatus.idle
    assert session.submit("what genre is this").type == OutcomeType.displayed
