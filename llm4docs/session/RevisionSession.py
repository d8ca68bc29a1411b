"""
One editing session: instructions in, document revisions and answers out.

A request moves through Idle -> Submitting -> (Applying | Displaying) -> Idle,
or Submitting -> Error -> Idle when the generation call fails. Everything the
request depends on (selection, document text, where an edit will land) is
captured in `begin()`, before the generation call, because the user keeps
typing while the model is thinking.

Synchronous callers use `submit()`. Callers that run the generation call
themselves use `begin()` and then `complete()` or `fail()`.

"""

from typing import Callable

from llm4docs.config import Settings
from llm4docs.document_remote.DocumentRemote import DocumentRemote
from llm4docs.document_remote.applier import apply
from llm4docs.editor_agents import prompts
from llm4docs.editor_agents.intent import classify
from llm4docs.editor_agents.sanitizer import clean
from llm4docs.errors import GatewayError, SessionBusyError, ValidationError
from llm4docs.logger import logger
from llm4docs.model_gateway.ModelGateway import ModelGateway
from llm4docs.models import (
    Intent,
    OutcomeType,
    PipelineState,
    PipelineStatus,
    RevisionOutcome,
    RevisionRequest,
    Role,
)
from llm4docs.session.ConversationHistory import ConversationHistory, HistoryListener

StatusListener = Callable[[PipelineStatus, str], None]
ResponseListener = Callable[[RevisionOutcome], None]

STATUS_LABELS = {
    PipelineStatus.idle: "Ready",
    PipelineStatus.submitting: "Thinking...",
    PipelineStatus.applying: "Applying...",
    PipelineStatus.displaying: "Ready",
    PipelineStatus.error: "Error",
}


class RevisionSession:
    def __init__(
        self,
        document: DocumentRemote,
        gateway: ModelGateway,
        state: PipelineState | None = None,
        settings: Settings | None = None,
    ):
        """
        Arguments:
            document: The open document this session edits.
            gateway: Where prompts are sent.
            state: Session state to continue from. A fresh one by default.
            settings: Session settings. Defaults to Settings().

        """
        self.document = document
        self.gateway = gateway
        self.state = state or PipelineState()
        self.history = ConversationHistory(self.state.history)
        self._settings = settings or Settings()
        self._status_listeners: list[StatusListener] = []
        self._response_listeners: list[ResponseListener] = []

    @property
    def busy(self) -> bool:
        return self.state.busy

    @property
    def status(self) -> PipelineStatus:
        return self.state.status

    def subscribe_status(self, listener: StatusListener):
        self._status_listeners.append(listener)

    def subscribe_responses(self, listener: ResponseListener):
        self._response_listeners.append(listener)

    def subscribe_history(self, listener: HistoryListener):
        self.history.subscribe(listener)

    def begin(self, instruction: str) -> RevisionRequest:
        """
        Capture everything a request needs and mark the session busy.

        Raises:
            ValidationError: if the instruction is blank.
            SessionBusyError: if another request is still in flight.

        """
        instruction = instruction.strip()
        if not instruction:
            raise ValidationError("Instruction is empty.")
        if self.state.busy:
            raise SessionBusyError("A request is already in progress.")

        selection = self.document.get_selection()
        doc_text = self.document.get_full_text()
        intent = classify(instruction)

        if selection.range is not None:
            prompt_selection = selection.text
        elif intent == Intent.edit:
            # No selection: an edit rewrites the whole document.
            prompt_selection = doc_text
        else:
            prompt_selection = ""

        apply_target = None
        if intent == Intent.edit:
            apply_target = (
                selection.range
                if selection.range is not None
                else self.document.whole_range()
            )

        history = None
        if self._settings.include_history_in_prompt:
            history = self.history.recent(self._settings.history_prompt_turns)

        request = RevisionRequest(
            instruction=instruction,
            intent=intent,
            doc_snapshot=doc_text,
            selection_snapshot=selection,
            prompt_selection=prompt_selection,
            prompt=prompts.build(instruction, doc_text, prompt_selection, history),
            apply_target=apply_target,
            epoch=self.state.epoch,
        )
        self.state.busy = True
        logger.info(f"Submitting {intent.value} request: {instruction!r}")
        self._set_status(PipelineStatus.submitting)
        return request

    def complete(self, request: RevisionRequest, raw_text: str) -> RevisionOutcome:
        """
        Clean the model's answer and apply or display it.

        """
        text = clean(raw_text)

        if self._is_superseded(request):
            if not self._settings.apply_superseded_results:
                logger.warning(
                    f"Session was reset; discarding result of {request.instruction!r}."
                )
                return RevisionOutcome(
                    type=OutcomeType.discarded, intent=request.intent, text=text
                )
            logger.warning(
                f"Session was reset; delivering result of {request.instruction!r} "
                "outside the conversation history."
            )
            self.state.last_response = text
            return self._deliver(request, text, announce=False)

        try:
            self.state.last_response = text
            self.history.append(Role.user, request.instruction)
            self.history.append(Role.assistant, text)
            return self._deliver(request, text, announce=True)
        finally:
            self._finish()

    def fail(self, request: RevisionRequest, error: Exception) -> RevisionOutcome:
        """
        Record a failed generation call. The document is left untouched.

        """
        message = str(error) or error.__class__.__name__
        logger.error(f"Request {request.instruction!r} failed: {message}")

        if self._is_superseded(request):
            return RevisionOutcome(
                type=OutcomeType.discarded, intent=request.intent, message=message
            )

        try:
            self._set_status(PipelineStatus.error)
            self.history.append(Role.assistant, message)
            outcome = RevisionOutcome(
                type=OutcomeType.failed, intent=request.intent, message=message
            )
            self._notify_response(outcome)
            return outcome
        finally:
            self._finish()

    def submit(self, instruction: str) -> RevisionOutcome:
        """
        Run one instruction end to end. Never raises: rejected submissions and
        failed requests are reported in the returned outcome.

        """
        try:
            request = self.begin(instruction)
        except ValidationError as e:
            logger.warning(f"Rejected submission {instruction!r}: {e}")
            return RevisionOutcome(type=OutcomeType.rejected, message=str(e))

        try:
            raw_text = self.gateway.generate(request.prompt)
        except GatewayError as e:
            return self.fail(request, e)
        except Exception as e:
            logger.exception(f"Unexpected error from {self.gateway!r}")
            return self.fail(request, e)

        try:
            return self.complete(request, raw_text)
        except Exception as e:
            # complete() has already released the session.
            logger.exception(f"Could not deliver the result of {request.instruction!r}")
            return RevisionOutcome(
                type=OutcomeType.failed,
                intent=request.intent,
                message=str(e) or e.__class__.__name__,
            )

    def apply_last_response(self) -> RevisionOutcome:
        """
        Write the last response into the document at the user's current
        selection (or the end of the document).

        """
        if self.state.busy:
            return RevisionOutcome(
                type=OutcomeType.rejected, message="A request is already in progress."
            )
        if not self.state.last_response:
            return RevisionOutcome(
                type=OutcomeType.rejected, message="Nothing to apply."
            )

        apply(self.document, self.state.last_response, None)
        return RevisionOutcome(type=OutcomeType.applied, text=self.state.last_response)

    def reset(self):
        """
        Start a new conversation. A request still in flight is not cancelled,
        but its result no longer belongs to this conversation.

        """
        self.state.epoch += 1
        self.state.busy = False
        self.state.last_response = ""
        self.history.clear()
        logger.info(f"Session reset (epoch {self.state.epoch}).")
        self._set_status(PipelineStatus.idle)

    def _deliver(
        self, request: RevisionRequest, text: str, announce: bool
    ) -> RevisionOutcome:
        if request.intent == Intent.edit and text:
            if announce:
                self._set_status(PipelineStatus.applying)
            apply(self.document, text, request.apply_target)
            outcome_type = OutcomeType.applied
        else:
            if announce:
                self._set_status(PipelineStatus.displaying)
            outcome_type = OutcomeType.displayed
        outcome = RevisionOutcome(type=outcome_type, intent=request.intent, text=text)
        self._notify_response(outcome)
        return outcome

    def _is_superseded(self, request: RevisionRequest) -> bool:
        return request.epoch != self.state.epoch

    def _finish(self):
        self.state.busy = False
        self._set_status(PipelineStatus.idle)

    def _set_status(self, status: PipelineStatus):
        self.state.status = status
        logger.debug(f"Status: {status.value}")
        for listener in self._status_listeners:
            try:
                listener(status, STATUS_LABELS[status])
            except Exception:
                logger.exception(f"Status listener {listener!r} failed")

    def _notify_response(self, outcome: RevisionOutcome):
        for listener in self._response_listeners:
            try:
                listener(outcome)
            except Exception:
                logger.exception(f"Response listener {listener!r} failed")
