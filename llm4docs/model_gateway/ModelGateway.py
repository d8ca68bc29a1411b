from typing import Iterable, Protocol

from llm4docs.errors import GatewayError


class ModelGateway(Protocol):
    """
    A ModelGateway sends one prompt to a text-generation service and returns
    whatever text came back, unprocessed.

    Implementations make exactly one attempt per call; retrying is up to the
    caller. Failures are raised as ServiceError (the service answered with an
    error status) or TransportError (no usable answer at all).

    """

    def generate(self, prompt: str) -> str:
        ...


class ScriptedModelGateway(ModelGateway):
    """
    A gateway that replays canned responses instead of calling a model.

    Intended for testing and for running the editor offline. Each call pops
    the next response; a response that is an exception instance is raised
    instead of returned. Prompts are recorded in `prompts`.

    """

    def __init__(self, responses: Iterable[str | GatewayError]):
        self._responses = list(responses)
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._responses:
            raise AssertionError("ScriptedModelGateway ran out of responses.")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response
