from typing import Callable

from llm4docs.logger import logger
from llm4docs.models import ConversationTurn, Role

HistoryListener = Callable[[list[ConversationTurn]], None]


class ConversationHistory:
    """
    The ordered, append-only log of turns in one session.

    Turns are stored in the list handed in (usually `PipelineState.history`),
    so the session state and the log never disagree. Every listener gets the
    full list of turns after each change, including a reset.

    """

    def __init__(self, turns: list[ConversationTurn] | None = None):
        self._turns = turns if turns is not None else []
        self._listeners: list[HistoryListener] = []

    def __len__(self):
        return len(self._turns)

    @property
    def turns(self) -> list[ConversationTurn]:
        return list(self._turns)

    def subscribe(self, listener: HistoryListener):
        self._listeners.append(listener)

    def append(self, role: Role, text: str) -> ConversationTurn:
        turn = ConversationTurn(role=role, text=text)
        self._turns.append(turn)
        self._notify()
        return turn

    def recent(self, count: int) -> list[ConversationTurn]:
        if count <= 0:
            return []
        return list(self._turns[-count:])

    def clear(self):
        self._turns.clear()
        self._notify()

    def _notify(self):
        snapshot = self.turns
        for listener in self._listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"History listener {listener!r} failed")
