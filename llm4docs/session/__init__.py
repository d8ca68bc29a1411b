from .ConversationHistory import ConversationHistory
from .RevisionSession import RevisionSession

__all__ = ["ConversationHistory", "RevisionSession"]
