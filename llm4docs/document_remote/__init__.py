from .DocumentRemote import DocumentRemote, TextRange
from .InMemoryDocumentRemote import InMemoryDocumentRemote, InMemoryRange
from .FileDocumentRemote import FileDocumentRemote
from .applier import apply

__all__ = [
    "DocumentRemote",
    "TextRange",
    "InMemoryDocumentRemote",
    "InMemoryRange",
    "FileDocumentRemote",
    "apply",
]
