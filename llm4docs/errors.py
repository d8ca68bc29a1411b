"""
Errors raised while turning an instruction into a document revision.

Everything here derives from RevisionError so that the session can catch
the whole family at its boundary. Validation errors are raised before any
request is sent; gateway errors come from the generation service.

"""


class RevisionError(Exception):
    """Base error for the revision pipeline."""


class ValidationError(RevisionError):
    """The instruction cannot be submitted (e.g. it is empty)."""


class SessionBusyError(ValidationError):
    """A request is already in flight for this session."""


class GatewayError(RevisionError):
    """The generation service did not produce a response."""


class TransportError(GatewayError):
    """The request could not be completed (connection, timeout, bad body)."""


class ServiceError(GatewayError):
    """The generation service answered with a non-success status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"AI request failed ({status}): {body}")


class RangeError(RevisionError):
    """A range was used after it stopped resolving inside its document."""
