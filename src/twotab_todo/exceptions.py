"""Error taxonomy for the todo engine.

Validation failures are raised by the local store and turned into user notices
by the todo service. Persistence failures are raised by state caches and
absorbed by the store. Remote failures are raised by remote adapters and caught
at the sync coordinator boundary.
"""


class TodoError(Exception):
    """Base class for all engine errors."""


class ValidationFailure(TodoError, ValueError):
    """Input rejected locally (empty title, duplicate tag name, bad reference)."""


class PersistenceFailure(TodoError):
    """The durable cache could not be read or written."""


class RemoteTransportFailure(TodoError):
    """A call to the remote store failed."""


class NotConfigured(RemoteTransportFailure):
    """The remote store has no configuration and cannot be contacted."""

    def __init__(self, message: str = "Remote sync is not configured"):
        super().__init__(message)
