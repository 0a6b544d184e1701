"""Error taxonomy shared by the stores and services.

Lookups that miss are not errors: stores return ``None`` or ``False``.
"""


class TicketDeskError(Exception):
    """Base class for all ticketdesk errors."""


class InvalidArgumentError(TicketDeskError, ValueError):
    """Malformed input, e.g. an empty password or a non-positive iteration count."""


class ConflictError(TicketDeskError):
    """A uniqueness constraint was violated (duplicate username)."""


class UnauthenticatedError(TicketDeskError):
    """A token is invalid, expired or was signed with another key."""


class StorageError(TicketDeskError):
    """The underlying store failed."""


class StorageUnavailableError(StorageError):
    """The store could not be reached after all retries, or access was denied."""


class CorruptedDataError(TicketDeskError):
    """Persisted content could not be parsed."""
