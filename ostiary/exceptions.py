"""
Error taxonomy shared by every Ostiary component.

"Not found" and "invalid token" are routine outcomes: drivers catch them and
return an absent result. Everything else propagates to the caller.
"""


class OstiaryError(Exception):
    """Base class for all Ostiary errors."""

    retryable = False

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InvalidInput(OstiaryError, ValueError):
    """Malformed caller arguments, detected locally."""


class TokenInvalid(OstiaryError):
    """Bad token structure, bad signature, or session identifier mismatch."""


class RecordNotFound(OstiaryError):
    """No backing record, including expired and reaped records."""


class RecordCorrupt(OstiaryError):
    """A stored record exists but cannot be parsed."""


class AllocationExhausted(OstiaryError):
    """A unique session identifier could not be allocated."""


class BackendUnavailable(OstiaryError):
    """Network or storage I/O failure, including timeouts."""

    retryable = True


class BackendProtocolError(OstiaryError):
    """The remote authority returned a malformed or unexpected response."""
