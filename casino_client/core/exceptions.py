"""
Error taxonomy for casino-client.

Every failure a caller can observe is a CasinoError. Only SessionExpired
forces the account back to the unauthenticated state; the rest are local to
the action that raised them.
"""


class CasinoError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str = "Request failed"):
        super().__init__(message)
        self.message = message


class TransportError(CasinoError):
    """The request could not complete (network failure, timeout, bad body)."""


class SessionExpired(CasinoError):
    """Credentials are gone; the user has to log in again."""

    def __init__(self, message: str = "Session expired"):
        super().__init__(message)


class ApiError(CasinoError):
    """The authority answered with a non-success status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code

    def __repr__(self):
        return f"ApiError(status_code={self.status_code}, message={self.message!r})"


class ValidationError(CasinoError):
    """Input refused client-side before any request was issued."""


class BetRejected(ValidationError):
    """Bet amount outside what the live balance and table minimum allow."""


class PendingRequestExists(ValidationError):
    def __init__(self, message: str = "You already have a pending coin request"):
        super().__init__(message)


class PermissionDenied(CasinoError):
    def __init__(self, message: str = "Staff access required"):
        super().__init__(message)


class RoundStateError(CasinoError):
    """The action is not valid for the round as it currently stands."""


class ActionInProgress(RoundStateError):
    def __init__(self, message: str = "Another action is still in progress"):
        super().__init__(message)
