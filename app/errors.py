from __future__ import annotations


GENERIC_ERROR = "Something went wrong. Please try again."


class ApiError(Exception):
    """A non-2xx response from the backend."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def reason(self) -> str:
        # Callers match on the prefix to special-case a status without a
        # second round trip, e.g. "STATUS_400: ..." for a duplicate submit.
        return f"STATUS_{self.status}: {self.message}"

    def has_status(self, status: int) -> bool:
        return self.reason.startswith(f"STATUS_{status}:")


class AuthExpiredError(ApiError):
    """401 from the backend; the shared handler has already run."""

    def __init__(self, message: str = "Session expired") -> None:
        super().__init__(401, message)


class NotAuthenticatedError(Exception):
    """No stored token; the request was never sent."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)
        self.message = message


class RequestAborted(Exception):
    """The fetch scope that owned the request was torn down."""


class ValidationBlocked(Exception):
    """Client-side validation stopped the action before any request."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def reraise_auth(*results: object) -> None:
    """Re-raise a 401 hidden in ``asyncio.gather(..., return_exceptions=True)``."""
    for r in results:
        if isinstance(r, AuthExpiredError):
            raise r


def error_message(exc: BaseException, fallback: str = GENERIC_ERROR) -> str:
    if isinstance(exc, ApiError):
        return exc.reason
    if isinstance(exc, (NotAuthenticatedError, ValidationBlocked)):
        return exc.message
    return str(exc) or fallback


def display_message(exc: BaseException, fallback: str = GENERIC_ERROR) -> str:
    """Human-readable text for an inline error banner."""
    if isinstance(exc, ApiError):
        return exc.message or fallback
    if isinstance(exc, (NotAuthenticatedError, ValidationBlocked)):
        return exc.message
    return fallback
