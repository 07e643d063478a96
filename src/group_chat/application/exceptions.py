from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ValidationError(AppError):
    pass


class AuthenticationError(AppError):
    pass


class SyncError(AppError):
    """Base for failures talking to the chat server from the client."""


class NetworkFailure(SyncError):
    """The request did not complete."""


class ServerError(SyncError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        super().__init__(f"HTTP {status_code}: {detail}" if detail else f"HTTP {status_code}")


class MalformedResponse(SyncError):
    """The response body did not have the expected shape."""


class SendFailedError(AppError):
    """A message could not be delivered; its optimistic entry was rolled back."""
