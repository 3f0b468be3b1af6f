"""SDK-specific exceptions for Zep thread-store API errors."""

from __future__ import annotations

from typing import Any


class ZepError(Exception):
    """Base SDK exception, also used for status codes outside the taxonomy.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code when available.
        code: API error code when available.
        details: Additional metadata; ``original_message`` holds the raw
            transport message when one was available.
    """

    summary = "Zep request failed."

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    @property
    def original_message(self) -> str | None:
        if self.details and isinstance(self.details.get("original_message"), str):
            return self.details["original_message"]
        return None


class AuthenticationError(ZepError):
    """Raised for authentication/authorization failures."""

    summary = "Zep rejected the credentials; check the API key."


class NotFoundError(ZepError):
    """Raised when the addressed thread or user does not exist."""

    summary = "Zep resource not found."


class RateLimitError(ZepError):
    """Raised when the API rate limit is exceeded."""

    summary = "Zep rate limit exceeded; back off before retrying."


class ServerError(ZepError):
    """Raised for server-side or transient infrastructure failures."""

    summary = "Zep service error."


def exception_for_status(status_code: int | None) -> type[ZepError]:
    """Return the taxonomy class for an HTTP status code."""
    if status_code in (401, 403):
        return AuthenticationError
    if status_code == 404:
        return NotFoundError
    if status_code == 429:
        return RateLimitError
    if status_code is not None and 500 <= status_code <= 599:
        return ServerError
    return ZepError
