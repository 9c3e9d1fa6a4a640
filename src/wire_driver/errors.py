"""Exception hierarchy raised by the WebDriver client."""

from __future__ import annotations

from typing import Any, Optional

from .models import ErrorStatus


class WireDriverError(RuntimeError):
    """Base class for every error raised by this package."""


class TransportError(WireDriverError):
    """Raised when the HTTP exchange itself fails."""


class UsageError(WireDriverError):
    """Raised when the client is used out of order, e.g. without a session."""


class MalformedResponse(WireDriverError):
    """The remote end answered with something that is not a valid response.

    ``payload`` holds the raw offending value so callers (and session
    negotiation) can inspect it.
    """

    def __init__(self, message: str, payload: Any = None) -> None:
        super().__init__(message if payload is None else f"{message}: {payload!r}")
        self.payload = payload


class UnexpectedContentType(MalformedResponse):
    """The response was not labelled as JSON."""

    def __init__(self, content_type: Optional[str], body: bytes) -> None:
        super().__init__(f"expected JSON, got content type {content_type!r}", body)
        self.content_type = content_type
        self.body = body


class UnexpectedErrorStatus(MalformedResponse):
    """A W3C error string that is not valid for the HTTP status it came with."""

    def __init__(self, http_status: int, error: Optional[str], payload: Any = None) -> None:
        super().__init__(
            f"unexpected error {error!r} for HTTP status {http_status}",
            payload,
        )
        self.http_status = http_status
        self.error = error


class NegotiationFailure(MalformedResponse):
    """Session creation was rejected in a way neither dialect explains."""


class ProtocolError(WireDriverError):
    """A WebDriver error reported by the remote end."""

    def __init__(self, status: ErrorStatus, message: str) -> None:
        super().__init__(f"{status.value}: {message}")
        self.status = status
        self.message = message


class WaitTimeout(WireDriverError):
    """A bounded wait elapsed before the browser reached the expected state."""
