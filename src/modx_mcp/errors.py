"""Custom error types for the MODX bridge."""

from __future__ import annotations

from typing import TypedDict


class ModxErrorPayload(TypedDict):
    """Structured JSON payload for MODX bridge errors."""

    error: dict[str, object | None]


class ModxError(Exception):
    """Structured error containing a JSON-friendly payload."""

    error_type = "ModxError"

    def __init__(self, message: str, details: object | None = None) -> None:
        """Create a structured error payload."""
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def error(self) -> ModxErrorPayload:
        """Return the structured error payload."""
        return {
            "error": {
                "type": self.error_type,
                "message": self.message,
                "details": self.details,
            }
        }

    def to_dict(self) -> ModxErrorPayload:
        """Return the structured error payload."""
        return self.error


class UnauthenticatedError(ModxError):
    """An authenticated operation was attempted without a session."""

    error_type = "Unauthenticated"

    def __init__(self, message: str = "Not authenticated. Please login first.") -> None:
        super().__init__(message)


class SessionExpiredError(ModxError):
    """The remote system answered 401/403 to an authenticated call."""

    error_type = "SessionExpired"

    def __init__(self, message: str = "Session expired. Please login again.") -> None:
        super().__init__(message)


class RemoteHttpError(ModxError):
    """Any other non-2xx answer from the remote system."""

    error_type = "RemoteHttpError"

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(
            f"HTTP error {status_code}: {message}", {"status_code": status_code}
        )
        self.status_code = status_code


class RemoteRequestError(ModxError):
    """The request never produced an HTTP response."""

    error_type = "RemoteRequestError"


class MalformedResponseError(ModxError):
    """The remote body could not be parsed where JSON was required."""

    error_type = "MalformedResponse"


class DiscoveryError(ModxError):
    """The remote system rejected the processor discovery request."""

    error_type = "DiscoveryFailed"


class UnknownToolError(ModxError):
    """A tool name could not be resolved to a cached processor."""

    error_type = "UnknownTool"

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}", {"tool": name})
