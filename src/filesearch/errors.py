"""Error taxonomy shared by the client, CLI and HTTP surfaces."""

from __future__ import annotations

from typing import Any, Mapping


class FileSearchError(RuntimeError):
    """Base class for every error raised by filesearch."""


class ConfigurationError(FileSearchError):
    """Raised at construction time when required configuration is missing."""


class OperationTimeout(FileSearchError):
    """Raised when a long-running operation is not done within the timeout.

    The remote operation keeps running; only the local wait is abandoned.
    """

    def __init__(self, operation_name: str, timeout_seconds: float) -> None:
        super().__init__(f'Operation "{operation_name}" timed out after {timeout_seconds:g}s')
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds


class OperationFailed(FileSearchError):
    """Raised when a long-running operation terminates with an error payload."""

    def __init__(self, operation_name: str, error: Mapping[str, Any]) -> None:
        message = error.get("message") if isinstance(error, Mapping) else None
        detail = f": {message}" if message else ""
        super().__init__(f'Operation "{operation_name}" failed{detail}')
        self.operation_name = operation_name
        self.error = error


class RemoteError(FileSearchError):
    """Raised when the remote API answers with an error status."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        status: str | None = None,
        payload: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.status = status
        self.payload = payload or {}


class NotFound(RemoteError):
    """The addressed store, document or operation does not exist."""


class PreconditionFailed(RemoteError):
    """The remote side refused the call in the resource's current state."""


class InvalidArgument(RemoteError):
    """A request argument was rejected locally or by the remote side."""


__all__ = [
    "ConfigurationError",
    "FileSearchError",
    "InvalidArgument",
    "NotFound",
    "OperationFailed",
    "OperationTimeout",
    "PreconditionFailed",
    "RemoteError",
]
