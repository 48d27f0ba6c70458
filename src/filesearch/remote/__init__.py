"""SDK access to the hosted File Search API."""

from .transport import RemoteTransport, error_from_api_error

__all__ = ["RemoteTransport", "error_from_api_error"]
