"""Long-running operation handling."""

from .poller import FetchOperation, OperationPoller, PollOptions, operation_fetcher

__all__ = ["FetchOperation", "OperationPoller", "PollOptions", "operation_fetcher"]
