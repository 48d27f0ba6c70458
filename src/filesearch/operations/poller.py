"""Polling of long-running remote operations."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

from filesearch.errors import OperationFailed, OperationTimeout
from filesearch.metrics.observability import ClientMetrics, get_logger
from filesearch.models import Operation

if TYPE_CHECKING:
    from filesearch.remote.transport import RemoteTransport

FetchOperation = Callable[[Operation], Awaitable[Operation]]


@dataclass(frozen=True)
class PollOptions:
    """Interval and overall timeout for waiting on an operation."""

    interval_seconds: float = 2.0
    timeout_seconds: float = 300.0


class OperationPoller:
    """Re-fetches an operation until it is done, failed or timed out.

    Only the local wait is bounded: a timeout does not cancel the job on the
    remote side.
    """

    def __init__(
        self,
        fetch: FetchOperation,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        default_options: PollOptions | None = None,
    ) -> None:
        self._fetch = fetch
        self._sleep = sleep
        self._clock = clock
        self._default_options = default_options or PollOptions()
        self._logger = get_logger("operations")

    async def wait(self, operation: Operation, options: PollOptions | None = None) -> Operation:
        opts = options or self._default_options
        start = self._clock()
        current = operation
        polls = 0
        while not current.done:
            elapsed = self._clock() - start
            if elapsed >= opts.timeout_seconds:
                ClientMetrics.observe_operation("timeout", elapsed)
                self._logger.warning(
                    "operation.timeout",
                    operation=current.name,
                    timeout_seconds=opts.timeout_seconds,
                    polls=polls,
                )
                raise OperationTimeout(current.name, opts.timeout_seconds)
            await self._sleep(opts.interval_seconds)
            current = await self._fetch(current)
            polls += 1
            ClientMetrics.observe_poll()
            self._logger.debug("operation.poll", operation=current.name, done=current.done, polls=polls)

        elapsed = self._clock() - start
        if current.error is not None:
            ClientMetrics.observe_operation("failed", elapsed)
            self._logger.error("operation.failed", operation=current.name, error=dict(current.error))
            raise OperationFailed(current.name, current.error)
        ClientMetrics.observe_operation("done", elapsed)
        self._logger.info("operation.complete", operation=current.name, polls=polls, duration_seconds=elapsed)
        return current


def operation_fetcher(transport: RemoteTransport) -> FetchOperation:
    """Return a fetch callable that refreshes an operation through the SDK."""

    return transport.get_operation
