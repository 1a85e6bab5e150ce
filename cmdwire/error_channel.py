"""Error channel: the single reporting surface for dispatch failures.

Dispatchers emit an ErrorReport for every classified failure instead of
raising into the platform's event loop. Consumers either register a
callback with subscribe() or iterate listen().

Reports from one producer are delivered in emission order. Reports
from different events may interleave.
"""

import asyncio
from typing import Any, AsyncIterator, Awaitable, Callable, List, NamedTuple, Optional, Union

import structlog

from .exceptions import CommandError, ErrorKind
from .utils import maybe_await

logger = structlog.get_logger("cmdwire.errors")


class ErrorReport(NamedTuple):
    """One classified failure: (kind, error, event, command)."""
    kind: ErrorKind
    error: CommandError
    event: Any
    command: Any


ErrorSubscriber = Callable[[ErrorReport], Union[None, Awaitable[None]]]


class ErrorChannel:
    """Multi-producer sink for ErrorReports."""

    def __init__(self):
        self._subscribers: List[ErrorSubscriber] = []
        self._queues: List[asyncio.Queue] = []

    def subscribe(self, callback: ErrorSubscriber) -> Callable[[], None]:
        """Register a sync or async callback. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def listen(self) -> AsyncIterator[ErrorReport]:
        """Yield reports emitted after iteration starts, until cancelled."""
        queue: asyncio.Queue = asyncio.Queue()
        self._queues.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.remove(queue)

    @property
    def has_consumers(self) -> bool:
        return bool(self._subscribers or self._queues)

    async def emit(self, error: CommandError, event: Any, command: Optional[Any] = None) -> ErrorReport:
        """Deliver a failure to every consumer.

        Subscriber exceptions are logged and never propagate back into
        the dispatcher.
        """
        report = ErrorReport(
            kind=error.kind,
            error=error,
            event=event,
            command=command if command is not None else error.command,
        )

        if not self.has_consumers:
            logger.error(
                "command_error_unhandled",
                kind=report.kind.value,
                command=getattr(report.command, "name", None),
                error=str(error),
            )
            return report

        logger.debug(
            "command_error_emitted",
            kind=report.kind.value,
            command=getattr(report.command, "name", None),
        )
        for queue in list(self._queues):
            queue.put_nowait(report)
        for callback in list(self._subscribers):
            try:
                await maybe_await(callback(report))
            except Exception as e:
                logger.error(
                    "error_subscriber_failed",
                    subscriber=getattr(callback, "__qualname__", repr(callback)),
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return report
