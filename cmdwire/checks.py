"""Check pipeline for text commands.

Checks are user-supplied predicates run after the capability gate and
before argument conversion. A predicate returning False is reported as
CheckFailed. A predicate that raises aborts the dispatch without any
error channel report; the exception is only logged.
"""

import structlog

from .exceptions import CheckFailed
from .models import Command, MessageEvent
from .utils import maybe_await

logger = structlog.get_logger("cmdwire.dispatch")


class CheckAborted(Exception):
    """A check predicate raised. Dispatch stops silently."""

    def __init__(self, command: Command, original: BaseException):
        self.command = command
        self.original = original
        super().__init__(str(original))


async def run_checks(command: Command, event: MessageEvent) -> None:
    """Evaluate a command's checks in registration order.

    Raises:
        CheckFailed: The first predicate that returned a falsy value.
        CheckAborted: A predicate raised.
    """
    for index, check in enumerate(command.checks):
        try:
            passed = await maybe_await(check(event))
        except Exception as e:
            logger.warning(
                "check_raised",
                command=command.name,
                index=index,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise CheckAborted(command, e) from e
        if not passed:
            logger.debug("check_failed", command=command.name, index=index)
            raise CheckFailed(command)
