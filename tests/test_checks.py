"""Tests for the check pipeline."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from cmdwire.checks import CheckAborted, run_checks
from cmdwire.exceptions import CheckFailed
from cmdwire.models import Command, MessageEvent


async def _noop(*args):
    return None


def _event():
    return MessageEvent(author_id="1", channel_id="c1", content="!x")


@pytest.mark.asyncio
async def test_all_checks_pass():
    """Passing checks let the pipeline continue."""
    first = MagicMock(return_value=True)
    second = AsyncMock(return_value=True)
    cmd = Command(name="x", handler=_noop, checks=[first, second])
    event = _event()
    await run_checks(cmd, event)
    first.assert_called_once_with(event)
    second.assert_awaited_once_with(event)


@pytest.mark.asyncio
async def test_first_false_check_stops_pipeline():
    """The first falsy check raises CheckFailed and skips the rest."""
    first = MagicMock(return_value=False)
    second = MagicMock(return_value=True)
    cmd = Command(name="x", handler=_noop, checks=[first, second])
    with pytest.raises(CheckFailed) as exc_info:
        await run_checks(cmd, _event())
    assert exc_info.value.command is cmd
    second.assert_not_called()


@pytest.mark.asyncio
async def test_async_false_check_fails():
    """Coroutine checks are awaited before judging the result."""
    cmd = Command(name="x", handler=_noop, checks=[AsyncMock(return_value=False)])
    with pytest.raises(CheckFailed):
        await run_checks(cmd, _event())


@pytest.mark.asyncio
async def test_raising_check_aborts():
    """A raising check surfaces as CheckAborted, not CheckFailed."""
    boom = RuntimeError("db down")
    later = MagicMock(return_value=True)
    cmd = Command(name="x", handler=_noop, checks=[MagicMock(side_effect=boom), later])
    with pytest.raises(CheckAborted) as exc_info:
        await run_checks(cmd, _event())
    assert exc_info.value.original is boom
    later.assert_not_called()
