"""Tests for per-event task management."""

import asyncio

import pytest

from cmdwire.task_manager import TaskManager


@pytest.mark.asyncio
async def test_spawned_tasks_run_concurrently():
    """A blocked task doesn't hold up a later one."""
    manager = TaskManager()
    gate = asyncio.Event()
    order = []

    async def slow():
        await gate.wait()
        order.append("slow")

    async def fast():
        order.append("fast")
        gate.set()

    manager.spawn(slow(), name="slow")
    manager.spawn(fast(), name="fast")
    await manager.wait_idle()
    assert order == ["fast", "slow"]
    assert manager.in_flight == 0


@pytest.mark.asyncio
async def test_failing_task_is_logged_not_raised():
    """Task exceptions stay on the task and are logged."""
    manager = TaskManager()

    async def boom():
        raise RuntimeError("escaped")

    task = manager.spawn(boom())
    await manager.wait_idle()
    assert isinstance(task.exception(), RuntimeError)


@pytest.mark.asyncio
async def test_cancel_all():
    """cancel_all cancels and forgets in-flight tasks."""
    manager = TaskManager()
    task = manager.spawn(asyncio.sleep(60))
    await asyncio.sleep(0)
    await manager.cancel_all()
    assert task.cancelled()
    assert manager.in_flight == 0
