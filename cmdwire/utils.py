"""Small async helpers shared by the dispatch pipeline."""

import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged.

    Checks, converters, handlers and the permission query may each be
    plain functions or coroutines.
    """
    if inspect.isawaitable(value):
        return await value
    return value
