"""Helpers for collaborators that may be either sync or async."""

import inspect
from typing import Any, Callable


async def maybe_await(value: Any) -> Any:
    """Await ``value`` if it is awaitable, return it unchanged otherwise."""
    if inspect.isawaitable(value):
        return await value
    return value


async def invoke(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Call ``func`` and await the result when it is a coroutine."""
    return await maybe_await(func(*args, **kwargs))
