"""Update handler capability.

Anything with an ``async def handle(self, update)`` method is an
:class:`UpdateHandler`; the long-poll engine (and any webhook front-end)
only relies on that one coroutine.  Two adapters cover the common cases:

- :class:`FunctionHandler` turns an async callable into a handler;
- :class:`SerializedHandler` guards another handler with an
  :class:`asyncio.Lock` so concurrent deliveries run one at a time.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable, Protocol, runtime_checkable

from sdk.models import Update

HandlerFunc = Callable[[Update], Awaitable[None]]


@runtime_checkable
class UpdateHandler(Protocol):
    """Processes one update; returns once the update is fully handled."""

    async def handle(self, update: Update) -> None: ...  # noqa: E704


class FunctionHandler:
    """Adapter exposing an async callable as an :class:`UpdateHandler`.

    *func* may be a coroutine function, a :func:`functools.partial` of one,
    or an object with an ``async def __call__``; it must return an awaitable.
    """

    def __init__(self, func: HandlerFunc) -> None:
        if not callable(func):
            raise TypeError(f"{func!r} is not callable")
        self._func = func

    async def handle(self, update: Update) -> None:
        result = self._func(update)
        if not inspect.isawaitable(result):
            raise TypeError(f"{self!r} returned {type(result).__name__}, expected an awaitable")
        await result

    def __repr__(self) -> str:
        return f"FunctionHandler({getattr(self._func, '__qualname__', self._func)!r})"


class SerializedHandler:
    """Wraps a handler so that at most one ``handle`` call runs at a time."""

    def __init__(self, handler: UpdateHandler) -> None:
        self._handler = handler
        self._lock = asyncio.Lock()

    async def handle(self, update: Update) -> None:
        async with self._lock:
            await self._handler.handle(update)


def as_handler(handler: UpdateHandler | HandlerFunc) -> UpdateHandler:
    """Accept either a handler object or an async callable."""
    if isinstance(handler, UpdateHandler):
        return handler
    return FunctionHandler(handler)
