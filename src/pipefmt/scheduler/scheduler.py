"""Cooperative scheduling primitives on top of ``asyncio``.

All formatting logic runs as coroutines on one event loop.  Control is
only given up when awaiting a process, or at an explicit
``yield_to_host`` placed before touching shared state.

- ``wrap`` turns a callback-style function into an awaitable one.
- ``join`` runs many coroutine factories with a bound on how many are in
  flight, returning results in submission order.
- ``yield_to_host`` hands control back to the loop for one tick.
"""
from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONCURRENCY = 10


def wrap(fn: Callable[..., Any]) -> Callable[..., Awaitable[Any]]:
    """Adapt ``fn(*args, callback)`` into ``await wrapped(*args)``.

    The callback is appended as the last positional argument.  The
    awaitable resolves with the first value passed to the callback.  The
    callback may be invoked from another thread.

    Example
    -------
    ::

        def compute(x, callback):
            callback(x * 2)

        doubled = await wrap(compute)(21)
    """

    @functools.wraps(fn)
    async def wrapper(*args: Any) -> Any:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()

        def _resolve(value: Any) -> None:
            if not future.done():
                future.set_result(value)

        def callback(value: Any = None) -> None:
            loop.call_soon_threadsafe(_resolve, value)

        fn(*args, callback)
        return await future

    return wrapper


async def join(
    tasks: Sequence[Callable[[], Awaitable[T]]],
    concurrency_limit: int = DEFAULT_CONCURRENCY,
) -> list[T]:
    """Run ``tasks`` with at most ``concurrency_limit`` in flight.

    Parameters
    ----------
    tasks:
        Zero-argument callables returning awaitables.  A task is not
        started until a slot is free.
    concurrency_limit:
        Maximum number of tasks running at once.

    Returns
    -------
    list[T]
        Results in the order the tasks were given, not completion order.
    """
    if concurrency_limit < 1:
        raise ValueError("concurrency_limit must be at least 1")
    if not tasks:
        return []

    semaphore = asyncio.Semaphore(concurrency_limit)

    async def _run(index: int, task: Callable[[], Awaitable[T]]) -> T:
        async with semaphore:
            logger.debug("join: starting task %d/%d", index + 1, len(tasks))
            return await task()

    return list(await asyncio.gather(*(_run(i, t) for i, t in enumerate(tasks))))


async def yield_to_host() -> None:
    """Give the event loop one tick before touching shared state."""
    await asyncio.sleep(0)
