"""
Orchestration patterns over independent awaitables.

All of them run on the current event loop; "concurrent" means interleaved
tasks, never threads.
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Iterable, List, TypeVar

import structlog

from .errors import FetchError
from .result import Outcome

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def then(awaitable: Awaitable[Any], fn: Callable[[Any], Any]) -> Any:
    """Await ``awaitable`` and feed its value to ``fn``; awaits ``fn``'s result if needed."""
    value = await awaitable
    result = fn(value)
    if inspect.isawaitable(result):
        result = await result
    return result


async def resolve_after(seconds: float, value: T) -> T:
    await asyncio.sleep(seconds)
    return value


async def _cancel_all(tasks: Iterable[asyncio.Future]) -> int:
    pending = [t for t in tasks if not t.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)
    return len(pending)


async def gather_all(*awaitables: Awaitable[Any]) -> List[Any]:
    """Run everything concurrently and return the results in input order.

    Fails fast: the first error (in input order among those finished) is
    raised and the remaining tasks are cancelled.
    """
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    if not tasks:
        return []
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        for task in tasks:
            if task.done() and not task.cancelled() and task.exception() is not None:
                raise task.exception()
        return [task.result() for task in tasks]
    finally:
        await _cancel_all(tasks)


async def race(*awaitables: Awaitable[Any]) -> Any:
    """Return (or raise) the outcome of whichever awaitable finishes first.

    Losing branches are cancelled so their requests do not keep running.
    """
    if not awaitables:
        raise ValueError("race() needs at least one awaitable")

    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        winner = next(t for t in tasks if t.done())
    finally:
        cancelled = await _cancel_all(tasks)
        if cancelled:
            logger.debug("race_losers_cancelled", count=cancelled)
    return winner.result()


async def settle_all(*awaitables: Awaitable[Any]) -> List[Outcome]:
    """Wait for every awaitable and report each outcome in input order."""
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    return [
        Outcome.failure(r) if isinstance(r, BaseException) else Outcome.success(r)
        for r in results
    ]


async def with_fallback(awaitable: Awaitable[T], fallback: T, label: str = "") -> T:
    """Await ``awaitable``; on a ``FetchError`` substitute ``fallback``."""
    try:
        return await awaitable
    except FetchError as e:
        logger.warning("fallback_used", source=label, kind=e.kind.value, error=e.message)
        return fallback
