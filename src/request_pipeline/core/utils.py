"""
Utility functions for the request pipeline.

Includes:
- Awaiting hooks that may be sync or async
- Fire-and-forget background tasks with a log-only failure sink
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Optional, Set

logger = logging.getLogger(__name__)

# Strong references to running background tasks (the event loop keeps only weak ones)
_background_tasks: Set[asyncio.Task] = set()


async def maybe_await(value: Any) -> Any:
    """
    Await ``value`` if it is awaitable, otherwise return it as is.

    Lets plugin hooks be written as plain functions or coroutines.

    Examples:
        >>> await maybe_await(1)
        1
        >>> async def hook():
        ...     return 2
        >>> await maybe_await(hook())
        2
    """
    if inspect.isawaitable(value):
        return await value
    return value


def spawn_background_task(
    awaitable: Awaitable[Any],
    failure_message: str,
    log: Optional[logging.Logger] = None,
) -> asyncio.Task:
    """
    Launch ``awaitable`` without joining it into the caller's control flow.

    A failure is only logged as a warning (prefixed with ``failure_message``)
    and never raised to the request that spawned the task.

    Args:
        awaitable: Coroutine or future to run
        failure_message: Prefix for the warning logged on failure
        log: Logger for failures (module logger by default)

    Returns:
        The spawned task (callers may await it, e.g. in tests)
    """
    sink = log or logger
    task = asyncio.ensure_future(awaitable)
    _background_tasks.add(task)

    def _on_done(done: asyncio.Task) -> None:
        _background_tasks.discard(done)
        if done.cancelled():
            return
        error = done.exception()
        if error is not None:
            sink.warning("%s %s", failure_message, error)

    task.add_done_callback(_on_done)
    return task


async def drain_background_tasks() -> None:
    """Wait until every pending background write has finished."""
    while _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)
