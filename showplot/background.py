"""Helpers for running work off the request path.

``spawn`` keeps a reference to fire-and-forget tasks (the database reconnect
loop) and logs their failures; ``run_sync`` pushes blocking calls such as
Google certificate fetches or PDF rendering onto the default executor.
"""
from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Awaitable, Callable, Optional, Any, Set

logger = logging.getLogger(__name__)

_background_tasks: Set[asyncio.Task[Any]] = set()


def spawn(coro: Awaitable[Any], *, name: Optional[str] = None) -> asyncio.Task[Any]:
    """Schedule ``coro`` and hold on to it until it finishes."""
    task = asyncio.create_task(coro, name=name)  # type: ignore[arg-type]
    _background_tasks.add(task)

    def _finished(t: asyncio.Task[Any]) -> None:
        _background_tasks.discard(t)
        if t.cancelled():
            logger.debug("Background task %s cancelled", name or t)
            return
        exc = t.exception()
        if exc is not None:
            logger.error("Background task %s failed", name or t, exc_info=exc)

    task.add_done_callback(_finished)
    return task


def cancel_all() -> None:
    for task in list(_background_tasks):
        task.cancel()


async def run_sync(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Execute blocking code in the default executor and await the result."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(func, *args, **kwargs))


__all__ = ["spawn", "cancel_all", "run_sync"]
