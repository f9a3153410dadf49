"""
Detached (fire-and-forget) task execution.

A detached task runs after the caller has moved on. Its failure is logged here
and never reaches the code that scheduled it.

Two schedulers are provided:
- FastAPITaskScheduler: runs tasks after the HTTP response has been sent,
  still inside the request's lifecycle (Starlette background tasks).
- ThreadPoolTaskScheduler: runs tasks on a worker pool; `shutdown()` waits for
  every submitted task to finish.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable

from fastapi import BackgroundTasks

logger = logging.getLogger(__name__)


def _task_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


def run_detached(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
    """Run `fn`, logging any exception instead of raising it."""

    try:
        fn(*args, **kwargs)
    except Exception:
        logger.exception("Detached task failed", extra={"task": _task_name(fn)})


class FastAPITaskScheduler:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._tasks = background_tasks

    def detach(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._tasks.add_task(run_detached, fn, *args, **kwargs)


class ThreadPoolTaskScheduler:
    def __init__(self, max_workers: int = 4) -> None:
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="detached")

    def detach(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._executor.submit(run_detached, fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["FastAPITaskScheduler", "ThreadPoolTaskScheduler", "run_detached"]
