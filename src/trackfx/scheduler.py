"""Deferred job queue, drained after the current synchronous work.

Post-flush watchers and coalesced effects don't run inside trigger(); they
queue a job here. Jobs run in registration order when the queue is flushed,
including jobs queued by other jobs during the same flush.

Who flushes:
- the deferral hook set with set_scheduler(), e.g. a UI loop's call_later;
- otherwise the running asyncio loop, via loop.call_soon;
- otherwise nobody: call flush_jobs() yourself.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable

logger = logging.getLogger("trackfx.scheduler")

Job = Callable[[], Any]
Defer = Callable[[Callable[[], Any]], Any]

_queue: deque[Job] = deque()
_flush_requested = False
_defer: Defer | None = None


def set_scheduler(defer: Defer | None) -> None:
    """Set the hook that schedules a flush_jobs() pass.

    defer(callback) must arrange for callback() to run once the current
    synchronous work is done:
        trackfx.set_scheduler(app.call_later)

    Pass None to go back to the asyncio / manual default.
    """
    global _defer, _flush_requested
    _defer = defer
    _flush_requested = False


def _loop_defer() -> Defer | None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return None
    return loop.call_soon


def _request_flush() -> None:
    global _flush_requested
    if _flush_requested:
        return
    defer = _defer or _loop_defer()
    if defer is None:
        return
    _flush_requested = True
    defer(flush_jobs)


def next_tick(job: Job) -> None:
    """Queue job to run on the next flush."""
    _queue.append(job)
    _request_flush()


def flush_jobs() -> int:
    """Run every queued job. Returns how many ran.

    A job that raises propagates; jobs after it stay queued and another
    flush is requested.
    """
    global _flush_requested
    # Jobs queued while flushing run in this pass, not a new one.
    _flush_requested = True
    ran = 0
    try:
        while _queue:
            job = _queue.popleft()
            ran += 1
            job()
    finally:
        _flush_requested = False
        if ran:
            logger.debug("Flushed %d deferred jobs, %d left", ran, len(_queue))
        if _queue:
            _request_flush()
    return ran


def get_pending_count() -> int:
    """Number of jobs waiting for a flush. Useful for testing."""
    return len(_queue)


def clear_pending() -> None:
    """Drop every queued job without running it."""
    global _flush_requested
    _queue.clear()
    _flush_requested = False
