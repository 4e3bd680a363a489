"""Collapse a burst of changes into one deferred re-run.

Many writes, no intermediate states: the effect runs once at creation, and
afterwards at most once per flush of the job queue no matter how many of
its dependencies changed in between.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from trackfx.effect import ReactiveEffect, effect
from trackfx.scheduler import next_tick

T = TypeVar("T")


class _Coalescer:
    """Pending-job set plus an in-flight flag, flushed through next_tick()."""

    __slots__ = ("_jobs", "_flushing")

    def __init__(self) -> None:
        self._jobs: dict[ReactiveEffect[Any], None] = {}
        self._flushing = False

    def schedule(self, runner: ReactiveEffect[Any]) -> None:
        self._jobs[runner] = None
        if self._flushing:
            return
        self._flushing = True
        next_tick(self._flush)

    def _flush(self) -> None:
        jobs = list(self._jobs)
        self._jobs.clear()
        try:
            for runner in jobs:
                if runner.active:
                    runner()
        finally:
            self._flushing = False
        # Triggered while running: go again on the next flush.
        if self._jobs:
            self._flushing = True
            next_tick(self._flush)


def coalesce(fn: Callable[[], T]) -> ReactiveEffect[T]:
    """Run fn as an effect whose re-runs are batched per tick.

    Usage:
        state = reactive({"a": 1, "b": 2})
        log = []

        coalesce(lambda: log.append(state["a"] + state["b"]))
        # log == [3]

        state["a"] = 10
        state["b"] = 20
        flush_jobs()
        # log == [3, 30]
    """
    return effect(fn, scheduler=_Coalescer().schedule)
