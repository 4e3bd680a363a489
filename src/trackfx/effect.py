"""Effects — functions that re-run when what they read changes.

Each run pushes the effect onto the active stack, drops every dependency the
previous run collected, and lets the reads made by this run register fresh
ones. A branch that is no longer taken therefore stops re-running the effect.

Usage:
    state = reactive({"count": 0})
    log = []

    @effect
    def show():
        log.append(state["count"])
    # log == [0]

    state["count"] = 1
    # log == [0, 1]
"""

from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar

from trackfx._anchor import Dep, unsubscribe
from trackfx._tracking import effect_stack, should_track

T = TypeVar("T")

Scheduler = Callable[["ReactiveEffect[Any]"], None]


class ReactiveEffect(Generic[T]):
    """A re-runnable unit of work. Calling the handle runs it."""

    __slots__ = ("fn", "deps", "scheduler", "lazy", "active", "__weakref__")

    def __init__(
        self,
        fn: Callable[[], T],
        *,
        lazy: bool = False,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.fn = fn
        self.deps: set[Dep] = set()
        self.scheduler = scheduler
        self.lazy = lazy
        self.active = True

    def run(self) -> T:
        if not self.active:
            return self.fn()
        token = effect_stack.set(effect_stack.get() + (self,))
        # A run started from inside a paused mutator still collects deps.
        tracking = should_track.set(True)
        try:
            self.cleanup()
            return self.fn()
        finally:
            should_track.reset(tracking)
            effect_stack.reset(token)

    __call__ = run

    def cleanup(self) -> None:
        """Leave every Dep this effect joined during its last run."""
        for dep in self.deps:
            unsubscribe(dep, self)
        self.deps.clear()

    def dispose(self) -> None:
        """Stop this effect. Later triggers skip it."""
        self.active = False
        self.cleanup()

    def __repr__(self) -> str:
        name = getattr(self.fn, "__name__", repr(self.fn))
        state = "active" if self.active else "disposed"
        return f"ReactiveEffect({name}, {state}, {len(self.deps)} deps)"


def effect(
    fn: Callable[[], T],
    *,
    lazy: bool = False,
    scheduler: Scheduler | None = None,
) -> ReactiveEffect[T]:
    """Wrap fn in an effect and, unless lazy, run it once to collect deps.

    With a scheduler, triggers call scheduler(effect) instead of re-running
    the effect inline. With lazy=True, nothing runs until the returned handle
    is called; the call returns fn's result.
    """
    runner = ReactiveEffect(fn, lazy=lazy, scheduler=scheduler)
    if not lazy:
        runner.run()
    return runner


def cleanup(runner: ReactiveEffect[Any]) -> None:
    runner.cleanup()
