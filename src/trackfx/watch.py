"""watch() — call back with (new, old) whenever a source changes.

The source is a getter, a Computed, or any reactive value (read deeply so
every reachable key becomes a dependency). The callback also receives
``on_invalidate``: a hook registered during one firing is called right before
the next firing's callback, so async work started by a stale firing can
notice it has been superseded. Nothing is awaited or cancelled here.

Returns a WatchHandle for cleanup via .dispose().
"""

from __future__ import annotations

from typing import Any, Callable, Literal

from trackfx._tracking import ITERATE_KEY, track
from trackfx.computed import Computed
from trackfx.containers import ReactiveDict, ReactiveSet
from trackfx.effect import ReactiveEffect, effect
from trackfx.observable import ReactiveList, ReactiveObject
from trackfx.reactive import to_raw
from trackfx.scheduler import next_tick

Flush = Literal["sync", "pre", "post"]
Invalidate = Callable[[Callable[[], Any]], None]
WatchCallback = Callable[[Any, Any, Invalidate], Any]

_FLUSH_MODES = ("sync", "pre", "post")


def traverse(value: Any, seen: set[int] | None = None) -> Any:
    """Read every key reachable from value so the active effect depends on it.

    Terminates on cyclic structures: each raw object is visited once.
    """
    if seen is None:
        seen = set()
    raw = to_raw(value)
    if id(raw) in seen:
        return value
    if isinstance(value, ReactiveDict):
        seen.add(id(raw))
        for item in value.values():
            traverse(item, seen)
    elif isinstance(value, (ReactiveList, ReactiveSet)):
        seen.add(id(raw))
        for item in value:
            traverse(item, seen)
    elif isinstance(value, ReactiveObject):
        seen.add(id(raw))
        track(raw, ITERATE_KEY)
        for name in list(vars(raw)):
            traverse(getattr(value, name), seen)
    return value


class WatchHandle:
    """Disposable handle for a watcher."""

    __slots__ = ("_effect",)

    def __init__(self, runner: ReactiveEffect[Any]) -> None:
        self._effect = runner

    @property
    def disposed(self) -> bool:
        return not self._effect.active

    def dispose(self) -> None:
        """Stop watching. Pending post-flush jobs become no-ops."""
        self._effect.dispose()


def watch(
    source: Any,
    callback: WatchCallback,
    *,
    immediate: bool = False,
    flush: Flush = "sync",
) -> WatchHandle:
    """Call callback(new, old, on_invalidate) whenever source changes.

    flush="post" defers the callback through the job queue, so several
    synchronous changes collapse into one call; "sync" and "pre" call back
    inside the write. With immediate=True the callback fires once right away
    with old=None.

    Usage:
        state = reactive({"count": 0})
        seen = []

        watch(lambda: state["count"], lambda new, old, _: seen.append((new, old)))
        state["count"] = 1
        # seen == [(1, 0)]
    """
    if flush not in _FLUSH_MODES:
        raise ValueError(f"flush must be one of {_FLUSH_MODES}, got {flush!r}")

    getter: Callable[[], Any]
    if isinstance(source, Computed):
        getter = lambda: source.value
    elif callable(source):
        getter = source
    else:
        getter = lambda: traverse(source)

    old_value: Any = None
    invalidate: Callable[[], Any] | None = None

    def on_invalidate(fn: Callable[[], Any]) -> None:
        nonlocal invalidate
        invalidate = fn

    def job() -> None:
        nonlocal old_value, invalidate
        if not runner.active:
            return
        if invalidate is not None:
            stale, invalidate = invalidate, None
            stale()
        new_value = runner()
        callback(new_value, old_value, on_invalidate)
        old_value = new_value

    def scheduler(_effect: ReactiveEffect[Any]) -> None:
        if flush == "post":
            next_tick(job)
        else:
            job()

    runner = effect(getter, lazy=True, scheduler=scheduler)
    if immediate:
        job()
    else:
        old_value = runner()
    return WatchHandle(runner)
