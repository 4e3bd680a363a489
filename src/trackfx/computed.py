"""Computed values — lazy, memoized derived state.

A Computed wraps a function in a lazy effect. Reading ``.value`` runs the
function only when a dependency changed since the last read; otherwise the
cached result comes back. The Computed is itself a tracked target, so an
effect reading ``.value`` re-runs when the derivation goes stale.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from trackfx._tracking import TriggerKind, track, trigger
from trackfx.effect import ReactiveEffect, effect

T = TypeVar("T")

_UNSET = object()


class Computed(Generic[T]):
    """A derived value that auto-tracks dependencies and caches the result."""

    __slots__ = ("_fn", "_effect", "_value", "_dirty", "__weakref__")

    def __init__(self, fn: Callable[[], T]) -> None:
        self._fn = fn
        self._value: T | object = _UNSET
        self._dirty = True
        self._effect: ReactiveEffect[T] = effect(fn, lazy=True, scheduler=self._invalidate)

    @property
    def value(self) -> T:
        """Read the computed value. Recomputes if dirty."""
        if self._dirty:
            self._value = self._effect()
            self._dirty = False
        track(self, "value")
        return self._value  # type: ignore[return-value]

    def _invalidate(self, _effect: ReactiveEffect[T]) -> None:
        """Scheduler for the inner effect: a dependency changed.

        Only the clean -> dirty transition notifies readers; further upstream
        writes before the next read are absorbed.
        """
        if not self._dirty:
            self._dirty = True
            trigger(self, "value", TriggerKind.SET)

    def dispose(self) -> None:
        """Disconnect from all dependencies. The next read re-evaluates from scratch."""
        self._effect.cleanup()
        self._dirty = True
        self._value = _UNSET

    def __repr__(self) -> str:
        state = "dirty" if self._dirty else f"cached={self._value!r}"
        name = getattr(self._fn, "__name__", repr(self._fn))
        return f"Computed({name}, {state})"


def computed(fn: Callable[[], T]) -> Computed[T]:
    """Decorator/factory to create a Computed from a function.

    Usage:
        state = reactive({"count": 1})

        @computed
        def doubled():
            return state["count"] * 2

        doubled.value  # 2
        state["count"] = 5
        doubled.value  # 10
    """
    return Computed(fn)
