"""Dependency tracking engine.

track() records that the effect on top of the active stack read a
(target, key) pair. trigger() finds every effect that read a pair which just
changed and re-runs it, or hands it to its scheduler.

The active stack and the suspend flag are context variables rather than bare
module globals, so each asyncio task sees its own call context.
"""

from __future__ import annotations

import contextvars
import enum
from contextlib import contextmanager
from typing import TYPE_CHECKING, Hashable, Iterable, Iterator

from trackfx import _anchor

if TYPE_CHECKING:
    from trackfx.effect import ReactiveEffect


class TriggerKind(enum.Enum):
    ADD = "ADD"
    SET = "SET"
    DELETE = "DELETE"


class _Sentinel:
    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name


# The target's own key set changed (enumeration, len() of dicts and sets).
ITERATE_KEY = _Sentinel("ITERATE_KEY")
# A list's length.
LENGTH_KEY = _Sentinel("LENGTH_KEY")

# Effects currently running, innermost last.
effect_stack: contextvars.ContextVar[tuple[ReactiveEffect, ...]] = contextvars.ContextVar(
    "effect_stack", default=()
)

# False while a built-in mutator runs; reads inside it register nothing.
should_track: contextvars.ContextVar[bool] = contextvars.ContextVar(
    "should_track", default=True
)


def active_effect() -> ReactiveEffect | None:
    """The effect on top of the stack, or None outside any effect."""
    stack = effect_stack.get()
    return stack[-1] if stack else None


@contextmanager
def pause_tracking() -> Iterator[None]:
    """Suspend tracking for the duration of the block.

    The previous value is restored on exit however the block ends, so nested
    pauses compose. An effect run started inside the block tracks normally.
    """
    token = should_track.set(False)
    try:
        yield
    finally:
        should_track.reset(token)


def track(target: object, key: Hashable) -> None:
    """Register the active effect as a subscriber of (target, key)."""
    effect = active_effect()
    if effect is None or not should_track.get():
        return
    dep = _anchor.dep_for(target, key)
    _anchor.subscribe(dep, effect)
    effect.deps.add(dep)


def trigger(
    target: object,
    key: Hashable,
    kind: TriggerKind = TriggerKind.SET,
    *,
    also: Iterable[Hashable] = (),
) -> None:
    """Re-run every effect that depends on (target, key).

    ``also`` names further keys changed by the same mutation; their
    subscribers join the same pass so each effect runs at most once.
    """
    record = _anchor.lookup(target)
    if record is None:
        return

    deps = record.deps
    keys = [key, *also]
    if kind is not TriggerKind.SET:
        keys.append(ITERATE_KEY)
        if isinstance(target, list):
            keys.append(LENGTH_KEY)

    # Snapshot before running: a re-run effect removes and re-adds itself.
    to_run: dict[ReactiveEffect, None] = {}
    for k in keys:
        dep = deps.get(k)
        if dep:
            to_run.update(dep.subscribers)

    current = active_effect()
    for effect in to_run:
        if effect is current or not effect.active:
            continue
        effect.cleanup()
        if effect.scheduler is not None:
            effect.scheduler(effect)
        else:
            effect.run()
