"""trackfx: fine-grained reactive dependency tracking for plain Python objects."""

from importlib.metadata import version as _version

__version__ = _version("trackfx")

from trackfx._tracking import (
    ITERATE_KEY,
    LENGTH_KEY,
    TriggerKind,
    active_effect,
    pause_tracking,
    track,
    trigger,
)
from trackfx.effect import ReactiveEffect, cleanup, effect
from trackfx.reactive import ReactiveFlags, is_reactive, reactive, to_raw
from trackfx.observable import ReactiveList, ReactiveObject
from trackfx.containers import ReactiveDict, ReactiveSet
from trackfx.scheduler import flush_jobs, get_pending_count, next_tick, set_scheduler
from trackfx.computed import Computed, computed
from trackfx.watch import WatchHandle, traverse, watch
from trackfx.coalesce import coalesce
# textual is not auto-imported, opt-in only

__all__ = [
    "reactive",
    "is_reactive",
    "to_raw",
    "ReactiveFlags",
    "ReactiveObject",
    "ReactiveList",
    "ReactiveDict",
    "ReactiveSet",
    "effect",
    "ReactiveEffect",
    "cleanup",
    "active_effect",
    "track",
    "trigger",
    "TriggerKind",
    "ITERATE_KEY",
    "LENGTH_KEY",
    "pause_tracking",
    "Computed",
    "computed",
    "watch",
    "WatchHandle",
    "traverse",
    "coalesce",
    "next_tick",
    "flush_jobs",
    "set_scheduler",
    "get_pending_count",
]
