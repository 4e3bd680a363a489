"""Textual integration for trackfx. Opt-in, requires textual.

Lets widgets read and write reactive state from effects and watchers without
tripping over a widget tree that is being rebuilt or an app that has stopped.
Guarding, NoMatches handling and thread marshaling live here, not at call
sites, and the core package stays free of any Textual import.

Pause state is owned by this module and keyed by id(app), so several apps
can coexist in tests.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from textual.css.query import NoMatches

from trackfx.effect import ReactiveEffect
from trackfx.effect import effect as _effect
from trackfx.scheduler import set_scheduler
from trackfx.watch import WatchHandle
from trackfx.watch import watch as _watch

logger = logging.getLogger("trackfx.textual")

_paused_apps: set[int] = set()
# Effects that were due while their app was unsafe, keyed by id(app).
_missed: dict[int, dict[ReactiveEffect[Any], None]] = {}


@contextmanager
def pause(app) -> Iterator[None]:
    """Suspend guarded effects and callbacks during widget replacement.

    Effects that were due during the pause run once when it ends,
    also when the block raises.
    """
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)
        # Writes made before an error still reached the store.
        resume(app)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def resume(app) -> int:
    """Run the effects skipped while app was unsafe. Returns how many ran."""
    if not is_safe(app):
        return 0
    ran = 0
    for runner in _missed.pop(id(app), {}):
        if runner.active:
            runner()
            ran += 1
    if ran:
        logger.debug("Replayed %d deferred effects", ran)
    return ran


def forget(app) -> int:
    """Drop the effects deferred for an app that will not run again.

    Call it once the app has exited. Returns how many were dropped.
    """
    dropped = _missed.pop(id(app), {})
    if dropped:
        logger.debug("Dropped %d deferred effects", len(dropped))
    return len(dropped)


def bind_scheduler(app) -> None:
    """Run post-flush jobs on the app's message loop."""
    set_scheduler(app.call_later)


def _swallow_nomatch(fn: Callable[..., Any]) -> Callable[..., None]:
    def _safe(*args: Any) -> None:
        try:
            fn(*args)
        except NoMatches:
            logger.debug("Widget query missed in %r, skipped", fn)

    return _safe


def effect(app, fn: Callable[[], Any]) -> ReactiveEffect[None]:
    """effect() that safely bridges to Textual widgets.

    Runs are deferred while the app is paused or not running, NoMatches from
    widget queries is swallowed, and runs triggered from another thread are
    marshaled via call_from_thread.
    """
    main = threading.get_ident()

    def _schedule(runner: ReactiveEffect[None]) -> None:
        if not is_safe(app):
            logger.debug("App paused or stopped, deferred %r", fn)
            _missed.setdefault(id(app), {})[runner] = None
        elif threading.get_ident() != main:
            app.call_from_thread(runner)
        else:
            runner()

    runner = _effect(_swallow_nomatch(fn), lazy=True, scheduler=_schedule)
    _schedule(runner)
    return runner


def watch(app, source: Any, callback: Callable[..., Any], **options: Any) -> WatchHandle:
    """watch() whose callback is skipped while the app is unsafe.

    The source keeps being tracked while callbacks are skipped, so later
    firings still report fresh values.
    """
    main = threading.get_ident()
    safe = _swallow_nomatch(callback)

    def _guarded(*args: Any) -> None:
        if not is_safe(app):
            logger.debug("App paused or stopped, skipped %r", callback)
            return
        if threading.get_ident() != main:
            app.call_from_thread(safe, *args)
        else:
            safe(*args)

    return _watch(source, _guarded, **options)
