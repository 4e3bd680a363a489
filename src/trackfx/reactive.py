"""reactive() — wrap a plain object in a tracking facade.

Facades are thin handles over a TargetRecord from _anchor. The record keeps a
weak reference to the facade, so wrapping the same object twice returns the
same facade for as long as that facade is alive.
"""

from __future__ import annotations

import enum
import functools
import io
import types
import weakref
from typing import Any, TypeVar

from trackfx import _anchor

T = TypeVar("T")


class ReactiveFlags(str, enum.Enum):
    """Reserved facade attributes. Never part of the target's key set."""

    IS_REACTIVE = "__trackfx_is_reactive__"
    RAW = "__trackfx_raw__"


# Instances with a __dict__ that must still be handed out as-is.
_OPAQUE_TYPES = (
    type,
    types.ModuleType,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    functools.partial,
    enum.Enum,
    BaseException,
    io.IOBase,
)

# raw type -> facade class, filled in by ReactiveBase subclasses.
_FACADE_TYPES: dict[type, type[ReactiveBase]] = {}


class ReactiveBase:
    """Common base of every facade type.

    Subclasses name the raw type they wrap:
        class ReactiveList(ReactiveBase, raw_type=list): ...
    """

    __slots__ = ("_trackfx_record", "_trackfx_target", "__weakref__")

    def __init_subclass__(cls, raw_type: type | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if raw_type is not None:
            _FACADE_TYPES[raw_type] = cls

    def __init__(self, record: _anchor.TargetRecord) -> None:
        object.__setattr__(self, "_trackfx_record", record)
        # The record may hold its target weakly; a live facade keeps it.
        object.__setattr__(self, "_trackfx_target", record.target)

    @property
    def __trackfx_is_reactive__(self) -> bool:
        return True

    @property
    def __trackfx_raw__(self) -> Any:
        return self._trackfx_target


def _facade_type(target: object) -> type[ReactiveBase] | None:
    for raw_type, facade_type in _FACADE_TYPES.items():
        if raw_type is not object and isinstance(target, raw_type):
            return facade_type
    if isinstance(target, _OPAQUE_TYPES):
        return None
    if getattr(type(target), "__trackfx_skip__", False):
        return None
    if not hasattr(target, "__dict__"):
        return None
    return _FACADE_TYPES.get(object)


def reactive(target: T) -> T:
    """Return the tracking facade for target.

    dict, list and set get their container facades; other instances that
    carry a __dict__ get an attribute facade. Anything else (numbers,
    strings, tuples, None, functions, classes, and instances of classes
    that set ``__trackfx_skip__ = True``) is returned unchanged.
    """
    if isinstance(target, ReactiveBase):
        return target
    facade_type = _facade_type(target)
    if facade_type is None:
        return target
    record = _anchor.record_for(target)
    existing = record.facade()
    if existing is not None:
        return existing
    facade = facade_type(record)
    record.facade_ref = weakref.ref(facade)
    return facade  # type: ignore[return-value]


def is_reactive(value: object) -> bool:
    return isinstance(value, ReactiveBase)


def to_raw(value: T) -> T:
    """The object under a facade; any other value is returned as-is."""
    if isinstance(value, ReactiveBase):
        return value.__trackfx_raw__
    return value
