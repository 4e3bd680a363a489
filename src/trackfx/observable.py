"""Attribute and list facades: interception for plain objects and lists.

ReactiveObject stands in for any instance with a __dict__: attribute reads
track the attribute name, writes trigger it. Properties and methods defined
on the target's class run with the facade as ``self``, so whatever they read
or write internally is tracked too. The facade reports the target's class as
``__class__``, so isinstance() and zero-argument super() accept it.

ReactiveList stands in for a list. Reads track indices and LENGTH_KEY; every
mutator runs with tracking paused and notifies each index it shifted.
"""

from __future__ import annotations

import functools
import operator
import sys
import types
from collections.abc import MutableSequence
from typing import Any, Callable, Generic, Iterable, Iterator, TypeVar

from trackfx._tracking import ITERATE_KEY, LENGTH_KEY, TriggerKind, pause_tracking, track, trigger
from trackfx.reactive import ReactiveBase, ReactiveFlags, reactive, to_raw

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])

_MISSING = object()
_FLAG_NAMES = frozenset(flag.value for flag in ReactiveFlags)


def has_changed(old: object, new: object) -> bool:
    return old is not new and old != new


def _class_attr(target: object, name: str) -> Any:
    for klass in type(target).__mro__:
        if name in klass.__dict__:
            return klass.__dict__[name]
    return _MISSING


def _has_own(target: object, name: str) -> bool:
    own = getattr(target, "__dict__", None)
    if own is not None and name in own:
        return True
    slot = _class_attr(target, name)
    return isinstance(slot, types.MemberDescriptorType) and hasattr(target, name)


class ReactiveObject(ReactiveBase, raw_type=object):
    """Attribute facade over an instance.

    Only attribute access is intercepted; operators are not forwarded.
    """

    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        target = self._trackfx_target
        track(target, name)
        attr = _class_attr(target, name)
        if isinstance(attr, property) or (
            isinstance(attr, types.FunctionType) and not _has_own(target, name)
        ):
            value = attr.__get__(self, type(target))
        else:
            value = getattr(target, name)
        return reactive(value)

    @property
    def __class__(self) -> type:
        # Zero-argument super() in a method bound to the facade checks this.
        return type(self._trackfx_target)

    @property
    def __dict__(self) -> dict[str, Any]:
        """The target's own attributes, tracked as a whole."""
        target = self._trackfx_target
        own = vars(target)
        track(target, ITERATE_KEY)
        for name in own:
            track(target, name)
        return own

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _FLAG_NAMES:
            raise AttributeError(f"{name} is read-only")
        target = self._trackfx_target
        attr = _class_attr(target, name)
        if isinstance(attr, property):
            attr.__set__(self, value)
            return
        value = to_raw(value)
        had = _has_own(target, name)
        old = getattr(target, name) if had else _MISSING
        setattr(target, name, value)
        if not had:
            trigger(target, name, TriggerKind.ADD)
        elif has_changed(old, value):
            trigger(target, name, TriggerKind.SET)

    def __delattr__(self, name: str) -> None:
        target = self._trackfx_target
        attr = _class_attr(target, name)
        if isinstance(attr, property):
            attr.__delete__(self)
            return
        had = _has_own(target, name)
        delattr(target, name)
        if had:
            trigger(target, name, TriggerKind.DELETE)

    def __dir__(self) -> list[str]:
        target = self._trackfx_target
        track(target, ITERATE_KEY)
        return dir(target)

    def __repr__(self) -> str:
        return f"ReactiveObject({self._trackfx_target!r})"


def _untracked(method: F) -> F:
    """Run a list mutator with tracking paused.

    Mutators read the length they are about to change; left tracked, that
    read would subscribe the calling effect to its own write.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with pause_tracking():
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


def _slice_start(index: slice, length: int) -> int:
    span = range(*index.indices(length))
    return min(span) if span else min(span.start, length)


class ReactiveList(ReactiveBase, MutableSequence, Generic[T], raw_type=list):
    """A list facade that tracks indices and length.

    Writing one past the end appends, and ``length`` can be assigned to
    truncate or pad with None.
    """

    __slots__ = ()

    @property
    def _items(self) -> list[T]:
        return self._trackfx_target

    def _notify_from(self, start: int, old_len: int) -> None:
        """Notify every index from start on, and the length if it moved."""
        items = self._items
        new_len = len(items)
        changed = range(start, max(old_len, new_len))
        if new_len > old_len:
            trigger(items, LENGTH_KEY, TriggerKind.ADD, also=changed)
        elif new_len < old_len:
            trigger(items, LENGTH_KEY, TriggerKind.DELETE, also=changed)
        elif changed:
            trigger(items, changed[0], TriggerKind.SET, also=changed[1:])

    # --- Read operations (track) ---

    def __getitem__(self, index):
        items = self._items
        if isinstance(index, slice):
            track(items, LENGTH_KEY)
            span = range(*index.indices(len(items)))
            for i in span:
                track(items, i)
            return [reactive(items[i]) for i in span]
        i = operator.index(index)
        if i < 0:
            track(items, LENGTH_KEY)
            i += len(items)
        track(items, i)
        if not 0 <= i < len(items):
            track(items, LENGTH_KEY)
            raise IndexError("list index out of range")
        return reactive(items[i])

    def __len__(self) -> int:
        track(self._items, LENGTH_KEY)
        return len(self._items)

    @property
    def length(self) -> int:
        return len(self)

    @length.setter
    def length(self, new_len: int) -> None:
        items = self._items
        old_len = len(items)
        if new_len < 0:
            raise ValueError("length must be non-negative")
        if new_len > old_len:
            items.extend([None] * (new_len - old_len))
        elif new_len < old_len:
            del items[new_len:]
        else:
            return
        self._notify_from(min(old_len, new_len), old_len)

    def __iter__(self) -> Iterator[T]:
        items = self._items
        track(items, LENGTH_KEY)
        i = 0
        while i < len(items):
            track(items, i)
            yield reactive(items[i])
            i += 1

    def __reversed__(self) -> Iterator[T]:
        items = self._items
        track(items, LENGTH_KEY)
        for i in range(len(items) - 1, -1, -1):
            if i < len(items):
                track(items, i)
                yield reactive(items[i])

    def __bool__(self) -> bool:
        track(self._items, LENGTH_KEY)
        return bool(self._items)

    # Search methods look through the wrapped elements first, then through
    # the raw ones: a raw object never equals its facade.

    def __contains__(self, value: object) -> bool:
        for item in self:
            if item is value or item == value:
                return True
        return to_raw(value) in self._items

    def index(self, value: object, start: int = 0, stop: int = sys.maxsize) -> int:
        span = range(*slice(start, stop).indices(len(self)))
        for i in span:
            item = self[i]
            if item is value or item == value:
                return i
        return self._items.index(to_raw(value), start, stop)

    def rindex(self, value: object) -> int:
        """Index of the last occurrence of value (lastIndexOf)."""
        for i in range(len(self) - 1, -1, -1):
            item = self[i]
            if item is value or item == value:
                return i
        raw = to_raw(value)
        items = self._items
        for i in range(len(items) - 1, -1, -1):
            if items[i] is raw or items[i] == raw:
                return i
        raise ValueError(f"{value!r} is not in list")

    def count(self, value: object) -> int:
        found = sum(1 for item in self if item is value or item == value)
        return found or self._items.count(to_raw(value))

    def __eq__(self, other: object) -> bool:
        return [to_raw(item) for item in self] == to_raw(other)

    __hash__ = None  # type: ignore[assignment]

    # --- Write operations (trigger) ---

    @_untracked
    def __setitem__(self, index, value) -> None:
        items = self._items
        old_len = len(items)
        if isinstance(index, slice):
            start = _slice_start(index, old_len)
            items[index] = [to_raw(v) for v in value]
            self._notify_from(start, old_len)
            return
        i = operator.index(index)
        if i < 0:
            i += old_len
        value = to_raw(value)
        if i == old_len:
            items.append(value)
            trigger(items, i, TriggerKind.ADD)
            return
        if not 0 <= i < old_len:
            raise IndexError("list assignment index out of range")
        old = items[i]
        items[i] = value
        if has_changed(old, value):
            trigger(items, i, TriggerKind.SET)

    @_untracked
    def __delitem__(self, index) -> None:
        items = self._items
        old_len = len(items)
        if isinstance(index, slice):
            start = _slice_start(index, old_len)
        else:
            start = operator.index(index)
            if start < 0:
                start += old_len
        del items[index]
        self._notify_from(start, old_len)

    @_untracked
    def append(self, value: T) -> None:
        self[len(self)] = value

    @_untracked
    def pop(self, index: int = -1) -> T:
        items = self._items
        old_len = len(items)
        value = items.pop(index)
        self._notify_from(index + old_len if index < 0 else index, old_len)
        return reactive(value)

    @_untracked
    def insert(self, index: int, value: T) -> None:
        items = self._items
        old_len = len(items)
        start = index + old_len if index < 0 else index
        items.insert(index, to_raw(value))
        self._notify_from(min(max(start, 0), old_len), old_len)

    @_untracked
    def extend(self, values: Iterable[T]) -> None:
        items = self._items
        old_len = len(items)
        items.extend(to_raw(v) for v in values)
        self._notify_from(old_len, old_len)

    def __iadd__(self, values: Iterable[T]) -> ReactiveList[T]:
        self.extend(values)
        return self

    @_untracked
    def remove(self, value: T) -> None:
        del self[self.index(value)]

    @_untracked
    def clear(self) -> None:
        old_len = len(self._items)
        self._items.clear()
        self._notify_from(0, old_len)

    @_untracked
    def sort(self, *, key: Callable[[Any], Any] | None = None, reverse: bool = False) -> None:
        self._items.sort(key=key, reverse=reverse)
        self._notify_from(0, len(self._items))

    @_untracked
    def reverse(self) -> None:
        self._items.reverse()
        self._notify_from(0, len(self._items))

    def __repr__(self) -> str:
        return f"ReactiveList({self._items!r})"
