"""Dict and set facades.

Membership reads track the key itself; size and iteration track ITERATE_KEY,
so replacing a value never re-runs an effect that only enumerated keys.
Mutations that change nothing (adding a present element, discarding an
absent one, clearing an empty container) trigger nothing.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping, MutableSet
from typing import Any, Callable, Generic, Hashable, Iterable, Iterator, TypeVar

from trackfx._tracking import ITERATE_KEY, TriggerKind, track, trigger
from trackfx.observable import has_changed
from trackfx.reactive import ReactiveBase, reactive, to_raw

KT = TypeVar("KT", bound=Hashable)
VT = TypeVar("VT")
T = TypeVar("T", bound=Hashable)

_MISSING = object()


class ReactiveDict(ReactiveBase, MutableMapping, Generic[KT, VT], raw_type=dict):
    """A dict facade. Keys and values that are objects come back wrapped.

    keys(), values() and items() are the standard live views; iterating
    values or items tracks every key read.
    """

    __slots__ = ()

    @property
    def _data(self) -> dict[KT, VT]:
        return self._trackfx_target

    # --- Read operations (track) ---

    def __getitem__(self, key: KT) -> VT:
        key = to_raw(key)
        track(self._data, key)
        return reactive(self._data[key])

    def get(self, key: KT, default: VT | None = None) -> VT | None:
        key = to_raw(key)
        track(self._data, key)
        return reactive(self._data.get(key, default))

    def __contains__(self, key: object) -> bool:
        key = to_raw(key)
        track(self._data, key)
        return key in self._data

    def __len__(self) -> int:
        track(self._data, ITERATE_KEY)
        return len(self._data)

    def __bool__(self) -> bool:
        track(self._data, ITERATE_KEY)
        return bool(self._data)

    def __iter__(self) -> Iterator[KT]:
        data = self._data
        track(data, ITERATE_KEY)
        for key in list(data):
            yield reactive(key)

    def __reversed__(self) -> Iterator[KT]:
        data = self._data
        track(data, ITERATE_KEY)
        for key in reversed(list(data)):
            yield reactive(key)

    def for_each(self, callback: Callable[[VT, KT, ReactiveDict[KT, VT]], Any]) -> None:
        """Call callback(value, key, self) for every entry."""
        for key, value in self.items():
            callback(value, key, self)

    def __eq__(self, other: object) -> bool:
        mine = {to_raw(k): to_raw(v) for k, v in self.items()}
        return mine == to_raw(other)

    __hash__ = None  # type: ignore[assignment]

    # --- Write operations (trigger) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        data = self._data
        key, value = to_raw(key), to_raw(value)
        old = data.get(key, _MISSING)
        data[key] = value
        if old is _MISSING:
            trigger(data, key, TriggerKind.ADD)
        elif has_changed(old, value):
            trigger(data, key, TriggerKind.SET)

    def __delitem__(self, key: KT) -> None:
        key = to_raw(key)
        del self._data[key]
        trigger(self._data, key, TriggerKind.DELETE)

    def pop(self, key: KT, *default: VT) -> VT:
        key = to_raw(key)
        if key not in self._data:
            return self._data.pop(key, *default)
        value = self._data.pop(key)
        trigger(self._data, key, TriggerKind.DELETE)
        return reactive(value)

    def popitem(self) -> tuple[KT, VT]:
        key, value = self._data.popitem()
        trigger(self._data, key, TriggerKind.DELETE)
        return reactive(key), reactive(value)

    def setdefault(self, key: KT, default: VT | None = None) -> VT:
        key = to_raw(key)
        if key not in self._data:
            self[key] = default
        return reactive(self._data[key])

    def update(self, other: Mapping[KT, VT] | Iterable[tuple[KT, VT]] = (), **kwargs: VT) -> None:
        other = to_raw(other)
        pairs = other.items() if isinstance(other, Mapping) else other
        for key, value in pairs:
            self[key] = value
        for key, value in kwargs.items():
            self[key] = value

    def clear(self) -> None:
        data = self._data
        if not data:
            return
        keys = list(data)
        data.clear()
        trigger(data, ITERATE_KEY, TriggerKind.DELETE, also=keys)

    def __repr__(self) -> str:
        return f"ReactiveDict({self._data!r})"


class ReactiveSet(ReactiveBase, MutableSet, Generic[T], raw_type=set):
    """A set facade. Object elements come back wrapped.

    Set operators (&, |, -, ^) return plain sets of raw elements.
    """

    __slots__ = ()

    @classmethod
    def _from_iterable(cls, values: Iterable[Any]) -> set[Any]:
        return {to_raw(value) for value in values}

    @property
    def _data(self) -> set[T]:
        return self._trackfx_target

    # --- Read operations (track) ---

    def __contains__(self, value: object) -> bool:
        value = to_raw(value)
        track(self._data, value)
        return value in self._data

    def __len__(self) -> int:
        track(self._data, ITERATE_KEY)
        return len(self._data)

    def __bool__(self) -> bool:
        track(self._data, ITERATE_KEY)
        return bool(self._data)

    def __iter__(self) -> Iterator[T]:
        data = self._data
        track(data, ITERATE_KEY)
        for value in list(data):
            yield reactive(value)

    def for_each(self, callback: Callable[[T, T, ReactiveSet[T]], Any]) -> None:
        """Call callback(value, value, self) for every element."""
        for value in self:
            callback(value, value, self)

    def __eq__(self, other: object) -> bool:
        track(self._data, ITERATE_KEY)
        return self._data == to_raw(other)

    __hash__ = None  # type: ignore[assignment]

    # --- Write operations (trigger) ---

    def add(self, value: T) -> None:
        value = to_raw(value)
        if value in self._data:
            return
        self._data.add(value)
        trigger(self._data, value, TriggerKind.ADD)

    def discard(self, value: T) -> None:
        value = to_raw(value)
        if value not in self._data:
            return
        self._data.discard(value)
        trigger(self._data, value, TriggerKind.DELETE)

    def remove(self, value: T) -> None:
        value = to_raw(value)
        self._data.remove(value)
        trigger(self._data, value, TriggerKind.DELETE)

    def pop(self) -> T:
        value = self._data.pop()
        trigger(self._data, value, TriggerKind.DELETE)
        return reactive(value)

    def update(self, *others: Iterable[T]) -> None:
        for other in others:
            for value in to_raw(other):
                self.add(value)

    def clear(self) -> None:
        data = self._data
        if not data:
            return
        values = list(data)
        data.clear()
        trigger(data, ITERATE_KEY, TriggerKind.DELETE, also=values)

    def __repr__(self) -> str:
        return f"ReactiveSet({self._data!r})"
