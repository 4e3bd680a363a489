"""Data anchor: plain Python structures that hold the dependency store.

Every tracked object gets one TargetRecord: the object, its key -> Dep map,
and a weak reference to its facade. Records are indexed by id(target) in a
WeakValueDictionary, because dict, list and set cannot be weakly referenced
and so cannot key a WeakKeyDictionary.

The store never keeps a target alive by itself:

- Targets that accept weak references (instances, Computed) are held weakly.
  Their record stays in ``anchored`` until the target is collected, so an
  effect with no other owner keeps running while its target lives, and a
  finalizer drops the record with the target.
- dict, list and set are held strongly by their record. Such a record is
  pinned while any effect subscribes to it, and otherwise lives only as long
  as its facade. A pinned target and its effects stay reachable until the
  effects are disposed or stop reading it.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any, Hashable

if TYPE_CHECKING:
    from trackfx.effect import ReactiveEffect

_ABSENT = object()


class TargetRecord:
    __slots__ = ("ident", "_ref", "_strong", "deps", "facade_ref", "subscriptions", "__weakref__")

    def __init__(self, target: object) -> None:
        self.ident = id(target)
        try:
            self._ref: weakref.ref | None = weakref.ref(target)
            self._strong: object = None
        except TypeError:
            self._ref = None
            self._strong = target
        self.deps: dict[Hashable, Dep] = {}
        self.facade_ref: weakref.ref | None = None
        self.subscriptions = 0

    @property
    def target(self) -> Any:
        """The tracked object, or None once a weakly held one is gone."""
        if self._ref is None:
            return self._strong
        return self._ref()

    @property
    def held_weakly(self) -> bool:
        return self._ref is not None

    def facade(self) -> Any:
        return self.facade_ref() if self.facade_ref is not None else None


class Dep:
    """The effects subscribed to one (target, key) pair.

    Subscribers are kept in a dict used as an ordered set so effects
    re-run in subscription order.
    """

    __slots__ = ("record", "key", "subscribers", "__weakref__")

    def __init__(self, record: TargetRecord, key: Hashable) -> None:
        self.record = record
        self.key = key
        self.subscribers: dict[ReactiveEffect, None] = {}

    def __len__(self) -> int:
        return len(self.subscribers)

    def __repr__(self) -> str:
        return f"Dep({self.key!r}, {len(self.subscribers)} subscribers)"


records: weakref.WeakValueDictionary[int, TargetRecord] = weakref.WeakValueDictionary()
# Records of weakly held targets, dropped when the target is collected.
anchored: dict[int, TargetRecord] = {}
# Records of dict/list/set targets with at least one subscriber.
pinned: dict[int, TargetRecord] = {}


def _release(ident: int, record_ref: weakref.ref) -> None:
    record = record_ref()
    if record is None:
        return
    if anchored.get(ident) is record:
        del anchored[ident]
    if records.get(ident) is record:
        del records[ident]


def lookup(target: object) -> TargetRecord | None:
    record = records.get(id(target))
    # A stale record may outlive its collected target under a reused id.
    if record is None or record.target is not target:
        return None
    return record


def record_for(target: object) -> TargetRecord:
    record = lookup(target)
    if record is None:
        record = TargetRecord(target)
        records[record.ident] = record
        if record.held_weakly:
            anchored[record.ident] = record
            weakref.finalize(target, _release, record.ident, weakref.ref(record))
    return record


def dep_for(target: object, key: Hashable) -> Dep:
    record = record_for(target)
    dep = record.deps.get(key)
    if dep is None:
        dep = record.deps[key] = Dep(record, key)
    return dep


def subscribe(dep: Dep, effect: ReactiveEffect) -> None:
    if effect in dep.subscribers:
        return
    dep.subscribers[effect] = None
    record = dep.record
    record.subscriptions += 1
    if record.subscriptions == 1 and not record.held_weakly:
        pinned[record.ident] = record


def unsubscribe(dep: Dep, effect: ReactiveEffect) -> None:
    if dep.subscribers.pop(effect, _ABSENT) is _ABSENT:
        return
    record = dep.record
    record.subscriptions -= 1
    if record.subscriptions == 0 and not record.held_weakly:
        pinned.pop(record.ident, None)
