"""Reactive wrappers — facades that track reads and trigger on writes.

reactive(raw) returns the one wrapper registered for raw:

- ReactiveDict for a dict (mapping protocol),
- ReactiveObject for a plain class instance (attribute protocol).

Reading through a wrapper inside an effect records the dependency; nested
records come back wrapped too, lazily, the first time they are read. Writing
through a wrapper re-runs the dependents of that key, unless the new value
is the same object as the old one or an equal scalar. Deleting does not re-run
anything.

Anything else (scalars, strings, enum members, lists, tuples, sets,
callables) pass through reactive() unchanged.

All state lives in _anchor — instances are thin handles holding an _id.
Registrations are permanent until release(raw).

Thread safety: call set_scheduler() once from the owning thread. After that,
any write or delete through a wrapper from another thread is marshaled.
"""

from __future__ import annotations

import enum
import logging
import threading
import types
import weakref
from collections.abc import Iterator, MutableMapping
from typing import Any, Callable, TypeVar

from ripplex import _anchor
from ripplex._tracking import TriggerOp, track, trigger

KT = TypeVar("KT")
VT = TypeVar("VT")

logger = logging.getLogger("ripplex.proxy")

_MISSING = object()

# ─── Auto-marshal ────────────────────────────────────────────────────────────
_scheduler = None
_scheduler_thread = None


def set_scheduler(scheduler: Callable[[Callable[[], None]], Any] | None) -> None:
    """Set the global thread scheduler for cross-thread writes.

    Call once from the thread that owns the reactive state:
        ripplex.set_scheduler(app.call_from_thread)

    After this, a write or delete through any wrapper from another thread is
    handed to the scheduler instead of running in place, so effects always
    re-run on the owning thread. Pass None to go back to direct writes.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def _dispatch(fn: Callable[..., None], *args: Any) -> None:
    if _scheduler is not None and threading.current_thread() != _scheduler_thread:
        logger.debug("Marshaling %s from %s", fn.__name__, threading.current_thread().name)
        _scheduler(lambda: fn(*args))
    else:
        fn(*args)


# ─── Raw mutations ───────────────────────────────────────────────────────────


def _set_item(raw: dict, key: Any, value: Any) -> None:
    existed = key in raw
    old = raw[key] if existed else _MISSING
    raw[key] = value
    _notify(raw, key, existed, old, value)


def _del_item(raw: dict, key: Any) -> None:
    del raw[key]


def _set_attr(raw: object, name: str, value: Any) -> None:
    own = vars(raw)
    existed = name in own
    old = own[name] if existed else _MISSING
    setattr(raw, name, value)
    _notify(raw, name, existed, old, value)


def _del_attr(raw: object, name: str) -> None:
    delattr(raw, name)


def _notify(raw: object, key: Any, existed: bool, old: Any, value: Any) -> None:
    if not existed:
        trigger(raw, TriggerOp.ADD, key)
    elif old is not value and (is_reactive(old) or _is_record(old) or old != value):
        # Records compare by identity: dependents track the old object.
        trigger(raw, TriggerOp.SET, key)


# ─── Wrappers ────────────────────────────────────────────────────────────────


class _Reactive:
    """Common handle state: the _id under which _anchor.raws keeps the raw."""

    __slots__ = ("_id", "__weakref__")

    def __init__(self, raw: object) -> None:
        handle_id = _anchor.new_id()
        object.__setattr__(self, "_id", handle_id)
        _anchor.raws[handle_id] = raw
        weakref.finalize(self, _anchor.raws.pop, handle_id, None)


class ReactiveDict(_Reactive, MutableMapping[KT, VT]):
    """A dict facade. Item reads track, item writes trigger.

    get(), `in`, values(), items() and the other Mapping helpers are built
    on __getitem__ and track the keys they touch. len() and iteration read
    the raw dict untracked.
    """

    __slots__ = ()

    @property
    def _target(self) -> dict[KT, VT]:
        return _anchor.raws[self._id]

    # --- Read operations (track) ---

    def __getitem__(self, key: KT) -> VT:
        target = self._target
        track(target, key)
        return reactive(target[key])

    # --- Write operations (trigger) ---

    def __setitem__(self, key: KT, value: VT) -> None:
        _dispatch(_set_item, self._target, key, value)

    def __delitem__(self, key: KT) -> None:
        _dispatch(_del_item, self._target, key)

    # --- Untracked ---

    def __iter__(self) -> Iterator[KT]:
        return iter(self._target)

    def __len__(self) -> int:
        return len(self._target)

    def __repr__(self) -> str:
        return f"ReactiveDict({self._target!r})"


class ReactiveObject(_Reactive):
    """An attribute facade over a plain class instance.

    Every attribute read goes through the raw object and is tracked, every
    attribute write is applied to the raw object and triggers. Method calls
    run against the raw object and are not intercepted.

    Dunder names (__class__, __dict__, ...) resolve on the raw object
    untracked and unwrapped, so isinstance() sees the raw class. Writes made
    through p.__dict__ bypass the facade and trigger nothing. Equality and
    hashing are those of the raw object.
    """

    __slots__ = ()

    def __getattribute__(self, name: str) -> Any:
        target = _anchor.raws[object.__getattribute__(self, "_id")]
        if name[:2] == name[-2:] == "__":
            return getattr(target, name)
        track(target, name)
        return reactive(getattr(target, name))

    def __setattr__(self, name: str, value: Any) -> None:
        target = _anchor.raws[object.__getattribute__(self, "_id")]
        _dispatch(_set_attr, target, name, value)

    def __delattr__(self, name: str) -> None:
        target = _anchor.raws[object.__getattribute__(self, "_id")]
        _dispatch(_del_attr, target, name)

    def __eq__(self, other: object) -> bool:
        return _anchor.raws[object.__getattribute__(self, "_id")] == to_raw(other)

    def __hash__(self) -> int:
        return hash(_anchor.raws[object.__getattribute__(self, "_id")])

    def __dir__(self) -> list[str]:
        return dir(_anchor.raws[object.__getattribute__(self, "_id")])

    def __repr__(self) -> str:
        target = _anchor.raws[object.__getattribute__(self, "_id")]
        return f"ReactiveObject({target!r})"


# ─── Public API ──────────────────────────────────────────────────────────────


def _is_record(value: object) -> bool:
    if isinstance(value, dict):
        return True
    if isinstance(value, (type, types.ModuleType, enum.Enum)) or callable(value):
        return False
    return hasattr(value, "__dict__")


def is_reactive(value: object) -> bool:
    """True if value is a live wrapper returned by reactive()."""
    return (
        isinstance(value, _Reactive)
        and object.__getattribute__(value, "_id") in _anchor.raws
    )


def to_raw(value: Any) -> Any:
    """The raw object behind a wrapper. Anything else is returned as-is."""
    if is_reactive(value):
        return _anchor.raws[object.__getattribute__(value, "_id")]
    return value


def reactive(value: Any) -> Any:
    """Return the reactive wrapper for value, creating it on first use.

    Usage:
        raw = {"user": {"name": "Ada"}}
        state = reactive(raw)

        state is reactive(raw)  # True — one wrapper per raw object
        reactive(state) is state  # True — wrappers are never re-wrapped
        reactive(3)  # 3 — non-records pass through
    """
    if is_reactive(value):
        return value
    if not _is_record(value):
        return value
    existing = _anchor.wrappers.get(id(value))
    if existing is not None:
        return existing
    wrapper = ReactiveDict(value) if isinstance(value, dict) else ReactiveObject(value)
    _anchor.wrappers[id(value)] = wrapper
    return wrapper


def release(value: Any) -> None:
    """Forget a raw object (or the raw object behind a wrapper).

    Drops its registered wrapper and every dependency recorded against it.
    Wrappers already handed out keep reading and writing the raw object but
    do not track or trigger until reactive(raw) registers a fresh wrapper.
    """
    raw = to_raw(value)
    wrapper = _anchor.wrappers.pop(id(raw), None)
    _anchor.targets.pop(id(raw), None)
    if wrapper is not None:
        logger.debug("Released %s", type(raw).__name__)
