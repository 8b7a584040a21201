"""Effects — computations re-run when the reactive state they read changes.

effect(fn) runs fn immediately; every key fn reads through a reactive
wrapper during that run becomes a dependency. Writing any of those keys
later calls the effect again, synchronously, from inside the write.

All state lives in _anchor — instances are thin handles holding an _id.
"""

from __future__ import annotations

import weakref
from typing import Any, Callable

from ripplex import _anchor
from ripplex._tracking import begin_run, effect_stack


class Effect:
    """A callable handle around a zero-argument function.

    Calling the handle runs the function with the handle on the active
    stack, so reactive reads made by the function are attributed to it.
    """

    __slots__ = ("_id", "__weakref__")

    def __init__(self, fn: Callable[[], Any]) -> None:
        self._id = _anchor.new_id()
        _anchor.effect_fns[self._id] = fn
        weakref.finalize(self, _anchor.effect_fns.pop, self._id, None)

    @property
    def _fn(self) -> Callable[[], Any]:
        return _anchor.effect_fns[self._id]

    def __call__(self) -> Any:
        fn = _anchor.effect_fns[self._id]
        token = begin_run(self)
        try:
            return fn()
        finally:
            # No Python frame here: this must still run at the recursion limit.
            effect_stack.reset(token)

    def __repr__(self) -> str:
        name = getattr(self._fn, "__name__", repr(self._fn))
        return f"Effect({name})"


def effect(fn: Callable[[], Any]) -> Effect:
    """Run fn now, then again whenever a reactive key it read is written.

    Returns the Effect handle. Calling the handle re-runs fn by hand.
    There is no way to stop an effect: its dependencies are permanent.

    Usage:
        state = reactive({"count": 0})
        log = []

        @effect
        def show():
            log.append(state["count"])
        # log == [0] — ran immediately

        state["count"] = 1
        # log == [0, 1] — re-ran inside the write
    """
    handle = Effect(fn)
    handle()  # Initial run to establish dependencies
    return handle
