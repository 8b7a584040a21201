"""Dependency tracking engine — the heart of ripplex.

Two pieces of state:

- the active-effect stack, held in a contextvar so nested runs attribute
  reads to the innermost effect and other threads start with an empty stack;
- the dependency graph in _anchor.targets, mapping (raw object, key) to the
  effects that read it.

track() records reads, trigger() replays writes. Replays run inline: a write
returns only after every dependent effect (and anything those effects
trigger in turn) has finished.

Edges are only ever added. An effect that stops reading a key is still
re-run when that key changes.
"""

from __future__ import annotations

import contextvars
import enum
import logging
from typing import TYPE_CHECKING

from ripplex import _anchor

if TYPE_CHECKING:
    from ripplex.effect import Effect

logger = logging.getLogger("ripplex.tracking")

# Currently running effects, innermost last.
effect_stack: contextvars.ContextVar[tuple[Effect, ...]] = contextvars.ContextVar(
    "effect_stack", default=()
)


class TriggerOp(enum.Enum):
    """How a write changed its target."""

    ADD = "add"
    SET = "set"


def begin_run(effect: Effect) -> contextvars.Token:
    """Push effect onto the active stack.

    Returns the contextvar token; effect_stack.reset(token) undoes the push.
    """
    return effect_stack.set(effect_stack.get() + (effect,))


def end_run() -> None:
    """Pop the innermost effect off the active stack."""
    effect_stack.set(effect_stack.get()[:-1])


def current_effect() -> Effect | None:
    """The innermost running effect, or None outside any effect."""
    stack = effect_stack.get()
    return stack[-1] if stack else None


def get_stack_depth() -> int:
    """Number of effects currently running. Useful for testing."""
    return len(effect_stack.get())


def track(target: object, key: object) -> None:
    """Attribute a read of target[key] to the running effect, if any."""
    effect = current_effect()
    if effect is None:
        return
    target_id = id(target)
    if target_id not in _anchor.wrappers:
        # Released: the handle may be reused by another object.
        return
    deps_by_key = _anchor.targets.get(target_id)
    if deps_by_key is None:
        deps_by_key = _anchor.targets[target_id] = {}
    deps = deps_by_key.get(key)
    if deps is None:
        deps = deps_by_key[key] = set()
    deps.add(effect)


def trigger(target: object, op: TriggerOp, key: object) -> None:
    """Re-run every effect that has read target[key]."""
    deps_by_key = _anchor.targets.get(id(target))
    if deps_by_key is None:
        return
    deps = deps_by_key.get(key)
    if not deps:
        return
    logger.debug("%s %r: re-running %d effect(s)", op.value, key, len(deps))
    # Snapshot — re-runs track again and may grow the set.
    for effect in list(deps):
        effect()
