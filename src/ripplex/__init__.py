"""ripplex: fine-grained reactive dependency tracking for plain Python data."""

from importlib.metadata import version as _version

__version__ = _version("ripplex")

from ripplex._tracking import TriggerOp, get_stack_depth
from ripplex.proxy import (
    ReactiveDict,
    ReactiveObject,
    is_reactive,
    reactive,
    release,
    set_scheduler,
    to_raw,
)
from ripplex.effect import Effect, effect
# textual NOT auto-imported — opt-in only

__all__ = [
    "reactive",
    "ReactiveDict",
    "ReactiveObject",
    "is_reactive",
    "to_raw",
    "release",
    "effect",
    "Effect",
    "TriggerOp",
    "get_stack_depth",
    "set_scheduler",
]
