"""Data anchor — plain Python structures that hold all reactive state.

Wrappers and effects are thin handles holding an _id; everything they refer
to lives here. Raw objects are keyed by id(raw): dicts cannot be weakly
referenced, so entries are registered by integer handle and dropped
explicitly by release().
"""

import itertools

# Identity registries
wrappers: dict[int, object] = {}  # id(raw) -> wrapper
raws: dict[int, object] = {}  # wrapper _id -> raw

# Dependency graph
targets: dict[int, dict[object, set]] = {}  # id(raw) -> key -> set of effects

# Effect state
effect_fns: dict[int, object] = {}  # effect _id -> callable

# ID generation — itertools.count is thread-safe (C-level GIL atomic)
_id_counter = itertools.count(1)


def new_id() -> int:
    return next(_id_counter)
