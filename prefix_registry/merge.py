"""
prefix_registry.merge — Recursive union of nested JSON mappings.

Merge semantics, per key of each source:
    MAPPING onto MAPPING   → recurse.
    MAPPING onto anything  → deep copy of the source mapping.
    anything else          → source value replaces target value.
                             Lists are never concatenated.

Every value is tagged once with kind_of() and the merge dispatches on the
tag. The same tag drives pivot.pivot()'s "is this a mapping" decision.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from enum import Enum
from typing import Any


class Kind(Enum):
    SCALAR = "scalar"
    LIST = "list"
    MAPPING = "mapping"


def kind_of(value: Any) -> Kind:
    """Tag a parsed JSON value."""
    if isinstance(value, Mapping):
        return Kind.MAPPING
    if isinstance(value, (list, tuple)):
        return Kind.LIST
    return Kind.SCALAR


def deep_merge(target: dict[str, Any], *sources: Mapping[str, Any]) -> dict[str, Any]:
    """Merge sources into target left to right. Mutates and returns target."""
    for source in sources:
        for key, source_value in source.items():
            source_kind = kind_of(source_value)
            target_value = target.get(key)

            if source_kind is Kind.MAPPING and kind_of(target_value) is Kind.MAPPING:
                deep_merge(target_value, source_value)
            elif source_kind is Kind.MAPPING:
                target[key] = copy.deepcopy(dict(source_value))
            else:
                target[key] = source_value
    return target


def merged(*layers: Mapping[str, Any]) -> dict[str, Any]:
    """Return a fresh mapping holding deep_merge() of all layers.

    No layer is mutated and the result shares no nested mapping with them.
    """
    return deep_merge({}, *layers)
