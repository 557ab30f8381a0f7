"""
prefix_registry.pivot — Key-axis transposition of nested registry mappings.

pivot() is the only reshaping primitive. Every re-indexing of the registry
tree is a composition of pivots applied at some depth:

    Registry Tree (per platform)   year → group → selector → value
        pivot 1 (year ↔ group)     group → year → selector → value
        pivot 2 (year ↔ selector)  group → selector → year → value
        values filter              drops years whose values payload is not a
                                   mapping, keeping selector → year → subKey

year_view() runs the same pivots in reverse to hand the Snapshot Builder a
year → group → payload tree. Years left without data by the pivots do not
appear there; registry_years() is the source of truth for which years exist.

Collision policy: for mapping input, (inner, outer) pairs are unique by
construction, so no write ever lands on an occupied slot. If one would,
PivotCollisionError is raised instead of silently overwriting.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from prefix_registry.constants import NESTED_GROUP_FILES, YEAR_PATTERN
from prefix_registry.merge import Kind, kind_of

logger = logging.getLogger("prefixes.pivot")


class PivotCollisionError(Exception):
    """Raised when two entries would land on the same pivoted slot."""

    def __init__(self, inner: str, outer: str) -> None:
        self.inner = inner
        self.outer = outer
        super().__init__(f"Pivot collision at [{inner!r}][{outer!r}]")


def pivot(mapping: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Swap the first two key levels: ``{a: {b: v}}`` → ``{b: {a: v}}``.

    Outer values that are not mappings are skipped with a warning.
    Leaf values are carried over by reference, never copied or altered.
    """
    pivoted: dict[str, dict[str, Any]] = {}
    for outer, inner_map in mapping.items():
        if kind_of(inner_map) is not Kind.MAPPING:
            logger.warning("Skipping non-object value for key: %s", outer)
            continue
        for inner, value in inner_map.items():
            bucket = pivoted.setdefault(inner, {})
            if outer in bucket:
                raise PivotCollisionError(inner, outer)
            bucket[outer] = value
    return pivoted


def _mapping_payloads_only(group: str, by_year: Mapping[str, Any]) -> dict[str, Any]:
    """Filter for nested groups: keep only years whose selector payload is a mapping.

    by_year is ``year → subKey → value`` for a single selector of a nested
    group (values). Other groups pass through unchanged.
    """
    if group not in NESTED_GROUP_FILES:
        return dict(by_year)
    kept: dict[str, Any] = {}
    for year, payload in by_year.items():
        if kind_of(payload) is not Kind.MAPPING:
            logger.warning("Skipping non-object %s payload for year: %s", group, year)
            continue
        kept[year] = payload
    return kept


def index_platform(years: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Re-index one platform: ``year → group → payload`` to the Pivoted View.

    Result: ``group → selector → year → value`` (for values:
    ``group → selector → year → subKey → value``).
    """
    view: dict[str, dict[str, Any]] = {}
    for group, by_year in pivot(years).items():
        view[group] = {
            selector: _mapping_payloads_only(group, per_year)
            for selector, per_year in pivot(by_year).items()
        }
    return view


def year_view(view: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Inverse of index_platform(): Pivoted View → ``year → group → payload``.

    Only years that still carry data after re-indexing appear here; callers
    needing every registry year start from registry_years().
    """
    by_group_year: dict[str, dict[str, Any]] = {
        group: pivot(by_selector) for group, by_selector in view.items()
    }
    return pivot(by_group_year)


def registry_years(tree: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Per platform, the registry years as found on disk: ``platform → year → groups``.

    Year keys that are not four digits are logged and dropped, as are
    platforms left without any year.
    """
    platforms: dict[str, dict[str, Any]] = {}
    for platform, years in tree.items():
        if kind_of(years) is not Kind.MAPPING:
            logger.warning("Skipping non-object value for platform: %s", platform)
            continue
        valid_years = {}
        for year, groups in years.items():
            if not YEAR_PATTERN.match(year):
                logger.warning("Skipping %s/%s: not a four-digit year", platform, year)
                continue
            valid_years[year] = groups
        if not valid_years:
            logger.warning("Skipping platform %s: no year directories", platform)
            continue
        platforms[platform] = valid_years
    return platforms


def index_registry(tree: Mapping[str, Any]) -> dict[str, dict[str, Any]]:
    """Apply index_platform() to every platform kept by registry_years()."""
    return {
        platform: index_platform(years)
        for platform, years in registry_years(tree).items()
    }
