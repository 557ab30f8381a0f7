"""
prefix_registry.snapshot_builder — Cumulative per-platform snapshots.

For each platform, years are folded most-recent-first:

    acc_0 = {}
    acc_k = merged(year_k, acc_{k-1})

Older years are layered *underneath* the accumulator, so on a scalar or
list conflict the most recent year's value wins. Each acc_k is emitted
twice with identical bytes:

    platform/<platform>--from-<year_k>.json   (anchored at calendar year)
    platform/<platform>--last-<k:04d>.json    (anchored at recency ordinal)

and both filenames are recorded in the manifest in the same pass.

Hard constraints:
    - All JSON serialized via canonical_json() (sort_keys=True).
    - Snapshots never share nested mappings with each other or with input.
    - Group files outside GROUP_FILES are dropped.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from prefix_registry.constants import (
    GROUP_FILES,
    INDEX_FILENAME,
    from_filename,
    last_filename,
    last_label,
)
from prefix_registry.manifest import PlatformIndex, RegistryIndex
from prefix_registry.merge import merged
from prefix_registry.pivot import index_platform, registry_years, year_view

logger = logging.getLogger("prefixes.snapshots")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def canonical_json(data: object) -> str:
    """Serialize in canonical form: sorted keys, compact, UTF-8, trailing newline."""
    return json.dumps(data, ensure_ascii=False, sort_keys=True, separators=(",", ":")) + "\n"


# ---------------------------------------------------------------------------
# Snapshot value object
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Snapshot:
    """One step of the fold: everything known from ``year`` to the most recent year."""

    platform: str
    year: str
    ordinal: int
    content: dict[str, Any]

    @property
    def from_path(self) -> str:
        return from_filename(self.platform, self.year)

    @property
    def last_path(self) -> str:
        return last_filename(self.platform, self.ordinal)


def rename_groups(groups: Mapping[str, Any]) -> dict[str, Any]:
    """Map group file names to snapshot group keys, dropping unknown groups."""
    renamed: dict[str, Any] = {}
    for name, payload in groups.items():
        group = GROUP_FILES.get(name)
        if group is None:
            logger.debug("Dropping unknown group %s", name)
            continue
        renamed[group] = payload
    return renamed


# ---------------------------------------------------------------------------
# Fold
# ---------------------------------------------------------------------------

def build_platform_snapshots(platform: str, years: Mapping[str, Any]) -> list[Snapshot]:
    """Fold ``year → group file → payload`` into cumulative snapshots.

    Returns snapshots most recent first (ordinal 1, 2, ...).
    """
    snapshots: list[Snapshot] = []
    acc: dict[str, Any] = {}
    for ordinal, year in enumerate(sorted(years, reverse=True), start=1):
        acc = merged(rename_groups(years[year]), acc)
        snapshots.append(Snapshot(platform=platform, year=year, ordinal=ordinal, content=acc))
    return snapshots


def build_index(snapshots_by_platform: Mapping[str, list[Snapshot]]) -> RegistryIndex:
    """Manifest for a set of folded platforms."""
    entries: dict[str, PlatformIndex] = {}
    for platform, snapshots in snapshots_by_platform.items():
        entries[platform] = PlatformIndex(
            from_={s.year: s.from_path for s in snapshots},
            last={last_label(s.ordinal): s.last_path for s in snapshots},
        )
    return RegistryIndex(entries)


def build_snapshots(tree: Mapping[str, Any]) -> dict[str, list[Snapshot]]:
    """Registry Tree → per-platform snapshot lists, via the Pivoted View.

    Every registry year gets a fold step, including years whose payloads
    were all empty or dropped; those repeat the previous accumulator.
    """
    result: dict[str, list[Snapshot]] = {}
    for platform, years in registry_years(tree).items():
        by_year = year_view(index_platform(years))
        folded = {year: by_year.get(year, {}) for year in years}
        result[platform] = build_platform_snapshots(platform, folded)
        logger.info(
            "Platform %s: %d snapshot(s) %s",
            platform, len(result[platform]), [s.year for s in result[platform]],
        )
    return result


def build_file_map(tree: Mapping[str, Any]) -> dict[str, str]:
    """Registry Tree → publish entries: every snapshot file plus index.json."""
    snapshots_by_platform = build_snapshots(tree)
    files: dict[str, str] = {}
    for snapshots in snapshots_by_platform.values():
        for snapshot in snapshots:
            body = canonical_json(snapshot.content)
            files[snapshot.from_path] = body
            files[snapshot.last_path] = body
    files[INDEX_FILENAME] = canonical_json(build_index(snapshots_by_platform).to_wire())
    return files
