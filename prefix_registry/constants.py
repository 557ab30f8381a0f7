"""
prefix_registry.constants — Single source of truth for registry layout constants.

Every module that needs the group lookup, the year pattern or the output
filename conventions MUST import from here.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Registry layout
# ---------------------------------------------------------------------------

GROUP_FILES: dict[str, str] = {
    "atrules.json": "atrules",
    "attributes.json": "attributes",
    "classes.json": "classes",
    "elements.json": "elements",
    "values.json": "values",
}
"""Group file name in the registry → group key in snapshots.
Group files not listed here are dropped during the snapshot fold."""

NESTED_GROUP_FILES: frozenset[str] = frozenset({"values.json"})
"""Groups whose payload carries one extra nesting level
(selector → subKey → value)."""

YEAR_PATTERN: re.Pattern[str] = re.compile(r"^\d{4}$")

HIDDEN_PREFIX: str = "."
"""Entries starting with this marker are never read (drafts, scaffolds)."""

# ---------------------------------------------------------------------------
# Output layout
# ---------------------------------------------------------------------------

INDEX_FILENAME: str = "index.json"
SNAPSHOT_DIR: str = "platform"
ORDINAL_WIDTH: int = 4


def from_filename(platform: str, year: str) -> str:
    """Relative path of the snapshot anchored at a calendar year."""
    return f"{SNAPSHOT_DIR}/{platform}--from-{year.zfill(ORDINAL_WIDTH)}.json"


def last_filename(platform: str, ordinal: int) -> str:
    """Relative path of the snapshot anchored at a recency ordinal."""
    return f"{SNAPSHOT_DIR}/{platform}--last-{str(ordinal).zfill(ORDINAL_WIDTH)}.json"


def last_label(ordinal: int) -> str:
    """Manifest label for a recency ordinal, e.g. ``"2 year"``."""
    return f"{ordinal} year"
