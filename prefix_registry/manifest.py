"""
prefix_registry.manifest — Pydantic models for index.json.

Wire shape:

    {
      "<platform>": {
        "from": {"<YYYY>": "platform/<platform>--from-<YYYY>.json", ...},
        "last": {"<n> year": "platform/<platform>--last-<NNNN>.json", ...}
      }
    }

The front end iterates platform → section → label → path, so both
sections must always be present, even when empty.
"""

from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field, RootModel, field_validator

from prefix_registry.constants import YEAR_PATTERN


class PlatformIndex(BaseModel):
    """Snapshot filenames for one platform, by calendar year and by recency."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    from_: Dict[str, str] = Field(
        default_factory=dict,
        alias="from",
        description="Calendar year → from-<year> snapshot path.",
    )
    last: Dict[str, str] = Field(
        default_factory=dict,
        description="'<n> year' label → last-<n> snapshot path.",
    )

    @field_validator("from_")
    @classmethod
    def _years_are_four_digits(cls, v: Dict[str, str]) -> Dict[str, str]:
        bad = [year for year in v if not YEAR_PATTERN.match(year)]
        if bad:
            raise ValueError(f"from keys must be four-digit years: {bad}")
        return v


class RegistryIndex(RootModel[Dict[str, PlatformIndex]]):
    """Top-level manifest: platform → PlatformIndex."""

    def to_wire(self) -> dict[str, dict[str, dict[str, str]]]:
        """Plain dict in the published shape ("from" key, not "from_")."""
        return self.model_dump(by_alias=True)

    def filenames(self) -> list[str]:
        """Every snapshot path referenced by the manifest, in manifest order."""
        paths: list[str] = []
        for entry in self.root.values():
            paths.extend(entry.from_.values())
            paths.extend(entry.last.values())
        return paths
