"""
prefix_registry.tree_loader — Materialize a directory hierarchy as nested dicts.

Two loaders:
    load_json_tree()  — registry data. Directories → nested dicts,
                        *.json files → parsed JSON. Everything else ignored.
    load_site_tree()  — front-end assets. Top-level files kept verbatim
                        (text, or bytes when not UTF-8), dotfiles included;
                        subdirectories loaded with load_json_tree().

Rules for load_json_tree() (and so for every site subdirectory):
    - Names starting with "." are skipped entirely (not descended, not read).
    - Directory listings are sorted so the resulting dict order is stable
      across filesystems.
    - A malformed JSON file is logged and skipped. It never aborts the run.
    - Subtrees without any JSON-bearing descendant are pruned.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from prefix_registry.constants import HIDDEN_PREFIX

logger = logging.getLogger("prefixes.loader")


class RegistryNotFoundError(Exception):
    """Raised when a tree root does not exist or is not a directory."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Directory not found at {path}")


def _visible_entries(dir_path: Path) -> list[Path]:
    return sorted(
        (p for p in dir_path.iterdir() if not p.name.startswith(HIDDEN_PREFIX)),
        key=lambda p: p.name,
    )


def _read_json(filepath: Path) -> tuple[bool, Any]:
    """Parse one JSON file. Returns (ok, value); logs and returns (False, None) on bad input."""
    try:
        with open(filepath, encoding="utf-8") as fh:
            return True, json.load(fh)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error(
            "Error reading or parsing JSON file: %s. Skipping. (%s: %s)",
            filepath, type(exc).__name__, exc,
        )
        return False, None


def load_json_tree(dir_path: Path) -> dict[str, Any]:
    """Recursively load every visible *.json file under dir_path.

    Keys are entry names as found on disk (JSON files keep their extension).

    Raises:
        RegistryNotFoundError: if dir_path is not a directory.
        OSError: on any other filesystem failure.
    """
    dir_path = Path(dir_path)
    if not dir_path.is_dir():
        raise RegistryNotFoundError(dir_path)

    tree: dict[str, Any] = {}
    for entry in _visible_entries(dir_path):
        if entry.is_dir():
            subtree = load_json_tree(entry)
            if subtree:
                tree[entry.name] = subtree
        elif entry.is_file() and entry.suffix == ".json":
            ok, value = _read_json(entry)
            if ok:
                tree[entry.name] = value
    return tree


def _read_asset(filepath: Path) -> str | bytes:
    """Text assets as str; anything that is not UTF-8 (icons, fonts) as raw bytes."""
    raw = filepath.read_bytes()
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Publishing %s as binary", filepath)
        return raw


def load_site_tree(dir_path: Path) -> dict[str, Any]:
    """Load the front-end asset directory.

    Every top-level entry is taken, dotfiles included (``.nojekyll`` and
    similar host markers must be published). Top-level files map to their
    content; subdirectories map to the JSON tree beneath them, where the
    hidden-entry rule and JSON-only rule apply.
    """
    dir_path = Path(dir_path)
    if not dir_path.is_dir():
        raise RegistryNotFoundError(dir_path)

    tree: dict[str, Any] = {}
    for entry in sorted(dir_path.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            subtree = load_json_tree(entry)
            if subtree:
                tree[entry.name] = subtree
        elif entry.is_file():
            tree[entry.name] = _read_asset(entry)
    return tree


def flatten_site_tree(
    tree: dict[str, Any],
    serialize: Callable[[Any], str],
    prefix: str = "",
) -> dict[str, str | bytes]:
    """Flatten a site tree into ``{relative/path: content}`` publish entries.

    Top-level leaves (text or bytes) are passed through. Nested JSON leaves
    (anything under a subdirectory) are serialized with ``serialize``.
    """
    flat: dict[str, str | bytes] = {}
    for name, value in tree.items():
        rel = f"{prefix}{name}"
        if prefix and name.endswith(".json"):
            flat[rel] = serialize(value)
        elif isinstance(value, dict):
            flat.update(flatten_site_tree(value, serialize, prefix=f"{rel}/"))
        else:
            flat[rel] = value
    return flat
