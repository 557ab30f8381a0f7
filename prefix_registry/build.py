#!/usr/bin/env python3
"""
build.py — Registry Build Pipeline

Reads the contributor registry, folds it into cumulative per-platform
snapshots, and publishes them together with the static front end:

    registry/<platform>/<year>/<group>.json   →   out/platform/<platform>--from-<YYYY>.json
                                                  out/platform/<platform>--last-<NNNN>.json
                                                  out/index.json
    sitesrc/*                                 →   out/*

Usage:
    python -m prefix_registry.build

No flags. Directories come from the environment:
    PREFIX_REGISTRY_DIR  (default ./registry)
    PREFIX_SITE_DIR      (default ./sitesrc)
    PREFIX_OUT_DIR       (default ./out)
    ENV=dev              DEBUG logging

Every run is a full rebuild. The output directory is deleted and rewritten.

Exit codes:
    0: Build published.
    1: Missing registry, unreadable input, or publish failure.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path

from prefix_registry.pivot import PivotCollisionError
from prefix_registry.publisher import PublishError, publish
from prefix_registry.snapshot_builder import build_file_map, canonical_json
from prefix_registry.tree_loader import (
    RegistryNotFoundError,
    flatten_site_tree,
    load_json_tree,
    load_site_tree,
)

logger = logging.getLogger("prefixes.build")

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

REGISTRY_DIR: Path = Path(os.getenv("PREFIX_REGISTRY_DIR", "./registry"))
SITE_DIR: Path = Path(os.getenv("PREFIX_SITE_DIR", "./sitesrc"))
OUT_DIR: Path = Path(os.getenv("PREFIX_OUT_DIR", "./out"))


def configure_logging() -> None:
    level = logging.DEBUG if os.getenv("ENV", "prod") == "dev" else logging.INFO
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)


def load_site_files(site_dir: Path) -> dict[str, str | bytes]:
    """Front-end assets as publish entries. A missing site directory yields none."""
    try:
        tree = load_site_tree(site_dir)
    except RegistryNotFoundError:
        logger.warning("Site directory not found at %s. Publishing data only.", site_dir)
        return {}
    return flatten_site_tree(tree, canonical_json)


def run_build(registry_dir: Path, site_dir: Path, out_dir: Path) -> int:
    """Run the full pipeline. Returns the number of files published.

    Raises:
        RegistryNotFoundError: registry_dir is missing.
        PublishError: out_dir could not be replaced.
        OSError: any other filesystem failure while reading input.
    """
    registry_dir = Path(registry_dir).resolve()
    logger.info("Generating object tree for JSON files in: %s", registry_dir)
    tree = load_json_tree(registry_dir)

    files = load_site_files(Path(site_dir))
    data_files = build_file_map(tree)
    overlap = sorted(set(files) & set(data_files))
    if overlap:
        logger.warning("Generated files replace site assets: %s", overlap)
    files.update(data_files)

    written = publish(files, Path(out_dir))
    logger.info(json.dumps({
        "event": "build_complete",
        "platforms": len(tree),
        "files_written": written,
        "out_dir": str(Path(out_dir).resolve()),
    }))
    return written


def main() -> int:
    """CLI entry point. Returns process exit code."""
    configure_logging()
    try:
        run_build(REGISTRY_DIR, SITE_DIR, OUT_DIR)
    except (RegistryNotFoundError, PivotCollisionError) as exc:
        logger.error("FATAL: %s", exc)
        return 1
    except PublishError as exc:
        logger.error("FATAL: publish failed: %s", exc.detail)
        return 1
    except OSError as exc:
        logger.error("FATAL: %s: %s", type(exc).__name__, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
