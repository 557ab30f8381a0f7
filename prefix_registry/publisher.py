"""
prefix_registry.publisher — Replace an output directory with a computed file map.

Protocol:
    1. Validate every entry path stays inside the target (nothing touched yet).
    2. rmtree() the target if it exists, then recreate it.
    3. Write every entry, creating parent directories as needed. Text is
       written as UTF-8, bytes unchanged.

Fail-fast: any OSError aborts the publish as PublishError. There is no
partial-publish recovery; a failed run may leave the target empty or
partially written. The next full build replaces it.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger("prefixes.publisher")


class PublishError(Exception):
    """Raised when the target directory cannot be cleared, created or written."""

    def __init__(self, target: Path, detail: str) -> None:
        self.target = target
        self.detail = detail
        super().__init__(detail)


def _resolve_entry(dest_dir: Path, relative_path: str) -> Path:
    """Map a file map key to its destination path, rejecting traversal."""
    resolved = (dest_dir / relative_path).resolve()
    try:
        resolved.relative_to(dest_dir)
    except ValueError:
        raise PublishError(
            dest_dir,
            f"Path traversal detected: '{relative_path}' resolves to {resolved}, "
            f"which is outside {dest_dir}.",
        )
    if resolved == dest_dir:
        raise PublishError(dest_dir, f"Entry '{relative_path}' resolves to the target itself.")
    return resolved


def publish(file_map: Mapping[str, str | bytes], target_dir: Path) -> int:
    """Clear target_dir and write every entry of file_map into it.

    Returns the number of files written.
    """
    dest_dir = Path(target_dir).resolve()
    logger.info("Starting publish process to: %s", dest_dir)

    destinations = {rel: _resolve_entry(dest_dir, rel) for rel in file_map}

    try:
        if dest_dir.exists():
            shutil.rmtree(dest_dir)
            logger.info("Cleared existing directory: %s", dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Failed to clear or create directory %s: %s", dest_dir, exc)
        raise PublishError(dest_dir, f"Failed to clear or create {dest_dir}: {exc}") from exc

    files_written = 0
    for relative_path, content in file_map.items():
        destination = destinations[relative_path]
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                destination.write_bytes(content)
            else:
                with open(destination, "w", encoding="utf-8", newline="") as fh:
                    fh.write(content)
        except OSError as exc:
            logger.error("Failed to write file %s: %s", relative_path, exc)
            raise PublishError(dest_dir, f"Failed to write {relative_path}: {exc}") from exc
        files_written += 1

    logger.info("Publish complete. Wrote %d files.", files_written)
    return files_written
