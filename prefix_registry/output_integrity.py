"""
prefix_registry.output_integrity — Structural validation of a published build.

Validates an output directory for:
    1. index.json presence and shape (RegistryIndex)
    2. Every manifest entry present on disk
    3. from-/last- pairs of the same fold step byte-identical (SHA-256)
    4. Manifest completeness (as many "last" entries as "from" entries)
    5. Cumulative superset (older anchors contain every key of newer anchors)

Design contract:
    - validate_output() is the ONLY validation entry point.
    - Returns a structured IntegrityReport — never raises on validation failure.
    - Read-only. Never rewrites anything under the output directory.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from prefix_registry.constants import INDEX_FILENAME, last_label
from prefix_registry.manifest import RegistryIndex
from prefix_registry.merge import Kind, kind_of


# ---------------------------------------------------------------------------
# Exit codes — used by CLI, exposed for programmatic use
# ---------------------------------------------------------------------------

EXIT_OK: int = 0
EXIT_MISSING_FILES: int = 1
EXIT_CONTENT_MISMATCH: int = 2
EXIT_STRUCTURAL_INVARIANT: int = 4


# ---------------------------------------------------------------------------
# IntegrityReport
# ---------------------------------------------------------------------------


@dataclass
class IntegrityReport:
    """Structured report from output validation.

    Fields:
        valid: True only if ALL checks pass.
        out_dir: The directory that was validated.
        checks: List of check results — each a dict with
            {check, passed, detail}.
        errors: Flat list of human-readable error strings.
        exit_code: Numeric exit code (0 = ok, non-zero = first failure).
    """
    valid: bool = True
    out_dir: str = ""
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    exit_code: int = EXIT_OK

    def fail(self, check: str, detail: str, code: int) -> None:
        self.valid = False
        self.checks.append({"check": check, "passed": False, "detail": detail})
        self.errors.append(f"[{check}] {detail}")
        if self.exit_code == EXIT_OK:
            self.exit_code = code

    def ok(self, check: str, detail: str = "") -> None:
        self.checks.append({"check": check, "passed": True, "detail": detail})

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "out_dir": self.out_dir,
            "exit_code": self.exit_code,
            "checks": self.checks,
            "errors": self.errors,
        }


def _sha256_file(filepath: Path) -> str:
    """Compute SHA-256 hex digest of a file."""
    h = hashlib.sha256()
    with open(filepath, "rb") as fh:
        while True:
            chunk = fh.read(65536)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()


# ---------------------------------------------------------------------------
# Individual validation steps
# ---------------------------------------------------------------------------

def _check_index(out_dir: Path, report: IntegrityReport) -> RegistryIndex | None:
    """Check 1: index.json exists and matches the manifest schema."""
    index_path = out_dir / INDEX_FILENAME
    if not index_path.is_file():
        report.fail("index", f"{INDEX_FILENAME} not found.", EXIT_MISSING_FILES)
        return None

    try:
        with open(index_path, encoding="utf-8") as fh:
            index = RegistryIndex.model_validate(json.load(fh))
    except (json.JSONDecodeError, OSError) as exc:
        report.fail(
            "index",
            f"Failed to parse {INDEX_FILENAME}: {type(exc).__name__}: {exc}",
            EXIT_STRUCTURAL_INVARIANT,
        )
        return None
    except ValidationError as exc:
        report.fail(
            "index",
            f"{INDEX_FILENAME} does not match the manifest shape: {exc.error_count()} error(s)",
            EXIT_STRUCTURAL_INVARIANT,
        )
        return None

    report.ok("index", f"{len(index.root)} platform(s) listed.")
    return index


def _check_files_present(out_dir: Path, index: RegistryIndex, report: IntegrityReport) -> bool:
    """Check 2: every file named in the manifest exists."""
    missing = [p for p in index.filenames() if not (out_dir / p).is_file()]
    if missing:
        report.fail("files_present", f"Missing files referenced in index: {missing}", EXIT_MISSING_FILES)
        return False
    report.ok("files_present", f"All {len(index.filenames())} referenced files present.")
    return True


def _check_pairs_identical(out_dir: Path, index: RegistryIndex, report: IntegrityReport) -> None:
    """Check 3: the n-th most recent from- file equals last-n byte for byte."""
    mismatches: list[str] = []
    checked = 0
    for platform, entry in index.root.items():
        for ordinal, year in enumerate(sorted(entry.from_, reverse=True), start=1):
            from_path = entry.from_[year]
            last_path = entry.last.get(last_label(ordinal))
            if last_path is None:
                mismatches.append(f"{from_path}: no '{last_label(ordinal)}' entry in {platform}.last")
                continue
            if _sha256_file(out_dir / from_path) != _sha256_file(out_dir / last_path):
                mismatches.append(f"{from_path} ≠ {last_path}")
            checked += 1

    if mismatches:
        report.fail("pairs_identical", f"Content mismatches ({len(mismatches)}): {mismatches}", EXIT_CONTENT_MISMATCH)
    else:
        report.ok("pairs_identical", f"{checked} from/last pair(s) identical.")


def _check_completeness(index: RegistryIndex, report: IntegrityReport) -> None:
    """Check 4: "last" and "from" sections have one entry per year each."""
    bad = [
        f"{platform}: {len(entry.from_)} from vs {len(entry.last)} last"
        for platform, entry in index.root.items()
        if len(entry.from_) != len(entry.last)
    ]
    if bad:
        report.fail("completeness", f"Section size mismatch: {bad}", EXIT_STRUCTURAL_INVARIANT)
    else:
        report.ok("completeness", "Every platform lists one last- entry per year.")


def _key_paths(content: Any, prefix: tuple[str, ...] = ()) -> set[tuple[str, ...]]:
    """All key paths of a nested mapping, down to (and including) leaf keys."""
    paths: set[tuple[str, ...]] = set()
    if kind_of(content) is not Kind.MAPPING:
        return paths
    for key, value in content.items():
        path = prefix + (key,)
        paths.add(path)
        paths |= _key_paths(value, path)
    return paths


def _check_cumulative(out_dir: Path, index: RegistryIndex, report: IntegrityReport) -> None:
    """Check 5: from-<older> contains every key path of from-<newer>."""
    violations: list[str] = []
    for platform, entry in index.root.items():
        newer_paths: set[tuple[str, ...]] | None = None
        newer_year = ""
        for year in sorted(entry.from_, reverse=True):
            with open(out_dir / entry.from_[year], encoding="utf-8") as fh:
                paths = _key_paths(json.load(fh))
            if newer_paths is not None and not newer_paths <= paths:
                lost = sorted("/".join(p) for p in newer_paths - paths)
                violations.append(f"{platform}: from-{year} lacks {lost[:5]} from from-{newer_year}")
            newer_paths, newer_year = paths, year

    if violations:
        report.fail("cumulative", f"Superset violations: {violations}", EXIT_STRUCTURAL_INVARIANT)
    else:
        report.ok("cumulative", "Every older anchor is a superset of the newer one.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def validate_output(out_dir: Path) -> IntegrityReport:
    """Run all checks against a published output directory."""
    out_dir = Path(out_dir)
    report = IntegrityReport(out_dir=str(out_dir))

    if not out_dir.is_dir():
        report.fail("directory_exists", f"Output directory not found: {out_dir}", EXIT_MISSING_FILES)
        return report
    report.ok("directory_exists")

    index = _check_index(out_dir, report)
    if index is None:
        return report

    _check_completeness(index, report)
    if not _check_files_present(out_dir, index, report):
        return report

    _check_pairs_identical(out_dir, index, report)
    _check_cumulative(out_dir, index, report)
    return report
