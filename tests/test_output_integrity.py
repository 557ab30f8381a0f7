"""
tests/test_output_integrity.py — Published output validation and verification CLI.

Covers:
    - validate_output() on a freshly built tree (all checks pass)
    - Each failure category: missing files, content mismatch, structural invariant
    - verify_output CLI (--quiet, --json, human-readable)

Every test builds a real output tree with run_build(); failures are
introduced by editing that tree afterwards.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from prefix_registry.build import run_build
from prefix_registry.output_integrity import (
    EXIT_CONTENT_MISMATCH,
    EXIT_MISSING_FILES,
    EXIT_OK,
    EXIT_STRUCTURAL_INVARIANT,
    IntegrityReport,
    validate_output,
)
from prefix_registry.verify_output import main as cli_main


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture()
def out_dir(tmp_path: Path) -> Path:
    registry = tmp_path / "registry"
    write_json(registry / "webkit" / "2022" / "elements.json", {"meter": "-webkit-meter"})
    write_json(registry / "webkit" / "2023" / "classes.json", {"foo": "-webkit-foo"})
    write_json(registry / "webkit" / "2024" / "classes.json", {"bar": "-webkit-bar"})
    write_json(registry / "moz" / "2024" / "atrules.json", {"document": "@-moz-document"})
    out = tmp_path / "out"
    run_build(registry, tmp_path / "no-site", out)
    return out


# ===========================================================================
# Passing tree
# ===========================================================================


class TestValidOutput:

    def test_fresh_build_passes(self, out_dir):
        report = validate_output(out_dir)
        assert report.valid, f"Validation failed: {report.errors}"
        assert report.exit_code == EXIT_OK
        assert report.errors == []

    def test_runs_every_check(self, out_dir):
        report = validate_output(out_dir)
        assert [c["check"] for c in report.checks] == [
            "directory_exists",
            "index",
            "completeness",
            "files_present",
            "pairs_identical",
            "cumulative",
        ]

    def test_report_serializes(self, out_dir):
        data = validate_output(out_dir).to_dict()
        assert data["valid"] is True
        assert data["out_dir"] == str(out_dir)
        json.dumps(data)


# ===========================================================================
# Failure categories
# ===========================================================================


class TestFailures:

    def test_missing_directory(self, tmp_path):
        report = validate_output(tmp_path / "nope")
        assert not report.valid
        assert report.exit_code == EXIT_MISSING_FILES

    def test_missing_index(self, out_dir):
        (out_dir / "index.json").unlink()
        report = validate_output(out_dir)
        assert report.exit_code == EXIT_MISSING_FILES

    def test_unparseable_index(self, out_dir):
        (out_dir / "index.json").write_text("{nope", encoding="utf-8")
        report = validate_output(out_dir)
        assert report.exit_code == EXIT_STRUCTURAL_INVARIANT

    def test_index_wrong_shape(self, out_dir):
        write_json(out_dir / "index.json", {"webkit": {"from": {"20x4": "x.json"}, "last": {}}})
        report = validate_output(out_dir)
        assert report.exit_code == EXIT_STRUCTURAL_INVARIANT

    def test_missing_snapshot(self, out_dir):
        (out_dir / "platform" / "webkit--last-0002.json").unlink()
        report = validate_output(out_dir)
        assert report.exit_code == EXIT_MISSING_FILES
        assert "webkit--last-0002.json" in report.errors[0]

    def test_tampered_last_file(self, out_dir):
        write_json(out_dir / "platform" / "webkit--last-0001.json", {"classes": {}})
        report = validate_output(out_dir)
        assert report.exit_code == EXIT_CONTENT_MISMATCH

    def test_incomplete_last_section(self, out_dir):
        index = json.loads((out_dir / "index.json").read_text(encoding="utf-8"))
        del index["webkit"]["last"]["3 year"]
        write_json(out_dir / "index.json", index)
        report = validate_output(out_dir)
        assert not report.valid
        assert report.exit_code == EXIT_STRUCTURAL_INVARIANT

    def test_superset_violation(self, out_dir):
        shrunk = {"classes": {"bar": "-webkit-bar"}}
        write_json(out_dir / "platform" / "webkit--from-2022.json", shrunk)
        write_json(out_dir / "platform" / "webkit--last-0003.json", shrunk)
        report = validate_output(out_dir)
        assert report.exit_code == EXIT_STRUCTURAL_INVARIANT
        assert any("from-2022" in e for e in report.errors)

    def test_first_failure_code_kept(self):
        report = IntegrityReport()
        report.fail("a", "first", EXIT_CONTENT_MISMATCH)
        report.fail("b", "second", EXIT_MISSING_FILES)
        assert report.exit_code == EXIT_CONTENT_MISMATCH
        assert len(report.errors) == 2


# ===========================================================================
# CLI
# ===========================================================================


class TestVerifyCli:

    def test_quiet_valid(self, out_dir, capsys):
        assert cli_main(["--out", str(out_dir), "--quiet"]) == EXIT_OK
        assert capsys.readouterr().out == ""

    def test_json_output(self, out_dir, capsys):
        assert cli_main(["--out", str(out_dir), "--json"]) == EXIT_OK
        data = json.loads(capsys.readouterr().out)
        assert data["valid"] is True
        assert len(data["checks"]) == 6

    def test_human_output_on_failure(self, out_dir, capsys):
        (out_dir / "index.json").unlink()
        assert cli_main(["--out", str(out_dir)]) == EXIT_MISSING_FILES
        printed = capsys.readouterr().out
        assert "INVALID" in printed
        assert "index.json not found" in printed

    def test_human_output_on_success(self, out_dir, capsys):
        assert cli_main(["--out", str(out_dir)]) == EXIT_OK
        printed = capsys.readouterr().out
        assert "VALID" in printed
        assert "INVALID" not in printed
        assert "6/6 checks passed" in printed

    def test_json_and_quiet_are_exclusive(self, out_dir):
        with pytest.raises(SystemExit):
            cli_main(["--out", str(out_dir), "--json", "--quiet"])
