"""
prefix_registry.verify_output — Check a published build from the command line.

Usage:
    python -m prefix_registry.verify_output [--out DIR] [--json | --quiet]

Exits with the IntegrityReport exit code (see output_integrity).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from prefix_registry.build import OUT_DIR
from prefix_registry.output_integrity import IntegrityReport, validate_output


def _print_report(out_dir: Path, report: IntegrityReport) -> None:
    failed = [c for c in report.checks if not c["passed"]]
    print(f"{out_dir}: {'VALID' if report.valid else 'INVALID'} "
          f"({len(report.checks) - len(failed)}/{len(report.checks)} checks passed)")
    for err in report.errors:
        print(f"  {err}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="verify_output")
    parser.add_argument("--out", type=Path, default=OUT_DIR,
                        help="Published directory (default: PREFIX_OUT_DIR or ./out).")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--json", action="store_true", dest="json_output",
                      help="Print the report as JSON.")
    mode.add_argument("--quiet", action="store_true", help="Exit code only.")
    args = parser.parse_args(argv)

    report = validate_output(args.out)
    if args.json_output:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    elif not args.quiet:
        _print_report(args.out, report)
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
