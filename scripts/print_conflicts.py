"""
Print the scheduling-conflict report for one semester.

Usage:
    python scripts/print_conflicts.py --semester sp2026
    python scripts/print_conflicts.py --semester sp2026 --matrix
    python scripts/print_conflicts.py --semester sp2026 --json --path path/to/data
"""

import argparse
import json
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from conflict_report import build_conflict_report, build_matrix_report
from conflict_rules import score_scale_from_env
from data_loader import load_data, load_offering_table
from offerings import OfferingResolver
from semester import InvalidSemesterError


def default_data_path() -> str:
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "data"))


def build_report(data_path: str, semester: str, matrix: bool, scale: float) -> dict:
    data = load_data(data_path)
    if matrix:
        offerings = OfferingResolver.from_table(load_offering_table(data_path))
        return build_matrix_report(data, semester, offerings, scale=scale)
    return build_conflict_report(data, semester, scale=scale)


def format_report(report: dict) -> str:
    lines = [f"Scheduling conflicts for {report['semester']}"]
    if "totalOffered" in report:
        lines.append(f"  Offered: {report['totalOffered']}  Planned: {report['totalPlanned']}")
    if report.get("message"):
        lines.append(f"  {report['message']}")
    for c in report["conflicts"]:
        priority = c.get("priority") or "-"
        lines.append(
            f"  [{priority:<6}] {c['conflictLevel']:.2f}  {c['courseA']} x {c['courseB']}"
            f"  (overlap {c['overlap']})"
        )
        lines.append(f"           {c['explanation']}")
    return "\n".join(lines)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Print scheduling conflicts for a semester.")
    parser.add_argument("--semester", required=True, help="Semester token, e.g. sp2026")
    parser.add_argument("--path", default=None, help="Data directory (default: ../data)")
    parser.add_argument("--matrix", action="store_true", help="Only courses offered that term, with matrix totals")
    parser.add_argument("--json", action="store_true", help="Emit raw JSON")
    args = parser.parse_args(argv)

    data_path = args.path or default_data_path()
    try:
        report = build_report(data_path, args.semester.strip().lower(), args.matrix, score_scale_from_env())
    except InvalidSemesterError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(f"[ERROR] Data not found: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print(format_report(report))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
