"""
Export a semester's conflict matrix and ranked conflicts to an xlsx workbook.

Usage:
    python scripts/export_conflict_matrix.py --semester sp2026
    python scripts/export_conflict_matrix.py --semester sp2026 --out reports/sp2026.xlsx
"""

from __future__ import annotations

import argparse
import os
import sys

try:
    import pandas as pd
except ImportError as e:
    sys.exit(f"Missing dependency: {e}. Run: pip install pandas openpyxl")

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "backend"))

from conflict_report import build_matrix_report
from conflict_rules import score_scale_from_env
from data_loader import load_data, load_offering_table
from offerings import OfferingResolver
from semester import InvalidSemesterError

_CONFLICT_COLUMNS = [
    "courseA",
    "courseB",
    "overlap",
    "conflictLevel",
    "priority",
    "rarityImpact",
    "seniorityImpact",
    "explanation",
]


def report_frames(report: dict) -> dict[str, pd.DataFrame]:
    """Sheet name → frame, in workbook order."""
    codes = [c["code"] for c in report["courses"]]
    matrix_df = pd.DataFrame(report["matrix"], index=codes, columns=codes)
    matrix_df.index.name = "course"
    conflicts_df = pd.DataFrame(report["conflicts"], columns=_CONFLICT_COLUMNS)
    summary_df = pd.DataFrame([{
        "semester": report["semester"],
        "total_offered": report["totalOffered"],
        "total_planned": report["totalPlanned"],
        "conflicts": len(report["conflicts"]),
    }])
    return {"summary": summary_df, "matrix": matrix_df, "conflicts": conflicts_df}


def write_report(path: str, report: dict) -> None:
    frames = report_frames(report)
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, df in frames.items():
            df.to_excel(writer, sheet_name=sheet_name, index=(sheet_name == "matrix"))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Export a semester conflict matrix to xlsx.")
    parser.add_argument("--semester", required=True, help="Semester token, e.g. sp2026")
    parser.add_argument("--path", default=None, help="Data directory (default: ../data)")
    parser.add_argument("--out", default=None, help="Output workbook (default: conflicts_<semester>.xlsx)")
    args = parser.parse_args(argv)

    semester = args.semester.strip().lower()
    data_path = args.path or os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "data"))
    out_path = args.out or f"conflicts_{semester}.xlsx"

    try:
        data = load_data(data_path)
        offerings = OfferingResolver.from_table(load_offering_table(data_path))
        report = build_matrix_report(data, semester, offerings, scale=score_scale_from_env())
    except InvalidSemesterError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(f"[ERROR] Data not found: {exc}", file=sys.stderr)
        return 1

    write_report(out_path, report)
    print(f"[OK] Wrote {report['totalOffered']} course(s), {len(report['conflicts'])} conflict(s) to {out_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
