import json
import os
import sys

import pandas as pd

from models import Course, PlanEntry, Student
from offerings import VALID_OFFERING_CODES
from semester import TOKEN_RE


STUDENTS_FILE = "students.json"
COURSE_FILE = "course.csv"
SECTION_FILE = "section.csv"
OFFERING_FILE = "offering.csv"

# Registrar export headers → canonical column names.
_COURSE_RENAMES = {
    "crs id": "course_id",
    "dept code": "department",
    "crs num": "number",
    "min hours": "min_credits",
    "max hours": "max_credits",
}
_SECTION_RENAMES = {
    "sec id": "section_id",
    "dept code": "department",
    "crs num": "number",
    "sec num": "section_number",
    "sem": "semester",
    "semester_token": "semester",
}
_OFFERING_RENAMES = {
    "crs id": "course_id",
    "offering": "offering_code",
    "code": "offering_code",
}


def _read_csv(path: str) -> pd.DataFrame:
    """Read a data CSV as strings; tolerates single-quoted fields and header padding."""
    df = pd.read_csv(path, dtype=str, quotechar="'", skipinitialspace=True, keep_default_na=False)
    df.columns = [str(c).strip().strip("'\"").lower() for c in df.columns]
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip().str.strip("'\"")
    return df


def _apply_renames(df: pd.DataFrame, renames: dict) -> pd.DataFrame:
    rename_map = {
        src: dst for src, dst in renames.items()
        if src in df.columns and dst not in df.columns
    }
    if rename_map:
        df = df.rename(columns=rename_map)
    return df


def _require_columns(df: pd.DataFrame, cols: list[str], source: str) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"{source} is missing required column(s): {missing}")


def _int_or(val, default: int) -> int:
    try:
        return int(float(str(val).strip()))
    except (TypeError, ValueError):
        return default


def _normalize_courses_df(courses_df: pd.DataFrame) -> pd.DataFrame:
    courses_df = _apply_renames(courses_df.copy(), _COURSE_RENAMES)
    _require_columns(courses_df, ["course_id", "department", "number"], COURSE_FILE)
    if "title" not in courses_df.columns:
        courses_df["title"] = ""
    if "min_credits" not in courses_df.columns:
        courses_df["min_credits"] = 3
    if "max_credits" not in courses_df.columns:
        courses_df["max_credits"] = courses_df["min_credits"]
    courses_df["min_credits"] = courses_df["min_credits"].apply(lambda v: _int_or(v, 3))
    courses_df["max_credits"] = courses_df["max_credits"].apply(lambda v: _int_or(v, 3))
    courses_df = courses_df[courses_df["course_id"] != ""]
    return courses_df[["course_id", "department", "number", "title", "min_credits", "max_credits"]]


def _normalize_sections_df(sections_df: pd.DataFrame) -> pd.DataFrame:
    sections_df = _apply_renames(sections_df.copy(), _SECTION_RENAMES)
    if "course_id" not in sections_df.columns:
        # Registrar exports identify the course by department + number.
        _require_columns(sections_df, ["department", "number"], SECTION_FILE)
        sections_df["course_id"] = sections_df["department"] + sections_df["number"]
    _require_columns(sections_df, ["course_id", "semester"], SECTION_FILE)
    if "section_number" not in sections_df.columns:
        sections_df["section_number"] = ""
    sections_df["semester"] = sections_df["semester"].str.lower()
    return sections_df[["course_id", "semester", "section_number"]]


def _plan_entries(raw_semester) -> list[PlanEntry]:
    # Plans are stored either as {"courses": [...]} or a bare list.
    if isinstance(raw_semester, dict):
        rows = raw_semester.get("courses") or []
    elif isinstance(raw_semester, list):
        rows = raw_semester
    else:
        rows = []
    entries = []
    for row in rows:
        if not isinstance(row, dict) or not row.get("course_id"):
            continue
        entries.append(PlanEntry(
            course_id=str(row["course_id"]).strip(),
            department=str(row.get("department", "") or "").strip(),
            number=str(row.get("number", "") or "").strip(),
            title=str(row.get("title", "") or "").strip(),
            credits=_int_or(row.get("credits"), 3),
            status=str(row.get("status", "") or "").strip().lower(),
        ))
    return entries


def parse_student(raw: dict) -> Student:
    grad_token = str(raw.get("expectedGraduation", "") or "").strip().lower()
    grad_year = raw.get("gradYear")
    if grad_year in (None, ""):
        m = TOKEN_RE.match(grad_token)
        grad_year = int(m.group(2)) if m else None
    else:
        grad_year = _int_or(grad_year, None)
    plan = {
        str(token).strip().lower(): _plan_entries(sem)
        for token, sem in (raw.get("plan") or {}).items()
    }
    return Student(
        id=str(raw.get("id", "")).strip(),
        name=str(raw.get("name", "") or "").strip(),
        grad_year=grad_year,
        expected_graduation=grad_token,
        email=str(raw.get("email", "") or "").strip(),
        plan=plan,
    )


def load_students(path: str) -> tuple[list[Student], list[dict]]:
    with open(path, "r", encoding="utf-8") as fh:
        raw_students = json.load(fh)
    if not isinstance(raw_students, list):
        raise ValueError(f"{STUDENTS_FILE} must contain a list of student records")
    students = [parse_student(r) for r in raw_students if isinstance(r, dict)]

    bad_grad = [s.id for s in students if not TOKEN_RE.match(s.expected_graduation)]
    if bad_grad:
        print(f"[WARN] {len(bad_grad)} student(s) have a malformed expected graduation term: {sorted(bad_grad)}")
    return students, raw_students


def load_offering_table(data_path: str) -> dict[str, str]:
    """course_id → offering code. Missing file → empty table."""
    path = os.path.join(data_path, OFFERING_FILE)
    if not os.path.isfile(path):
        print(f"[WARN] Offering table not found at {path}; every course resolves as not offered.", file=sys.stderr)
        return {}
    offering_df = _apply_renames(_read_csv(path), _OFFERING_RENAMES)
    if "course_id" not in offering_df.columns or "offering_code" not in offering_df.columns:
        # Headerless or oddly named two-column files: positional.
        offering_df = offering_df.iloc[:, :2]
        offering_df.columns = ["course_id", "offering_code"]

    table: dict[str, str] = {}
    for _, row in offering_df.iterrows():
        course_id = str(row["course_id"]).strip()
        if course_id:
            table[course_id] = str(row["offering_code"]).strip().lower()

    unknown = sorted(cid for cid, code in table.items() if code not in VALID_OFFERING_CODES)
    if unknown:
        print(f"[WARN] {len(unknown)} course(s) have an unknown offering code (treated as not offered): {unknown}")
    return table


def load_data(data_path: str) -> dict:
    """Load students, catalog and sections from a data directory. Raises on file/schema errors."""
    if not os.path.isdir(data_path):
        raise FileNotFoundError(data_path)

    students, raw_students = load_students(os.path.join(data_path, STUDENTS_FILE))
    courses_df = _normalize_courses_df(_read_csv(os.path.join(data_path, COURSE_FILE)))
    sections_df = _normalize_sections_df(_read_csv(os.path.join(data_path, SECTION_FILE)))

    catalog = {
        row["course_id"]: Course(
            course_id=row["course_id"],
            department=row["department"],
            number=row["number"],
            title=row["title"],
            min_credits=int(row["min_credits"]),
            max_credits=int(row["max_credits"]),
        )
        for _, row in courses_df.iterrows()
    }

    # ── Startup data integrity checks ──────────────────────────────────────
    orphaned = set(sections_df["course_id"].tolist()) - set(catalog)
    if orphaned:
        print(f"[WARN] {len(orphaned)} course(s) in {SECTION_FILE} not found in {COURSE_FILE}: {sorted(orphaned)}")

    bad_terms = sorted({t for t in sections_df["semester"].tolist() if not TOKEN_RE.match(t)})
    if bad_terms:
        print(f"[WARN] {len(bad_terms)} malformed semester value(s) in {SECTION_FILE}: {bad_terms}")

    return {
        "students": students,
        "students_raw": raw_students,
        "sections_df": sections_df,
        "catalog": catalog,
    }
