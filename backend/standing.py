import re

import pandas as pd

from conflict_rules import UPPER_LEVEL_MIN_NUMBER
from semester import Semester, TOKEN_RE, token_season

# "315", "315L", " 408 " → leading course-number digits.
_LEADING_DIGITS = re.compile(r"^\s*(\d+)")


def _safe_int(val, default=None):
    try:
        if pd.isna(val):
            return default
        return int(str(val).strip())
    except (TypeError, ValueError):
        return default


def graduation_year(grad_year, expected_graduation: str) -> int | None:
    """Explicit grad year when present, else the year inside the grad token."""
    year = _safe_int(grad_year)
    if year is not None:
        return year
    m = TOKEN_RE.match(str(expected_graduation or "").strip())
    return int(m.group(2)) if m else None


def years_until_graduation(grad_year, expected_graduation: str, target: Semester) -> float | None:
    """
    Distance in years from the target term to graduation.

    Same calendar year: 0 for the same season, 0.5 when seasons differ.
    Different years: year difference, -0.5 for a Spring target with a Fall
    graduation and +0.5 for a Fall target with a Spring graduation.
    """
    year = graduation_year(grad_year, expected_graduation)
    if year is None:
        return None
    grad_season = token_season(expected_graduation)

    if year == target.year:
        if grad_season is not None and grad_season != target.season:
            return 0.5
        return 0.0

    years = float(year - target.year)
    if target.is_spring and grad_season == "Fall":
        years -= 0.5
    elif target.is_fall and grad_season == "Spring":
        years += 0.5
    return years


def classify_standing(student, target: Semester) -> str:
    """Freshman…Senior by proximity to graduation (not by credits earned)."""
    years = years_until_graduation(student.grad_year, student.expected_graduation, target)
    if years is None:
        return "Freshman"
    if years <= 0.5:
        return "Senior"
    if years <= 1.5:
        return "Junior"
    if years <= 2.5:
        return "Sophomore"
    return "Freshman"


def is_graduating_senior(student, target: Semester) -> bool:
    """
    Counts toward "graduating seniors affected": graduation year at or before
    the target year, or graduation in exactly the target term.

    Not derived from classify_standing; the two disagree e.g. for a fa2027
    graduate seen from sp2026 (Senior by standing, not graduating).
    """
    if str(student.expected_graduation or "").strip().lower() == target.token:
        return True
    year = graduation_year(student.grad_year, student.expected_graduation)
    return year is not None and year <= target.year


def course_number(number) -> int | None:
    """Leading digits of a course number: '315L' → 315; None when there are none."""
    m = _LEADING_DIGITS.match(str(number or ""))
    return int(m.group(1)) if m else None


def is_upper_level(number) -> bool:
    num = course_number(number)
    return num is not None and num >= UPPER_LEVEL_MIN_NUMBER


def section_counts(sections_df: pd.DataFrame, semester_token: str) -> dict[str, int]:
    """course_id → number of sections scheduled in the given term."""
    if sections_df is None or len(sections_df) == 0:
        return {}
    in_term = sections_df[sections_df["semester"] == semester_token]
    if len(in_term) == 0:
        return {}
    return {str(k): int(v) for k, v in in_term.groupby("course_id", sort=False).size().items()}


def course_rarity(course_id: str, semester_token: str, sections_df: pd.DataFrame) -> int:
    """Count of sections for (course, term). Zero when none are scheduled."""
    return section_counts(sections_df, semester_token).get(course_id, 0)


def rarity_weight(section_count: int) -> float:
    """1 / sections; unscheduled courses (0 sections) count as maximally rare."""
    if section_count and section_count > 0:
        return 1.0 / section_count
    return 1.0
