from conflict_rules import (
    DEFAULT_DASHBOARD_SEMESTERS,
    DEFAULT_SCORE_SCALE,
    HIGH_PRIORITY_THRESHOLD,
    NO_CONFLICTS_MESSAGE,
)
from conflict_scorer import ConflictScorer
from enrollments import build_enrollments
from models import CourseEnrollment
from semester import parse_semester
from standing import course_number, section_counts


def _course_sort_key(enrollment: CourseEnrollment):
    course = enrollment.course
    number = course_number(course.number)
    return (course.department, number if number is not None else float("inf"))


def order_courses(enrollments: list[CourseEnrollment]) -> list[CourseEnrollment]:
    """By department, then numeric course number; ties keep first-seen order."""
    return sorted(enrollments, key=_course_sort_key)


def score_pairs(ordered: list[CourseEnrollment], scorer: ConflictScorer):
    """
    Score every unordered pair once (i < j).

    Returns (records, matrix): records in pair order, matrix n x n with the
    pair score mirrored into [i][j] and [j][i] and a zero diagonal.
    """
    n = len(ordered)
    matrix = [[0.0] * n for _ in range(n)]
    records = []
    for i in range(n):
        for j in range(i + 1, n):
            record = scorer.score(ordered[i], ordered[j])
            if record is None:
                continue
            matrix[i][j] = record.score
            matrix[j][i] = record.score
            records.append(record)
    return records, matrix


def rank_conflicts(records: list) -> list:
    # Stable: equal scores keep pair order.
    return sorted(records, key=lambda r: -r.score)


def _scorer_for(data: dict, semester, scale: float) -> ConflictScorer:
    counts = section_counts(data.get("sections_df"), semester.token)
    return ConflictScorer(semester, counts, scale=scale)


def build_conflict_report(data: dict, semester_token: str, scale: float = DEFAULT_SCORE_SCALE) -> dict:
    """
    Ranked conflict list for every course planned in the term.

    No offering filter is applied here, unlike build_matrix_report.
    Raises InvalidSemesterError for a malformed token.
    """
    semester = parse_semester(semester_token)
    enrollments = build_enrollments(data["students"], semester.token, data.get("catalog"))
    scorer = _scorer_for(data, semester, scale)
    records, _ = score_pairs(order_courses(list(enrollments.values())), scorer)

    report = {
        "semester": semester.token,
        "conflicts": [r.to_dict() for r in rank_conflicts(records)],
    }
    if not report["conflicts"]:
        report["message"] = NO_CONFLICTS_MESSAGE
    return report


def build_matrix_report(data: dict, semester_token: str, offerings, scale: float = DEFAULT_SCORE_SCALE) -> dict:
    """
    Symmetric conflict matrix over courses both planned and offered in the term.

    totalPlanned counts every distinct planned course, offered or not.
    Raises InvalidSemesterError for a malformed token.
    """
    semester = parse_semester(semester_token)
    enrollments = build_enrollments(data["students"], semester.token, data.get("catalog"))
    offered = [
        e for e in enrollments.values()
        if offerings.is_offered_in(e.course.course_id, semester)
    ]
    ordered = order_courses(offered)
    scorer = _scorer_for(data, semester, scale)
    records, matrix = score_pairs(ordered, scorer)

    courses = [
        {
            "id": e.course.course_id,
            "code": e.course.code,
            "title": e.course.title,
            "department": e.course.department,
            "number": e.course.number,
        }
        for e in ordered
    ]
    report = {
        "semester": semester.token,
        "courses": courses,
        "matrix": matrix,
        "conflicts": [r.to_dict() for r in rank_conflicts(records)],
        "totalOffered": len(courses),
        "totalPlanned": len(enrollments),
    }
    if not report["conflicts"]:
        report["message"] = NO_CONFLICTS_MESSAGE
    return report


def count_high_priority(data: dict, semester_tokens: list[str] | None = None, scale: float = DEFAULT_SCORE_SCALE) -> dict:
    """Number of conflicts at or above the high-priority threshold, per term and overall."""
    tokens = semester_tokens or DEFAULT_DASHBOARD_SEMESTERS
    by_semester = {}
    for token in tokens:
        report = build_conflict_report(data, token, scale=scale)
        by_semester[report["semester"]] = sum(
            1 for c in report["conflicts"] if c["conflictLevel"] >= HIGH_PRIORITY_THRESHOLD
        )
    return {
        "semesters": by_semester,
        "highPriorityCount": sum(by_semester.values()),
        "threshold": HIGH_PRIORITY_THRESHOLD,
    }
