from conflict_rules import PLANNED_STATUS
from models import Course, CourseEnrollment, EnrolledStudent


def _course_for_entry(entry, catalog: dict | None) -> Course:
    if catalog and entry.course_id in catalog:
        return catalog[entry.course_id]
    return Course(
        course_id=entry.course_id,
        department=entry.department,
        number=entry.number,
        title=entry.title,
        min_credits=entry.credits,
        max_credits=entry.credits,
    )


def build_enrollments(students: list, semester_token: str, catalog: dict | None = None) -> dict[str, CourseEnrollment]:
    """
    Group planned courses for one term into per-course rosters.

    Returns course_id → CourseEnrollment, keyed in first-seen order. Students
    appear in each roster in first-seen order. Taken and in-progress entries
    are skipped; a repeated planned entry for the same student is ignored.
    """
    enrollments: dict[str, CourseEnrollment] = {}
    for student in students:
        entries = student.plan.get(semester_token) or []
        for entry in entries:
            if entry.status != PLANNED_STATUS:
                continue
            roster = enrollments.get(entry.course_id)
            if roster is None:
                roster = CourseEnrollment(course=_course_for_entry(entry, catalog))
                enrollments[entry.course_id] = roster
            if any(s.id == student.id for s in roster.students):
                continue
            roster.students.append(EnrolledStudent(
                id=student.id,
                name=student.name,
                grad_year=student.grad_year,
                expected_graduation=student.expected_graduation,
            ))
    return enrollments
