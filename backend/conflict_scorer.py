"""
Pairwise conflict scoring for courses planned in the same term.

    raw   = overlap * (rarity_weight(A) + rarity_weight(B)) * avg(seniority weights)
    score = min(raw / scale, 1.0), rounded to 2 places

where rarity_weight = 1 / sections scheduled (1 when none are scheduled) and
seniority weights come from each overlapping student's standing.
"""

import math

from conflict_rules import DEFAULT_SCORE_SCALE, SENIORITY_WEIGHTS, conflict_priority
from models import ConflictRecord, CourseEnrollment
from semester import Semester
from standing import classify_standing, is_graduating_senior, is_upper_level, rarity_weight


def weighted_overlap_score(overlap: int, rarity_a: float, rarity_b: float, avg_seniority: float) -> float:
    return overlap * (rarity_a + rarity_b) * avg_seniority


def round_score(value: float) -> float:
    """Round half up to 2 decimals."""
    return math.floor(value * 100 + 0.5) / 100


def _plural(n: int, word: str) -> str:
    return f"{word}{'s' if n > 1 else ''}"


class ConflictScorer:
    def __init__(
        self,
        target: Semester,
        section_counts: dict[str, int],
        scale: float = DEFAULT_SCORE_SCALE,
        seniority_weights: dict[str, float] | None = None,
        formula=weighted_overlap_score,
    ):
        self.target = target
        self.section_counts = section_counts or {}
        self.scale = scale
        self.seniority_weights = seniority_weights or SENIORITY_WEIGHTS
        self.formula = formula

    def sections(self, course_id: str) -> int:
        return self.section_counts.get(course_id, 0)

    def overlapping_students(self, a: CourseEnrollment, b: CourseEnrollment) -> list:
        # Sorted by id so (A, B) and (B, A) aggregate in the same order.
        shared = a.student_ids & b.student_ids
        return sorted((s for s in a.students if s.id in shared), key=lambda s: s.id)

    def seniority_weight(self, student) -> float:
        return self.seniority_weights.get(classify_standing(student, self.target), 1.0)

    def raw_score(self, a: CourseEnrollment, b: CourseEnrollment, overlapping: list) -> float:
        if not overlapping:
            return 0.0
        weights = [self.seniority_weight(s) for s in overlapping]
        avg_seniority = sum(weights) / len(weights)
        return self.formula(
            len(overlapping),
            rarity_weight(self.sections(a.course.course_id)),
            rarity_weight(self.sections(b.course.course_id)),
            avg_seniority,
        )

    def normalize(self, raw: float) -> float:
        return round_score(min(raw / self.scale, 1.0))

    def rarity_impact(self, a: CourseEnrollment, b: CourseEnrollment) -> str:
        single_a = self.sections(a.course.course_id) == 1
        single_b = self.sections(b.course.course_id) == 1
        if single_a and single_b:
            return "Both are single-section upper-level"
        if single_a or single_b:
            return "One is single-section upper-level"
        if is_upper_level(a.course.number) and is_upper_level(b.course.number):
            return "Both are upper-level courses"
        return "Standard course availability"

    def graduating_senior_count(self, overlapping: list) -> int:
        return sum(1 for s in overlapping if is_graduating_senior(s, self.target))

    def explanation(self, a: CourseEnrollment, b: CourseEnrollment, overlap: int, senior_count: int) -> str:
        single_a = self.sections(a.course.course_id) == 1
        single_b = self.sections(b.course.course_id) == 1
        if single_a and single_b:
            rarity_text = "both are single-section"
        elif single_a or single_b:
            rarity_text = "one is single-section"
        else:
            rarity_text = ""

        upper_a = is_upper_level(a.course.number)
        upper_b = is_upper_level(b.course.number)
        if upper_a and upper_b:
            level_text = "upper-level"
        elif upper_a or upper_b:
            level_text = "mixed-level"
        else:
            level_text = ""

        parts = [f"{overlap} {_plural(overlap, 'student')} plan{'s' if overlap == 1 else ''} to take both"]
        if rarity_text and level_text:
            parts.append(f"{rarity_text} {level_text} courses")
        elif rarity_text or level_text:
            parts.append(f"{rarity_text or level_text} courses")
        if senior_count > 0:
            parts.append(f"{senior_count} graduating {_plural(senior_count, 'senior')} affected")
        return "; ".join(parts) + "."

    def score(self, a: CourseEnrollment, b: CourseEnrollment) -> ConflictRecord | None:
        """ConflictRecord for the pair, or None when no student plans both."""
        overlapping = self.overlapping_students(a, b)
        overlap = len(overlapping)
        if overlap == 0:
            return None

        score = self.normalize(self.raw_score(a, b, overlapping))
        senior_count = self.graduating_senior_count(overlapping)
        if senior_count > 0:
            seniority_impact = f"{senior_count} graduating {_plural(senior_count, 'senior')} affected"
        else:
            seniority_impact = "No graduating seniors affected"

        return ConflictRecord(
            course_a=a.course,
            course_b=b.course,
            overlap=overlap,
            score=score,
            rarity_impact=self.rarity_impact(a, b),
            seniority_impact=seniority_impact,
            explanation=self.explanation(a, b, overlap, senior_count),
            priority=conflict_priority(score),
        )
