"""
Record types shared by the conflict engine.

Raw rows are validated and converted in data_loader; everything downstream
works with these instead of loose dicts.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Course:
    course_id: str
    department: str
    number: str
    title: str
    min_credits: int = 3
    max_credits: int = 3

    @property
    def code(self) -> str:
        return f"{self.department}{self.number}"

    def to_dict(self) -> dict:
        return {
            "course_id": self.course_id,
            "department": self.department,
            "number": self.number,
            "title": self.title,
            "min_credits": self.min_credits,
            "max_credits": self.max_credits,
        }


@dataclass(frozen=True)
class PlanEntry:
    """One course in a student's plan for one semester."""
    course_id: str
    department: str
    number: str
    title: str
    credits: int
    status: str


@dataclass
class Student:
    id: str
    name: str
    grad_year: int | None
    expected_graduation: str
    email: str = ""
    # semester token → plan entries in that semester
    plan: dict[str, list[PlanEntry]] = field(default_factory=dict)


@dataclass(frozen=True)
class EnrolledStudent:
    id: str
    name: str
    grad_year: int | None
    expected_graduation: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "gradYear": self.grad_year,
            "expectedGraduation": self.expected_graduation,
        }


@dataclass
class CourseEnrollment:
    course: Course
    students: list[EnrolledStudent] = field(default_factory=list)

    @property
    def student_ids(self) -> set[str]:
        return {s.id for s in self.students}


@dataclass(frozen=True)
class ConflictRecord:
    course_a: Course
    course_b: Course
    overlap: int
    score: float
    rarity_impact: str
    seniority_impact: str
    explanation: str
    priority: str | None = None

    def to_dict(self) -> dict:
        return {
            "courseA": self.course_a.code,
            "courseB": self.course_b.code,
            "overlap": self.overlap,
            "rarityImpact": self.rarity_impact,
            "seniorityImpact": self.seniority_impact,
            "conflictLevel": self.score,
            "priority": self.priority,
            "explanation": self.explanation,
        }
