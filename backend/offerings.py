"""
Course offering resolver.

Offering codes predict whether a course runs in a future term:
  e   every semester
  ef  every fall          es  every spring   (sp is an alias of es)
  fo  odd-year falls      fe  even-year falls
  so  odd-year springs    se  even-year springs
Unknown or missing codes resolve to "not offered".
"""

from semester import Semester, next_semester, normalize_season


VALID_OFFERING_CODES = {"e", "ef", "es", "sp", "fo", "fe", "so", "se"}

# (season or None for any, required year parity or None for any)
_PATTERNS = {
    "e": (None, None),
    "ef": ("Fall", None),
    "es": ("Spring", None),
    "sp": ("Spring", None),
    "fo": ("Fall", 1),
    "fe": ("Fall", 0),
    "so": ("Spring", 1),
    "se": ("Spring", 0),
}

_DESCRIPTIONS = {
    "e": "Every semester",
    "ef": "Every fall semester",
    "es": "Every spring semester",
    "sp": "Every spring semester",
    "fo": "Odd-numbered fall semesters",
    "fe": "Even-numbered fall semesters",
    "so": "Odd-numbered spring semesters",
    "se": "Even-numbered spring semesters",
}

# Longest gap between two runs of any pattern is four terms.
_MAX_LOOKAHEAD_TERMS = 4


class OfferingNotFoundError(LookupError):
    """Raised when a course has no row in the offering table."""

    def __init__(self, course_id: str):
        super().__init__(f"Course offering information not found for {course_id}")
        self.course_id = course_id


class OfferingCache:
    """Process-wide memo of the course_id → offering code table."""

    def __init__(self, loader):
        self._loader = loader
        self._table: dict[str, str] | None = None

    @property
    def loaded(self) -> bool:
        return self._table is not None

    def get(self) -> dict[str, str]:
        if self._table is None:
            self._table = dict(self._loader())
        return self._table

    def prime(self, table: dict[str, str]) -> None:
        self._table = dict(table)

    def invalidate(self) -> None:
        self._table = None


def code_matches(code: str | None, season: str, year: int) -> bool:
    pattern = _PATTERNS.get(str(code or "").strip().lower())
    if pattern is None:
        return False
    want_season, want_parity = pattern
    if want_season is not None and want_season != season:
        return False
    if want_parity is not None and year % 2 != want_parity:
        return False
    return True


class OfferingResolver:
    def __init__(self, cache: OfferingCache):
        self.cache = cache

    @classmethod
    def from_table(cls, table: dict[str, str]) -> "OfferingResolver":
        cache = OfferingCache(lambda: table)
        cache.prime(table)
        return cls(cache)

    def offering_code(self, course_id: str) -> str | None:
        return self.cache.get().get(course_id)

    def is_offered(self, course_id: str, season: str, year: int) -> bool:
        code = self.offering_code(course_id)
        if not code:
            return False
        return code_matches(code, normalize_season(season), int(year))

    def is_offered_in(self, course_id: str, semester: Semester) -> bool:
        return self.is_offered(course_id, semester.season, semester.year)

    def next_offering(self, course_id: str, start: Semester) -> Semester | None:
        """Earliest term at or after `start` in which the course runs."""
        code = self.offering_code(course_id)
        if not code:
            raise OfferingNotFoundError(course_id)
        sem = start
        for _ in range(_MAX_LOOKAHEAD_TERMS):
            if code_matches(code, sem.season, sem.year):
                return sem
            sem = next_semester(sem)
        return None

    def explain_next_offering(self, course_id: str, from_year: int) -> str:
        """User-facing suggestion for when a course will next run."""
        code = self.offering_code(course_id)
        if not code:
            raise OfferingNotFoundError(course_id)
        code = code.strip().lower()
        if code == "e":
            return "Available every semester."
        if code == "ef":
            return "Only offered in Fall semesters."
        if code in ("es", "sp"):
            return "Only offered in Spring semesters."
        if code not in _PATTERNS:
            return "Check course catalog for availability."

        # Suggestions count from the fall of from_year onward.
        nxt = self.next_offering(course_id, Semester("Fall", int(from_year)))
        parity = "odd" if _PATTERNS[code][1] == 1 else "even"
        return (
            f"Offered in {_PATTERNS[code][0]} semesters of {parity} years. "
            f"Next available: {nxt.label}."
        )

    def describe_offering(self, course_id: str) -> str:
        code = self.offering_code(course_id)
        if not code:
            return "Offering information not available"
        return _DESCRIPTIONS.get(code.strip().lower(), "Unknown offering pattern")

    def validate_course_selection(self, course_id: str, season: str, year: int) -> dict:
        season = normalize_season(season)
        if self.is_offered(course_id, season, year):
            return {"valid": True, "message": "Course is available for this semester"}
        if not self.offering_code(course_id):
            return {"valid": False, "message": "Course offering information not found"}
        suggestion = self.explain_next_offering(course_id, int(year))
        return {
            "valid": False,
            "message": f"Course is not offered in {season} {year}. {suggestion}",
        }

    def available_courses(self, catalog: dict, season: str, year: int) -> list:
        """Catalog courses offered in (season, year), by department then number."""
        offered = [
            course for course_id, course in catalog.items()
            if self.is_offered(course_id, season, year)
        ]
        offered.sort(key=lambda c: (c.department, c.number))
        return offered
