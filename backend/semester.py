import re
from dataclasses import dataclass


# Wire-level token: two-letter season prefix + 4-digit year, e.g. 'fa2026'.
TOKEN_RE = re.compile(r"^(fa|sp)(\d{4})$", re.IGNORECASE)
# Human label, e.g. 'Spring 2026'.
SEM_RE = re.compile(r"^(Spring|Fall)\s+(\d{4})$", re.IGNORECASE)

_SEASON_BY_PREFIX = {"sp": "Spring", "fa": "Fall"}
_PREFIX_BY_SEASON = {"Spring": "sp", "Fall": "fa"}
# Spring sorts before Fall within a calendar year.
_SEASON_ORDER = {"Spring": 0, "Fall": 1}


class InvalidSemesterError(ValueError):
    """Raised for a semester token or label that does not match season + year."""


@dataclass(frozen=True)
class Semester:
    season: str
    year: int

    @property
    def token(self) -> str:
        return f"{_PREFIX_BY_SEASON[self.season]}{self.year}"

    @property
    def label(self) -> str:
        return f"{self.season} {self.year}"

    @property
    def is_fall(self) -> bool:
        return self.season == "Fall"

    @property
    def is_spring(self) -> bool:
        return self.season == "Spring"

    def sort_key(self) -> tuple[int, int]:
        return (self.year, _SEASON_ORDER[self.season])

    def __lt__(self, other: "Semester") -> bool:
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return self.token


def normalize_season(raw: str) -> str:
    """'fall' / 'FA' / 'Fall' → 'Fall'. Raises InvalidSemesterError otherwise."""
    s = str(raw or "").strip().lower()
    if s in ("fall", "fa"):
        return "Fall"
    if s in ("spring", "sp"):
        return "Spring"
    raise InvalidSemesterError(f"Cannot parse season from: {raw!r}")


def parse_semester(token: str) -> Semester:
    """'sp2026' → Semester('Spring', 2026)."""
    m = TOKEN_RE.match(str(token or "").strip())
    if not m:
        raise InvalidSemesterError(
            f"'{token}' is not a valid semester (expected e.g. 'sp2026' or 'fa2025')."
        )
    return Semester(_SEASON_BY_PREFIX[m.group(1).lower()], int(m.group(2)))


def parse_semester_label(label: str) -> Semester:
    """'Spring 2026' → Semester('Spring', 2026)."""
    m = SEM_RE.match(str(label or "").strip())
    if not m:
        raise InvalidSemesterError(
            f"'{label}' is not a valid semester (expected e.g. 'Spring 2026')."
        )
    return Semester(m.group(1).capitalize(), int(m.group(2)))


def semester_from_parts(season: str, year) -> Semester:
    try:
        year_int = int(str(year).strip())
    except (TypeError, ValueError):
        raise InvalidSemesterError(f"Cannot parse year from: {year!r}")
    return Semester(normalize_season(season), year_int)


def token_season(token: str) -> str | None:
    """Season from a token's two-letter prefix, or None when unrecognized."""
    return _SEASON_BY_PREFIX.get(str(token or "").strip()[:2].lower())


def next_semester(sem: Semester) -> Semester:
    """
    - Spring YYYY -> Fall YYYY
    - Fall YYYY   -> Spring YYYY+1
    """
    if sem.is_spring:
        return Semester("Fall", sem.year)
    return Semester("Spring", sem.year + 1)
