import os

# Divisor that maps raw conflict scores onto [0, 1].
# Tuned so a single-overlap, single-section, mixed-seniority pair lands near 0.2-0.4.
DEFAULT_SCORE_SCALE = 10.0

# Standing → weight applied to each overlapping student.
SENIORITY_WEIGHTS = {
    "Senior": 2.0,
    "Junior": 1.5,
    "Sophomore": 1.0,
    "Freshman": 1.0,
}

# Course numbers at or above this value are upper level.
UPPER_LEVEL_MIN_NUMBER = 300

# Priority bands used by the advisor dashboard.
HIGH_PRIORITY_THRESHOLD = 0.4
MEDIUM_PRIORITY_THRESHOLD = 0.3
LOW_PRIORITY_THRESHOLD = 0.2

# Semesters checked by the high-priority badge when the caller does not name any.
DEFAULT_DASHBOARD_SEMESTERS = ["fa2024", "sp2025", "fa2025", "sp2026", "fa2026"]

NO_CONFLICTS_MESSAGE = "No significant conflicts detected."

PLANNED_STATUS = "planned"


def env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def score_scale_from_env() -> float:
    return env_float("CONFLICT_SCORE_SCALE", DEFAULT_SCORE_SCALE, minimum=0.1)


def conflict_priority(score: float) -> str | None:
    """Dashboard band for a normalized conflict score (None for no conflict)."""
    if score >= HIGH_PRIORITY_THRESHOLD:
        return "High"
    if score >= MEDIUM_PRIORITY_THRESHOLD:
        return "Medium"
    if score >= LOW_PRIORITY_THRESHOLD:
        return "Low"
    if score > 0:
        return "Info"
    return None
