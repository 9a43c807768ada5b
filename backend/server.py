import os
import sys
import time
import threading
import hashlib
import json
from collections import OrderedDict

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from conflict_report import build_conflict_report, build_matrix_report, count_high_priority
from conflict_rules import env_float, env_int, score_scale_from_env
from data_loader import load_data, load_offering_table
from normalizer import normalize_code, split_tokens
from offerings import OfferingCache, OfferingResolver
from semester import InvalidSemesterError, TOKEN_RE, normalize_season, semester_from_parts

load_dotenv()

app = Flask(__name__)

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
_data_lock = threading.Lock()
_data_mtime = None

_SLOW_REQUEST_LOG_MS = env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
_REQUEST_CACHE_SIZE = env_int("REQUEST_CACHE_SIZE", 128, minimum=1)
_SCORE_SCALE = score_scale_from_env()


class _LruResponseCache:
    """Thread-safe bounded in-memory cache for JSON-serializable responses."""

    def __init__(self, max_size: int):
        self.max_size = max(1, int(max_size))
        self._lock = threading.Lock()
        self._items: OrderedDict[str, dict] = OrderedDict()

    def get(self, key: str):
        with self._lock:
            if key not in self._items:
                return None
            value = self._items.pop(key)
            self._items[key] = value
            return value

    def set(self, key: str, value: dict) -> None:
        with self._lock:
            if key in self._items:
                self._items.pop(key)
            self._items[key] = value
            while len(self._items) > self.max_size:
                self._items.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


_conflicts_response_cache = _LruResponseCache(_REQUEST_CACHE_SIZE)
_matrix_response_cache = _LruResponseCache(_REQUEST_CACHE_SIZE)


def _cache_enabled() -> bool:
    return not app.config.get("TESTING", False)


def _stable_payload_hash(payload) -> str:
    normalized = payload if payload is not None else {}
    encoded = json.dumps(
        normalized,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def _data_version_tag() -> str:
    return "none" if _data_mtime is None else str(_data_mtime)


def _request_cache_key(prefix: str, payload) -> str:
    return f"{prefix}:{_data_version_tag()}:{_stable_payload_hash(payload)}"


def _clear_request_caches() -> None:
    _conflicts_response_cache.clear()
    _matrix_response_cache.clear()


def _data_file_mtime(path: str):
    try:
        if os.path.isdir(path):
            mtimes = [
                os.path.getmtime(os.path.join(path, f))
                for f in os.listdir(path)
                if f.endswith(".csv") or f.endswith(".json")
            ]
            return max(mtimes) if mtimes else None
        return os.path.getmtime(path)
    except OSError:
        return None


# Offering table is read lazily and memoized until the next data reload.
_offering_cache = OfferingCache(lambda: load_offering_table(DATA_PATH))
_offerings = OfferingResolver(_offering_cache)

# ── Startup data load ──────────────────────────────────────────────────────────
try:
    _data = load_data(DATA_PATH)
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['students'])} students and {len(_data['catalog'])} courses from {DATA_PATH}")
except FileNotFoundError:
    # If DATA_PATH env var is stale, fall back to the repo data directory.
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default data directory ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _data = load_data(DATA_PATH)
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['students'])} students and {len(_data['catalog'])} courses from {DATA_PATH}")
    else:
        print(f"[FATAL] Data directory not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
    sys.exit(1)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload student/catalog/section data when DATA_PATH changes on disk.

    Returns True when a reload occurred, else False.
    """
    global _data, _data_mtime

    candidate_mtime = _data_file_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = load_data(DATA_PATH)
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        _offering_cache.invalidate()
        _clear_request_caches()
        print(f"[OK] Reloaded {len(new_data['students'])} students and {len(new_data['catalog'])} courses from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


def _error_response(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }), status


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": "1.0.0",
        "students_loaded": len(_data.get("students", [])) if _data else 0,
    })


# -- Input validation ------------------------------------------------------
def _validate_semester_param(raw):
    """Returns (error_code, message) on invalid input, (None, None) on success."""
    if raw is None or not str(raw).strip():
        return "INVALID_INPUT", "Semester parameter is required."
    if not TOKEN_RE.match(str(raw).strip()):
        return "INVALID_INPUT", f"'{raw}' is not a valid semester (e.g. 'sp2026' or 'fa2025')."
    return None, None


def _validate_term_params(season_raw, year_raw):
    if not season_raw or not year_raw:
        return None, ("INVALID_INPUT", "Missing required parameters: semester and year.")
    try:
        return semester_from_parts(season_raw, year_raw), None
    except InvalidSemesterError as exc:
        return None, ("INVALID_INPUT", str(exc))


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    print(f"[ERROR] {request.method} {request.path}: {e!r}", file=sys.stderr)
    return _error_response("SERVER_ERROR", "An unexpected server error occurred.", 500)


# ── Routes ─────────────────────────────────────────────────────────────────────
@app.route("/scheduling-conflicts", methods=["GET"])
def scheduling_conflicts():
    """Ranked conflict list for every course planned in the term."""
    _refresh_data_if_needed()
    semester = request.args.get("semester")
    err_code, err_msg = _validate_semester_param(semester)
    if err_code:
        return _error_response(err_code, err_msg, 400)
    semester = semester.strip().lower()

    cache_key = _request_cache_key("conflicts", {"semester": semester})
    if _cache_enabled():
        cached = _conflicts_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    try:
        report = build_conflict_report(_data, semester, scale=_SCORE_SCALE)
    except InvalidSemesterError as exc:
        return _error_response("INVALID_INPUT", str(exc), 400)

    if _cache_enabled():
        _conflicts_response_cache.set(cache_key, report)
    return jsonify(report)


@app.route("/conflict-matrix", methods=["GET"])
def conflict_matrix():
    """Symmetric conflict matrix for courses planned and offered in the term."""
    _refresh_data_if_needed()
    semester = request.args.get("semester")
    err_code, err_msg = _validate_semester_param(semester)
    if err_code:
        return _error_response(err_code, err_msg, 400)
    semester = semester.strip().lower()

    cache_key = _request_cache_key("matrix", {"semester": semester})
    if _cache_enabled():
        cached = _matrix_response_cache.get(cache_key)
        if cached is not None:
            return jsonify(cached)

    try:
        report = build_matrix_report(_data, semester, _offerings, scale=_SCORE_SCALE)
    except InvalidSemesterError as exc:
        return _error_response("INVALID_INPUT", str(exc), 400)

    if _cache_enabled():
        _matrix_response_cache.set(cache_key, report)
    return jsonify(report)


@app.route("/high-priority-conflicts", methods=["GET"])
def high_priority_conflicts():
    _refresh_data_if_needed()
    semesters = split_tokens(request.args.get("semesters", ""))
    for token in semesters:
        err_code, err_msg = _validate_semester_param(token)
        if err_code:
            return _error_response(err_code, err_msg, 400)
    return jsonify(count_high_priority(_data, semesters or None, scale=_SCORE_SCALE))


@app.route("/course-offerings", methods=["GET"])
def course_offerings():
    _refresh_data_if_needed()
    return jsonify(_offering_cache.get())


@app.route("/available-courses", methods=["GET"])
def available_courses():
    """Catalog courses whose offering pattern covers the requested term."""
    _refresh_data_if_needed()
    term, err = _validate_term_params(request.args.get("semester"), request.args.get("year"))
    if err:
        return _error_response(err[0], err[1], 400)

    courses = _offerings.available_courses(_data["catalog"], term.season, term.year)
    return jsonify({
        "semester": term.season,
        "year": term.year,
        "total_available": len(courses),
        "courses": [dict(c.to_dict(), credits=c.min_credits) for c in courses],
    })


@app.route("/course-availability", methods=["GET"])
def course_availability():
    _refresh_data_if_needed()
    raw_course = str(request.args.get("course_id") or "").strip()
    if not raw_course:
        return _error_response("INVALID_INPUT", "course_id is required.", 400)
    course_id = normalize_code(raw_course) or raw_course
    term, err = _validate_term_params(request.args.get("semester"), request.args.get("year"))
    if err:
        return _error_response(err[0], err[1], 400)

    result = _offerings.validate_course_selection(course_id, term.season, term.year)
    return jsonify({
        "course_id": course_id,
        "semester": normalize_season(term.season),
        "year": term.year,
        "offering_code": _offerings.offering_code(course_id),
        "offering_description": _offerings.describe_offering(course_id),
        **result,
    })


@app.route("/student/<student_id>", methods=["GET"])
def get_student(student_id):
    _refresh_data_if_needed()
    for raw in _data.get("students_raw", []):
        if str(raw.get("id", "")).strip() == student_id:
            return jsonify(raw)
    return _error_response("NOT_FOUND", "Student not found.", 404)


# -- Canonical API routes for the frontend ------------------------------
app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/scheduling-conflicts", endpoint="api_scheduling_conflicts", view_func=scheduling_conflicts, methods=["GET"])
app.add_url_rule("/api/conflict-matrix", endpoint="api_conflict_matrix", view_func=conflict_matrix, methods=["GET"])
app.add_url_rule("/api/high-priority-conflicts", endpoint="api_high_priority_conflicts", view_func=high_priority_conflicts, methods=["GET"])
app.add_url_rule("/api/course-offerings", endpoint="api_course_offerings", view_func=course_offerings, methods=["GET"])
app.add_url_rule("/api/available-courses", endpoint="api_available_courses", view_func=available_courses, methods=["GET"])
app.add_url_rule("/api/course-availability", endpoint="api_course_availability", view_func=course_availability, methods=["GET"])
app.add_url_rule("/api/student/<student_id>", endpoint="api_student", view_func=get_student, methods=["GET"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
