import pytest
from semester import (
    InvalidSemesterError,
    Semester,
    next_semester,
    normalize_season,
    parse_semester,
    parse_semester_label,
    semester_from_parts,
    token_season,
)


class TestParseSemester:
    def test_spring_token(self):
        assert parse_semester("sp2026") == Semester("Spring", 2026)

    def test_fall_token(self):
        assert parse_semester("fa2025") == Semester("Fall", 2025)

    def test_case_and_whitespace(self):
        assert parse_semester("  FA2025 ") == Semester("Fall", 2025)

    @pytest.mark.parametrize("bad", ["", None, "su2026", "sp26", "spring2026", "sp2026x", "2026sp"])
    def test_malformed_tokens_raise(self, bad):
        with pytest.raises(InvalidSemesterError):
            parse_semester(bad)

    def test_invalid_semester_is_value_error(self):
        with pytest.raises(ValueError):
            parse_semester("nope")


class TestSemesterFormatting:
    def test_token_round_trip(self):
        assert Semester("Spring", 2026).token == "sp2026"
        assert Semester("Fall", 2025).token == "fa2025"

    def test_label(self):
        assert Semester("Fall", 2025).label == "Fall 2025"

    def test_str_is_token(self):
        assert str(Semester("Spring", 2027)) == "sp2027"

    def test_parse_label(self):
        assert parse_semester_label("spring 2026") == Semester("Spring", 2026)

    def test_parse_label_rejects_summer(self):
        with pytest.raises(InvalidSemesterError):
            parse_semester_label("Summer 2026")


class TestOrdering:
    def test_spring_before_fall_same_year(self):
        assert Semester("Spring", 2026) < Semester("Fall", 2026)

    def test_fall_before_next_spring(self):
        assert Semester("Fall", 2025) < Semester("Spring", 2026)

    def test_sorted(self):
        terms = [parse_semester(t) for t in ["fa2026", "sp2025", "fa2025", "sp2026"]]
        assert [t.token for t in sorted(terms)] == ["sp2025", "fa2025", "sp2026", "fa2026"]

    def test_next_semester(self):
        assert next_semester(Semester("Spring", 2026)) == Semester("Fall", 2026)
        assert next_semester(Semester("Fall", 2026)) == Semester("Spring", 2027)


class TestSeasonHelpers:
    @pytest.mark.parametrize("raw,expected", [("Fall", "Fall"), ("fall", "Fall"), ("FA", "Fall"), ("spring", "Spring"), ("sp", "Spring")])
    def test_normalize_season(self, raw, expected):
        assert normalize_season(raw) == expected

    def test_normalize_season_rejects_summer(self):
        with pytest.raises(InvalidSemesterError):
            normalize_season("Summer")

    def test_semester_from_parts(self):
        assert semester_from_parts("fall", "2026") == Semester("Fall", 2026)

    def test_semester_from_parts_bad_year(self):
        with pytest.raises(InvalidSemesterError):
            semester_from_parts("Fall", "next")

    def test_token_season(self):
        assert token_season("fa2029") == "Fall"
        assert token_season("SP2027") == "Spring"
        assert token_season("xx2027") is None
        assert token_season("") is None
