import pytest
from conflict_report import (
    build_conflict_report,
    build_matrix_report,
    count_high_priority,
    order_courses,
    rank_conflicts,
    score_pairs,
)
from conflict_scorer import ConflictScorer
from models import Course, CourseEnrollment
from offerings import OfferingResolver
from semester import InvalidSemesterError, Semester
from plan_utils import course, enrolled, entry, roster, sections, student


@pytest.fixture
def data():
    students = [
        student("S1", "sp2026", {"sp2026": ["BIO408", "CHEM320", "MATH310"]}),
        student("S2", "sp2026", {"sp2026": ["CSCI450", "BIO408", "CHEM320"]}),
        student("S3", "sp2028", {"sp2026": ["BIO115", "MATH310", entry("CHEM320", "in_progress")]}),
        student("S4", "sp2027", {"sp2026": ["BIO408", "MATH310", "BIO115"]}),
        student("S5", "fa2029", {"fa2026": ["CHEM210"]}),
    ]
    catalog = {cid: course(cid) for cid in ["BIO115", "BIO408", "CHEM210", "CHEM320", "MATH310", "CSCI450"]}
    return {
        "students": students,
        "catalog": catalog,
        "sections_df": sections(
            ("BIO115", "sp2026", 3),
            ("BIO408", "sp2026", 1),
            ("CHEM320", "sp2026", 1),
            ("MATH310", "sp2026", 2),
            ("CSCI450", "sp2026", 1),
        ),
    }


@pytest.fixture
def offerings():
    return OfferingResolver.from_table({
        "BIO115": "e",
        "BIO408": "es",
        "CHEM210": "ef",
        "CHEM320": "se",
        "MATH310": "es",
        "CSCI450": "so",
    })


def _pairs(conflicts):
    return [(c["courseA"], c["courseB"], c["conflictLevel"]) for c in conflicts]


class TestConflictReport:
    def test_ranked_conflicts(self, data):
        report = build_conflict_report(data, "sp2026")
        assert report["semester"] == "sp2026"
        assert _pairs(report["conflicts"]) == [
            ("BIO408", "CHEM320", pytest.approx(0.8)),
            ("BIO408", "MATH310", pytest.approx(0.53)),
            ("BIO408", "CSCI450", pytest.approx(0.4)),
            ("CHEM320", "CSCI450", pytest.approx(0.4)),
            ("CHEM320", "MATH310", pytest.approx(0.3)),
            ("BIO115", "MATH310", pytest.approx(0.21)),
            ("BIO115", "BIO408", pytest.approx(0.2)),
        ]
        assert "message" not in report

    def test_includes_courses_not_offered(self, data):
        report = build_conflict_report(data, "sp2026")
        assert any("CSCI450" in (c["courseA"], c["courseB"]) for c in report["conflicts"])

    def test_sorted_descending(self, data):
        levels = [c["conflictLevel"] for c in build_conflict_report(data, "sp2026")["conflicts"]]
        assert levels == sorted(levels, reverse=True)

    def test_no_pair_emitted_twice(self, data):
        pairs = [frozenset((c["courseA"], c["courseB"])) for c in build_conflict_report(data, "sp2026")["conflicts"]]
        assert len(pairs) == len(set(pairs))

    def test_in_progress_entries_do_not_overlap(self, data):
        report = build_conflict_report(data, "sp2026")
        chem_math = [c for c in report["conflicts"] if (c["courseA"], c["courseB"]) == ("CHEM320", "MATH310")]
        assert chem_math[0]["overlap"] == 1

    def test_empty_semester_has_message(self, data):
        report = build_conflict_report(data, "fa2030")
        assert report["conflicts"] == []
        assert report["message"] == "No significant conflicts detected."

    def test_single_course_semester_has_no_conflicts(self, data):
        report = build_conflict_report(data, "fa2026")
        assert report["conflicts"] == []
        assert "message" in report

    def test_malformed_semester_raises(self, data):
        with pytest.raises(InvalidSemesterError):
            build_conflict_report(data, "spring-2026")

    def test_scale_parameter(self, data):
        report = build_conflict_report(data, "sp2026", scale=20.0)
        assert report["conflicts"][0]["conflictLevel"] == pytest.approx(0.4)


class TestMatrixReport:
    def test_filters_to_offered_courses(self, data, offerings):
        report = build_matrix_report(data, "sp2026", offerings)
        assert [c["id"] for c in report["courses"]] == ["BIO115", "BIO408", "CHEM320", "MATH310"]
        assert report["totalOffered"] == 4
        assert report["totalPlanned"] == 5

    def test_course_entries(self, data, offerings):
        first = build_matrix_report(data, "sp2026", offerings)["courses"][0]
        assert first == {"id": "BIO115", "code": "BIO115", "title": "BIO115", "department": "BIO", "number": "115"}

    def test_matrix_values(self, data, offerings):
        matrix = build_matrix_report(data, "sp2026", offerings)["matrix"]
        expected = [
            [0, 0.2, 0, 0.21],
            [0.2, 0, 0.8, 0.53],
            [0, 0.8, 0, 0.3],
            [0.21, 0.53, 0.3, 0],
        ]
        for row, want in zip(matrix, expected):
            assert row == pytest.approx(want)

    def test_matrix_symmetric_zero_diagonal(self, data, offerings):
        matrix = build_matrix_report(data, "sp2026", offerings)["matrix"]
        n = len(matrix)
        for i in range(n):
            assert matrix[i][i] == 0
            for j in range(n):
                assert matrix[i][j] == matrix[j][i]

    def test_conflicts_exclude_unoffered(self, data, offerings):
        report = build_matrix_report(data, "sp2026", offerings)
        assert len(report["conflicts"]) == 5
        assert all("CSCI450" not in (c["courseA"], c["courseB"]) for c in report["conflicts"])

    def test_conflicts_match_matrix_cells(self, data, offerings):
        report = build_matrix_report(data, "sp2026", offerings)
        index = {c["code"]: i for i, c in enumerate(report["courses"])}
        for c in report["conflicts"]:
            assert report["matrix"][index[c["courseA"]]][index[c["courseB"]]] == c["conflictLevel"]

    def test_empty_semester(self, data, offerings):
        report = build_matrix_report(data, "fa2030", offerings)
        assert report["courses"] == []
        assert report["matrix"] == []
        assert report["conflicts"] == []
        assert report["totalOffered"] == 0
        assert report["totalPlanned"] == 0
        assert report["message"] == "No significant conflicts detected."

    def test_nothing_offered(self, data):
        report = build_matrix_report(data, "sp2026", OfferingResolver.from_table({}))
        assert report["totalOffered"] == 0
        assert report["totalPlanned"] == 5

    def test_malformed_semester_raises(self, data, offerings):
        with pytest.raises(InvalidSemesterError):
            build_matrix_report(data, "2026", offerings)


class TestOrderingAndPairs:
    def test_numeric_course_number_order(self):
        ordered = order_courses([roster("MATH310"), roster("MATH95"), roster("BIO408")])
        assert [e.course.course_id for e in ordered] == ["BIO408", "MATH95", "MATH310"]

    def test_ties_keep_insertion_order(self):
        a = roster("BIO408")
        b = roster("BIO408")
        ordered = order_courses([a, b])
        assert ordered[0] is a and ordered[1] is b

    def test_suffixed_numbers_sort_by_leading_digits(self):
        lab = CourseEnrollment(course=Course("BIO315L", "BIO", "315L", "Genetics Lab"))
        ordered = order_courses([roster("BIO408"), lab, roster("BIO115")])
        assert [e.course.course_id for e in ordered] == ["BIO115", "BIO315L", "BIO408"]

    def test_score_pairs_without_overlap(self):
        scorer = ConflictScorer(Semester("Spring", 2026), {})
        records, matrix = score_pairs([roster("BIO408", enrolled("S1", "sp2026")), roster("CHEM320")], scorer)
        assert records == []
        assert matrix == [[0.0, 0.0], [0.0, 0.0]]

    def test_rank_conflicts_stable_on_ties(self):
        scorer = ConflictScorer(Semester("Spring", 2026), {})
        s = enrolled("S1", "sp2028")
        records, _ = score_pairs([roster("BIO115", s), roster("BIO116", s), roster("BIO117", s)], scorer)
        ranked = rank_conflicts(records)
        assert [(r.course_a.code, r.course_b.code) for r in ranked] == [
            ("BIO115", "BIO116"), ("BIO115", "BIO117"), ("BIO116", "BIO117"),
        ]


class TestHighPriority:
    def test_counts_per_semester(self, data):
        result = count_high_priority(data, ["sp2026", "fa2030"])
        assert result["semesters"] == {"sp2026": 4, "fa2030": 0}
        assert result["highPriorityCount"] == 4
        assert result["threshold"] == 0.4

    def test_default_semesters(self, data):
        result = count_high_priority(data)
        assert list(result["semesters"]) == ["fa2024", "sp2025", "fa2025", "sp2026", "fa2026"]
        assert result["highPriorityCount"] == 4
