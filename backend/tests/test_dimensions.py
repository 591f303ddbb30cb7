"""
Tests for engine/dimensions.py — one calculator per profile dimension.
"""

import os
import sys
from datetime import date

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from engine.dimensions import (
    APPROX_TEACHER_PRESENCE_DAYS,
    TeacherRatingProvider,
    calculate_academic,
    calculate_attendance,
    calculate_demographics,
    calculate_discipline,
    calculate_finance,
    calculate_staffing,
)
from engine.records import (
    Absence,
    DisciplineIssue,
    Enrollment,
    Gender,
    Mark,
    ReportingPeriod,
    SchoolFee,
    Student,
    TeacherAbsence,
    TeacherAssignment,
)

PERIOD = ReportingPeriod("2025-2026", "2025/2026", date(2025, 9, 1))
AS_OF = date(2025, 9, 30)


def _enrollment(sid, scores=(), **kwargs):
    student = Student(
        sid,
        kwargs.pop("name", sid.upper()),
        gender=kwargs.pop("gender", Gender.OTHER),
        date_of_birth=kwargs.pop("dob", None),
        is_new_student=kwargs.pop("new", False),
    )
    return Enrollment(
        enrollment_id=f"e-{sid}",
        student=student,
        marks=tuple(Mark(s) for s in scores),
        **kwargs,
    )


@pytest.fixture
def two_students():
    """One strong student (18, 12) and one weak one (4, 6)."""
    return [_enrollment("s1", (18, 12)), _enrollment("s2", (4, 6))]


class TestCalculateAcademic:
    """Tests for calculate_academic."""

    def test_average_and_pass_rate(self, two_students):
        result = calculate_academic(two_students, pass_mark=50, mark_scale_max=20)
        assert result.average_grade == 50.0
        assert result.pass_rate == 50.0

    def test_top_and_bottom_performers(self, two_students):
        result = calculate_academic(two_students)
        assert result.top_performer.student_id == "s1"
        assert result.top_performer.average == 75.0
        assert result.bottom_performer.student_id == "s2"
        assert result.bottom_performer.average == 25.0

    def test_above_and_below_average(self, two_students):
        result = calculate_academic(two_students)
        assert result.above_average_count == 1
        assert result.below_average_count == 1
        assert result.above_average_count + result.below_average_count <= result.graded_students

    def test_student_without_marks_left_out(self, two_students):
        result = calculate_academic(two_students + [_enrollment("s3")])
        assert result.graded_students == 2
        assert result.average_grade == 50.0

    def test_null_marks_skipped(self):
        result = calculate_academic([_enrollment("s1", (20, None))])
        assert result.graded_marks == 1
        assert result.average_grade == 100.0

    def test_ties_broken_by_student_id(self):
        result = calculate_academic([_enrollment("b", (10,)), _enrollment("a", (10,))])
        assert result.top_performer.student_id == "a"
        assert result.bottom_performer.student_id == "b"

    def test_no_marks_is_all_zero(self):
        result = calculate_academic([_enrollment("s1")])
        assert result.average_grade == 0.0
        assert result.pass_rate == 0.0
        assert result.top_performer is None
        assert result.bottom_performer is None

    def test_custom_scale(self):
        result = calculate_academic([_enrollment("s1", (80,))], mark_scale_max=100)
        assert result.average_grade == 80.0


class TestCalculateDemographics:

    def test_gender_split_and_flags(self):
        enrollments = [
            _enrollment("s1", gender=Gender.MALE, dob=date(2012, 1, 5), repeater=True),
            _enrollment("s2", gender=Gender.FEMALE, dob=date(2010, 12, 1), new=True),
            _enrollment("s3"),
        ]
        result = calculate_demographics(enrollments, AS_OF)
        assert (result.male_count, result.female_count, result.other_count) == (1, 1, 1)
        assert result.average_age == 13.5
        assert result.new_students == 1
        assert result.repeaters == 1

    def test_no_birth_dates(self):
        result = calculate_demographics([_enrollment("s1")], AS_OF)
        assert result.average_age == 0.0


class TestCalculateAttendance:

    def test_rate_against_day_budget(self):
        enrollments = [
            _enrollment("s1"),
            _enrollment("s2", absences=tuple(Absence() for _ in range(3))),
        ]
        result = calculate_attendance(enrollments, PERIOD, AS_OF)
        assert result.days_in_period == 30
        assert result.total_absences == 3
        assert result.attendance_rate == 95.0
        assert result.perfect_attendance == 1
        assert result.chronic_absentees == 0

    def test_chronic_absentee_is_strictly_above_twenty_percent(self):
        six = _enrollment("s1", absences=tuple(Absence() for _ in range(6)))
        seven = _enrollment("s2", absences=tuple(Absence() for _ in range(7)))
        result = calculate_attendance([six, seven], PERIOD, AS_OF)
        assert result.chronic_absentees == 1

    def test_as_of_before_start(self):
        result = calculate_attendance([_enrollment("s1")], PERIOD, date(2025, 8, 1))
        assert result.days_in_period == 0
        assert result.attendance_rate == 0.0


class TestCalculateFinance:

    def test_unpaid_fee(self):
        enrollment = _enrollment("s1", fees=(SchoolFee(75000, 0),))
        result = calculate_finance([enrollment])
        assert result.collection_rate == 0.0
        assert result.defaulters == 1
        assert result.outstanding_amount == 75000.0

    def test_partial_collection(self):
        enrollments = [
            _enrollment("s1", fees=(SchoolFee(50000, 50000),)),
            _enrollment("s2", fees=(SchoolFee(50000, 25000),)),
        ]
        result = calculate_finance(enrollments)
        assert result.total_expected == 100000.0
        assert result.total_collected == 75000.0
        assert result.collection_rate == 75.0
        assert result.defaulters == 1

    def test_defaulters_counted_per_fee_record(self):
        enrollment = _enrollment("s1", fees=(SchoolFee(100, 0), SchoolFee(100, 50)))
        assert calculate_finance([enrollment]).defaulters == 2

    def test_no_fees(self):
        result = calculate_finance([_enrollment("s1")])
        assert result.total_expected == 0.0
        assert result.collection_rate == 0.0


class TestCalculateDiscipline:

    def test_resolved_and_pending(self):
        enrollments = [
            _enrollment("s1", discipline_issues=(DisciplineIssue("d1", reviewed_by="t1"),)),
            _enrollment("s2", discipline_issues=(DisciplineIssue("d2"), DisciplineIssue("d3"))),
            _enrollment("s3"),
            _enrollment("s4"),
        ]
        result = calculate_discipline(enrollments)
        assert result.total_incidents == 3
        assert result.resolved_incidents == 1
        assert result.pending_incidents == 2
        assert result.students_with_issues == 2
        assert result.incidents_per_student == 0.75

    def test_empty(self):
        assert calculate_discipline([]).incidents_per_student == 0.0


class FixedRating(TeacherRatingProvider):
    def average_rating(self, teacher_ids):
        return 4.25


class TestCalculateStaffing:

    def test_scoped_to_unit_and_period(self):
        assignments = [
            TeacherAssignment("t1", "u1", "math", "2025-2026"),
            TeacherAssignment("t1", "u1", "phys", "2025-2026"),
            TeacherAssignment("t2", "u1", "eng", "2025-2026"),
            TeacherAssignment("t3", "u2", "eng", "2025-2026"),
            TeacherAssignment("t4", "u1", "eng", "2024-2025"),
        ]
        result = calculate_staffing("u1", PERIOD, assignments)
        assert result.total_teachers == 2
        assert result.subjects_offered == 3
        assert result.teacher_attendance_rate == 100.0
        assert result.average_teacher_rating == 0.0

    def test_teacher_absences_use_yearly_estimate(self):
        assignments = [TeacherAssignment("t1", "u1", "math", "2025-2026")]
        absences = [TeacherAbsence("t1", "x1"), TeacherAbsence("t9", "x2")]
        result = calculate_staffing("u1", PERIOD, assignments, absences)
        expected = (APPROX_TEACHER_PRESENCE_DAYS - 1) / APPROX_TEACHER_PRESENCE_DAYS * 100
        assert result.teacher_attendance_rate == round(expected, 2)

    def test_rating_provider(self):
        assignments = [TeacherAssignment("t1", "u1", "math", "2025-2026")]
        result = calculate_staffing("u1", PERIOD, assignments, rating_provider=FixedRating())
        assert result.average_teacher_rating == 4.25

    def test_no_teachers(self):
        result = calculate_staffing("u1", PERIOD, [])
        assert result.total_teachers == 0
        assert result.teacher_attendance_rate == 0.0
