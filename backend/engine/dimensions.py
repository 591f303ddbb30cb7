"""
dimensions.py — One calculator per profile dimension.

Computes, for the enrollments of a single unit and reporting period:
- Academic: overall / per-student means, pass rate, top and bottom performer
- Demographics: gender split, mean age, new students, repeaters
- Attendance: attendance rate, chronic absentees, perfect attendance
- Finance: fees expected / collected, collection rate, defaulters
- Discipline: incidents, resolved / pending, students with issues
- Staffing: teachers, subjects, teacher attendance, teacher rating

Every calculator is null-safe: an enrollment with no marks, fees or absences
contributes nothing to sums and is left out of mean denominators, but is
still part of the enrollment count.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Sequence

import pandas as pd

from engine.metrics import (
    age_in_years,
    count_above,
    count_below,
    days_elapsed,
    mean,
    rate,
    round_metric,
)
from engine.records import (
    Enrollment,
    Gender,
    ReportingPeriod,
    TeacherAbsence,
    TeacherAssignment,
)

DEFAULT_PASS_MARK = 50.0
DEFAULT_MARK_SCALE_MAX = 20.0

# Students absent on more than this share of the period's days are chronic.
CHRONIC_ABSENCE_RATE = 20.0

# Rough yearly presence budget per teacher. Not calendar-accurate: it ignores
# weekends and holidays and is kept as an estimate on purpose.
APPROX_TEACHER_PRESENCE_DAYS = 365


# ── Summaries ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Performer:
    student_id: str
    name: str
    average: float      # normalized 0-100
    graded_marks: int


@dataclass(frozen=True)
class AcademicSummary:
    average_grade: float = 0.0
    pass_rate: float = 0.0
    top_performer: Optional[Performer] = None
    bottom_performer: Optional[Performer] = None
    above_average_count: int = 0
    below_average_count: int = 0
    graded_students: int = 0
    graded_marks: int = 0


@dataclass(frozen=True)
class DemographicsSummary:
    male_count: int = 0
    female_count: int = 0
    other_count: int = 0
    average_age: float = 0.0
    new_students: int = 0
    repeaters: int = 0


@dataclass(frozen=True)
class AttendanceSummary:
    attendance_rate: float = 0.0
    chronic_absentees: int = 0
    perfect_attendance: int = 0
    total_absences: int = 0
    days_in_period: int = 0


@dataclass(frozen=True)
class FinanceSummary:
    total_expected: float = 0.0
    total_collected: float = 0.0
    collection_rate: float = 0.0
    outstanding_amount: float = 0.0
    defaulters: int = 0


@dataclass(frozen=True)
class DisciplineSummary:
    total_incidents: int = 0
    resolved_incidents: int = 0
    pending_incidents: int = 0
    students_with_issues: int = 0
    incidents_per_student: float = 0.0


@dataclass(frozen=True)
class StaffingSummary:
    total_teachers: int = 0
    subjects_offered: int = 0
    teacher_attendance_rate: float = 0.0
    average_teacher_rating: float = 0.0


# ── Teacher ratings ─────────────────────────────────────────────────

class TeacherRatingProvider(ABC):
    """Source of an average rating for a set of teachers."""

    @abstractmethod
    def average_rating(self, teacher_ids: Sequence[str]) -> float:
        ...


class UnimplementedRatingProvider(TeacherRatingProvider):
    """Placeholder until a teacher rating system exists: always 0."""

    def average_rating(self, teacher_ids: Sequence[str]) -> float:
        return 0.0


# ── Academic ────────────────────────────────────────────────────────

def calculate_academic(
    enrollments: Sequence[Enrollment],
    pass_mark: float = DEFAULT_PASS_MARK,
    mark_scale_max: float = DEFAULT_MARK_SCALE_MAX,
) -> AcademicSummary:
    """Academic performance over the unit's non-null marks.

    Scores are normalized from ``0..mark_scale_max`` to 0-100. Students are
    ordered by mean descending with ties broken by student id ascending; the
    top performer is the first of that order and the bottom performer the last.
    """
    rows = [
        {
            "position": pos,
            "student_id": str(e.student.student_id),
            "name": e.student.name,
            "score": m.score,
        }
        for pos, e in enumerate(enrollments)
        for m in e.marks
    ]
    marks = pd.DataFrame(rows, columns=["position", "student_id", "name", "score"])
    marks["score"] = pd.to_numeric(marks["score"], errors="coerce")
    marks = marks.dropna(subset=["score"])

    if marks.empty:
        return AcademicSummary()

    scale = 100.0 / mark_scale_max
    overall = float(marks["score"].mean()) * scale

    per_student = (
        marks.groupby("position")
        .agg(
            student_id=("student_id", "first"),
            name=("name", "first"),
            average=("score", "mean"),
            graded_marks=("score", "size"),
        )
        .reset_index()
    )
    per_student["average"] = per_student["average"] * scale
    per_student = per_student.sort_values(
        ["average", "student_id"], ascending=[False, True], kind="mergesort"
    )

    averages = per_student["average"].tolist()

    def _performer(row) -> Performer:
        return Performer(
            student_id=row["student_id"],
            name=row["name"],
            average=round_metric(row["average"]),
            graded_marks=int(row["graded_marks"]),
        )

    return AcademicSummary(
        average_grade=round_metric(overall),
        pass_rate=round_metric(rate(count_above(averages, pass_mark), len(averages))),
        top_performer=_performer(per_student.iloc[0]),
        bottom_performer=_performer(per_student.iloc[-1]),
        above_average_count=count_above(averages, overall),
        below_average_count=count_below(averages, overall),
        graded_students=len(averages),
        graded_marks=int(len(marks)),
    )


# ── Demographics ────────────────────────────────────────────────────

def calculate_demographics(
    enrollments: Sequence[Enrollment], as_of: date
) -> DemographicsSummary:
    """Gender split, mean age and intake flags."""
    students = [e.student for e in enrollments]
    ages = [
        age_in_years(s.date_of_birth, as_of)
        for s in students
        if s.date_of_birth is not None
    ]
    return DemographicsSummary(
        male_count=sum(1 for s in students if s.gender == Gender.MALE),
        female_count=sum(1 for s in students if s.gender == Gender.FEMALE),
        other_count=sum(1 for s in students if s.gender == Gender.OTHER),
        average_age=round_metric(mean(ages)),
        new_students=sum(1 for s in students if s.is_new_student),
        repeaters=sum(1 for e in enrollments if e.repeater),
    )


# ── Attendance ──────────────────────────────────────────────────────

def calculate_attendance(
    enrollments: Sequence[Enrollment], period: ReportingPeriod, as_of: date
) -> AttendanceSummary:
    """Attendance against a calendar-day budget.

    The budget is the number of calendar days from the period start to
    ``as_of``. It approximates instructional days and overcounts weekends and
    holidays.
    """
    budget = days_elapsed(period.start_date, as_of)
    per_student = [len(e.absences) for e in enrollments]
    total_absences = sum(per_student)
    possible = len(enrollments) * budget

    return AttendanceSummary(
        attendance_rate=round_metric(rate(possible - total_absences, possible)),
        chronic_absentees=sum(
            1 for n in per_student if rate(n, budget) > CHRONIC_ABSENCE_RATE
        ),
        perfect_attendance=sum(1 for n in per_student if n == 0),
        total_absences=total_absences,
        days_in_period=budget,
    )


# ── Finance ─────────────────────────────────────────────────────────

def calculate_finance(enrollments: Sequence[Enrollment]) -> FinanceSummary:
    """Fee totals over every fee record; defaulters are counted per record."""
    fees = pd.DataFrame(
        [
            {"expected": f.amount_expected, "paid": f.amount_paid}
            for e in enrollments
            for f in e.fees
        ],
        columns=["expected", "paid"],
        dtype=float,
    )
    expected = float(fees["expected"].sum())
    paid = float(fees["paid"].sum())

    return FinanceSummary(
        total_expected=round_metric(expected),
        total_collected=round_metric(paid),
        collection_rate=round_metric(rate(paid, expected)),
        outstanding_amount=round_metric(expected - paid),
        defaulters=int((fees["paid"] < fees["expected"]).sum()),
    )


# ── Discipline ──────────────────────────────────────────────────────

def calculate_discipline(enrollments: Sequence[Enrollment]) -> DisciplineSummary:
    issues = [i for e in enrollments for i in e.discipline_issues]
    resolved = sum(1 for i in issues if i.resolved)
    per_student = len(issues) / len(enrollments) if enrollments else 0.0

    return DisciplineSummary(
        total_incidents=len(issues),
        resolved_incidents=resolved,
        pending_incidents=len(issues) - resolved,
        students_with_issues=sum(1 for e in enrollments if e.discipline_issues),
        incidents_per_student=round_metric(per_student),
    )


# ── Staffing ────────────────────────────────────────────────────────

def calculate_staffing(
    unit_id: str,
    period: ReportingPeriod,
    assignments: Iterable[TeacherAssignment],
    teacher_absences: Iterable[TeacherAbsence] = (),
    rating_provider: Optional[TeacherRatingProvider] = None,
) -> StaffingSummary:
    """Teacher and subject counts from assignments for this unit and period.

    Teacher attendance uses ``APPROX_TEACHER_PRESENCE_DAYS`` per teacher as the
    expected presence, which is a rough yearly estimate.
    """
    scoped = [
        a for a in assignments
        if a.unit_id == unit_id and a.period_id == period.period_id
    ]
    teacher_ids = sorted({a.teacher_id for a in scoped})
    subject_ids = {a.subject_id for a in scoped}

    teacher_set = set(teacher_ids)
    absences = sum(1 for a in teacher_absences if a.teacher_id in teacher_set)
    expected = len(teacher_ids) * APPROX_TEACHER_PRESENCE_DAYS

    provider = rating_provider or UnimplementedRatingProvider()

    return StaffingSummary(
        total_teachers=len(teacher_ids),
        subjects_offered=len(subject_ids),
        teacher_attendance_rate=round_metric(rate(expected - absences, expected)),
        average_teacher_rating=round_metric(provider.average_rating(teacher_ids)),
    )
