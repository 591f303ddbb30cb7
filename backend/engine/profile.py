"""
profile.py — Compose every dimension into one UnitProfile.

A profile is a fresh snapshot per call: it is never cached or mutated and
only lives as long as the request that built it.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import date
from enum import Enum
from typing import Any, Optional, Sequence

from engine.dimensions import (
    DEFAULT_MARK_SCALE_MAX,
    DEFAULT_PASS_MARK,
    AcademicSummary,
    AttendanceSummary,
    DemographicsSummary,
    DisciplineSummary,
    FinanceSummary,
    StaffingSummary,
    TeacherRatingProvider,
    UnimplementedRatingProvider,
    calculate_academic,
    calculate_attendance,
    calculate_demographics,
    calculate_discipline,
    calculate_finance,
    calculate_staffing,
)
from engine.errors import NotFoundError
from engine.records import (
    Enrollment,
    ReportingPeriod,
    TeacherAbsence,
    TeacherAssignment,
    Unit,
)


@dataclass(frozen=True)
class ProfileOptions:
    pass_mark: float = DEFAULT_PASS_MARK
    mark_scale_max: float = DEFAULT_MARK_SCALE_MAX
    as_of: Optional[date] = None        # "now" for ages and attendance; today if unset
    rating_provider: TeacherRatingProvider = field(
        default_factory=UnimplementedRatingProvider
    )

    def reference_date(self) -> date:
        return self.as_of or date.today()


@dataclass(frozen=True)
class UnitProfile:
    unit_id: str
    unit_name: str
    period_id: str
    total_students: int
    total_sub_units: int
    academic: AcademicSummary
    demographics: DemographicsSummary
    attendance: AttendanceSummary
    finance: FinanceSummary
    discipline: DisciplineSummary
    staffing: StaffingSummary


def build_unit_profile(
    unit: Optional[Unit],
    enrollments: Sequence[Enrollment],
    teacher_assignments: Sequence[TeacherAssignment],
    period: ReportingPeriod,
    teacher_absences: Sequence[TeacherAbsence] = (),
    options: Optional[ProfileOptions] = None,
) -> UnitProfile:
    """Build the profile of ``unit`` for ``period``.

    Raises NotFoundError when the unit does not exist. Empty child
    collections never raise; they produce zero-valued dimensions.
    """
    if unit is None:
        raise NotFoundError("Unit not found.")

    opts = options or ProfileOptions()
    as_of = opts.reference_date()
    enrollments = list(enrollments)

    return UnitProfile(
        unit_id=unit.unit_id,
        unit_name=unit.name,
        period_id=period.period_id,
        total_students=len(enrollments),
        total_sub_units=len(unit.sub_units),
        academic=calculate_academic(
            enrollments, pass_mark=opts.pass_mark, mark_scale_max=opts.mark_scale_max
        ),
        demographics=calculate_demographics(enrollments, as_of),
        attendance=calculate_attendance(enrollments, period, as_of),
        finance=calculate_finance(enrollments),
        discipline=calculate_discipline(enrollments),
        staffing=calculate_staffing(
            unit.unit_id,
            period,
            teacher_assignments,
            teacher_absences,
            rating_provider=opts.rating_provider,
        ),
    )


def profile_unit(
    source,
    unit_id: str,
    period: ReportingPeriod,
    options: Optional[ProfileOptions] = None,
) -> UnitProfile:
    """Fetch one unit's records from ``source`` and build its profile."""
    records = source.fetch_unit(unit_id, period)
    return build_unit_profile(
        records.unit,
        records.enrollments,
        records.teacher_assignments,
        period,
        teacher_absences=records.teacher_absences,
        options=options,
    )


# ── Serialization ───────────────────────────────────────────────────

def to_plain(obj: Any) -> Any:
    """Recursively turn engine dataclasses into JSON-safe Python values."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        return {str(k): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, date):
        return obj.isoformat()
    return obj
