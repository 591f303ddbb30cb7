"""
parser.py — JSON payload ingestion for unit records.

Supports:
- snake_case and camelCase keys (fuzzy key mapping, see FIELD_ALIASES)
- ISO date strings for periods, birth dates and "as of" dates
- missing nested collections, normalized to empty tuples
- pre-flight validation that lists issues instead of raising
"""

import json
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

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
    Unit,
    UnitRecords,
)

SAMPLE_DATA_DIR = Path(__file__).parent.parent / "sample_data"
SAMPLE_PAYLOAD = SAMPLE_DATA_DIR / "sample_units.json"

# Accepted key variations per field
FIELD_ALIASES = {
    "id": ["id", "unit_id", "unitId", "class_id", "classId"],
    "period_id": ["period_id", "periodId", "academic_year_id", "academicYearId", "id"],
    "start_date": ["start_date", "startDate", "start"],
    "end_date": ["end_date", "endDate", "end"],
    "enrollment_id": ["enrollment_id", "enrollmentId", "id"],
    "student_id": ["student_id", "studentId", "id", "matricule"],
    "date_of_birth": ["date_of_birth", "dateOfBirth", "dob", "birth_date"],
    "is_new_student": ["is_new_student", "isNewStudent", "new_student"],
    "sub_units": ["sub_units", "subUnits", "sub_classes", "subClasses"],
    "teacher_assignments": ["teacher_assignments", "teacherAssignments", "teacher_periods"],
    "teacher_absences": ["teacher_absences", "teacherAbsences"],
    "fees": ["fees", "school_fees", "schoolFees"],
    "discipline_issues": ["discipline_issues", "disciplineIssues"],
    "amount_expected": ["amount_expected", "amountExpected"],
    "amount_paid": ["amount_paid", "amountPaid"],
    "reviewed_by": ["reviewed_by", "reviewedBy", "reviewed_by_id", "reviewedById"],
    "teacher_id": ["teacher_id", "teacherId"],
    "assignment_unit_id": ["unit_id", "unitId", "class_id", "classId"],
    "assignment_period_id": ["period_id", "periodId", "academic_year_id", "academicYearId"],
    "subject_id": ["subject_id", "subjectId"],
    "sequence_id": ["sequence_id", "sequenceId", "exam_sequence_id"],
    "as_of": ["as_of", "asOf"],
}


@dataclass(frozen=True)
class ParsedPayload:
    period: ReportingPeriod
    as_of: Optional[date]
    units: List[UnitRecords]


# ── Helpers ─────────────────────────────────────────────────────────

def _get(data: Dict[str, Any], field: str, default=None):
    """First present key among the aliases of ``field``."""
    for key in FIELD_ALIASES.get(field, [field]):
        if key in data and data[key] is not None:
            return data[key]
    return default


def _items(data: Dict[str, Any], field: str, objects: bool = True) -> List[Any]:
    """List under ``field``; absent or null means empty."""
    value = _get(data, field)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"'{field}' must be a list.")
    if objects and not all(isinstance(v, dict) for v in value):
        raise ValueError(f"Every entry of '{field}' must be an object.")
    return list(value)


def _parse_date(value: Any, field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise ValueError(f"'{field}' must be an ISO date, got '{value}'.") from None


def _to_score(value: Any) -> Optional[float]:
    if value is None:
        return None
    num = pd.to_numeric(value, errors="coerce")
    return None if pd.isna(num) else float(num)


def _to_amount(value: Any, field: str) -> float:
    num = pd.to_numeric(value if value is not None else 0, errors="coerce")
    if pd.isna(num) or num < 0:
        raise ValueError(f"'{field}' must be a non-negative number, got '{value}'.")
    return float(num)


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def _opt_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


# ── Records ─────────────────────────────────────────────────────────

def parse_period(data: Dict[str, Any]) -> ReportingPeriod:
    if not isinstance(data, dict):
        raise ValueError("'period' must be an object.")
    period_id = _get(data, "period_id")
    start = _parse_date(_get(data, "start_date"), "start_date")
    if period_id is None or start is None:
        raise ValueError("'period' requires an id and a start_date.")
    return ReportingPeriod(
        period_id=str(period_id),
        label=str(data.get("label") or data.get("name") or period_id),
        start_date=start,
        end_date=_parse_date(_get(data, "end_date"), "end_date"),
    )


def parse_student(data: Dict[str, Any]) -> Student:
    student_id = _get(data, "student_id")
    if student_id is None:
        raise ValueError("Every student needs an id.")
    return Student(
        student_id=str(student_id),
        name=str(data.get("name") or student_id),
        gender=Gender.parse(data.get("gender")),
        date_of_birth=_parse_date(_get(data, "date_of_birth"), "date_of_birth"),
        is_new_student=_flag(_get(data, "is_new_student", False)),
    )


def parse_enrollment(data: Dict[str, Any]) -> Enrollment:
    student = data.get("student")
    if not isinstance(student, dict):
        raise ValueError("Every enrollment needs a 'student' object.")
    parsed_student = parse_student(student)

    return Enrollment(
        enrollment_id=str(_get(data, "enrollment_id", parsed_student.student_id)),
        student=parsed_student,
        repeater=_flag(data.get("repeater", False)),
        photo=_opt_str(data.get("photo")),
        marks=tuple(
            Mark(
                score=_to_score(m.get("score")),
                subject_id=_opt_str(_get(m, "subject_id")),
                sequence_id=_opt_str(_get(m, "sequence_id")),
            )
            for m in _items(data, "marks")
        ),
        fees=tuple(
            SchoolFee(
                amount_expected=_to_amount(_get(f, "amount_expected"), "amount_expected"),
                amount_paid=_to_amount(_get(f, "amount_paid"), "amount_paid"),
            )
            for f in _items(data, "fees")
        ),
        discipline_issues=tuple(
            DisciplineIssue(
                issue_id=_opt_str(i.get("id")),
                reviewed_by=_opt_str(_get(i, "reviewed_by")),
            )
            for i in _items(data, "discipline_issues")
        ),
        absences=tuple(
            Absence(absence_id=_opt_str(a.get("id")) if isinstance(a, dict) else None)
            for a in _items(data, "absences", objects=False)
        ),
    )


def parse_unit_records(data: Dict[str, Any], period_id: str) -> UnitRecords:
    """One unit with its enrollments, assignments and teacher absences."""
    if not isinstance(data, dict):
        raise ValueError("Every unit must be an object.")
    unit_id = _get(data, "id")
    if unit_id is None:
        raise ValueError("Every unit needs an id.")
    unit = Unit(
        unit_id=str(unit_id),
        name=str(data.get("name") or unit_id),
        sub_units=tuple(str(s) for s in _items(data, "sub_units", objects=False)),
    )

    assignments = tuple(
        TeacherAssignment(
            teacher_id=str(_get(a, "teacher_id")),
            unit_id=str(_get(a, "assignment_unit_id", unit.unit_id)),
            subject_id=str(_get(a, "subject_id")),
            period_id=str(_get(a, "assignment_period_id", period_id)),
        )
        for a in _items(data, "teacher_assignments")
    )
    teacher_absences = tuple(
        TeacherAbsence(
            teacher_id=str(_get(a, "teacher_id")),
            absence_id=_opt_str(a.get("id")),
        )
        for a in _items(data, "teacher_absences")
    )

    return UnitRecords(
        unit=unit,
        enrollments=tuple(parse_enrollment(e) for e in _items(data, "enrollments")),
        teacher_assignments=assignments,
        teacher_absences=teacher_absences,
    )


def parse_payload(payload: Dict[str, Any]) -> ParsedPayload:
    """
    Parse a request payload of the form
    ``{"period": {...}, "as_of": "YYYY-MM-DD", "units": [...]}``.
    Raises ValueError with a readable message on malformed input.
    """
    if not isinstance(payload, dict):
        raise ValueError("Payload must be a JSON object.")
    if "period" not in payload:
        raise ValueError("No reporting period provided.")
    period = parse_period(payload["period"])
    units = [parse_unit_records(u, period.period_id) for u in _items(payload, "units")]
    return ParsedPayload(
        period=period,
        as_of=_parse_date(_get(payload, "as_of"), "as_of"),
        units=units,
    )


# ── Validation ──────────────────────────────────────────────────────

def validate_payload(payload: Dict[str, Any], mark_scale_max: float = 20.0) -> List[Dict]:
    """
    Validate a payload and return a list of issues found.
    Never raises; a payload that cannot be parsed yields a critical issue.
    """
    issues: List[Dict] = []

    try:
        parsed = parse_payload(payload)
    except ValueError as exc:
        issues.append({
            "type": "malformed_payload",
            "severity": "critical",
            "message": str(exc),
        })
        return issues

    if not parsed.units:
        issues.append({
            "type": "empty_data",
            "severity": "critical",
            "message": "The payload contains no units.",
        })

    ids = [u.unit.unit_id for u in parsed.units]
    dupes = sorted({i for i in ids if ids.count(i) > 1})
    if dupes:
        issues.append({
            "type": "duplicates",
            "severity": "warning",
            "message": f"Duplicate unit ids: {', '.join(dupes)}. Later entries win.",
        })

    for rec in parsed.units:
        if not rec.enrollments:
            issues.append({
                "type": "empty_unit",
                "severity": "info",
                "message": f"Unit '{rec.unit.name}' has no enrollments; its profile will be all zeros.",
            })
        scores = [m.score for e in rec.enrollments for m in e.marks if m.score is not None]
        out_of_range = sum(1 for s in scores if s < 0 or s > mark_scale_max)
        if out_of_range:
            issues.append({
                "type": "scores_out_of_range",
                "severity": "warning",
                "message": (
                    f"{out_of_range} score(s) in '{rec.unit.name}' fall outside "
                    f"0-{mark_scale_max:g}."
                ),
            })

    return issues


def load_sample_payload(path: Path = SAMPLE_PAYLOAD) -> Dict[str, Any]:
    """Load the bundled sample payload."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def parse_history(payload: Dict[str, Any]) -> List[ParsedPayload]:
    """Parse ``{"history": [<payload>, ...]}`` for trend requests."""
    entries = payload.get("history") if isinstance(payload, dict) else None
    if not entries or not isinstance(entries, list):
        raise ValueError("No history provided.")
    return [parse_payload(entry) for entry in entries]

