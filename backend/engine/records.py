"""
records.py — Input records supplied by the host system.

The engine only reads these snapshots. Nested collections are tuples and
default to empty, so a student with no marks, fees or absences is simply an
enrollment with empty tuples.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"

    @classmethod
    def parse(cls, value) -> "Gender":
        """Case-insensitive lookup; anything unrecognised is OTHER."""
        if isinstance(value, Gender):
            return value
        text = str(value or "").strip().lower()
        if text in ("male", "m"):
            return cls.MALE
        if text in ("female", "f"):
            return cls.FEMALE
        return cls.OTHER


@dataclass(frozen=True)
class ReportingPeriod:
    period_id: str
    label: str
    start_date: date
    end_date: Optional[date] = None


@dataclass(frozen=True)
class Unit:
    unit_id: str
    name: str
    sub_units: Tuple[str, ...] = ()   # streams / sub-classes, display only


@dataclass(frozen=True)
class Student:
    student_id: str
    name: str
    gender: Gender = Gender.OTHER
    date_of_birth: Optional[date] = None
    is_new_student: bool = False


@dataclass(frozen=True)
class Mark:
    score: Optional[float]            # 0-20 by default, None when not yet graded
    subject_id: Optional[str] = None
    sequence_id: Optional[str] = None


@dataclass(frozen=True)
class SchoolFee:
    amount_expected: float
    amount_paid: float

    @property
    def in_default(self) -> bool:
        return self.amount_paid < self.amount_expected


@dataclass(frozen=True)
class DisciplineIssue:
    issue_id: Optional[str] = None
    reviewed_by: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.reviewed_by is not None


@dataclass(frozen=True)
class Absence:
    absence_id: Optional[str] = None


@dataclass(frozen=True)
class Enrollment:
    enrollment_id: str
    student: Student
    repeater: bool = False
    photo: Optional[str] = None
    marks: Tuple[Mark, ...] = ()
    fees: Tuple[SchoolFee, ...] = ()
    discipline_issues: Tuple[DisciplineIssue, ...] = ()
    absences: Tuple[Absence, ...] = ()


@dataclass(frozen=True)
class TeacherAssignment:
    teacher_id: str
    unit_id: str
    subject_id: str
    period_id: str


@dataclass(frozen=True)
class TeacherAbsence:
    teacher_id: str
    absence_id: Optional[str] = None


@dataclass(frozen=True)
class UnitRecords:
    """Everything the host loads for one unit in one reporting period."""
    unit: Unit
    enrollments: Tuple[Enrollment, ...] = ()
    teacher_assignments: Tuple[TeacherAssignment, ...] = ()
    teacher_absences: Tuple[TeacherAbsence, ...] = ()
