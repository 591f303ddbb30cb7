"""
overview.py — Profiles for every unit in scope, and the school-wide summary.

The data-access side is a small contract (``UnitDataSource``): the host lists
its units and loads one unit's records for a reporting period. Per-unit work
is independent, so the overview fans it out on a thread pool and sorts the
result afterwards. A unit whose records cannot be loaded or profiled is
logged and skipped; the batch itself never fails because of one unit.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence

from engine.errors import NotFoundError
from engine.profile import ProfileOptions, UnitProfile, build_unit_profile, profile_unit
from engine.records import (
    Enrollment,
    ReportingPeriod,
    TeacherAbsence,
    TeacherAssignment,
    Unit,
    UnitRecords,
)

logger = logging.getLogger(__name__)

# Rough planning constants for the school summary.
CLASS_CAPACITY = 30
TEACHER_UTILIZATION_FACTOR = 20

SCHOOL_UNIT_ID = "school"


class UnitDataSource(ABC):
    """Where the host keeps its units and their records."""

    @abstractmethod
    def list_units(self) -> Sequence[Unit]:
        ...

    @abstractmethod
    def fetch_unit(self, unit_id: str, period: ReportingPeriod) -> UnitRecords:
        """Records of one unit for ``period``; NotFoundError if absent."""
        ...


class InMemoryUnitSource(UnitDataSource):
    """UnitDataSource over records the host has already loaded for one period."""

    def __init__(self, period_id: str, records: Iterable[UnitRecords]):
        self.period_id = period_id
        self._records: Dict[str, UnitRecords] = {}
        for rec in records:
            self._records[rec.unit.unit_id] = rec

    def list_units(self) -> List[Unit]:
        return [rec.unit for rec in self._records.values()]

    def fetch_unit(self, unit_id: str, period: ReportingPeriod) -> UnitRecords:
        rec = self._records.get(str(unit_id))
        if rec is None or period.period_id != self.period_id:
            raise NotFoundError(
                f"Unit '{unit_id}' not found for period '{period.period_id}'.",
                unit_id=unit_id,
            )
        return rec


@dataclass(frozen=True)
class OverviewResult:
    period_id: str
    profiles: List[UnitProfile]
    skipped_unit_ids: List[str]


@dataclass(frozen=True)
class SchoolSummary:
    profile: UnitProfile
    total_classes: int
    teacher_utilization_rate: float
    class_capacity_utilization: float
    skipped_unit_ids: List[str]


# ── Overview ────────────────────────────────────────────────────────

def compute_overview(
    source: UnitDataSource,
    period: ReportingPeriod,
    options: Optional[ProfileOptions] = None,
    max_workers: Optional[int] = None,
) -> OverviewResult:
    """Profile every unit of ``source``, best effort.

    Profiles come back sorted by unit name (then id) whatever order the
    workers finish in. Units that fail are listed in ``skipped_unit_ids``.
    """
    units = list(source.list_units())
    profiles: List[UnitProfile] = []
    skipped: List[str] = []

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = {
            pool.submit(profile_unit, source, unit.unit_id, period, options): unit
            for unit in units
        }
        for future in as_completed(futures):
            unit = futures[future]
            try:
                profiles.append(future.result())
            except Exception as exc:
                logger.warning(
                    "UNIT_PROFILE_SKIPPED",
                    extra={
                        "unit_id": unit.unit_id,
                        "period_id": period.period_id,
                        "error": str(exc),
                    },
                    exc_info=exc,
                )
                skipped.append(unit.unit_id)

    profiles.sort(key=lambda p: (p.unit_name, p.unit_id))
    skipped.sort()

    logger.info(
        "OVERVIEW_COMPUTED",
        extra={
            "period_id": period.period_id,
            "profiled": len(profiles),
            "skipped": len(skipped),
        },
    )
    return OverviewResult(
        period_id=period.period_id,
        profiles=profiles,
        skipped_unit_ids=skipped,
    )


# ── School summary ──────────────────────────────────────────────────

def compute_school_summary(
    source: UnitDataSource,
    period: ReportingPeriod,
    options: Optional[ProfileOptions] = None,
    school_name: str = "My School",
) -> SchoolSummary:
    """Whole-institution profile built from the records of every unit.

    Units whose records cannot be loaded are skipped and reported. Teacher
    absences shared between units are counted once when they carry an id.
    """
    units = sorted(source.list_units(), key=lambda u: (u.name, u.unit_id))
    loaded: List[Unit] = []
    enrollments: List[Enrollment] = []
    assignments: List[TeacherAssignment] = []
    absences: List[TeacherAbsence] = []
    seen_absences = set()
    skipped: List[str] = []

    for unit in units:
        try:
            records = source.fetch_unit(unit.unit_id, period)
        except Exception as exc:
            logger.warning(
                "SCHOOL_SUMMARY_UNIT_SKIPPED",
                extra={"unit_id": unit.unit_id, "period_id": period.period_id, "error": str(exc)},
            )
            skipped.append(unit.unit_id)
            continue

        loaded.append(records.unit)
        enrollments.extend(records.enrollments)
        assignments.extend(
            replace(a, unit_id=SCHOOL_UNIT_ID) for a in records.teacher_assignments
        )
        for absence in records.teacher_absences:
            if absence.absence_id is not None:
                key = (absence.teacher_id, absence.absence_id)
                if key in seen_absences:
                    continue
                seen_absences.add(key)
            absences.append(absence)

    school = Unit(
        unit_id=SCHOOL_UNIT_ID,
        name=school_name,
        sub_units=tuple(u.name for u in loaded),
    )
    profile = build_unit_profile(
        school,
        enrollments,
        assignments,
        period,
        teacher_absences=absences,
        options=options,
    )

    classes = len(loaded)
    teachers = profile.staffing.total_teachers
    teacher_utilization = (
        min(100.0, classes / teachers * TEACHER_UTILIZATION_FACTOR) if teachers else 0.0
    )
    capacity = (
        min(100.0, profile.total_students / (classes * CLASS_CAPACITY) * 100)
        if classes else 0.0
    )

    return SchoolSummary(
        profile=profile,
        total_classes=classes,
        teacher_utilization_rate=round(teacher_utilization, 2),
        class_capacity_utilization=round(capacity, 2),
        skipped_unit_ids=sorted(skipped),
    )
