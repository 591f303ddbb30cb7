"""
trends.py — Period-over-period series and next-period projection.

The projector interface is kept so a real model can be dropped in later.
The only implementation shipped, ``NaiveLastValueProjector``, repeats the
last observed value: it is a placeholder, not a forecast.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from operator import attrgetter
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from engine.comparison import Direction
from engine.errors import InvalidScopeError
from engine.profile import UnitProfile
from engine.records import ReportingPeriod

# Least-squares slope (points per period) needed to call a series moving.
TREND_SLOPE_THRESHOLD = 0.5

DateLike = Union[date, str]


class TrendProjector(ABC):
    """Maps an ordered history of values to a next-period value."""

    @abstractmethod
    def project(self, values: Sequence[float]) -> float:
        ...


class NaiveLastValueProjector(TrendProjector):
    """Stub projector: the next period equals the last one (0 if no history).

    Not a forecasting model.
    """

    def project(self, values: Sequence[float]) -> float:
        return float(values[-1]) if len(values) else 0.0


@dataclass(frozen=True)
class TrendPoint:
    period_id: str
    label: str
    value: float


@dataclass(frozen=True)
class TrendSeries:
    metric: str
    points: List[TrendPoint]
    direction: str          # improving / declining / stable / insufficient_data


@dataclass(frozen=True)
class TrendPredictions:
    next_period_performance: float
    next_period_attendance: float
    next_period_collection: float
    next_period_incidents: float
    projector: str


@dataclass(frozen=True)
class TrendReport:
    unit_id: str
    date_from: date
    date_to: date
    academic_trends: TrendSeries
    attendance_trends: TrendSeries
    financial_trends: TrendSeries
    discipline_trends: TrendSeries
    predictions: TrendPredictions


# ── Helpers ─────────────────────────────────────────────────────────

def _parse_date(value: DateLike, name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidScopeError(f"'{name}' must be an ISO date (YYYY-MM-DD), got '{value}'.") from None


def parse_date_range(date_from: DateLike, date_to: DateLike) -> Tuple[date, date]:
    """Validate a reporting window; malformed or inverted ranges are rejected."""
    start = _parse_date(date_from, "date_from")
    end = _parse_date(date_to, "date_to")
    if start > end:
        raise InvalidScopeError(f"date_from ({start}) is after date_to ({end}).")
    return start, end


def describe_trend(values: Sequence[float], direction: Direction = Direction.HIGHER) -> str:
    """Label the movement of a series from its least-squares slope."""
    if len(values) < 2:
        return "insufficient_data"
    x = np.arange(len(values))
    slope = float(np.polyfit(x, np.asarray(values, dtype=float), 1)[0])
    if direction == Direction.LOWER:
        slope = -slope
    if slope > TREND_SLOPE_THRESHOLD:
        return "improving"
    if slope < -TREND_SLOPE_THRESHOLD:
        return "declining"
    return "stable"


# ── Report ──────────────────────────────────────────────────────────

_SERIES = (
    ("average_grade", "academic.average_grade", Direction.HIGHER),
    ("attendance_rate", "attendance.attendance_rate", Direction.HIGHER),
    ("collection_rate", "finance.collection_rate", Direction.HIGHER),
    ("total_incidents", "discipline.total_incidents", Direction.LOWER),
)


def build_trend_report(
    unit_id: str,
    history: Sequence[Tuple[ReportingPeriod, UnitProfile]],
    date_from: DateLike,
    date_to: DateLike,
    projector: Optional[TrendProjector] = None,
) -> TrendReport:
    """Series per dimension for ``unit_id`` and a next-period projection.

    Only periods starting inside ``[date_from, date_to]`` are used, ordered by
    start date. Profiles of other units in ``history`` are ignored.
    """
    start, end = parse_date_range(date_from, date_to)
    projector = projector or NaiveLastValueProjector()

    window = sorted(
        (
            (period, profile)
            for period, profile in history
            if profile.unit_id == unit_id and start <= period.start_date <= end
        ),
        key=lambda item: item[0].start_date,
    )

    series: List[TrendSeries] = []
    for metric, path, direction in _SERIES:
        points = []
        for period, profile in window:
            value = float(attrgetter(path)(profile))
            points.append(TrendPoint(period.period_id, period.label, value))
        series.append(
            TrendSeries(
                metric=metric,
                points=points,
                direction=describe_trend([p.value for p in points], direction),
            )
        )

    academic, attendance, financial, discipline = series

    def _project(s: TrendSeries) -> float:
        return round(projector.project([p.value for p in s.points]), 2)

    return TrendReport(
        unit_id=unit_id,
        date_from=start,
        date_to=end,
        academic_trends=academic,
        attendance_trends=attendance,
        financial_trends=financial,
        discipline_trends=discipline,
        predictions=TrendPredictions(
            next_period_performance=_project(academic),
            next_period_attendance=_project(attendance),
            next_period_collection=_project(financial),
            next_period_incidents=_project(discipline),
            projector=type(projector).__name__,
        ),
    )
