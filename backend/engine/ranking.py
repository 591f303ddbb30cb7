"""
ranking.py — Dense ranking of unit profiles by one criterion.

Ordering rules:
- sort is stable, so units with equal values keep their input order
  (the overview hands profiles over sorted by unit name);
- ranks are dense and 1-based: equal ranks only for exactly equal values,
  and the next distinct value gets the next integer.

Values are compared as the profile reports them, rounded to 2 decimal
places, so rates that differ only past the second decimal (1/3 and 0.33
incidents per student, say) share a rank.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from engine.comparison import ComparedMetric, Direction
from engine.errors import InvalidScopeError
from engine.overview import compute_overview
from engine.profile import ProfileOptions, UnitProfile
from engine.records import ReportingPeriod


RANKING_CRITERIA: Dict[str, ComparedMetric] = {
    "academic": ComparedMetric("academic_performance", "average_grade", "academic.average_grade", Direction.HIGHER),
    "attendance": ComparedMetric("attendance", "attendance_rate", "attendance.attendance_rate", Direction.HIGHER),
    "financial": ComparedMetric("finances", "collection_rate", "finance.collection_rate", Direction.HIGHER),
    "discipline": ComparedMetric("discipline", "incidents_per_student", "discipline.incidents_per_student", Direction.LOWER),
}


@dataclass(frozen=True)
class RankedProfile:
    rank: int
    value: float
    profile: UnitProfile


def resolve_criterion(criterion: str) -> ComparedMetric:
    try:
        return RANKING_CRITERIA[criterion]
    except (KeyError, TypeError):
        raise InvalidScopeError(
            f"Invalid criterion '{criterion}'. Must be one of: "
            f"{', '.join(RANKING_CRITERIA)}"
        ) from None


def rank_profiles(profiles: Iterable[UnitProfile], criterion: str) -> List[RankedProfile]:
    """Sort ``profiles`` best-first by ``criterion`` and attach dense ranks."""
    metric = resolve_criterion(criterion)
    scored = [(metric.value(p), p) for p in profiles]
    scored.sort(key=lambda item: item[0], reverse=metric.direction == Direction.HIGHER)

    ranked: List[RankedProfile] = []
    rank = 0
    previous = None
    for value, profile in scored:
        if previous is None or value != previous:
            rank += 1
            previous = value
        ranked.append(RankedProfile(rank=rank, value=value, profile=profile))
    return ranked


def rank_units(
    source,
    period: ReportingPeriod,
    criterion: str,
    options: Optional[ProfileOptions] = None,
    max_workers: Optional[int] = None,
) -> List[RankedProfile]:
    """Overview every unit of ``source`` then rank; the criterion is checked first."""
    resolve_criterion(criterion)
    overview = compute_overview(source, period, options=options, max_workers=max_workers)
    return rank_profiles(overview.profiles, criterion)
