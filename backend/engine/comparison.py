"""
comparison.py — Side-by-side comparison of two unit profiles.

Which way is "better" for each metric lives in ``COMPARISON_TABLE`` rather
than in branching code, so the full set of directions can be listed and
tested on its own. Deltas are always ``A - B``; swapping the arguments flips
every delta's sign and swaps every "better" label.
"""

from dataclasses import dataclass
from enum import Enum
from operator import attrgetter
from typing import Dict, Optional, Tuple

from engine.profile import ProfileOptions, UnitProfile, profile_unit
from engine.records import ReportingPeriod


class Direction(str, Enum):
    HIGHER = "higher"   # larger value is better
    LOWER = "lower"     # smaller value is better


@dataclass(frozen=True)
class ComparedMetric:
    dimension: str
    metric: str
    path: str           # attribute path on UnitProfile
    direction: Direction
    decisive: bool = False   # decides the dimension's "better" label

    def value(self, profile: UnitProfile) -> float:
        return float(attrgetter(self.path)(profile))


COMPARISON_TABLE: Tuple[ComparedMetric, ...] = (
    ComparedMetric("academic_performance", "average_grade", "academic.average_grade", Direction.HIGHER, decisive=True),
    ComparedMetric("academic_performance", "pass_rate", "academic.pass_rate", Direction.HIGHER),
    ComparedMetric("attendance", "attendance_rate", "attendance.attendance_rate", Direction.HIGHER, decisive=True),
    ComparedMetric("finances", "collection_rate", "finance.collection_rate", Direction.HIGHER, decisive=True),
    ComparedMetric("discipline", "incidents_per_student", "discipline.incidents_per_student", Direction.LOWER, decisive=True),
)

BETTER_A = "A"
BETTER_B = "B"
TIE = "tie"


@dataclass(frozen=True)
class DimensionComparison:
    deltas: Dict[str, float]
    better: str


@dataclass(frozen=True)
class ComparisonResult:
    unit_a: UnitProfile
    unit_b: UnitProfile
    dimensions: Dict[str, DimensionComparison]


def better_of(a: float, b: float, direction: Direction) -> str:
    """"A", "B" or "tie" for one metric under ``direction``."""
    if a == b:
        return TIE
    a_wins = a > b if direction == Direction.HIGHER else a < b
    return BETTER_A if a_wins else BETTER_B


def compare_profiles(unit_a: UnitProfile, unit_b: UnitProfile) -> ComparisonResult:
    """Per-dimension deltas (A - B) and a better-unit label per dimension."""
    deltas: Dict[str, Dict[str, float]] = {}
    better: Dict[str, str] = {}

    for row in COMPARISON_TABLE:
        a_val, b_val = row.value(unit_a), row.value(unit_b)
        deltas.setdefault(row.dimension, {})[row.metric] = round(a_val - b_val, 2)
        if row.decisive:
            better[row.dimension] = better_of(a_val, b_val, row.direction)

    return ComparisonResult(
        unit_a=unit_a,
        unit_b=unit_b,
        dimensions={
            dim: DimensionComparison(deltas=metric_deltas, better=better.get(dim, TIE))
            for dim, metric_deltas in deltas.items()
        },
    )


def compare_units(
    source,
    unit_a_id: str,
    unit_b_id: str,
    period: ReportingPeriod,
    options: Optional[ProfileOptions] = None,
) -> ComparisonResult:
    """Profile both units and compare them; NotFoundError if either is missing."""
    profile_a = profile_unit(source, unit_a_id, period, options)
    profile_b = profile_unit(source, unit_b_id, period, options)
    return compare_profiles(profile_a, profile_b)
