"""
metrics.py — Single-statistic primitives shared by every dimension.

Every primitive is total: nulls are skipped, an empty population falls back
to a defined default, and nothing here raises on well-typed input.

- mean over nullable values
- percentage rate with a zero-denominator guard
- inclusive / exclusive threshold counts
- whole-year age and elapsed-day arithmetic
"""

from datetime import date
from typing import Iterable, List, Optional

import numpy as np


# ── Helpers ─────────────────────────────────────────────────────────

def _present(values: Iterable[Optional[float]]) -> List[float]:
    """Drop None / NaN entries and coerce the rest to float."""
    kept: List[float] = []
    for v in values:
        if v is None:
            continue
        try:
            f = float(v)
        except (TypeError, ValueError):
            continue
        if np.isnan(f):
            continue
        kept.append(f)
    return kept


def round_metric(val) -> float:
    """Round to 2 dp for output; NaN / inf / garbage become 0."""
    try:
        v = float(val)
        return 0.0 if (np.isnan(v) or np.isinf(v)) else round(v, 2)
    except (TypeError, ValueError):
        return 0.0


# ── Primitives ──────────────────────────────────────────────────────

def mean(values: Iterable[Optional[float]], default: float = 0.0) -> float:
    """Arithmetic mean over non-null values, ``default`` when none remain."""
    kept = _present(values)
    if not kept:
        return default
    return float(np.mean(kept))


def rate(numerator: float, denominator: float) -> float:
    """Percentage of ``numerator`` over ``denominator``, clamped to [0, 100].

    A zero denominator yields 0, never NaN or an exception.
    """
    if not denominator:
        return 0.0
    pct = (numerator / denominator) * 100
    return float(min(100.0, max(0.0, pct)))


def count_above(values: Iterable[Optional[float]], threshold: float) -> int:
    """Count of non-null values at or above ``threshold`` (inclusive)."""
    return sum(1 for v in _present(values) if v >= threshold)


def count_below(values: Iterable[Optional[float]], threshold: float) -> int:
    """Count of non-null values strictly below ``threshold``."""
    return sum(1 for v in _present(values) if v < threshold)


def age_in_years(birth_date: date, as_of: date) -> int:
    """Whole years between ``birth_date`` and ``as_of``; never negative."""
    years = as_of.year - birth_date.year
    if (as_of.month, as_of.day) < (birth_date.month, birth_date.day):
        years -= 1
    return max(0, years)


def days_elapsed(start: date, as_of: date) -> int:
    """Calendar days from ``start`` to ``as_of``, counting both ends.

    A period that starts today has a one-day budget; an ``as_of`` before the
    start gives 0.
    """
    delta = (as_of - start).days
    return delta + 1 if delta >= 0 else 0
