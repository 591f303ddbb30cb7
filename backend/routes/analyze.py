"""
Analyze routes — unit profile API endpoints.

Every POST endpoint takes the records of one reporting period:
``{"period": {...}, "as_of": "YYYY-MM-DD", "units": [...]}``.
"""

import logging
import os
from contextlib import contextmanager
from typing import Optional

from fastapi import APIRouter, HTTPException

from engine.comparison import COMPARISON_TABLE, compare_units
from engine.errors import InvalidScopeError, NotFoundError
from engine.insights import build_dashboard_summary, generate_unit_insights
from engine.overview import InMemoryUnitSource, compute_overview, compute_school_summary
from engine.parser import (
    ParsedPayload,
    load_sample_payload,
    parse_history,
    parse_payload,
    validate_payload,
)
from engine.profile import ProfileOptions, profile_unit, to_plain
from engine.ranking import RANKING_CRITERIA, rank_units, resolve_criterion
from engine.trends import build_trend_report, parse_date_range

logger = logging.getLogger(__name__)

router = APIRouter()

PASS_MARK = float(os.getenv("PASS_MARK", "50"))
MARK_SCALE_MAX = float(os.getenv("MARK_SCALE_MAX", "20"))
SCHOOL_NAME = os.getenv("SCHOOL_NAME", "My School")
OVERVIEW_MAX_WORKERS = int(os.getenv("OVERVIEW_MAX_WORKERS", "4"))


def _parse(payload: dict) -> ParsedPayload:
    """Parse the request payload; malformed input is a 400."""
    try:
        return parse_payload(payload)
    except ValueError as exc:
        raise HTTPException(400, str(exc))


def _options(parsed: ParsedPayload) -> ProfileOptions:
    return ProfileOptions(
        pass_mark=PASS_MARK,
        mark_scale_max=MARK_SCALE_MAX,
        as_of=parsed.as_of,
    )


def _source(parsed: ParsedPayload) -> InMemoryUnitSource:
    return InMemoryUnitSource(parsed.period.period_id, parsed.units)


@contextmanager
def _engine_errors():
    """Map engine errors onto HTTP status codes."""
    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(404, str(exc))
    except InvalidScopeError as exc:
        raise HTTPException(400, str(exc))


@router.post("/profile/{unit_id}")
async def profile(unit_id: str, payload: dict):
    """Full six-dimension profile of one unit."""
    parsed = _parse(payload)
    with _engine_errors():
        result = profile_unit(_source(parsed), unit_id, parsed.period, _options(parsed))
    return to_plain(result)


@router.post("/overview")
async def overview(payload: dict):
    """Profiles of every unit, sorted by name; failing units are listed as skipped."""
    parsed = _parse(payload)
    result = compute_overview(
        _source(parsed), parsed.period, _options(parsed), max_workers=OVERVIEW_MAX_WORKERS
    )
    return to_plain(result)


@router.post("/compare/{unit_a}/{unit_b}")
async def compare(unit_a: str, unit_b: str, payload: dict):
    """Per-dimension deltas (A - B) and the better unit per dimension."""
    parsed = _parse(payload)
    with _engine_errors():
        result = compare_units(_source(parsed), unit_a, unit_b, parsed.period, _options(parsed))
    return to_plain(result)


@router.post("/rankings")
async def rankings(payload: dict, criterion: str):
    """Dense ranking of every unit by academic, attendance, financial or discipline."""
    with _engine_errors():
        resolve_criterion(criterion)
    parsed = _parse(payload)
    with _engine_errors():
        ranked = rank_units(
            _source(parsed),
            parsed.period,
            criterion,
            _options(parsed),
            max_workers=OVERVIEW_MAX_WORKERS,
        )
    return {"criterion": criterion, "rankings": to_plain(ranked)}


@router.post("/insights/{unit_id}")
async def insights(unit_id: str, payload: dict):
    """Strengths, weaknesses, opportunities, threats and alerts for one unit."""
    parsed = _parse(payload)
    with _engine_errors():
        result = profile_unit(_source(parsed), unit_id, parsed.period, _options(parsed))
    return to_plain(generate_unit_insights(result))


@router.post("/summary/{unit_id}")
async def summary(unit_id: str, payload: dict):
    """Dashboard card: key metrics, alerts and recommendations."""
    parsed = _parse(payload)
    with _engine_errors():
        result = profile_unit(_source(parsed), unit_id, parsed.period, _options(parsed))
    return to_plain(build_dashboard_summary(result))


@router.post("/school")
async def school(payload: dict):
    """Whole-school profile with class count and utilization rates."""
    parsed = _parse(payload)
    result = compute_school_summary(
        _source(parsed), parsed.period, _options(parsed), school_name=SCHOOL_NAME
    )
    return to_plain(result)


@router.post("/trends/{unit_id}")
async def trends(
    unit_id: str,
    payload: dict,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
):
    """
    Period-over-period series and a naive next-period projection.
    Payload: ``{"history": [<period payload>, ...]}``.
    """
    if not date_from or not date_to:
        raise HTTPException(400, "date_from and date_to are required.")
    with _engine_errors():
        parse_date_range(date_from, date_to)

    try:
        entries = parse_history(payload)
    except ValueError as exc:
        raise HTTPException(400, str(exc))

    history = []
    for entry in entries:
        try:
            history.append(
                (entry.period, profile_unit(_source(entry), unit_id, entry.period, _options(entry)))
            )
        except NotFoundError:
            logger.info(
                "TREND_PERIOD_WITHOUT_UNIT",
                extra={"unit_id": unit_id, "period_id": entry.period.period_id},
            )

    if not history:
        raise HTTPException(404, f"Unit '{unit_id}' not found in any period.")

    with _engine_errors():
        report = build_trend_report(unit_id, history, date_from, date_to)
    return to_plain(report)


@router.post("/validate")
async def validate(payload: dict):
    """Pre-flight check of a payload; lists issues without computing anything."""
    issues = validate_payload(payload, mark_scale_max=MARK_SCALE_MAX)
    return {"valid": not any(i["severity"] == "critical" for i in issues), "issues": issues}


@router.get("/criteria")
async def criteria():
    """Ranking criteria and comparison directions."""
    return {
        "ranking_criteria": {
            name: {"metric": m.metric, "direction": m.direction.value}
            for name, m in RANKING_CRITERIA.items()
        },
        "comparison_metrics": to_plain(list(COMPARISON_TABLE)),
    }


@router.get("/sample")
async def sample():
    """Bundled sample payload for trying the endpoints."""
    return load_sample_payload()
