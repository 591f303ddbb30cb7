"""
insights.py — Rule-based classification of a unit profile.

Evaluates one UnitProfile against fixed thresholds and produces:
- strengths / weaknesses / opportunities / threats (SWOT phrases)
- alerts: {type, severity, message}
- recommendations

Every threshold is a module constant so it can be tuned and tested alone.
Severity levels: high, medium.
"""

from dataclasses import dataclass
from typing import Dict, List

from engine.narrative import (
    OPPORTUNITY_NEW_STUDENTS,
    OPPORTUNITY_PEER_TUTORING,
    OPPORTUNITY_STAFFING,
    RECOMMEND_ATTENDANCE,
    RECOMMEND_COLLECTION,
    RECOMMEND_TUTORING,
    STRENGTH_ACADEMIC,
    STRENGTH_ATTENDANCE,
    STRENGTH_COLLECTION,
    STRENGTH_DISCIPLINE,
    THREAT_ABSENTEEISM,
    THREAT_COLLECTION,
    THREAT_DISCIPLINE,
    WEAKNESS_ABSENTEES,
    WEAKNESS_ACADEMIC,
    WEAKNESS_DEFAULTERS,
    WEAKNESS_PENDING,
    generate_unit_summary,
    narrate_high_incidents,
    narrate_low_attendance,
    narrate_low_average_grade,
    narrate_low_collection,
)
from engine.profile import UnitProfile


# ── Thresholds ──────────────────────────────────────────────────────

# Strengths (strictly above / below)
STRENGTH_AVERAGE_GRADE = 70.0
STRENGTH_ATTENDANCE_RATE = 90.0
STRENGTH_COLLECTION_RATE = 85.0
STRENGTH_MAX_INCIDENTS = 5

# Weaknesses
WEAKNESS_AVERAGE_GRADE = 50.0
WEAKNESS_CHRONIC_ABSENTEES = 10
WEAKNESS_DEFAULTERS_COUNT = 15
WEAKNESS_PENDING_INCIDENTS = 5

# Opportunities
OPPORTUNITY_MIN_TEACHERS = 5
OPPORTUNITY_MIN_NEW_STUDENTS = 0

# Threats
THREAT_CHRONIC_ABSENTEES = 20
THREAT_COLLECTION_RATE = 60.0
THREAT_INCIDENTS = 20

# Alerts
ALERT_AVERAGE_GRADE = 50.0
ALERT_ATTENDANCE_RATE = 80.0
ALERT_COLLECTION_RATE = 70.0
ALERT_INCIDENTS = 10

# Recommendations
RECOMMEND_AVERAGE_GRADE = 60.0
RECOMMEND_CHRONIC_ABSENTEES = 5
RECOMMEND_DEFAULTERS_COUNT = 10

SEVERITY_HIGH = "high"
SEVERITY_MEDIUM = "medium"
_SEVERITY_ORDER = {SEVERITY_HIGH: 0, SEVERITY_MEDIUM: 1}


@dataclass(frozen=True)
class Alert:
    type: str
    severity: str
    message: str


@dataclass(frozen=True)
class InsightBundle:
    unit_id: str
    strengths: List[str]
    weaknesses: List[str]
    opportunities: List[str]
    threats: List[str]
    alerts: List[Alert]
    recommendations: List[str]
    summary: str


@dataclass(frozen=True)
class DashboardSummary:
    unit_id: str
    unit_name: str
    total_students: int
    key_metrics: Dict[str, float]
    alerts: List[Alert]
    recommendations: List[str]


# ── Rules ───────────────────────────────────────────────────────────

def _strengths(p: UnitProfile) -> List[str]:
    out: List[str] = []
    if p.academic.average_grade > STRENGTH_AVERAGE_GRADE:
        out.append(STRENGTH_ACADEMIC)
    if p.attendance.attendance_rate > STRENGTH_ATTENDANCE_RATE:
        out.append(STRENGTH_ATTENDANCE)
    if p.finance.collection_rate > STRENGTH_COLLECTION_RATE:
        out.append(STRENGTH_COLLECTION)
    if p.discipline.total_incidents < STRENGTH_MAX_INCIDENTS:
        out.append(STRENGTH_DISCIPLINE)
    return out


def _weaknesses(p: UnitProfile) -> List[str]:
    out: List[str] = []
    if p.academic.average_grade < WEAKNESS_AVERAGE_GRADE:
        out.append(WEAKNESS_ACADEMIC)
    if p.attendance.chronic_absentees > WEAKNESS_CHRONIC_ABSENTEES:
        out.append(WEAKNESS_ABSENTEES)
    if p.finance.defaulters > WEAKNESS_DEFAULTERS_COUNT:
        out.append(WEAKNESS_DEFAULTERS)
    if p.discipline.pending_incidents > WEAKNESS_PENDING_INCIDENTS:
        out.append(WEAKNESS_PENDING)
    return out


def _opportunities(p: UnitProfile) -> List[str]:
    out: List[str] = []
    if p.academic.above_average_count > p.academic.below_average_count:
        out.append(OPPORTUNITY_PEER_TUTORING)
    if p.staffing.total_teachers > OPPORTUNITY_MIN_TEACHERS:
        out.append(OPPORTUNITY_STAFFING)
    if p.demographics.new_students > OPPORTUNITY_MIN_NEW_STUDENTS:
        out.append(OPPORTUNITY_NEW_STUDENTS)
    return out


def _threats(p: UnitProfile) -> List[str]:
    out: List[str] = []
    if p.attendance.chronic_absentees > THREAT_CHRONIC_ABSENTEES:
        out.append(THREAT_ABSENTEEISM)
    if p.finance.collection_rate < THREAT_COLLECTION_RATE:
        out.append(THREAT_COLLECTION)
    if p.discipline.total_incidents > THREAT_INCIDENTS:
        out.append(THREAT_DISCIPLINE)
    return out


def generate_alerts(p: UnitProfile) -> List[Alert]:
    """Threshold alerts, high severity first."""
    alerts: List[Alert] = []

    if p.academic.average_grade < ALERT_AVERAGE_GRADE:
        alerts.append(Alert(
            type="academic",
            severity=SEVERITY_HIGH,
            message=narrate_low_average_grade(p.academic.average_grade, ALERT_AVERAGE_GRADE),
        ))

    if p.attendance.attendance_rate < ALERT_ATTENDANCE_RATE:
        alerts.append(Alert(
            type="attendance",
            severity=SEVERITY_MEDIUM,
            message=narrate_low_attendance(p.attendance.attendance_rate, ALERT_ATTENDANCE_RATE),
        ))

    if p.finance.collection_rate < ALERT_COLLECTION_RATE:
        alerts.append(Alert(
            type="financial",
            severity=SEVERITY_HIGH,
            message=narrate_low_collection(
                p.finance.collection_rate, p.finance.outstanding_amount, ALERT_COLLECTION_RATE
            ),
        ))

    if p.discipline.total_incidents > ALERT_INCIDENTS:
        alerts.append(Alert(
            type="discipline",
            severity=SEVERITY_MEDIUM,
            message=narrate_high_incidents(
                p.discipline.total_incidents, p.discipline.pending_incidents, ALERT_INCIDENTS
            ),
        ))

    alerts.sort(key=lambda a: _SEVERITY_ORDER.get(a.severity, 9))
    return alerts


def generate_recommendations(p: UnitProfile) -> List[str]:
    recs: List[str] = []
    if p.academic.average_grade < RECOMMEND_AVERAGE_GRADE:
        recs.append(RECOMMEND_TUTORING)
    if p.attendance.chronic_absentees > RECOMMEND_CHRONIC_ABSENTEES:
        recs.append(RECOMMEND_ATTENDANCE)
    if p.finance.defaulters > RECOMMEND_DEFAULTERS_COUNT:
        recs.append(RECOMMEND_COLLECTION)
    return recs


# ── Main Entry Points ──────────────────────────────────────────────

def generate_unit_insights(profile: UnitProfile) -> InsightBundle:
    """SWOT lists, alerts and recommendations for one unit."""
    strengths = _strengths(profile)
    weaknesses = _weaknesses(profile)
    alerts = generate_alerts(profile)

    return InsightBundle(
        unit_id=profile.unit_id,
        strengths=strengths,
        weaknesses=weaknesses,
        opportunities=_opportunities(profile),
        threats=_threats(profile),
        alerts=alerts,
        recommendations=generate_recommendations(profile),
        summary=generate_unit_summary(
            profile.unit_name, strengths, weaknesses, [a.message for a in alerts]
        ),
    )


def build_dashboard_summary(profile: UnitProfile) -> DashboardSummary:
    """Key metrics plus alerts and recommendations for a dashboard card."""
    return DashboardSummary(
        unit_id=profile.unit_id,
        unit_name=profile.unit_name,
        total_students=profile.total_students,
        key_metrics={
            "average_grade": profile.academic.average_grade,
            "pass_rate": profile.academic.pass_rate,
            "attendance_rate": profile.attendance.attendance_rate,
            "fee_collection_rate": profile.finance.collection_rate,
            "discipline_incidents": profile.discipline.total_incidents,
        },
        alerts=generate_alerts(profile),
        recommendations=generate_recommendations(profile),
    )
