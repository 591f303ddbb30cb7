"""
narrative.py — Template-based text for unit insights and alerts.

Plain f-string templates; every sentence is derived from profile numbers.
"""

from typing import List


# ── Alert Narratives ────────────────────────────────────────────────

def narrate_low_average_grade(average: float, threshold: float) -> str:
    return (
        f"Class average grade is {average:.1f}%, below the {threshold:.0f}% mark."
    )


def narrate_low_attendance(attendance_rate: float, threshold: float) -> str:
    return (
        f"Class attendance rate is {attendance_rate:.1f}%, below the "
        f"{threshold:.0f}% target."
    )


def narrate_low_collection(collection_rate: float, outstanding: float, threshold: float) -> str:
    return (
        f"Fee collection rate is {collection_rate:.1f}%, below {threshold:.0f}%, "
        f"with {outstanding:,.0f} still outstanding."
    )


def narrate_high_incidents(incidents: int, pending: int, threshold: int) -> str:
    return (
        f"{incidents} discipline incidents recorded (more than {threshold}), "
        f"{pending} of them still pending review."
    )


# ── SWOT Phrases ────────────────────────────────────────────────────

STRENGTH_ACADEMIC = "Strong academic performance"
STRENGTH_ATTENDANCE = "Excellent attendance rate"
STRENGTH_COLLECTION = "High fee collection rate"
STRENGTH_DISCIPLINE = "Low discipline issues"

WEAKNESS_ACADEMIC = "Below average academic performance"
WEAKNESS_ABSENTEES = "High number of chronic absentees"
WEAKNESS_DEFAULTERS = "High number of fee defaulters"
WEAKNESS_PENDING = "Unresolved discipline issues"

OPPORTUNITY_PEER_TUTORING = "Potential for peer tutoring programs"
OPPORTUNITY_STAFFING = "Good teacher-student ratio allows for personalized attention"
OPPORTUNITY_NEW_STUDENTS = "Fresh perspectives from new students"

THREAT_ABSENTEEISM = "High absenteeism may affect overall class performance"
THREAT_COLLECTION = "Low fee collection may affect class resources"
THREAT_DISCIPLINE = "High discipline issues may disrupt learning environment"

RECOMMEND_TUTORING = "Consider additional tutoring or remedial classes"
RECOMMEND_ATTENDANCE = "Implement attendance intervention program"
RECOMMEND_COLLECTION = "Review and improve fee collection strategies"


# ── Summary ─────────────────────────────────────────────────────────

def generate_unit_summary(
    unit_name: str,
    strengths: List[str],
    weaknesses: List[str],
    alert_messages: List[str],
) -> str:
    """One short paragraph per concern, for dashboards."""
    paragraphs = []

    if not (strengths or weaknesses or alert_messages):
        return f"{unit_name}: no notable strengths or concerns in this period."

    if strengths:
        paragraphs.append(f"{unit_name} stands out for: {'; '.join(strengths)}.")
    if weaknesses:
        paragraphs.append(f"Areas of concern: {'; '.join(weaknesses)}.")
    if alert_messages:
        paragraphs.append(f"Needs attention now: {' '.join(alert_messages[:3])}")

    return "\n\n".join(paragraphs)
