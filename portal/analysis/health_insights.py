"""
Health insights across a patient's whole report collection.

Same flow as the per-report analysis: the caller sends insights_system_prompt()
and build_insights_prompt() to the external LLM endpoint and hands the reply to
generate_health_insights(). A reply without a JSON array, or one that fails the
health_insights schema, is logged and replaced by the canned insights.
Actionable insights get a due date from their priority.
"""
import logging
from datetime import datetime
from typing import Optional, Sequence

from portal import config
from portal.analysis.report_analysis import follow_up_due_date
from portal.insights.models import Report
from portal.util.files import read_text
from portal.util.time import to_iso, utcnow
from portal.util.validation import extract_json_array_from_text, load_schema, validate

logger = logging.getLogger(__name__)

SCHEMA_PATH = config.SCHEMAS_DIR / "health_insights.schema.json"

INSIGHT_KEYS = ("type", "title", "description", "priority", "category", "actionable", "confidence", "sources")


# ─────────────────────────── Prompts ──────────────────────────────────────

def insights_system_prompt() -> str:
    return read_text(config.PROMPTS_DIR / "insights_system.md")


def build_insights_prompt(reports: Sequence[Report]) -> str:
    """One line per report: type, hospital, date and description (or file name)."""
    lines = [
        f"{r.report_type} from {r.hospital} on {r.report_date or to_iso(r.created_at)}: "
        f"{r.description or r.file_name}"
        for r in reports
    ]
    template = read_text(config.PROMPTS_DIR / "reports_insights.md")
    return template.format(report_summary="\n".join(lines))


# ─────────────────────────── Canned insights ──────────────────────────────

def _file_names(reports: Sequence[Report], report_type: str, limit: int) -> list[str]:
    return [r.file_name for r in reports if r.report_type == report_type][:limit]


def canned_insights(reports: Sequence[Report]) -> list[dict]:
    return [
        {
            "type": "recommendation",
            "title": "Schedule Follow-up Cardiology Appointment",
            "description": "Based on your recent cardiology report, a follow-up in 3 months "
                           "is recommended to monitor progress.",
            "priority": "medium",
            "category": "Cardiology",
            "actionable": True,
            "confidence": 0.85,
            "sources": _file_names(reports, "cardiology", 2),
        },
        {
            "type": "achievement",
            "title": "Improved Blood Pressure Readings",
            "description": "Your recent reports show a 15% improvement in blood pressure "
                           "compared to 6 months ago.",
            "priority": "low",
            "category": "Cardiovascular",
            "actionable": False,
            "confidence": 0.92,
            "sources": ["Latest Cardiology Report"],
        },
        {
            "type": "alert",
            "title": "Vitamin D Deficiency Detected",
            "description": "Your latest pathology report indicates low vitamin D levels. "
                           "Consider supplementation.",
            "priority": "high",
            "category": "Nutritional",
            "actionable": True,
            "confidence": 0.95,
            "sources": _file_names(reports, "pathology", 1),
        },
        {
            "type": "trend",
            "title": "Cholesterol Levels Trending Down",
            "description": "Great progress! Your cholesterol levels have decreased by 20% "
                           "over the past year.",
            "priority": "low",
            "category": "Cardiovascular",
            "actionable": False,
            "confidence": 0.88,
            "sources": ["Blood Work Series"],
        },
    ]


# ─────────────────────────── Generation ───────────────────────────────────

def parse_insights_response(raw_text: str) -> tuple[Optional[list], list[str]]:
    """Return (insights, errors). insights is None when errors is non-empty."""
    parsed = extract_json_array_from_text(raw_text)
    if parsed is None:
        return None, [f"No JSON array found in response. Got: {(raw_text or '')[:200]}"]

    errors = validate(parsed, load_schema(SCHEMA_PATH))
    if errors:
        return None, errors
    return parsed, []


def generate_health_insights(
    reports: Sequence[Report],
    raw_response: Optional[str] = None,
    now: Optional[datetime] = None,
) -> list[dict]:
    """
    Build the health insights for a report collection.

    Args:
        reports: the patient's reports
        raw_response: optional chat-completion reply to build_insights_prompt()
        now: reference time for due dates (defaults to current UTC time)
    Returns:
        list of insight dicts with "id", "source" and, when actionable, "dueDate"
    """
    reports = list(reports)
    if not reports:
        return []

    items = None
    source = "template"
    if raw_response is not None:
        items, errors = parse_insights_response(raw_response)
        if errors:
            logger.warning("Insights reply rejected, using canned insights: %s", errors)
        else:
            source = "llm"
    if items is None:
        items = canned_insights(reports)

    now = now or utcnow()
    insights = []
    for i, item in enumerate(items):
        insight = {"id": f"insight_{i}", "source": source}
        insight.update({k: item[k] for k in INSIGHT_KEYS})
        if insight["actionable"]:
            insight["dueDate"] = follow_up_due_date(insight["priority"], now)
        insights.append(insight)
    return insights
