"""
Per-report analysis.

Two sources, in order of preference:
  - a raw chat-completion reply from the external LLM endpoint, if the caller has one
  - a canned template keyed by report type (unknown types use the pathology template)

A reply that carries no JSON object, or whose JSON fails the report_analysis schema,
is logged and replaced by the template. The LLM transport itself lives outside this
package; build_analysis_prompt() and system_prompt() give callers the messages to send.
"""
import copy
import logging
from datetime import datetime, timedelta
from typing import Optional

from portal import config
from portal.insights.models import Report
from portal.util.files import read_text
from portal.util.time import to_iso, utcnow
from portal.util.validation import extract_json_from_text, load_schema, validate

logger = logging.getLogger(__name__)

SCHEMA_PATH = config.SCHEMAS_DIR / "report_analysis.schema.json"

FOLLOW_UP_DAYS = {"high": 7, "medium": 30, "low": 90}

# ─────────────────────────── Canned templates ─────────────────────────────

_TEMPLATES = {
    "cardiology": {
        "keyFindings": ["Normal sinus rhythm", "Ejection fraction: 60%", "No signs of coronary artery disease"],
        "riskFactors": ["Family history of heart disease", "Age-related changes"],
        "recommendations": ["Continue regular exercise", "Maintain healthy diet", "Monitor blood pressure"],
        "followUpNeeded": False,
        "severity": "normal",
        "confidence": 0.85,
        "dataPoints": [
            {"metric": "Heart Rate", "value": "72 bpm", "normalRange": "60-100 bpm", "status": "normal"},
            {"metric": "Blood Pressure", "value": "120/80 mmHg", "normalRange": "<140/90 mmHg", "status": "normal"},
        ],
    },
    "pathology": {
        "keyFindings": [
            "Complete blood count within normal range",
            "Liver function tests normal",
            "Cholesterol: 180 mg/dL",
        ],
        "riskFactors": ["Vitamin D deficiency", "Elevated stress markers"],
        "recommendations": ["Vitamin D supplementation", "Regular health screenings", "Stress management"],
        "followUpNeeded": True,
        "severity": "mild",
        "confidence": 0.90,
        "dataPoints": [
            {"metric": "Total Cholesterol", "value": "180 mg/dL", "normalRange": "<200 mg/dL", "status": "normal"},
            {"metric": "Vitamin D", "value": "18 ng/mL", "normalRange": "30-50 ng/mL", "status": "abnormal"},
        ],
    },
    "radiology": {
        "keyFindings": ["No acute findings", "Normal organ structure", "Clear lung fields"],
        "riskFactors": ["Previous injury history"],
        "recommendations": ["Physical therapy if needed", "Follow-up in 6 months"],
        "followUpNeeded": False,
        "severity": "normal",
        "confidence": 0.95,
        "dataPoints": [
            {"metric": "Lung Function", "value": "Normal", "normalRange": "Normal", "status": "normal"},
            {"metric": "Bone Density", "value": "Normal", "normalRange": "Normal", "status": "normal"},
        ],
    },
    "neurology": {
        "keyFindings": [
            "Normal cognitive function",
            "No signs of neurological deficit",
            "Reflex responses normal",
        ],
        "riskFactors": ["Age-related changes", "Sleep pattern irregularities"],
        "recommendations": ["Adequate sleep (7-9 hours)", "Mental exercises", "Regular check-ups"],
        "followUpNeeded": False,
        "severity": "normal",
        "confidence": 0.88,
        "dataPoints": [
            {"metric": "Cognitive Score", "value": "28/30", "normalRange": "24-30", "status": "normal"},
            {"metric": "Reflex Response", "value": "Normal", "normalRange": "Normal", "status": "normal"},
        ],
    },
}

DEFAULT_TEMPLATE = "pathology"


def template_for(report_type: str) -> dict:
    """Return a fresh copy of the canned analysis for a report type."""
    return copy.deepcopy(_TEMPLATES.get(report_type, _TEMPLATES[DEFAULT_TEMPLATE]))


# ─────────────────────────── Prompts ──────────────────────────────────────

def system_prompt() -> str:
    return read_text(config.PROMPTS_DIR / "system.md")


def build_analysis_prompt(report: Report) -> str:
    template = read_text(config.PROMPTS_DIR / "report_analysis.md")
    return template.format(
        report_type=report.report_type,
        hospital=report.hospital,
        report_date=report.report_date or to_iso(report.created_at),
        description=report.description or "No description provided",
        file_name=report.file_name,
    )


# ─────────────────────────── Analysis ─────────────────────────────────────

def parse_analysis_response(raw_text: str) -> tuple[Optional[dict], list[str]]:
    """Return (parsed_analysis, errors). parsed_analysis is None when errors is non-empty."""
    parsed = extract_json_from_text(raw_text)
    if parsed is None:
        return None, [f"No JSON found in response. Got: {(raw_text or '')[:200]}"]

    errors = validate(parsed, load_schema(SCHEMA_PATH))
    if errors:
        return None, errors
    return parsed, []


def analyze_report(
    report: Report,
    raw_response: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Build the analysis payload for one report.

    Args:
        report: the report being viewed
        raw_response: optional chat-completion reply text for this report
        now: analysis timestamp (defaults to current UTC time)
    Returns:
        ReportAnalysis dict, with "source" set to "llm" or "template"
    """
    body = None
    source = "template"
    if raw_response is not None:
        body, errors = parse_analysis_response(raw_response)
        if errors:
            logger.warning("Analysis reply for report %s rejected, using template: %s", report.id, errors)
        else:
            source = "llm"
    if body is None:
        body = template_for(report.report_type)

    result = {
        "id": f"analysis_{report.id}",
        "reportId": report.id,
        "reportType": report.report_type,
        "analysisDate": to_iso(now or utcnow()),
        "source": source,
    }
    result.update({k: body[k] for k in _TEMPLATES[DEFAULT_TEMPLATE]})
    return result


def follow_up_due_date(priority: str, now: Optional[datetime] = None) -> str:
    """Due date for an actionable item: high +7 days, medium +30, anything else +90."""
    days = FOLLOW_UP_DAYS.get(priority, FOLLOW_UP_DAYS["low"])
    return to_iso((now or utcnow()) + timedelta(days=days))
