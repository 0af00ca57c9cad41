"""Session-scoped payloads for the insights widget and the report viewer."""
import logging
from datetime import datetime
from typing import Iterable, Optional

from portal.analysis.health_insights import generate_health_insights
from portal.analysis.report_analysis import analyze_report
from portal.auth.session import Session
from portal.insights.engine import InsightsEngine
from portal.insights.models import Report
from portal.insights.score import score_band
from portal.util.time import to_iso, utcnow

logger = logging.getLogger(__name__)


def build_dashboard(session: Session, reports: Iterable[Report], now: Optional[datetime] = None) -> dict:
    """JSON-ready summary, insights, tips and key metrics for the signed-in user."""
    session.require_active()
    engine = InsightsEngine(reports, now=now)
    metrics = engine.get_key_metrics()

    payload = {
        "userId": session.user_id,
        "generatedAt": to_iso(engine.now),
        "summary": engine.compute_summary().to_dict(),
        "insights": [i.to_dict() for i in engine.generate_insights()],
        "tips": [t.to_dict() for t in engine.generate_improvement_tips()],
        "metrics": metrics.to_dict(),
        "scoreBand": score_band(metrics.health_score),
    }
    logger.info(
        "Dashboard for %s: %d reports, score=%d",
        session.user_id, len(engine.reports), metrics.health_score,
    )
    return payload


def open_report(
    session: Session,
    report: Report,
    raw_response: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """PIN-gated analysis view of a single report."""
    session.require_unlocked()
    return {
        "report": _report_view(report),
        "analysis": analyze_report(report, raw_response=raw_response, now=now),
    }


def build_analysis_page(
    session: Session,
    reports: Iterable[Report],
    insights_response: Optional[str] = None,
    report_responses: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    PIN-gated analysis page: one analysis per report plus collection-wide health insights.

    report_responses maps report id to that report's chat-completion reply;
    reports without one use their canned analysis.
    """
    session.require_unlocked()
    reports = list(reports)
    report_responses = report_responses or {}
    now = now or utcnow()

    analyses = [
        analyze_report(r, raw_response=report_responses.get(r.id), now=now)
        for r in reports
    ]
    insights = generate_health_insights(reports, raw_response=insights_response, now=now)
    logger.info(
        "Analysis page for %s: %d reports, %d insights",
        session.user_id, len(reports), len(insights),
    )
    return {
        "userId": session.user_id,
        "generatedAt": to_iso(now),
        "reports": [_report_view(r) for r in reports],
        "analyses": analyses,
        "healthInsights": insights,
    }


def _report_view(report: Report) -> dict:
    return {
        "id": report.id,
        "reportType": report.report_type,
        "hospital": report.hospital,
        "createdAt": to_iso(report.created_at),
        "fileName": report.file_name,
        "fileUrl": report.file_url,
    }
