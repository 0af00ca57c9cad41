"""
Rule-based health insights over a patient's report collection.

The engine is a pure function of the reports (and the reference time) it was
built with. Every call recomputes from scratch; nothing is cached or mutated.
"""
import logging
import math
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Optional

from portal import config
from portal.insights.models import (
    HealthInsight,
    HealthSummary,
    ImprovementTip,
    InsightType,
    KeyMetrics,
    Report,
)
from portal.insights.rules import INSIGHT_RULES, TIP_CATALOGUE, InsightContext
from portal.insights.score import compute_health_score
from portal.util.time import as_utc, days_between, utcnow

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


def _round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class InsightsEngine:
    """
    Insights over a fixed report collection at a fixed reference time.

    Naive datetimes (the reference time or a report's created_at) are taken
    as UTC so that comparisons never mix naive and aware values.
    """

    def __init__(
        self,
        reports: Iterable[Report],
        now: Optional[datetime] = None,
        recent_window_days: int = config.RECENT_WINDOW_DAYS,
    ):
        self._reports: tuple[Report, ...] = tuple(
            r._replace(created_at=as_utc(r.created_at)) for r in reports
        )
        self._now = as_utc(now) if now is not None else utcnow()
        self._recent_window = timedelta(days=recent_window_days)

    @property
    def reports(self) -> tuple[Report, ...]:
        return self._reports

    @property
    def now(self) -> datetime:
        return self._now

    # ── Summary ─────────────────────────────────────────────────────────────

    def compute_summary(self) -> HealthSummary:
        if not self._reports:
            return HealthSummary(
                total_reports=0,
                recent_activity=0,
                report_types={},
                average_reports_per_month=0,
                last_report_date=None,
                most_common_hospital="",
            )

        cutoff = self._now - self._recent_window
        recent = sum(1 for r in self._reports if r.created_at >= cutoff)

        report_types = Counter(r.report_type for r in self._reports)
        hospitals = Counter(r.hospital for r in self._reports)
        # most_common keeps first-seen order among equal counts
        most_common_hospital = hospitals.most_common(1)[0][0]

        oldest = min(r.created_at for r in self._reports)
        months = (self._now - oldest).total_seconds() / (DAYS_PER_MONTH * 86400)
        average = len(self._reports) / max(months, 1)

        return HealthSummary(
            total_reports=len(self._reports),
            recent_activity=recent,
            report_types=dict(report_types),
            average_reports_per_month=_round_half_up(average),
            last_report_date=max(r.created_at for r in self._reports),
            most_common_hospital=most_common_hospital,
        )

    def _context(self, summary: Optional[HealthSummary] = None) -> InsightContext:
        summary = summary or self.compute_summary()
        days_since = None
        if summary.last_report_date is not None:
            days_since = days_between(summary.last_report_date, self._now)
        return InsightContext(
            summary=summary,
            type_count=len(summary.report_types),
            hospital_count=len({r.hospital for r in self._reports}),
            days_since_last_report=days_since,
        )

    # ── Insights ────────────────────────────────────────────────────────────

    def generate_insights(self) -> list[HealthInsight]:
        ctx = self._context()
        insights = []
        for rule in INSIGHT_RULES:
            insight = rule.evaluate(ctx)
            if insight is not None:
                insights.append(insight)

        # sorted() is stable, so equal priorities keep rule order
        insights = sorted(insights, key=lambda i: i.priority, reverse=True)
        logger.debug("Generated %d insights from %d reports", len(insights), ctx.total_reports)
        return insights

    def generate_improvement_tips(self) -> list[ImprovementTip]:
        summary = self.compute_summary()
        return [entry.tip for entry in TIP_CATALOGUE if entry.applies(summary)]

    # ── Metrics ─────────────────────────────────────────────────────────────

    def health_score(self) -> tuple[int, dict]:
        """Return (score 0-100, applied adjustments) for the current reports."""
        return compute_health_score(self._context())

    def get_key_metrics(self) -> KeyMetrics:
        summary = self.compute_summary()
        insights = self.generate_insights()
        score, applied = compute_health_score(self._context(summary))
        logger.debug("Health score %d from adjustments %s", score, applied)

        return KeyMetrics(
            health_score=score,
            total_insights=len(insights),
            critical_insights=sum(1 for i in insights if i.type is InsightType.CRITICAL),
            warning_insights=sum(1 for i in insights if i.type is InsightType.WARNING),
            positive_insights=sum(1 for i in insights if i.type is InsightType.POSITIVE),
            average_reports_per_month=summary.average_reports_per_month,
            recent_activity=summary.recent_activity,
        )
