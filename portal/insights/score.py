"""
Health score computation for a patient's report collection.

Computes a 0-100 score from a base of 50 using additive adjustments:
  - Recent activity (last 30 days):        +10
  - At least one report per month:         +10
  - Two or more report types:              +15
  - Five or more reports:                  +10
  - No recent activity (but has reports):  -15
  - Fewer than 0.3 reports per month:      -10  (only once there are reports)
  - Last report over 180 days ago:         -20
  - Last report 91-180 days ago:           -10

All applicable adjustments are summed before clamping.
Band classification: good (>= 80), fair (>= 50), poor (< 50).
"""
from typing import Callable, NamedTuple

from portal.insights.rules import InsightContext

BASE_SCORE = 50


class Adjustment(NamedTuple):
    name: str
    points: int
    applies: Callable[[InsightContext], bool]


def _days_since(ctx: InsightContext) -> int:
    return ctx.days_since_last_report if ctx.days_since_last_report is not None else 0


ADJUSTMENTS: list[Adjustment] = [
    Adjustment("recent_activity", 10, lambda c: c.recent_activity > 0),
    Adjustment("monthly_cadence", 10, lambda c: c.average_per_month >= 1),
    Adjustment("type_diversity", 15, lambda c: c.type_count >= 2),
    Adjustment("report_volume", 10, lambda c: c.total_reports >= 5),
    Adjustment("no_recent_activity", -15, lambda c: c.recent_activity == 0 and c.total_reports > 0),
    Adjustment("low_cadence", -10, lambda c: c.total_reports > 0 and c.average_per_month < 0.3),
    Adjustment("gap_over_180_days", -20, lambda c: _days_since(c) > 180),
    Adjustment("gap_over_90_days", -10, lambda c: 90 < _days_since(c) <= 180),
]


def compute_health_score(ctx: InsightContext) -> tuple[int, dict]:
    """
    Args:
        ctx: insight context built from the current health summary
    Returns:
        (health_score 0-100, applied adjustments {name: points})
    """
    applied: dict[str, int] = {}
    score = BASE_SCORE

    for adj in ADJUSTMENTS:
        if adj.applies(ctx):
            applied[adj.name] = adj.points
            score += adj.points

    return max(0, min(100, score)), applied


def score_band(score: int) -> str:
    if score >= 80:
        return "good"
    if score >= 50:
        return "fair"
    return "poor"
