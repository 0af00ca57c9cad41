"""
Insight rule table and improvement tip catalogue.

Each insight rule is an independent (predicate, template) pair evaluated against an
InsightContext. Rules are not mutually exclusive; several may fire for the same
report collection. The engine sorts fired insights by priority afterwards.

Tips are listed in display order. A tip with no predicate is always included.
"""
from typing import Callable, NamedTuple, Optional

from portal.insights.models import (
    Difficulty,
    HealthInsight,
    HealthSummary,
    ImprovementTip,
    InsightCategory,
    InsightType,
    TipCategory,
)


class InsightContext(NamedTuple):
    summary: HealthSummary
    type_count: int
    hospital_count: int
    days_since_last_report: Optional[int]

    @property
    def total_reports(self) -> int:
        return self.summary.total_reports

    @property
    def recent_activity(self) -> int:
        return self.summary.recent_activity

    @property
    def average_per_month(self) -> float:
        return self.summary.average_reports_per_month

    def template_fields(self) -> dict:
        types = list(self.summary.report_types)
        return {
            "recent": self.recent_activity,
            "first_type": types[0] if types else "",
            "type_count": self.type_count,
            "average": f"{self.average_per_month:g}",
            "hospital": self.summary.most_common_hospital,
            "days": self.days_since_last_report,
        }


class InsightRule(NamedTuple):
    predicate: Callable[[InsightContext], bool]
    id: str
    title: str
    description: str
    type: InsightType
    category: InsightCategory
    priority: int

    def evaluate(self, ctx: InsightContext) -> Optional[HealthInsight]:
        if not self.predicate(ctx):
            return None
        return HealthInsight(
            id=self.id,
            title=self.title,
            description=self.description.format(**ctx.template_fields()),
            type=self.type,
            category=self.category,
            priority=self.priority,
        )


def _gap_over(days: int) -> Callable[[InsightContext], bool]:
    return lambda c: c.days_since_last_report is not None and c.days_since_last_report > days


INSIGHT_RULES: list[InsightRule] = [
    InsightRule(
        predicate=lambda c: c.recent_activity == 0 and c.total_reports > 0,
        id="no-recent-activity",
        title="No Recent Medical Activity",
        description="You haven't uploaded any medical reports in the last 30 days.",
        type=InsightType.INFO,
        category=InsightCategory.FREQUENCY,
        priority=2,
    ),
    InsightRule(
        predicate=lambda c: c.recent_activity > 3,
        id="high-activity",
        title="Increased Medical Activity",
        description="You've uploaded {recent} reports in the last 30 days. This is higher than usual.",
        type=InsightType.WARNING,
        category=InsightCategory.FREQUENCY,
        priority=3,
    ),
    InsightRule(
        predicate=lambda c: c.type_count == 1 and c.total_reports > 5,
        id="limited-diversity",
        title="Limited Report Diversity",
        description=(
            "All your reports are {first_type} type. "
            "Consider comprehensive health checkups with different specialties."
        ),
        type=InsightType.INFO,
        category=InsightCategory.GAPS,
        priority=2,
    ),
    InsightRule(
        predicate=lambda c: c.type_count >= 4,
        id="comprehensive-care",
        title="Comprehensive Healthcare Monitoring",
        description=(
            "Great job! You're monitoring multiple aspects of your health "
            "with {type_count} different report types."
        ),
        type=InsightType.POSITIVE,
        category=InsightCategory.TRENDS,
        priority=1,
    ),
    InsightRule(
        predicate=lambda c: c.average_per_month > 2,
        id="frequent-monitoring",
        title="Active Health Monitoring",
        description="You're averaging {average} reports per month, showing good health awareness.",
        type=InsightType.POSITIVE,
        category=InsightCategory.FREQUENCY,
        priority=1,
    ),
    InsightRule(
        predicate=lambda c: c.average_per_month < 0.5 and c.total_reports > 3,
        id="infrequent-monitoring",
        title="Infrequent Health Monitoring",
        description="Consider more regular health checkups to maintain optimal health tracking.",
        type=InsightType.INFO,
        category=InsightCategory.FREQUENCY,
        priority=3,
    ),
    InsightRule(
        predicate=lambda c: c.hospital_count == 1 and c.total_reports > 3,
        id="single-provider",
        title="Single Healthcare Provider",
        description=(
            "All reports are from {hospital}. "
            "Consider getting second opinions for complex conditions."
        ),
        type=InsightType.INFO,
        category=InsightCategory.RECOMMENDATIONS,
        priority=2,
    ),
    InsightRule(
        predicate=_gap_over(90),
        id="long-gap",
        title="Long Gap Since Last Report",
        description=(
            "It's been {days} days since your last report. "
            "Consider scheduling a routine checkup."
        ),
        type=InsightType.WARNING,
        category=InsightCategory.GAPS,
        priority=3,
    ),
]


class TipEntry(NamedTuple):
    tip: ImprovementTip
    predicate: Optional[Callable[[HealthSummary], bool]] = None

    def applies(self, summary: HealthSummary) -> bool:
        return self.predicate is None or self.predicate(summary)


TIP_CATALOGUE: list[TipEntry] = [
    TipEntry(ImprovementTip(
        id="regular-checkups",
        title="Schedule Regular Health Checkups",
        description="Maintain a consistent schedule for preventive healthcare visits.",
        actionable="Book annual physical exams and follow recommended screening schedules for your age group.",
        category=TipCategory.PREVENTIVE,
        difficulty=Difficulty.EASY,
    )),
    TipEntry(ImprovementTip(
        id="organize-reports",
        title="Keep Reports Organized",
        description="Maintain a systematic approach to managing your medical records.",
        actionable="Use the tagging feature and add detailed descriptions to make reports easier to find.",
        category=TipCategory.MONITORING,
        difficulty=Difficulty.EASY,
    )),
    TipEntry(ImprovementTip(
        id="track-trends",
        title="Monitor Health Trends",
        description="With multiple recent reports, track changes in your health metrics over time.",
        actionable=(
            "Compare similar test results across different dates to identify trends "
            "and discuss them with your healthcare provider."
        ),
        category=TipCategory.MONITORING,
        difficulty=Difficulty.MODERATE,
    ), predicate=lambda s: s.recent_activity > 2),
    TipEntry(ImprovementTip(
        id="lab-tracking",
        title="Track Laboratory Results",
        description="Create a personal health log for important lab values.",
        actionable=(
            "Keep a spreadsheet or use a health app to track key metrics like cholesterol, "
            "blood sugar, and other relevant markers."
        ),
        category=TipCategory.MONITORING,
        difficulty=Difficulty.MODERATE,
    ), predicate=lambda s: "pathology" in s.report_types),
    TipEntry(ImprovementTip(
        id="imaging-followup",
        title="Follow Up on Imaging Results",
        description="Ensure proper follow-up for any imaging studies.",
        actionable=(
            "Always discuss imaging results with your doctor and ask about any necessary "
            "follow-up actions or lifestyle changes."
        ),
        category=TipCategory.FOLLOWUP,
        difficulty=Difficulty.EASY,
    ), predicate=lambda s: "radiology" in s.report_types),
    TipEntry(ImprovementTip(
        id="emergency-access",
        title="Prepare for Emergency Access",
        description="Ensure your medical information is accessible during emergencies.",
        actionable=(
            "Share access with trusted family members and keep a summary of key medical "
            "information readily available."
        ),
        category=TipCategory.PREVENTIVE,
        difficulty=Difficulty.MODERATE,
    )),
    TipEntry(ImprovementTip(
        id="lifestyle-integration",
        title="Integrate Health Data with Lifestyle",
        description="Use your medical reports to make informed lifestyle decisions.",
        actionable=(
            "Based on your reports, work with healthcare providers to develop personalized "
            "diet, exercise, and wellness plans."
        ),
        category=TipCategory.LIFESTYLE,
        difficulty=Difficulty.CHALLENGING,
    )),
    TipEntry(ImprovementTip(
        id="second-opinions",
        title="Seek Second Opinions When Needed",
        description="Don't hesitate to get additional medical perspectives for important decisions.",
        actionable=(
            "For significant diagnoses or treatment recommendations, consider consulting "
            "another specialist in the same field."
        ),
        category=TipCategory.FOLLOWUP,
        difficulty=Difficulty.MODERATE,
    )),
]
