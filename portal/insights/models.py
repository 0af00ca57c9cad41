"""Record types consumed and produced by the insights engine."""
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional

from portal.util.time import to_iso


class InsightType(str, Enum):
    POSITIVE = "positive"
    WARNING = "warning"
    INFO = "info"
    CRITICAL = "critical"


class InsightCategory(str, Enum):
    FREQUENCY = "frequency"
    TRENDS = "trends"
    GAPS = "gaps"
    RECOMMENDATIONS = "recommendations"


class TipCategory(str, Enum):
    PREVENTIVE = "preventive"
    LIFESTYLE = "lifestyle"
    MONITORING = "monitoring"
    FOLLOWUP = "followup"


class Difficulty(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    CHALLENGING = "challenging"


class Report(NamedTuple):
    """A medical report's metadata, as stored by the portal backend."""
    id: str
    report_type: str
    hospital: str
    created_at: datetime
    report_date: str = ""
    description: Optional[str] = None
    file_name: str = ""
    file_url: str = ""
    file_type: str = ""
    tags: tuple = ()


class HealthSummary(NamedTuple):
    total_reports: int
    recent_activity: int
    report_types: dict
    average_reports_per_month: float
    last_report_date: Optional[datetime]
    most_common_hospital: str

    def to_dict(self) -> dict:
        return {
            "totalReports": self.total_reports,
            "recentActivity": self.recent_activity,
            "reportTypes": dict(self.report_types),
            "averageReportsPerMonth": self.average_reports_per_month,
            "lastReportDate": to_iso(self.last_report_date) if self.last_report_date else None,
            "mostCommonHospital": self.most_common_hospital,
        }


class HealthInsight(NamedTuple):
    id: str
    title: str
    description: str
    type: InsightType
    category: InsightCategory
    priority: int  # 1-5, 5 being highest

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "category": self.category.value,
            "priority": self.priority,
        }


class ImprovementTip(NamedTuple):
    id: str
    title: str
    description: str
    actionable: str
    category: TipCategory
    difficulty: Difficulty

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "actionable": self.actionable,
            "category": self.category.value,
            "difficulty": self.difficulty.value,
        }


class KeyMetrics(NamedTuple):
    health_score: int
    total_insights: int
    critical_insights: int
    warning_insights: int
    positive_insights: int
    average_reports_per_month: float
    recent_activity: int

    def to_dict(self) -> dict:
        return {
            "healthScore": self.health_score,
            "totalInsights": self.total_insights,
            "criticalInsights": self.critical_insights,
            "warningInsights": self.warning_insights,
            "positiveInsights": self.positive_insights,
            "averageReportsPerMonth": self.average_reports_per_month,
            "recentActivity": self.recent_activity,
        }
