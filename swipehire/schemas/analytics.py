from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

SessionType = Literal["manual", "ai_assisted", "collaborative"]
SessionStatus = Literal["in_progress", "completed", "abandoned"]
EventType = Literal[
    "session_start",
    "suggestion_applied",
    "template_selected",
    "analysis_completed",
    "session_abandoned",
]
InsightType = Literal["success_pattern", "improvement_opportunity", "benchmark_comparison", "trend_prediction"]
Level = Literal["low", "medium", "high"]
Difficulty = Literal["easy", "medium", "hard"]
ReportType = Literal["user_progress", "benchmark_comparison", "trend_analysis", "custom"]
ReportFormat = Literal["pdf", "csv", "json", "excel"]
TimeRange = Literal["day", "week", "month", "quarter", "year"]


class ResumeAnalysisSnapshot(BaseModel):
    overall_score: float = Field(ge=0, le=100)
    ats_score: float = Field(ge=0, le=100)
    keyword_score: float = Field(default=0, ge=0, le=100)
    grammar_score: float = Field(default=0, ge=0, le=100)
    format_score: float = Field(default=0, ge=0, le=100)
    quantitative_score: float = Field(default=0, ge=0, le=100)
    strengths_count: int = 0
    weaknesses_count: int = 0
    suggestions_count: int = 0
    word_count: int = 0
    section_count: int = 0
    timestamp: datetime | None = None


class OptimizationSession(BaseModel):
    id: str
    user_id: str
    resume_id: str
    session_start: datetime
    session_end: datetime | None = None
    before_analysis: ResumeAnalysisSnapshot
    after_analysis: ResumeAnalysisSnapshot | None = None
    suggestions_applied: int = 0
    suggestions_total: int = 0
    improvement_score: int = 0
    time_spent: int = 0
    template_used: str | None = None
    target_role: str = ""
    target_industry: str = ""
    session_type: SessionType = "manual"
    status: SessionStatus = "in_progress"


class SessionCreateRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)
    resume_id: str | None = Field(default=None, max_length=100)
    before_analysis: ResumeAnalysisSnapshot
    suggestions_total: int = Field(default=0, ge=0)
    target_role: str = Field(min_length=1, max_length=200)
    target_industry: str = Field(min_length=1, max_length=100)
    session_type: SessionType = "manual"
    template_used: str | None = Field(default=None, max_length=100)


class SessionCreateResponse(BaseModel):
    session_id: str


class SessionUpdateRequest(BaseModel):
    session_id: str = Field(min_length=1, max_length=100)
    after_analysis: ResumeAnalysisSnapshot | None = None
    suggestions_applied: int | None = Field(default=None, ge=0)
    status: SessionStatus | None = None
    time_spent: int | None = Field(default=None, ge=0)
    template_used: str | None = Field(default=None, max_length=100)


class SessionPage(BaseModel):
    items: list[OptimizationSession]
    total: int
    page: int
    limit: int


class AnalyticsEvent(BaseModel):
    event_id: str
    user_id: str
    session_id: str | None = None
    event_type: EventType
    event_data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    source: Literal["web", "mobile", "api"] = "web"
    metadata: dict[str, Any] = Field(default_factory=dict)


class EventTrackRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=100)
    session_id: str | None = Field(default=None, max_length=100)
    event_type: EventType
    event_data: dict[str, Any] = Field(default_factory=dict)
    source: Literal["web", "mobile", "api"] = "api"


class AnalyticsFilter(BaseModel):
    start: datetime | None = None
    end: datetime | None = None
    industries: list[str] = Field(default_factory=list)
    roles: list[str] = Field(default_factory=list)
    session_types: list[SessionType] = Field(default_factory=list)
    only_completed: bool = False
    min_improvement_score: int | None = None


class OverviewMetrics(BaseModel):
    total_sessions: int
    average_improvement: int
    success_rate: int
    time_spent: int


class TrendPoint(BaseModel):
    timestamp: datetime
    value: float
    label: str


class TrendComparison(BaseModel):
    current: float = 0
    previous: float = 0
    change: float = 0
    change_percentage: float = 0


class AnalyticsTrend(BaseModel):
    period: Literal["daily", "weekly", "monthly", "quarterly"] = "weekly"
    data: list[TrendPoint] = Field(default_factory=list)
    comparison: TrendComparison = Field(default_factory=TrendComparison)


class DashboardTrends(BaseModel):
    improvements: AnalyticsTrend
    usage: AnalyticsTrend
    success_rate: AnalyticsTrend


class BenchmarkImprovement(BaseModel):
    suggestion: str
    potential_gain: int
    difficulty: Difficulty


class BenchmarkData(BaseModel):
    category: Literal["industry", "role", "experience_level", "overall"]
    label: str
    user_score: int
    average_score: int
    top_percentile_score: int
    rank: int
    total_participants: int
    improvements: list[BenchmarkImprovement] = Field(default_factory=list)


class AIInsight(BaseModel):
    id: str
    type: InsightType
    title: str
    description: str
    confidence: float = Field(ge=0, le=1)
    impact: Level
    actionable: bool
    recommendations: list[str] = Field(default_factory=list)
    supporting_data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    tags: list[str] = Field(default_factory=list)


class TemplatePerformance(BaseModel):
    template_id: str
    template_name: str
    usage_count: int
    average_improvement: int
    success_rate: int


class SkillImprovement(BaseModel):
    skill: str
    improvement_score: float
    frequency: int
    trend_direction: Literal["up", "down", "stable"]


class AnalyticsDashboardData(BaseModel):
    overview: OverviewMetrics
    trends: DashboardTrends
    benchmarks: list[BenchmarkData]
    insights: list[AIInsight]
    recent_sessions: list[OptimizationSession]
    top_performing_templates: list[TemplatePerformance]
    skills_analysis: list[SkillImprovement]


class RealTimeMetric(BaseModel):
    id: str
    name: str
    value: float
    unit: str
    timestamp: datetime
    change: float
    change_type: Literal["increase", "decrease", "stable"]


class SuggestedAction(BaseModel):
    action: str
    expected_gain: int
    effort: Level


class PredictionTimeline(BaseModel):
    immediate: float = 0
    short_term: float = 0
    medium_term: float = 0


class ImprovementPrediction(BaseModel):
    session_id: str
    predicted_improvement: float = Field(ge=0, le=100)
    confidence: float = Field(ge=0, le=1)
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)
    timeline: PredictionTimeline = Field(default_factory=PredictionTimeline)


class PredictionRequest(BaseModel):
    current_analysis: ResumeAnalysisSnapshot
    target_role: str = Field(min_length=1, max_length=200)
    target_industry: str = Field(min_length=1, max_length=100)
    user_history: list[OptimizationSession] = Field(default_factory=list, max_length=200)


class ReportSection(BaseModel):
    name: str
    type: Literal["chart", "table", "insights", "summary"]
    data: Any


class AnalyticsReport(BaseModel):
    id: str
    title: str
    description: str
    report_type: ReportType
    format: ReportFormat
    generated_at: datetime
    data_range: dict[str, datetime | None]
    sections: list[ReportSection]
    insights: list[AIInsight]
    recommendations: list[str]


class ReportRequest(BaseModel):
    report_type: ReportType = "user_progress"
    format: ReportFormat = "json"
    filters: AnalyticsFilter = Field(default_factory=AnalyticsFilter)
