from __future__ import annotations

import json
import logging
import math
import threading
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from swipehire.core.scoring import get_scoring_value, round_half_up
from swipehire.schemas.analytics import (
    AIInsight,
    AnalyticsDashboardData,
    AnalyticsEvent,
    AnalyticsFilter,
    AnalyticsReport,
    AnalyticsTrend,
    BenchmarkData,
    BenchmarkImprovement,
    DashboardTrends,
    ImprovementPrediction,
    OptimizationSession,
    OverviewMetrics,
    PredictionTimeline,
    RealTimeMetric,
    ReportSection,
    ResumeAnalysisSnapshot,
    SessionCreateRequest,
    SessionUpdateRequest,
    SkillImprovement,
    SuggestedAction,
    TemplatePerformance,
    TrendComparison,
    TrendPoint,
)
from swipehire.services.llm import clamp_float, json_completion, safe_str, safe_str_list

logger = logging.getLogger(__name__)

Subscriber = Callable[[dict[str, Any]], None]

TIME_RANGE_DAYS = {"day": 1, "week": 7, "month": 30, "quarter": 90, "year": 365}

_INSIGHT_TYPES = {"success_pattern", "improvement_opportunity", "benchmark_comparison", "trend_prediction"}
_LEVELS = {"low", "medium", "high"}

_SKILL_FIELDS = (
    ("Keyword Optimization", "keyword_score"),
    ("ATS Compatibility", "ats_score"),
    ("Grammar", "grammar_score"),
    ("Formatting", "format_score"),
    ("Quantified Achievements", "quantitative_score"),
)

_INSIGHTS_SYSTEM_PROMPT = (
    "You analyze resume optimization sessions and produce actionable insights. "
    'Return strict JSON: {"insights": [{"type": "success_pattern|improvement_opportunity|'
    'benchmark_comparison|trend_prediction", "title": string, "description": string, '
    '"confidence": 0-1 number, "impact": "low|medium|high", "recommendations": [string], '
    '"supporting_data": object}]}. Return at most 6 insights.'
)

_PREDICTION_SYSTEM_PROMPT = (
    "You predict how much a resume can improve through optimization. "
    'Return strict JSON: {"predicted_improvement": 0-100 number, "confidence": 0-1 number, '
    '"suggested_actions": [{"action": string, "expected_gain": integer, "effort": "low|medium|high"}], '
    '"timeline": {"immediate": number, "short_term": number, "medium_term": number}}.'
)


class SessionNotFoundError(LookupError):
    pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def calculate_improvement_score(before: ResumeAnalysisSnapshot, after: ResumeAnalysisSnapshot) -> int:
    weights = get_scoring_value("analytics.improvement_weights", {}) or {}
    return round_half_up(
        (after.overall_score - before.overall_score) * float(weights.get("overall", 0.4))
        + (after.ats_score - before.ats_score) * float(weights.get("ats", 0.3))
        + (after.keyword_score - before.keyword_score) * float(weights.get("keyword", 0.3))
    )


def average_improvement(sessions: list[OptimizationSession]) -> int:
    if not sessions:
        return 0
    return round_half_up(sum(session.improvement_score for session in sessions) / len(sessions))


def success_rate(sessions: list[OptimizationSession]) -> int:
    if not sessions:
        return 0
    successful = sum(1 for session in sessions if session.improvement_score > 0)
    return round_half_up(successful / len(sessions) * 100)


def top_quartile(values: list[float]) -> float:
    ordered = sorted(values, reverse=True)
    index = math.floor(len(ordered) * float(get_scoring_value("analytics.top_quartile", 0.25)))
    if index >= len(ordered):
        return 0
    return ordered[index]


def calculate_rank(user_value: float, values: list[float]) -> int:
    """1-based position of the first value not above the user's; len + 1 when none."""
    ordered = sorted(values, reverse=True)
    for position, value in enumerate(ordered, start=1):
        if value <= user_value:
            return position
    return len(ordered) + 1


def _week_start(moment: datetime) -> datetime:
    day = _aware(moment).astimezone(timezone.utc)
    start = day - timedelta(days=day.weekday())
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def _comparison(points: list[TrendPoint]) -> TrendComparison:
    if not points:
        return TrendComparison()
    current = points[-1].value
    previous = points[-2].value if len(points) > 1 else 0
    change = round(current - previous, 2)
    change_percentage = round(change / previous * 100, 1) if previous else 0
    return TrendComparison(current=current, previous=previous, change=change, change_percentage=change_percentage)


def _weekly_trend(sessions: list[OptimizationSession], metric: Callable[[list[OptimizationSession]], float]) -> AnalyticsTrend:
    buckets: dict[datetime, list[OptimizationSession]] = {}
    for session in sessions:
        buckets.setdefault(_week_start(session.session_start), []).append(session)
    points = [
        TrendPoint(timestamp=week, value=float(metric(items)), label=f"Week of {week.date().isoformat()}")
        for week, items in sorted(buckets.items())
    ]
    return AnalyticsTrend(period="weekly", data=points, comparison=_comparison(points))


def calculate_trends(sessions: list[OptimizationSession]) -> DashboardTrends:
    return DashboardTrends(
        improvements=_weekly_trend(
            sessions, lambda items: average_improvement([item for item in items if item.status == "completed"])
        ),
        usage=_weekly_trend(sessions, len),
        success_rate=_weekly_trend(sessions, success_rate),
    )


def overview_metrics(sessions: list[OptimizationSession]) -> OverviewMetrics:
    completed = [session for session in sessions if session.status == "completed"]
    return OverviewMetrics(
        total_sessions=len(sessions),
        average_improvement=average_improvement(completed),
        success_rate=success_rate(sessions),
        time_spent=sum(session.time_spent for session in sessions),
    )


def top_templates(sessions: list[OptimizationSession]) -> list[TemplatePerformance]:
    stats: dict[str, dict[str, int]] = {}
    for session in sessions:
        if not session.template_used:
            continue
        entry = stats.setdefault(session.template_used, {"usage": 0, "total": 0, "success": 0})
        entry["usage"] += 1
        entry["total"] += session.improvement_score
        if session.improvement_score > 0:
            entry["success"] += 1
    output = [
        TemplatePerformance(
            template_id=template_id,
            template_name=f"Template {template_id}",
            usage_count=entry["usage"],
            average_improvement=round_half_up(entry["total"] / entry["usage"]),
            success_rate=round_half_up(entry["success"] / entry["usage"] * 100),
        )
        for template_id, entry in stats.items()
    ]
    output.sort(key=lambda item: (item.average_improvement, item.usage_count), reverse=True)
    return output


def skills_analysis(sessions: list[OptimizationSession]) -> list[SkillImprovement]:
    scored = [session for session in sessions if session.after_analysis is not None]
    if not scored:
        return []
    output: list[SkillImprovement] = []
    for label, field in _SKILL_FIELDS:
        deltas = [getattr(s.after_analysis, field) - getattr(s.before_analysis, field) for s in scored]
        average = round(sum(deltas) / len(deltas), 1)
        output.append(
            SkillImprovement(
                skill=label,
                improvement_score=average,
                frequency=sum(1 for delta in deltas if delta > 0),
                trend_direction="up" if average > 0 else "down" if average < 0 else "stable",
            )
        )
    output.sort(key=lambda item: item.improvement_score, reverse=True)
    return output


def _session_digest(session: OptimizationSession) -> dict[str, Any]:
    return {
        "improvement_score": session.improvement_score,
        "suggestions_applied": session.suggestions_applied,
        "suggestions_total": session.suggestions_total,
        "time_spent": session.time_spent,
        "target_role": session.target_role,
        "target_industry": session.target_industry,
        "session_type": session.session_type,
        "status": session.status,
        "before_score": session.before_analysis.overall_score,
        "after_score": session.after_analysis.overall_score if session.after_analysis else None,
    }


def fallback_insights(sessions: list[OptimizationSession]) -> list[AIInsight]:
    return [
        AIInsight(
            id=_new_id("insight"),
            type="improvement_opportunity",
            title="Increase Session Completion Rate",
            description="Focus on completing optimization sessions to see better results",
            confidence=0.8,
            impact="medium",
            actionable=True,
            recommendations=["Set aside dedicated time for resume optimization"],
            supporting_data={"completion_rate": success_rate(sessions)},
            timestamp=_utc_now(),
            tags=["completion", "engagement"],
        )
    ]


def generate_insights(sessions: list[OptimizationSession]) -> list[AIInsight]:
    if not sessions:
        return []
    payload = json_completion(
        system_prompt=_INSIGHTS_SYSTEM_PROMPT,
        user_prompt="Sessions data:\n" + json.dumps([_session_digest(s) for s in sessions[-50:]], default=str),
        temperature=0.2,
        max_output_tokens=1500,
        feature="analytics_insights",
        required_keys=("insights",),
    )
    raw_items = payload.get("insights") if payload else None
    if not isinstance(raw_items, list):
        return fallback_insights(sessions)

    insights: list[AIInsight] = []
    for raw in raw_items[:6]:
        if not isinstance(raw, dict):
            continue
        title = safe_str(raw.get("title"), max_len=120)
        if not title or raw.get("type") not in _INSIGHT_TYPES:
            continue
        impact = raw.get("impact") if raw.get("impact") in _LEVELS else "medium"
        recommendations = safe_str_list(raw.get("recommendations"), max_items=5)
        supporting = raw.get("supporting_data") if isinstance(raw.get("supporting_data"), dict) else {}
        insights.append(
            AIInsight(
                id=_new_id("insight"),
                type=raw["type"],
                title=title,
                description=safe_str(raw.get("description"), max_len=600),
                confidence=clamp_float(raw.get("confidence"), 0.5, 0.0, 1.0),
                impact=impact,
                actionable=bool(recommendations),
                recommendations=recommendations,
                supporting_data=supporting,
                timestamp=_utc_now(),
                tags=[raw["type"], impact],
            )
        )
    return insights or fallback_insights(sessions)


def fallback_prediction(analysis: ResumeAnalysisSnapshot) -> ImprovementPrediction:
    timeline = get_scoring_value("analytics.prediction.timeline_days", {}) or {}
    headroom = max(0.0, 100 - analysis.overall_score)
    return ImprovementPrediction(
        session_id=_new_id("session"),
        predicted_improvement=round(headroom * float(get_scoring_value("analytics.prediction.headroom_factor", 0.6)), 1),
        confidence=float(get_scoring_value("analytics.prediction.confidence", 0.7)),
        suggested_actions=[
            SuggestedAction(action="Improve keyword optimization", expected_gain=15, effort="medium"),
            SuggestedAction(action="Enhance quantitative achievements", expected_gain=20, effort="high"),
        ],
        timeline=PredictionTimeline(
            immediate=float(timeline.get("low", 10)),
            short_term=float(timeline.get("medium", 25)),
            medium_term=float(timeline.get("high", 40)),
        ),
    )


def predict_improvement(
    current: ResumeAnalysisSnapshot,
    target_role: str,
    target_industry: str,
    history: list[OptimizationSession] | None = None,
) -> ImprovementPrediction:
    prompt = (
        f"Current analysis:\n{current.model_dump_json()}\n\n"
        f"Target role: {target_role}\nTarget industry: {target_industry}\n\n"
        "Historical performance:\n" + json.dumps([_session_digest(s) for s in (history or [])[-50:]], default=str)
    )
    payload = json_completion(
        system_prompt=_PREDICTION_SYSTEM_PROMPT,
        user_prompt=prompt,
        temperature=0.2,
        max_output_tokens=800,
        feature="analytics_prediction",
        required_keys=("predicted_improvement",),
    )
    if not payload:
        return fallback_prediction(current)

    actions: list[SuggestedAction] = []
    for raw in payload.get("suggested_actions") or []:
        if not isinstance(raw, dict):
            continue
        action = safe_str(raw.get("action"), max_len=200)
        if not action:
            continue
        actions.append(
            SuggestedAction(
                action=action,
                expected_gain=int(clamp_float(raw.get("expected_gain"), 0, 0, 100)),
                effort=raw.get("effort") if raw.get("effort") in _LEVELS else "medium",
            )
        )
    raw_timeline = payload.get("timeline") if isinstance(payload.get("timeline"), dict) else {}
    return ImprovementPrediction(
        session_id=_new_id("session"),
        predicted_improvement=clamp_float(payload.get("predicted_improvement"), 0.0, 0.0, 100.0),
        confidence=clamp_float(payload.get("confidence"), 0.5, 0.0, 1.0),
        suggested_actions=actions[:8],
        timeline=PredictionTimeline(
            immediate=clamp_float(raw_timeline.get("immediate"), 0.0, 0.0, 100.0),
            short_term=clamp_float(raw_timeline.get("short_term"), 0.0, 0.0, 100.0),
            medium_term=clamp_float(raw_timeline.get("medium_term"), 0.0, 0.0, 100.0),
        ),
    )


def filter_for_time_range(time_range: str, start: datetime | None = None, end: datetime | None = None) -> AnalyticsFilter:
    now = _utc_now()
    days = TIME_RANGE_DAYS.get(time_range, 30)
    return AnalyticsFilter(start=start or now - timedelta(days=days), end=end or now)


class ResumeAnalyticsStore:
    """In-process session and event store; data lives as long as the worker process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[str, OptimizationSession] = {}
        self._events: dict[str, AnalyticsEvent] = {}
        self._subscribers: list[Subscriber] = []

    def reset(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._events.clear()
            self._subscribers.clear()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, update: dict[str, Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(update)
            except Exception:
                logger.exception("analytics_subscriber_failed type=%s", update.get("type"))

    def track_event(
        self,
        *,
        user_id: str,
        event_type: str,
        session_id: str | None = None,
        event_data: dict[str, Any] | None = None,
        source: str = "web",
        metadata: dict[str, Any] | None = None,
    ) -> AnalyticsEvent:
        event = AnalyticsEvent(
            event_id=_new_id("event"),
            user_id=user_id,
            session_id=session_id,
            event_type=event_type,
            event_data=event_data or {},
            timestamp=_utc_now(),
            source=source,
            metadata=metadata or {},
        )
        with self._lock:
            self._events[event.event_id] = event
        self._notify({"type": "new_event", "data": event.model_dump(mode="json")})
        return event

    def track_session(self, request: SessionCreateRequest) -> str:
        session = OptimizationSession(
            id=_new_id("session"),
            user_id=request.user_id,
            resume_id=request.resume_id or _new_id("resume"),
            session_start=_utc_now(),
            before_analysis=request.before_analysis,
            suggestions_total=request.suggestions_total,
            template_used=request.template_used,
            target_role=request.target_role,
            target_industry=request.target_industry,
            session_type=request.session_type,
        )
        with self._lock:
            self._sessions[session.id] = session
        self.track_event(
            user_id=session.user_id,
            session_id=session.id,
            event_type="session_start",
            event_data={"target_role": session.target_role, "target_industry": session.target_industry},
        )
        logger.info("analytics_session_started session_id=%s user_id=%s", session.id, session.user_id)
        return session.id

    def update_session(self, request: SessionUpdateRequest) -> OptimizationSession:
        with self._lock:
            session = self._sessions.get(request.session_id)
            if session is None:
                raise SessionNotFoundError(request.session_id)

            changes = request.model_dump(exclude_none=True, exclude={"session_id", "after_analysis"})
            if request.after_analysis is not None:
                changes["after_analysis"] = request.after_analysis
                changes["improvement_score"] = calculate_improvement_score(
                    session.before_analysis, request.after_analysis
                )
            completing = request.status == "completed" and session.session_end is None
            if completing:
                ended = _utc_now()
                changes["session_end"] = ended
                changes["time_spent"] = round_half_up((ended - session.session_start).total_seconds())
            updated = session.model_copy(update=changes)
            self._sessions[updated.id] = updated

        self._notify({"type": "session_update", "session_id": updated.id, "data": updated.model_dump(mode="json")})
        if completing:
            self.track_event(
                user_id=updated.user_id,
                session_id=updated.id,
                event_type="analysis_completed",
                event_data={
                    "improvement_score": updated.improvement_score,
                    "suggestions_applied": updated.suggestions_applied,
                    "time_spent": updated.time_spent,
                },
            )
        elif request.status == "abandoned" and session.status != "abandoned":
            self.track_event(user_id=updated.user_id, session_id=updated.id, event_type="session_abandoned")
        return updated

    def get_session(self, session_id: str) -> OptimizationSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def all_sessions(self) -> list[OptimizationSession]:
        with self._lock:
            sessions = list(self._sessions.values())
        sessions.sort(key=lambda item: item.session_start)
        return sessions

    def events(self, *, session_id: str | None = None) -> list[AnalyticsEvent]:
        with self._lock:
            items = list(self._events.values())
        if session_id:
            items = [event for event in items if event.session_id == session_id]
        items.sort(key=lambda item: item.timestamp)
        return items

    def filtered_sessions(self, filters: AnalyticsFilter | None = None) -> list[OptimizationSession]:
        sessions = self.all_sessions()
        if filters is None:
            return sessions
        if filters.start is not None:
            start = _aware(filters.start)
            sessions = [s for s in sessions if s.session_start >= start]
        if filters.end is not None:
            end = _aware(filters.end)
            sessions = [s for s in sessions if s.session_start <= end]
        if filters.industries:
            sessions = [s for s in sessions if s.target_industry in filters.industries]
        if filters.roles:
            sessions = [s for s in sessions if s.target_role in filters.roles]
        if filters.session_types:
            sessions = [s for s in sessions if s.session_type in filters.session_types]
        if filters.only_completed:
            sessions = [s for s in sessions if s.status == "completed"]
        if filters.min_improvement_score is not None:
            sessions = [s for s in sessions if s.improvement_score >= filters.min_improvement_score]
        return sessions

    def list_sessions(
        self,
        *,
        user_id: str | None = None,
        status: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[OptimizationSession], int]:
        sessions = self.all_sessions()
        if user_id:
            sessions = [s for s in sessions if s.user_id == user_id]
        if status:
            sessions = [s for s in sessions if s.status == status]
        return sessions[offset : offset + limit], len(sessions)

    def benchmarks(self, sessions: list[OptimizationSession]) -> list[BenchmarkData]:
        everyone = self.all_sessions()
        scores = [float(s.improvement_score) for s in everyone]
        user_avg = average_improvement(sessions)
        output = [
            BenchmarkData(
                category="overall",
                label="Overall Improvement",
                user_score=user_avg,
                average_score=average_improvement(everyone),
                top_percentile_score=round_half_up(top_quartile(scores)),
                rank=calculate_rank(user_avg, scores),
                total_participants=len(everyone),
                improvements=[
                    BenchmarkImprovement(
                        suggestion="Apply more AI suggestions per session", potential_gain=15, difficulty="easy"
                    ),
                    BenchmarkImprovement(
                        suggestion="Focus on quantitative achievements", potential_gain=20, difficulty="medium"
                    ),
                ],
            )
        ]

        industries = sorted({s.target_industry for s in everyone if s.target_industry})
        for industry in industries:
            mine = [s for s in sessions if s.target_industry == industry]
            if not mine:
                continue
            peers = [s for s in everyone if s.target_industry == industry]
            peer_scores = [float(s.improvement_score) for s in peers]
            mine_avg = average_improvement(mine)
            output.append(
                BenchmarkData(
                    category="industry",
                    label=f"{industry} Industry",
                    user_score=mine_avg,
                    average_score=average_improvement(peers),
                    top_percentile_score=round_half_up(top_quartile(peer_scores)),
                    rank=calculate_rank(mine_avg, peer_scores),
                    total_participants=len(peers),
                    improvements=[
                        BenchmarkImprovement(
                            suggestion=f"Optimize for {industry}-specific keywords",
                            potential_gain=12,
                            difficulty="medium",
                        )
                    ],
                )
            )
        return output

    def dashboard(self, user_id: str | None = None, filters: AnalyticsFilter | None = None) -> AnalyticsDashboardData:
        sessions = self.filtered_sessions(filters)
        if user_id:
            sessions = [s for s in sessions if s.user_id == user_id]
        return AnalyticsDashboardData(
            overview=overview_metrics(sessions),
            trends=calculate_trends(sessions),
            benchmarks=self.benchmarks(sessions),
            insights=generate_insights(sessions),
            recent_sessions=sessions[-10:],
            top_performing_templates=top_templates(sessions),
            skills_analysis=skills_analysis(sessions),
        )

    def real_time_metrics(self) -> list[RealTimeMetric]:
        now = _utc_now()
        hour_ago = now - timedelta(hours=1)
        two_hours_ago = now - timedelta(hours=2)
        sessions = self.all_sessions()
        recent = [s for s in sessions if s.session_start > hour_ago]
        earlier = [s for s in sessions if two_hours_ago < s.session_start <= hour_ago]

        def metric(metric_id: str, name: str, value: float, previous: float, unit: str) -> RealTimeMetric:
            change = round(value - previous, 1)
            return RealTimeMetric(
                id=metric_id,
                name=name,
                value=value,
                unit=unit,
                timestamp=now,
                change=change,
                change_type="increase" if change > 0 else "decrease" if change < 0 else "stable",
            )

        return [
            metric(
                "active_sessions",
                "Active Sessions",
                sum(1 for s in sessions if s.status == "in_progress"),
                sum(1 for s in earlier if s.status == "in_progress"),
                "count",
            ),
            metric(
                "avg_improvement",
                "Average Improvement",
                average_improvement([s for s in recent if s.status == "completed"]),
                average_improvement([s for s in earlier if s.status == "completed"]),
                "percentage",
            ),
            metric("success_rate", "Success Rate", success_rate(recent), success_rate(earlier), "percentage"),
        ]

    def report(self, report_type: str, filters: AnalyticsFilter, report_format: str = "json") -> AnalyticsReport:
        sessions = self.filtered_sessions(filters)
        insights = generate_insights(sessions)
        sections = [
            ReportSection(name="Executive Summary", type="summary", data=overview_metrics(sessions).model_dump()),
            ReportSection(name="Performance Trends", type="chart", data=calculate_trends(sessions).model_dump(mode="json")),
            ReportSection(
                name="Benchmark Analysis",
                type="table",
                data=[item.model_dump() for item in self.benchmarks(sessions)],
            ),
        ]
        if report_type == "custom":
            sections.append(
                ReportSection(
                    name="Template Performance",
                    type="table",
                    data=[item.model_dump() for item in top_templates(sessions)],
                )
            )
        return AnalyticsReport(
            id=_new_id("report"),
            title=f"Resume Optimization {report_type.replace('_', ' ')} Report",
            description="Comprehensive analysis of resume optimization performance",
            report_type=report_type,
            format=report_format,
            generated_at=_utc_now(),
            data_range={"start": filters.start, "end": filters.end},
            sections=sections,
            insights=insights,
            recommendations=[rec for insight in insights if insight.actionable for rec in insight.recommendations],
        )


analytics_store = ResumeAnalyticsStore()
