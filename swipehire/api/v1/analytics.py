from __future__ import annotations

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from swipehire.analytics import db as analytics_db
from swipehire.api.deps import enforce_rate_limit, require_api_key
from swipehire.schemas.analytics import (
    AnalyticsDashboardData,
    AnalyticsEvent,
    AnalyticsReport,
    EventTrackRequest,
    ImprovementPrediction,
    OptimizationSession,
    PredictionRequest,
    RealTimeMetric,
    ReportRequest,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionPage,
    SessionStatus,
    SessionUpdateRequest,
    TimeRange,
)
from swipehire.services.analytics_service import (
    SessionNotFoundError,
    analytics_store,
    filter_for_time_range,
    predict_improvement,
)

router = APIRouter()


@router.post("/analytics/sessions", response_model=SessionCreateResponse)
async def create_session(request: Request, payload: SessionCreateRequest):
    enforce_rate_limit(request, limit=60)
    return SessionCreateResponse(session_id=analytics_store.track_session(payload))


@router.patch("/analytics/sessions", response_model=OptimizationSession)
async def update_session(request: Request, payload: SessionUpdateRequest):
    enforce_rate_limit(request, limit=60)
    try:
        return analytics_store.update_session(payload)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found") from exc


@router.get("/analytics/sessions", response_model=SessionPage)
async def list_sessions(
    user_id: str | None = Query(default=None, max_length=100),
    session_status: SessionStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    items, total = analytics_store.list_sessions(
        user_id=user_id,
        status=session_status,
        limit=limit,
        offset=(page - 1) * limit,
    )
    return SessionPage(items=items, total=total, page=page, limit=limit)


@router.get("/analytics/sessions/{session_id}", response_model=OptimizationSession)
async def get_session(session_id: str):
    session = analytics_store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return session


@router.post("/analytics/events", response_model=AnalyticsEvent)
async def track_event(request: Request, payload: EventTrackRequest):
    enforce_rate_limit(request, limit=120)
    return analytics_store.track_event(
        user_id=payload.user_id,
        session_id=payload.session_id,
        event_type=payload.event_type,
        event_data=payload.event_data,
        source=payload.source,
    )


@router.get("/analytics/dashboard", response_model=AnalyticsDashboardData)
async def dashboard(
    request: Request,
    user_id: str | None = Query(default=None, max_length=100),
    time_range: TimeRange = Query(default="month"),
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
):
    enforce_rate_limit(request, limit=30)
    return await asyncio.to_thread(
        analytics_store.dashboard, user_id=user_id, filters=filter_for_time_range(time_range, start, end)
    )


@router.get("/analytics/real-time", response_model=list[RealTimeMetric])
async def real_time_metrics():
    return analytics_store.real_time_metrics()


@router.post("/analytics/predict", response_model=ImprovementPrediction)
async def predict(request: Request, payload: PredictionRequest):
    enforce_rate_limit(request, limit=20)
    return await asyncio.to_thread(
        predict_improvement,
        payload.current_analysis,
        payload.target_role,
        payload.target_industry,
        payload.user_history,
    )


@router.post("/analytics/reports", response_model=AnalyticsReport)
async def report(request: Request, payload: ReportRequest):
    enforce_rate_limit(request, limit=10)
    return await asyncio.to_thread(analytics_store.report, payload.report_type, payload.filters, payload.format)


@router.get("/analytics/ai-runs/summary")
def ai_runs_summary(_: None = Depends(require_api_key)):
    return analytics_db.get_summary()


@router.get("/analytics/ai-runs/latest")
def ai_runs_latest(
    limit: int = Query(default=20, ge=1, le=200),
    feature: str | None = Query(default=None, max_length=60),
    _: None = Depends(require_api_key),
):
    return analytics_db.get_latest(limit=limit, feature=feature)
