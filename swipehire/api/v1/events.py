from __future__ import annotations

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request, status

from swipehire.api.deps import enforce_rate_limit
from swipehire.schemas.events import (
    EventFormat,
    EventInteractionResponse,
    EventInterests,
    EventSearchParams,
    EventSort,
    EventStatistics,
    EventsResponse,
    EventType,
    IndustryEvent,
)
from swipehire.services.event_service import EventNotFoundError, event_catalog

router = APIRouter()


def _not_found(exc: EventNotFoundError) -> None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _interaction(event: IndustryEvent, user_id: str) -> EventInteractionResponse:
    return EventInteractionResponse(
        event_id=event.id,
        user_id=user_id,
        is_saved=event.is_saved,
        is_registered=event.is_registered,
    )


@router.get("/events", response_model=EventsResponse)
async def events_search(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=12, ge=1, le=50),
    sort_by: EventSort = Query(default="relevance"),
    sort_order: Literal["asc", "desc"] = Query(default="desc"),
    event_types: list[EventType] = Query(default=[]),
    formats: list[EventFormat] = Query(default=[]),
    industries: list[str] = Query(default=[]),
    cities: list[str] = Query(default=[]),
    is_free: bool | None = Query(default=None),
    q: str | None = Query(default=None, max_length=200),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    min_price: float | None = Query(default=None, ge=0),
    max_price: float | None = Query(default=None, ge=0),
    user_id: str | None = Query(default=None, max_length=100),
):
    params = EventSearchParams(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        event_types=event_types,
        formats=formats,
        industries=industries,
        cities=cities,
        is_free=is_free,
        search_query=q,
        start_date=start_date,
        end_date=end_date,
        min_price=min_price,
        max_price=max_price,
    )
    return event_catalog.search(params, user_id)


@router.get("/events/upcoming", response_model=list[IndustryEvent])
async def events_upcoming(time_frame: Literal["1hour", "1day"] = Query(default="1day")):
    return event_catalog.upcoming(time_frame=time_frame)


@router.get("/events/statistics", response_model=EventStatistics)
async def events_statistics():
    return event_catalog.statistics()


@router.get("/events/saved", response_model=list[IndustryEvent])
async def events_saved(user_id: str = Query(min_length=1, max_length=100)):
    return event_catalog.saved_events(user_id)


@router.get("/events/registered", response_model=list[IndustryEvent])
async def events_registered(user_id: str = Query(min_length=1, max_length=100)):
    return event_catalog.registered_events(user_id)


@router.post("/events/recommendations", response_model=list[IndustryEvent])
async def events_recommendations(
    request: Request,
    interests: EventInterests,
    user_id: str = Query(min_length=1, max_length=100),
):
    enforce_rate_limit(request, limit=30)
    return event_catalog.recommend(user_id, interests)


@router.get("/events/{event_id}", response_model=IndustryEvent)
async def events_get(event_id: str, user_id: str | None = Query(default=None, max_length=100)):
    try:
        return event_catalog.get(event_id, user_id)
    except EventNotFoundError as exc:
        _not_found(exc)


@router.post("/events/{event_id}/save", response_model=EventInteractionResponse)
async def events_save(request: Request, event_id: str, user_id: str = Query(min_length=1, max_length=100)):
    enforce_rate_limit(request, limit=60)
    try:
        return _interaction(event_catalog.save(user_id, event_id), user_id)
    except EventNotFoundError as exc:
        _not_found(exc)


@router.delete("/events/{event_id}/save", response_model=EventInteractionResponse)
async def events_unsave(request: Request, event_id: str, user_id: str = Query(min_length=1, max_length=100)):
    enforce_rate_limit(request, limit=60)
    try:
        event_catalog.unsave(user_id, event_id)
        return _interaction(event_catalog.get(event_id, user_id), user_id)
    except EventNotFoundError as exc:
        _not_found(exc)


@router.post("/events/{event_id}/register", response_model=EventInteractionResponse)
async def events_register(request: Request, event_id: str, user_id: str = Query(min_length=1, max_length=100)):
    enforce_rate_limit(request, limit=30)
    try:
        return _interaction(event_catalog.register(user_id, event_id), user_id)
    except EventNotFoundError as exc:
        _not_found(exc)
