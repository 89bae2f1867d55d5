from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime, timedelta, timezone

from swipehire.core.scoring import load_config_file
from swipehire.schemas.events import (
    EventInterests,
    EventSearchParams,
    EventsResponse,
    EventStatistics,
    IndustryEvent,
    StatBucket,
)

logger = logging.getLogger(__name__)

UPCOMING_WINDOWS = {"1hour": timedelta(hours=1), "1day": timedelta(days=1)}


class EventNotFoundError(LookupError):
    pass


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _lower_set(values: list[str]) -> set[str]:
    return {value.strip().lower() for value in values if value and value.strip()}


def _matches_query(event: IndustryEvent, query: str) -> bool:
    needle = query.lower()
    return (
        needle in event.title.lower()
        or needle in event.description.lower()
        or any(needle in tag.lower() for tag in event.tags)
        or any(needle in industry.lower() for industry in event.industry)
    )


def filter_events(events: list[IndustryEvent], params: EventSearchParams) -> list[IndustryEvent]:
    result = list(events)
    query = (params.search_query or "").strip()
    if query:
        result = [event for event in result if _matches_query(event, query)]
    if params.event_types:
        result = [event for event in result if event.event_type in params.event_types]
    if params.formats:
        result = [event for event in result if event.format in params.formats]
    if params.industries:
        wanted = set(params.industries)
        result = [event for event in result if wanted.intersection(event.industry)]
    if params.cities:
        wanted_cities = set(params.cities)
        result = [event for event in result if event.location.city and event.location.city in wanted_cities]
    if params.is_free is not None:
        result = [event for event in result if event.is_free == params.is_free]
    if params.start_date is not None:
        start = _utc(params.start_date)
        result = [event for event in result if _utc(event.start_date_time) >= start]
    if params.end_date is not None:
        end = _utc(params.end_date)
        result = [event for event in result if _utc(event.start_date_time) <= end]
    if params.min_price is not None:
        result = [event for event in result if (event.price or 0) >= params.min_price]
    if params.max_price is not None:
        result = [event for event in result if (event.price or 0) <= params.max_price]
    return result


_SORT_KEYS = {
    "date": lambda event: _utc(event.start_date_time),
    "relevance": lambda event: event.recommendation_score,
    "popularity": lambda event: event.registered_count,
    "price": lambda event: event.price or 0,
}


def sort_events(events: list[IndustryEvent], sort_by: str, sort_order: str) -> list[IndustryEvent]:
    """Sort on the natural key of each field; "desc" reverses it.

    Relevance and popularity read highest-first under "desc", dates latest-first.
    """
    key = _SORT_KEYS.get(sort_by, _SORT_KEYS["relevance"])
    return sorted(events, key=key, reverse=sort_order == "desc")


class EventCatalog:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: dict[str, IndustryEvent] = {}
        self._loaded = False
        # user_id -> {event_id: recorded_at}
        self._saved: dict[str, dict[str, datetime]] = {}
        self._registered: dict[str, dict[str, datetime]] = {}

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        raw = load_config_file("events").get("events") or []
        self._events = {}
        for item in raw:
            event = IndustryEvent.model_validate(item)
            self._events[event.id] = event
        self._loaded = True
        logger.info("event_catalog_loaded count=%s", len(self._events))

    def reset(self) -> None:
        with self._lock:
            self._events = {}
            self._saved = {}
            self._registered = {}
            self._loaded = False

    def all(self) -> list[IndustryEvent]:
        with self._lock:
            self._ensure_loaded()
            return list(self._events.values())

    def _decorate(self, event: IndustryEvent, user_id: str | None) -> IndustryEvent:
        if not user_id:
            return event
        return event.model_copy(
            update={
                "is_saved": event.id in self._saved.get(user_id, {}),
                "is_registered": event.id in self._registered.get(user_id, {}),
            }
        )

    def get(self, event_id: str, user_id: str | None = None) -> IndustryEvent:
        with self._lock:
            self._ensure_loaded()
            event = self._events.get(event_id)
            if event is None:
                raise EventNotFoundError("Event not found")
            return self._decorate(event, user_id)

    def search(self, params: EventSearchParams, user_id: str | None = None) -> EventsResponse:
        events = sort_events(filter_events(self.all(), params), params.sort_by, params.sort_order)
        total = len(events)
        start = (params.page - 1) * params.limit
        page_items = events[start : start + params.limit]
        with self._lock:
            decorated = [self._decorate(event, user_id) for event in page_items]
        return EventsResponse(
            events=decorated,
            total_count=total,
            has_more=start + params.limit < total,
            page=params.page,
            limit=params.limit,
        )

    def _record(self, bucket: dict[str, dict[str, datetime]], user_id: str, event_id: str) -> None:
        with self._lock:
            self._ensure_loaded()
            if event_id not in self._events:
                raise EventNotFoundError("Event not found")
            bucket.setdefault(user_id, {})[event_id] = datetime.now(timezone.utc)

    def save(self, user_id: str, event_id: str) -> IndustryEvent:
        self._record(self._saved, user_id, event_id)
        logger.info("event_saved user_id=%s event_id=%s", user_id, event_id)
        return self.get(event_id, user_id)

    def unsave(self, user_id: str, event_id: str) -> bool:
        with self._lock:
            removed = self._saved.get(user_id, {}).pop(event_id, None)
        return removed is not None

    def register(self, user_id: str, event_id: str) -> IndustryEvent:
        with self._lock:
            self._ensure_loaded()
            event = self._events.get(event_id)
            if event is None:
                raise EventNotFoundError("Event not found")
            already = event_id in self._registered.get(user_id, {})
            if not already:
                self._events[event_id] = event.model_copy(update={"registered_count": event.registered_count + 1})
            self._registered.setdefault(user_id, {})[event_id] = datetime.now(timezone.utc)
        logger.info("event_registered user_id=%s event_id=%s", user_id, event_id)
        return self.get(event_id, user_id)

    def saved_events(self, user_id: str) -> list[IndustryEvent]:
        with self._lock:
            self._ensure_loaded()
            saved = sorted(self._saved.get(user_id, {}).items(), key=lambda item: item[1], reverse=True)
            return [self._decorate(self._events[event_id], user_id) for event_id, _ in saved if event_id in self._events]

    def registered_events(self, user_id: str) -> list[IndustryEvent]:
        with self._lock:
            self._ensure_loaded()
            ids = list(self._registered.get(user_id, {}))
            events = [self._decorate(self._events[event_id], user_id) for event_id in ids if event_id in self._events]
        return sorted(events, key=lambda event: _utc(event.start_date_time))

    def upcoming(self, *, now: datetime | None = None, time_frame: str = "1day") -> list[IndustryEvent]:
        now = _utc(now or datetime.now(timezone.utc))
        window = UPCOMING_WINDOWS.get(time_frame, UPCOMING_WINDOWS["1day"])
        horizon = now + window
        events = [event for event in self.all() if now <= _utc(event.start_date_time) <= horizon]
        return sorted(events, key=lambda event: _utc(event.start_date_time))

    def recommend(self, user_id: str, interests: EventInterests, *, now: datetime | None = None) -> list[IndustryEvent]:
        now = _utc(now or datetime.now(timezone.utc))
        industries = _lower_set(interests.industries)
        skills = _lower_set(interests.skills)
        city = (interests.city or "").strip().lower()

        scored: list[tuple[int, IndustryEvent]] = []
        for event in self.all():
            if _utc(event.start_date_time) < now:
                continue
            if interests.formats and event.format not in interests.formats:
                continue
            reasons: list[str] = []
            score = 0
            if industries and industries.intersection(_lower_set(event.industry)):
                reasons.append("Based on your industry")
                score += 3
            if skills and skills.intersection(_lower_set(event.tags)):
                reasons.append("Matches your skills")
                score += 2
            event_city = (event.location.city or "").lower()
            if city and event.format != "virtual" and event_city and city in event_city:
                reasons.append("Near your location")
                score += 2
            if event.format == "virtual":
                reasons.append("Online event")
                score += 1
            if not reasons:
                reasons.append("Popular in your field")
            scored.append((score, event.model_copy(update={"recommendation_reasons": reasons})))

        scored.sort(key=lambda item: (-item[0], -item[1].recommendation_score, _utc(item[1].start_date_time)))
        with self._lock:
            return [self._decorate(event, user_id) for _, event in scored[: interests.limit]]

    def statistics(self) -> EventStatistics:
        events = self.all()

        def buckets(values: list[str]) -> list[StatBucket]:
            return [StatBucket(value=value, count=count) for value, count in Counter(values).most_common()]

        return EventStatistics(
            industries=buckets([industry for event in events for industry in event.industry]),
            event_types=buckets([event.event_type for event in events]),
            formats=buckets([event.format for event in events]),
        )


event_catalog = EventCatalog()
