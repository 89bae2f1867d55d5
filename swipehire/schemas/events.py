from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

EventType = Literal[
    "conference",
    "workshop",
    "webinar",
    "networking",
    "job_fair",
    "seminar",
    "meetup",
    "bootcamp",
]
EventFormat = Literal["in_person", "virtual", "hybrid"]
SkillLevel = Literal["beginner", "intermediate", "advanced", "all_levels"]
EventSort = Literal["date", "relevance", "popularity", "price"]


class EventLocation(BaseModel):
    type: EventFormat
    city: str | None = None
    state: str | None = None
    country: str | None = None
    venue: str | None = None
    address: str | None = None
    platform: str | None = None


class EventSpeaker(BaseModel):
    id: str
    name: str
    title: str = ""
    company: str = ""
    bio: str | None = None


class IndustryEvent(BaseModel):
    id: str
    title: str
    description: str
    short_description: str = ""
    event_type: EventType
    format: EventFormat
    location: EventLocation
    start_date_time: datetime
    end_date_time: datetime
    timezone: str = "UTC"
    organizer: str
    industry: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    target_audience: list[str] = Field(default_factory=list)
    skill_level: SkillLevel = "all_levels"
    registration_url: str | None = None
    price: float = 0
    currency: str = "USD"
    is_free: bool = True
    capacity: int | None = None
    registered_count: int = 0
    waitlist_available: bool = False
    speakers: list[EventSpeaker] = Field(default_factory=list)
    featured: bool = False
    recommendation_score: int = 0
    recommendation_reasons: list[str] = Field(default_factory=list)
    is_saved: bool = False
    is_registered: bool = False


class EventSearchParams(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1, le=50)
    sort_by: EventSort = "relevance"
    sort_order: Literal["asc", "desc"] = "desc"
    event_types: list[EventType] = Field(default_factory=list)
    formats: list[EventFormat] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)
    cities: list[str] = Field(default_factory=list)
    is_free: bool | None = None
    search_query: str | None = Field(default=None, max_length=200)
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)


class EventsResponse(BaseModel):
    events: list[IndustryEvent]
    total_count: int
    has_more: bool
    page: int
    limit: int


class EventInterests(BaseModel):
    industries: list[str] = Field(default_factory=list, max_length=20)
    skills: list[str] = Field(default_factory=list, max_length=50)
    city: str | None = Field(default=None, max_length=100)
    formats: list[EventFormat] = Field(default_factory=list)
    limit: int = Field(default=10, ge=1, le=50)


class EventInteractionResponse(BaseModel):
    event_id: str
    user_id: str
    is_saved: bool
    is_registered: bool


class StatBucket(BaseModel):
    value: str
    count: int


class EventStatistics(BaseModel):
    industries: list[StatBucket]
    event_types: list[StatBucket]
    formats: list[StatBucket]
