from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ReminderType = Literal["thank_you", "status_inquiry", "follow_up", "custom"]
ReminderStatus = Literal["pending", "snoozed", "sent", "completed", "cancelled"]

OBJECT_ID_PATTERN = r"^[0-9a-fA-F]{24}$"


class ReminderMatch(BaseModel):
    id: str
    company_name: str
    job_title: str
    application_date: datetime | None = None
    status: str = "applied"


class FollowupReminder(BaseModel):
    id: str
    user_id: str
    match_id: str
    reminder_type: ReminderType
    scheduled_at: datetime
    status: ReminderStatus
    template_id: str | None = None
    custom_message: str | None = None
    snooze_until: datetime | None = None
    completed_at: datetime | None = None
    sent_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    match: ReminderMatch


class ReminderCreateRequest(BaseModel):
    user_id: str = Field(pattern=OBJECT_ID_PATTERN)
    match_id: str = Field(pattern=OBJECT_ID_PATTERN)
    reminder_type: ReminderType
    scheduled_at: datetime
    template_id: str | None = Field(default=None, max_length=50)
    custom_message: str | None = Field(default=None, max_length=2000)
    job_title: str | None = Field(default=None, max_length=200)
    company_name: str | None = Field(default=None, max_length=200)


class ReminderStatusUpdate(BaseModel):
    status: ReminderStatus
    snooze_until: datetime | None = None


class ReminderSnoozeRequest(BaseModel):
    snooze_until: datetime


class ReminderPage(BaseModel):
    items: list[FollowupReminder]
    page: int
    limit: int


class ReminderTemplate(BaseModel):
    id: str
    type: ReminderType
    title: str
    description: str
    subject: str
    default_message: str
    suggested_timing: str


class ProcessedReminder(BaseModel):
    reminder_id: str
    user_id: str
    subject: str
    message: str
    link: str


class ProcessDueResponse(BaseModel):
    processed: list[ProcessedReminder]
    failed: list[str] = Field(default_factory=list)
