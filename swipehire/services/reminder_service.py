from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from swipehire.core import reminder_store
from swipehire.schemas.reminders import (
    FollowupReminder,
    ProcessDueResponse,
    ProcessedReminder,
    ReminderCreateRequest,
    ReminderMatch,
    ReminderTemplate,
)

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Follow-up Reminder"

REMINDER_TEMPLATES: tuple[ReminderTemplate, ...] = (
    ReminderTemplate(
        id="1",
        type="thank_you",
        title="Post-Interview Thank You",
        description="Send a thank you note after an interview",
        subject="Send your thank-you note",
        default_message="Thank you for taking the time to interview me for the {{jobTitle}} position at {{companyName}}.",
        suggested_timing="24 hours after interview",
    ),
    ReminderTemplate(
        id="2",
        type="status_inquiry",
        title="Application Status Follow-up",
        description="Follow up on application status",
        subject="Check on your application",
        default_message="I wanted to follow up on my application for the {{jobTitle}} position at {{companyName}}.",
        suggested_timing="1-2 weeks after application",
    ),
    ReminderTemplate(
        id="3",
        type="follow_up",
        title="General Follow-up",
        description="General follow-up message",
        subject=DEFAULT_SUBJECT,
        default_message="I wanted to check in regarding the {{jobTitle}} opportunity at {{companyName}}.",
        suggested_timing="As needed",
    ),
)


class ReminderError(RuntimeError):
    def __init__(self, message: str, *, code: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


def _to_model(record: dict[str, Any]) -> FollowupReminder:
    return FollowupReminder(
        id=record["reminder_id"],
        user_id=record["user_id"],
        match_id=record["match_id"],
        reminder_type=record["reminder_type"],
        scheduled_at=record["scheduled_at"],
        status=record["status"],
        template_id=record.get("template_id"),
        custom_message=record.get("custom_message"),
        snooze_until=record.get("snooze_until"),
        completed_at=record.get("completed_at"),
        sent_at=record.get("sent_at"),
        created_at=record["created_at"],
        updated_at=record["updated_at"],
        match=ReminderMatch(
            id=record["match_id"],
            company_name=record.get("company_name") or "the company",
            job_title=record.get("job_title") or "the position",
            application_date=record["created_at"],
        ),
    )


def list_templates(reminder_type: str | None = None) -> list[ReminderTemplate]:
    if reminder_type:
        return [template for template in REMINDER_TEMPLATES if template.type == reminder_type]
    return list(REMINDER_TEMPLATES)


def _template_by_id(template_id: str | None) -> ReminderTemplate | None:
    if not template_id:
        return None
    for template in REMINDER_TEMPLATES:
        if template.id == template_id:
            return template
    return None


def create_reminder(request: ReminderCreateRequest) -> FollowupReminder:
    if request.template_id and _template_by_id(request.template_id) is None:
        raise ReminderError("Unknown reminder template", code="UNKNOWN_TEMPLATE")
    if request.reminder_type == "custom" and not (request.custom_message or "").strip():
        raise ReminderError("Custom reminders need a message", code="MISSING_MESSAGE")

    record = reminder_store.insert_reminder(
        user_id=request.user_id,
        match_id=request.match_id,
        reminder_type=request.reminder_type,
        scheduled_at=request.scheduled_at,
        template_id=request.template_id,
        custom_message=(request.custom_message or "").strip() or None,
        job_title=request.job_title,
        company_name=request.company_name,
    )
    if record is None:
        raise ReminderError(
            "A reminder of this type already exists for this application",
            code="DUPLICATE_REMINDER",
            status_code=409,
        )
    logger.info(
        "reminder_created reminder_id=%s user_id=%s type=%s",
        record["reminder_id"],
        request.user_id,
        request.reminder_type,
    )
    return _to_model(record)


def get_user_reminders(user_id: str, *, status: str | None = None, page: int = 1, limit: int = 10) -> list[FollowupReminder]:
    page = max(1, page)
    limit = max(1, min(100, limit))
    records = reminder_store.list_user_reminders(user_id, status=status, limit=limit, offset=(page - 1) * limit)
    return [_to_model(record) for record in records]


def get_match_reminders(user_id: str, match_id: str) -> list[FollowupReminder]:
    return [_to_model(record) for record in reminder_store.list_match_reminders(user_id, match_id)]


def get_due_reminders(now: datetime | None = None) -> list[FollowupReminder]:
    return [_to_model(record) for record in reminder_store.list_due_reminders(now)]


def update_status(reminder_id: str, status: str, snooze_until: datetime | None = None) -> FollowupReminder:
    fields: dict[str, Any] = {"status": status}
    if status == "completed":
        fields["completed_at"] = datetime.now(timezone.utc)
    if status == "snoozed":
        if snooze_until is None:
            raise ReminderError("A snooze date is required", code="MISSING_SNOOZE_DATE")
        fields["snooze_until"] = snooze_until
        fields["scheduled_at"] = snooze_until
        # rescheduled reminders go back into the due queue
        fields["status"] = "pending"

    record = reminder_store.update_reminder(reminder_id, **fields)
    if record is None:
        raise ReminderError("Reminder not found", code="REMINDER_NOT_FOUND", status_code=404)
    return _to_model(record)


def snooze_reminder(reminder_id: str, snooze_until: datetime) -> FollowupReminder:
    return update_status(reminder_id, "snoozed", snooze_until)


def delete_reminder(reminder_id: str, user_id: str) -> None:
    if not reminder_store.delete_reminder(reminder_id, user_id):
        raise ReminderError("Reminder not found or access denied", code="REMINDER_NOT_FOUND", status_code=404)


def render_message(text: str, *, job_title: str, company_name: str) -> str:
    return text.replace("{{jobTitle}}", job_title).replace("{{companyName}}", company_name)


def build_notification(reminder: FollowupReminder) -> ProcessedReminder:
    template = _template_by_id(reminder.template_id)
    if template is None and not reminder.custom_message:
        template = next((item for item in REMINDER_TEMPLATES if item.type == reminder.reminder_type), None)

    subject = DEFAULT_SUBJECT
    message = reminder.custom_message or ""
    if template is not None:
        subject = template.subject
        if not reminder.custom_message or reminder.template_id:
            message = template.default_message
    message = render_message(
        message,
        job_title=reminder.match.job_title,
        company_name=reminder.match.company_name,
    )
    return ProcessedReminder(
        reminder_id=reminder.id,
        user_id=reminder.user_id,
        subject=subject,
        message=message,
        link=f"/dashboard/applications/{reminder.match_id}",
    )


def process_reminder(reminder: FollowupReminder) -> ProcessedReminder:
    notification = build_notification(reminder)
    reminder_store.update_reminder(reminder.id, status="sent", sent_at=datetime.now(timezone.utc))
    logger.info("reminder_sent reminder_id=%s user_id=%s", reminder.id, reminder.user_id)
    return notification


def process_due_reminders(now: datetime | None = None) -> ProcessDueResponse:
    processed: list[ProcessedReminder] = []
    failed: list[str] = []
    for reminder in get_due_reminders(now):
        try:
            processed.append(process_reminder(reminder))
        except Exception:
            logger.exception("reminder_processing_failed reminder_id=%s", reminder.id)
            failed.append(reminder.id)
    return ProcessDueResponse(processed=processed, failed=failed)
