from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status

from swipehire.api.deps import enforce_rate_limit, require_api_key
from swipehire.schemas.reminders import (
    OBJECT_ID_PATTERN,
    FollowupReminder,
    ProcessDueResponse,
    ReminderCreateRequest,
    ReminderPage,
    ReminderSnoozeRequest,
    ReminderStatus,
    ReminderStatusUpdate,
    ReminderTemplate,
    ReminderType,
)
from swipehire.services import reminder_service
from swipehire.services.reminder_service import ReminderError

router = APIRouter()


def _raise_reminder_error(exc: ReminderError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@router.get("/reminders/templates", response_model=list[ReminderTemplate])
async def reminders_templates(reminder_type: ReminderType | None = Query(default=None, alias="type")):
    return reminder_service.list_templates(reminder_type)


@router.post("/reminders", response_model=FollowupReminder, status_code=status.HTTP_201_CREATED)
async def reminders_create(request: Request, payload: ReminderCreateRequest):
    enforce_rate_limit(request, limit=30)
    try:
        return reminder_service.create_reminder(payload)
    except ReminderError as exc:
        _raise_reminder_error(exc)


@router.get("/reminders/due", response_model=list[FollowupReminder])
def reminders_due(_: None = Depends(require_api_key)):
    return reminder_service.get_due_reminders()


@router.post("/reminders/process-due", response_model=ProcessDueResponse)
def reminders_process_due(_: None = Depends(require_api_key)):
    return reminder_service.process_due_reminders()


@router.get("/reminders/user/{user_id}", response_model=ReminderPage)
async def reminders_for_user(
    user_id: str = Path(pattern=OBJECT_ID_PATTERN),
    reminder_status: ReminderStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
):
    items = reminder_service.get_user_reminders(user_id, status=reminder_status, page=page, limit=limit)
    return ReminderPage(items=items, page=page, limit=limit)


@router.get("/reminders/match/{match_id}", response_model=list[FollowupReminder])
async def reminders_for_match(
    match_id: str = Path(pattern=OBJECT_ID_PATTERN),
    user_id: str = Query(pattern=OBJECT_ID_PATTERN),
):
    return reminder_service.get_match_reminders(user_id, match_id)


@router.patch("/reminders/{reminder_id}/status", response_model=FollowupReminder)
async def reminders_update_status(request: Request, reminder_id: str, payload: ReminderStatusUpdate):
    enforce_rate_limit(request, limit=60)
    try:
        return reminder_service.update_status(reminder_id, payload.status, payload.snooze_until)
    except ReminderError as exc:
        _raise_reminder_error(exc)


@router.post("/reminders/{reminder_id}/snooze", response_model=FollowupReminder)
async def reminders_snooze(request: Request, reminder_id: str, payload: ReminderSnoozeRequest):
    enforce_rate_limit(request, limit=60)
    try:
        return reminder_service.snooze_reminder(reminder_id, payload.snooze_until)
    except ReminderError as exc:
        _raise_reminder_error(exc)


@router.delete("/reminders/{reminder_id}")
async def reminders_delete(
    request: Request,
    reminder_id: str,
    user_id: str = Query(pattern=OBJECT_ID_PATTERN),
):
    enforce_rate_limit(request, limit=60)
    try:
        reminder_service.delete_reminder(reminder_id, user_id)
    except ReminderError as exc:
        _raise_reminder_error(exc)
    return {"deleted": True}
