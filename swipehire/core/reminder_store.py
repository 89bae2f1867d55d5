from __future__ import annotations

import os
import sqlite3
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from swipehire.core.config import settings

_conn: sqlite3.Connection | None = None
_conn_lock = threading.Lock()

_COLUMNS = (
    "reminder_id, user_id, match_id, reminder_type, scheduled_at, status, template_id, custom_message, "
    "job_title, company_name, snooze_until, completed_at, sent_at, created_at, updated_at"
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.reminder_db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        _conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        _conn.execute("PRAGMA journal_mode=WAL;")
        _conn.execute("PRAGMA synchronous=NORMAL;")
        _conn.execute("PRAGMA busy_timeout=5000;")
        _conn.execute(
            """
            CREATE TABLE IF NOT EXISTS followup_reminders (
                reminder_id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                match_id TEXT NOT NULL,
                reminder_type TEXT NOT NULL,
                scheduled_at TEXT NOT NULL,
                status TEXT NOT NULL,
                template_id TEXT,
                custom_message TEXT,
                job_title TEXT,
                company_name TEXT,
                snooze_until TEXT,
                completed_at TEXT,
                sent_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )
        _conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_followup_reminders_user
            ON followup_reminders (user_id, scheduled_at);
            """
        )
        _conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_followup_reminders_due
            ON followup_reminders (status, scheduled_at);
            """
        )
        return _conn


def _row_to_dict(row: tuple[Any, ...] | None) -> dict[str, Any] | None:
    if not row:
        return None
    keys = [key.strip() for key in _COLUMNS.split(",")]
    record = dict(zip(keys, row))
    for key in ("scheduled_at", "snooze_until", "completed_at", "sent_at", "created_at", "updated_at"):
        if record.get(key):
            record[key] = datetime.fromisoformat(record[key])
    return record


def insert_reminder(
    *,
    user_id: str,
    match_id: str,
    reminder_type: str,
    scheduled_at: datetime,
    template_id: str | None,
    custom_message: str | None,
    job_title: str | None,
    company_name: str | None,
) -> dict[str, Any] | None:
    """Insert a pending reminder, or return None when an open one already exists."""
    conn = _get_connection()
    now_iso = _iso(_utc_now())
    reminder_id = uuid.uuid4().hex[:24]
    with _conn_lock:
        cur = conn.execute(
            """
            SELECT 1 FROM followup_reminders
            WHERE user_id = ? AND match_id = ? AND reminder_type = ? AND status IN ('pending', 'snoozed')
            LIMIT 1
            """,
            (user_id, match_id, reminder_type),
        )
        if cur.fetchone():
            return None
        conn.execute(
            f"INSERT INTO followup_reminders ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, 'pending', ?, ?, ?, ?, NULL, NULL, NULL, ?, ?)",
            (
                reminder_id,
                user_id,
                match_id,
                reminder_type,
                _iso(scheduled_at),
                template_id,
                custom_message,
                job_title,
                company_name,
                now_iso,
                now_iso,
            ),
        )
    return get_reminder(reminder_id)


def get_reminder(reminder_id: str) -> dict[str, Any] | None:
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(f"SELECT {_COLUMNS} FROM followup_reminders WHERE reminder_id = ?", (reminder_id,))
        row = cur.fetchone()
    return _row_to_dict(row)


def list_user_reminders(user_id: str, *, status: str | None = None, limit: int = 10, offset: int = 0) -> list[dict[str, Any]]:
    conn = _get_connection()
    query = f"SELECT {_COLUMNS} FROM followup_reminders WHERE user_id = ?"
    params: list[Any] = [user_id]
    if status:
        query += " AND status = ?"
        params.append(status)
    query += " ORDER BY scheduled_at ASC LIMIT ? OFFSET ?"
    params.extend([limit, offset])
    with _conn_lock:
        rows = conn.execute(query, params).fetchall()
    return [record for record in (_row_to_dict(row) for row in rows) if record]


def list_match_reminders(user_id: str, match_id: str) -> list[dict[str, Any]]:
    conn = _get_connection()
    with _conn_lock:
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM followup_reminders WHERE user_id = ? AND match_id = ? ORDER BY scheduled_at ASC",
            (user_id, match_id),
        ).fetchall()
    return [record for record in (_row_to_dict(row) for row in rows) if record]


def list_due_reminders(now: datetime | None = None) -> list[dict[str, Any]]:
    conn = _get_connection()
    with _conn_lock:
        rows = conn.execute(
            f"""
            SELECT {_COLUMNS} FROM followup_reminders
            WHERE status = 'pending' AND scheduled_at <= ?
            ORDER BY scheduled_at ASC
            """,
            (_iso(now or _utc_now()),),
        ).fetchall()
    return [record for record in (_row_to_dict(row) for row in rows) if record]


def update_reminder(reminder_id: str, **fields: Any) -> dict[str, Any] | None:
    allowed = {"status", "scheduled_at", "snooze_until", "completed_at", "sent_at"}
    updates = {key: value for key, value in fields.items() if key in allowed}
    if not updates:
        return get_reminder(reminder_id)
    updates["updated_at"] = _utc_now()

    assignments = ", ".join(f"{key} = ?" for key in updates)
    values = [_iso(value) if isinstance(value, datetime) else value for value in updates.values()]
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(
            f"UPDATE followup_reminders SET {assignments} WHERE reminder_id = ?",
            (*values, reminder_id),
        )
        changed = cur.rowcount
    if not changed:
        return None
    return get_reminder(reminder_id)


def delete_reminder(reminder_id: str, user_id: str) -> bool:
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(
            "DELETE FROM followup_reminders WHERE reminder_id = ? AND user_id = ?",
            (reminder_id, user_id),
        )
        return cur.rowcount > 0


def clear_reminders() -> None:
    conn = _get_connection()
    with _conn_lock:
        conn.execute("DELETE FROM followup_reminders")
