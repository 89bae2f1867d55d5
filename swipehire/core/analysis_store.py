from __future__ import annotations

import json
import os
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from typing import Any

from swipehire.core.config import settings

_conn: sqlite3.Connection | None = None
_conn_lock = threading.Lock()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.saved_analysis_db_path
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
            CREATE TABLE IF NOT EXISTS saved_analyses (
                analysis_id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                overall_score REAL NOT NULL,
                ats_score REAL,
                target_job_title TEXT,
                result_payload_json TEXT NOT NULL,
                saved_at TEXT NOT NULL
            );
            """
        )
        _conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_saved_analyses_user
            ON saved_analyses (user_id, saved_at);
            """
        )
        return _conn


def _row_to_record(row: tuple[Any, ...]) -> dict[str, Any]:
    return {
        "analysis_id": row[0],
        "user_id": row[1],
        "overall_score": row[2],
        "ats_score": row[3],
        "target_job_title": row[4],
        "analysis_result": json.loads(row[5]) if row[5] else {},
        "saved_at": datetime.fromisoformat(row[6]),
    }


def purge_expired_analyses() -> int:
    conn = _get_connection()
    retention_days = max(1, int(settings.saved_analysis_retention_days))
    cutoff = (_utc_now() - timedelta(days=retention_days)).isoformat()
    with _conn_lock:
        cur = conn.execute("DELETE FROM saved_analyses WHERE saved_at <= ?", (cutoff,))
        return cur.rowcount


def save_analysis(
    *,
    analysis_id: str,
    user_id: str,
    overall_score: float,
    ats_score: float | None,
    target_job_title: str | None,
    analysis_result: dict[str, Any],
) -> datetime:
    """Insert or replace a saved analysis; saving the same id twice keeps the latest payload."""
    conn = _get_connection()
    saved_at = _utc_now()
    payload_json = json.dumps(analysis_result, ensure_ascii=False, default=str)
    with _conn_lock:
        conn.execute(
            """
            INSERT OR REPLACE INTO saved_analyses (
                analysis_id, user_id, overall_score, ats_score, target_job_title, result_payload_json, saved_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                analysis_id,
                user_id,
                float(overall_score),
                float(ats_score) if ats_score is not None else None,
                target_job_title,
                payload_json,
                saved_at.isoformat(),
            ),
        )
    return saved_at


def get_analysis(analysis_id: str) -> dict[str, Any] | None:
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(
            """
            SELECT analysis_id, user_id, overall_score, ats_score, target_job_title, result_payload_json, saved_at
            FROM saved_analyses
            WHERE analysis_id = ?
            """,
            (analysis_id,),
        )
        row = cur.fetchone()
    return _row_to_record(row) if row else None


def list_analyses(user_id: str, limit: int = 50) -> list[dict[str, Any]]:
    conn = _get_connection()
    with _conn_lock:
        rows = conn.execute(
            """
            SELECT analysis_id, user_id, overall_score, ats_score, target_job_title, result_payload_json, saved_at
            FROM saved_analyses
            WHERE user_id = ?
            ORDER BY saved_at DESC
            LIMIT ?
            """,
            (user_id, max(1, min(200, limit))),
        ).fetchall()
    return [_row_to_record(row) for row in rows]


def delete_analysis(analysis_id: str, user_id: str | None = None) -> bool:
    conn = _get_connection()
    query = "DELETE FROM saved_analyses WHERE analysis_id = ?"
    params: list[Any] = [analysis_id]
    if user_id:
        query += " AND user_id = ?"
        params.append(user_id)
    with _conn_lock:
        cur = conn.execute(query, params)
        return cur.rowcount > 0


def clear_saved_analyses() -> None:
    conn = _get_connection()
    with _conn_lock:
        conn.execute("DELETE FROM saved_analyses")
