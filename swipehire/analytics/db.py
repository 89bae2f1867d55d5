from __future__ import annotations

import sqlite3
from contextlib import closing, contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from swipehire.core.config import settings

_schema_ready = False

_SCHEMA = """
CREATE TABLE IF NOT EXISTS ai_analysis_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    run_id TEXT NOT NULL,
    feature TEXT NOT NULL,
    model TEXT NOT NULL,
    schema_valid INTEGER NOT NULL,
    status TEXT NOT NULL,
    error_code TEXT,
    latency_ms INTEGER
);
CREATE INDEX IF NOT EXISTS idx_ai_analysis_runs_created_at ON ai_analysis_runs (created_at);
CREATE INDEX IF NOT EXISTS idx_ai_analysis_runs_feature ON ai_analysis_runs (feature, created_at);
"""

# created_at is isoformat(); sqlite datetime() uses a space separator.
_CREATED = "replace(created_at, 'T', ' ')"


@contextmanager
def _connect() -> Iterator[sqlite3.Connection]:
    global _schema_ready
    if not _schema_ready:
        Path(settings.analytics_db_path).parent.mkdir(parents=True, exist_ok=True)
    with closing(sqlite3.connect(settings.analytics_db_path)) as conn:
        conn.row_factory = sqlite3.Row
        if not _schema_ready:
            conn.executescript(_SCHEMA)
            _schema_ready = True
        with conn:
            yield conn


def init_db() -> None:
    if settings.analytics_enabled:
        purge_old_records()


def log_ai_analysis_run(
    *,
    run_id: str,
    feature: str,
    model: str,
    schema_valid: bool,
    status: str,
    error_code: str | None = None,
    latency_ms: int | None = None,
) -> None:
    """Record one LLM call for the resume, template, analytics and chat features."""
    if not settings.analytics_enabled:
        return
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO ai_analysis_runs (created_at, run_id, feature, model, schema_valid, status, error_code, latency_ms)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                datetime.now(timezone.utc).isoformat(),
                run_id,
                feature,
                model,
                int(schema_valid),
                status,
                error_code,
                latency_ms,
            ),
        )


def purge_old_records() -> dict[str, int]:
    if not settings.analytics_enabled:
        return {"ai_analysis_runs": 0}
    retention = max(1, int(settings.analytics_retention_days))
    with _connect() as conn:
        cur = conn.execute(f"DELETE FROM ai_analysis_runs WHERE {_CREATED} < datetime('now', ?)", (f"-{retention} days",))
        return {"ai_analysis_runs": int(cur.rowcount or 0)}


def get_summary() -> dict[str, Any]:
    if not settings.analytics_enabled:
        return {"enabled": False}
    with _connect() as conn:
        total, total_7d = conn.execute(
            f"SELECT COUNT(*), COALESCE(SUM({_CREATED} >= datetime('now', '-7 days')), 0) FROM ai_analysis_runs"
        ).fetchone()
        by_status = {
            row["status"]: row["count"]
            for row in conn.execute("SELECT status, COUNT(*) AS count FROM ai_analysis_runs GROUP BY status")
        }
        by_feature = [
            {
                "feature": row["feature"],
                "runs": row["runs"],
                "success_rate": round(row["successes"] / row["runs"], 3),
                "avg_success_latency_ms": round(row["latency"]) if row["latency"] is not None else None,
            }
            for row in conn.execute(
                """
                SELECT feature,
                       COUNT(*) AS runs,
                       SUM(status = 'success') AS successes,
                       AVG(CASE WHEN status = 'success' THEN latency_ms END) AS latency
                FROM ai_analysis_runs
                GROUP BY feature
                ORDER BY runs DESC, feature
                """
            )
        ]
        avg_latency = conn.execute("SELECT AVG(latency_ms) FROM ai_analysis_runs WHERE status = 'success'").fetchone()[0]
    return {
        "enabled": True,
        "total": total,
        "total_7d": total_7d,
        "by_status": by_status,
        "by_feature": by_feature,
        "avg_success_latency_ms": round(avg_latency) if avg_latency is not None else None,
    }


def get_latest(limit: int = 20, feature: str | None = None) -> list[dict[str, Any]]:
    if not settings.analytics_enabled:
        return []
    query = "SELECT created_at, run_id, feature, model, schema_valid, status, error_code, latency_ms FROM ai_analysis_runs"
    params: list[Any] = []
    if feature:
        query += " WHERE feature = ?"
        params.append(feature)
    query += " ORDER BY id DESC LIMIT ?"
    params.append(limit)
    with _connect() as conn:
        return [dict(row) for row in conn.execute(query, params)]
