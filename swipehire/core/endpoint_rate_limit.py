from __future__ import annotations

import math
import os
import sqlite3
import threading
import time

from swipehire.core.config import settings

_conn: sqlite3.Connection | None = None
_conn_lock = threading.Lock()


class EndpointRateLimitExceeded(Exception):
    def __init__(self, retry_after: int):
        super().__init__(f"retry after {retry_after}s")
        self.retry_after = retry_after


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.endpoint_rate_limit_db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        _conn = sqlite3.connect(db_path, check_same_thread=False, timeout=5, isolation_level=None)
        _conn.execute("PRAGMA journal_mode=WAL;")
        _conn.execute("PRAGMA busy_timeout=5000;")
        _conn.execute(
            """
            CREATE TABLE IF NOT EXISTS request_hits (
                client TEXT NOT NULL,
                route TEXT NOT NULL,
                hit_at REAL NOT NULL
            );
            """
        )
        _conn.execute("CREATE INDEX IF NOT EXISTS idx_request_hits ON request_hits (client, route, hit_at);")
        return _conn


def enforce_endpoint_rate_limit(client_key: str, route_key: str, limit: int, window_seconds: int = 60) -> None:
    """Sliding window counter per client and route.

    Raises EndpointRateLimitExceeded with the seconds until the oldest hit in
    the window expires.
    """
    now = time.time()
    cutoff = now - window_seconds
    conn = _get_connection()

    with _conn_lock:
        conn.execute("BEGIN IMMEDIATE")
        try:
            count, oldest = conn.execute(
                "SELECT COUNT(1), MIN(hit_at) FROM request_hits WHERE client = ? AND route = ? AND hit_at >= ?",
                (client_key, route_key, cutoff),
            ).fetchone()
            if count >= limit:
                conn.execute("ROLLBACK")
                raise EndpointRateLimitExceeded(max(1, math.ceil(oldest + window_seconds - now)))

            conn.execute(
                "INSERT INTO request_hits (client, route, hit_at) VALUES (?, ?, ?)",
                (client_key, route_key, now),
            )
            conn.execute("COMMIT")
        except EndpointRateLimitExceeded:
            raise
        except Exception:
            conn.execute("ROLLBACK")
            raise


def purge_stale_hits(max_age_seconds: int = 3600) -> int:
    conn = _get_connection()
    with _conn_lock:
        cursor = conn.execute("DELETE FROM request_hits WHERE hit_at < ?", (time.time() - max_age_seconds,))
        return cursor.rowcount


def clear_endpoint_rate_limit_events() -> None:
    conn = _get_connection()
    with _conn_lock:
        conn.execute("DELETE FROM request_hits")
