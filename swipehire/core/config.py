from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    chat_rate_limit: str
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    trust_x_forwarded_for: bool
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int
    endpoint_rate_limit_db_path: str
    saved_analysis_db_path: str
    saved_analysis_retention_days: int
    reminder_db_path: str
    custom_backend_url: str | None
    backend_timeout_s: float
    demo_user_id: str
    max_upload_mb: int
    parse_timeout_s: float
    extract_text_max_chars: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    chat_rate_limit=_get_env("CHAT_RATE_LIMIT", "20/minute") or "20/minute",
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://[::1]:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX", r"^https:\/\/[a-z0-9-]+-.*\.vercel\.app$"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    trust_x_forwarded_for=_get_env_bool("TRUST_X_FORWARDED_FOR", False),
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 180),
    endpoint_rate_limit_db_path=(
        _get_env("ENDPOINT_RATE_LIMIT_DB_PATH", "data/endpoint_rate_limit.db") or "data/endpoint_rate_limit.db"
    ),
    saved_analysis_db_path=_get_env("SAVED_ANALYSIS_DB_PATH", "data/saved_analyses.db") or "data/saved_analyses.db",
    saved_analysis_retention_days=_get_env_int("SAVED_ANALYSIS_RETENTION_DAYS", 365),
    reminder_db_path=_get_env("REMINDER_DB_PATH", "data/reminders.db") or "data/reminders.db",
    custom_backend_url=_get_env("CUSTOM_BACKEND_URL") or _get_env("NEXT_PUBLIC_CUSTOM_BACKEND_URL"),
    backend_timeout_s=_get_env_float("BACKEND_TIMEOUT_S", 10.0),
    demo_user_id=_get_env("DEMO_USER_ID", "demo-user-id") or "demo-user-id",
    max_upload_mb=_get_env_int("MAX_UPLOAD_MB", 10),
    parse_timeout_s=_get_env_float("PARSE_TIMEOUT_S", 30.0),
    extract_text_max_chars=_get_env_int("EXTRACT_TEXT_MAX_CHARS", 50000),
)

if settings.max_upload_mb < 1:
    raise RuntimeError("MAX_UPLOAD_MB must be at least 1.")
