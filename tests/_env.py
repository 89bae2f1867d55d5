"""Shared environment for the test modules; import before any swipehire module."""

import os
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

DATA_DIR = Path(tempfile.gettempdir()) / f"swipehire-tests-{os.getpid()}"

# Keep tests deterministic and offline by default.
os.environ.setdefault("LLM_ENABLED", "0")
os.environ.setdefault("API_KEY", "")
os.environ.setdefault("ANALYTICS_DB_PATH", str(DATA_DIR / "analytics.db"))
os.environ.setdefault("ENDPOINT_RATE_LIMIT_DB_PATH", str(DATA_DIR / "endpoint_rate_limit.db"))
os.environ.setdefault("SAVED_ANALYSIS_DB_PATH", str(DATA_DIR / "saved_analyses.db"))
os.environ.setdefault("REMINDER_DB_PATH", str(DATA_DIR / "reminders.db"))
os.environ["CUSTOM_BACKEND_URL"] = ""
os.environ["NEXT_PUBLIC_CUSTOM_BACKEND_URL"] = ""
