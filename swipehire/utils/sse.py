from __future__ import annotations

import json
from typing import Any


def sse(event: str, data: str) -> str:
    lines = (data or "").splitlines() or [""]
    body = "".join(f"data: {line}\n" for line in lines)
    return f"event: {event}\n{body}\n"


def sse_json(event: str, payload: dict[str, Any]) -> str:
    return sse(event, json.dumps(payload, ensure_ascii=False))
