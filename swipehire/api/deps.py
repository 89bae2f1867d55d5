from __future__ import annotations

from fastapi import Header, HTTPException, Request, status

from swipehire.core.endpoint_rate_limit import EndpointRateLimitExceeded, enforce_endpoint_rate_limit
from swipehire.core.rate_limit import client_address
from swipehire.core.security import check_api_key


def enforce_rate_limit(request: Request, limit: int, window_seconds: int = 60) -> None:
    try:
        enforce_endpoint_rate_limit(
            client_key=client_address(request),
            route_key=request.url.path,
            limit=limit,
            window_seconds=window_seconds,
        )
    except EndpointRateLimitExceeded as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please wait a minute and try again.",
            headers={"Retry-After": str(exc.retry_after)},
        ) from exc


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    check_api_key(x_api_key)


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    value = (authorization or "").strip()
    if not value.lower().startswith("bearer "):
        return None
    token = value[7:].strip()
    return token or None


SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
