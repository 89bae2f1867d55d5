from __future__ import annotations

import logging
from typing import Any

import httpx

from swipehire.core.config import settings
from swipehire.schemas.portfolio import PortfolioCreate, PortfolioFilters, PortfolioUpdate

logger = logging.getLogger(__name__)

# Swapped for httpx.MockTransport in tests.
_transport: httpx.AsyncBaseTransport | None = None


class PortfolioBackendError(RuntimeError):
    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def resolve_user(token: str | None) -> str:
    token = (token or "").strip()
    return token or settings.demo_user_id


def _headers(user_id: str) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if user_id and user_id != settings.demo_user_id:
        headers["Authorization"] = f"Bearer {user_id}"
    return headers


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        return default
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()[:500]
    return default


async def _request(
    method: str,
    path: str,
    *,
    user_id: str,
    failure_message: str,
    params: dict[str, str] | None = None,
    json_body: dict[str, Any] | None = None,
) -> Any:
    base_url = (settings.custom_backend_url or "").rstrip("/")
    if not base_url:
        raise PortfolioBackendError("Backend URL not configured", status_code=503)

    try:
        async with httpx.AsyncClient(
            base_url=base_url, timeout=settings.backend_timeout_s, transport=_transport
        ) as client:
            response = await client.request(method, path, params=params, json=json_body, headers=_headers(user_id))
    except httpx.HTTPError as exc:
        logger.warning("portfolio_backend_unreachable method=%s path=%s error=%s", method, path, type(exc).__name__)
        raise PortfolioBackendError("Portfolio backend is unreachable", status_code=502) from exc

    if response.status_code >= 400:
        logger.info("portfolio_backend_error method=%s path=%s status=%s", method, path, response.status_code)
        raise PortfolioBackendError(_error_message(response, failure_message), status_code=response.status_code)

    if not response.content:
        return {"success": True}
    try:
        return response.json()
    except ValueError as exc:
        raise PortfolioBackendError("Portfolio backend returned invalid JSON", status_code=502) from exc


async def list_portfolios(user_id: str, filters: PortfolioFilters) -> Any:
    return await _request(
        "GET",
        "/api/portfolios/my",
        user_id=user_id,
        params=filters.to_query(),
        failure_message="Failed to fetch portfolios",
    )


async def create_portfolio(user_id: str, payload: PortfolioCreate) -> Any:
    body = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    body["userId"] = user_id
    return await _request(
        "POST",
        "/api/portfolios",
        user_id=user_id,
        json_body=body,
        failure_message="Failed to create portfolio",
    )


async def get_portfolio(portfolio_id: str, user_id: str | None = None, *, increment_views: bool = False) -> Any:
    params = {"incrementViews": "true"} if increment_views else None
    return await _request(
        "GET",
        f"/api/portfolios/{portfolio_id}",
        user_id=user_id or "",
        params=params,
        failure_message="Portfolio not found",
    )


async def update_portfolio(portfolio_id: str, user_id: str, payload: PortfolioUpdate) -> Any:
    body = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
    return await _request(
        "PUT",
        f"/api/portfolios/{portfolio_id}",
        user_id=user_id,
        json_body=body,
        failure_message="Failed to update portfolio",
    )


async def delete_portfolio(portfolio_id: str, user_id: str) -> Any:
    return await _request(
        "DELETE",
        f"/api/portfolios/{portfolio_id}",
        user_id=user_id,
        failure_message="Failed to delete portfolio",
    )
