from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from swipehire.api.deps import bearer_token, enforce_rate_limit
from swipehire.schemas.portfolio import PortfolioCreate, PortfolioFilters, PortfolioUpdate
from swipehire.services import portfolio_service
from swipehire.services.portfolio_service import PortfolioBackendError

router = APIRouter()


def _filters(
    search: str | None = Query(default=None, max_length=200),
    tags: str | None = Query(default=None, max_length=500),
    sort_by: Literal["createdAt", "updatedAt", "title", "views", "likes"] = Query(default="updatedAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    include_private: bool = Query(default=True, alias="includePrivate"),
) -> PortfolioFilters:
    return PortfolioFilters(
        search=search,
        tags=tags,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
        include_private=include_private,
    )


def _raise_backend_error(exc: PortfolioBackendError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@router.get("/portfolios")
async def portfolios_list(
    filters: PortfolioFilters = Depends(_filters),
    token: str | None = Depends(bearer_token),
) -> Any:
    try:
        return await portfolio_service.list_portfolios(portfolio_service.resolve_user(token), filters)
    except PortfolioBackendError as exc:
        _raise_backend_error(exc)


@router.post("/portfolios", status_code=201)
async def portfolios_create(
    request: Request,
    payload: PortfolioCreate,
    token: str | None = Depends(bearer_token),
) -> Any:
    enforce_rate_limit(request, limit=20)
    try:
        return await portfolio_service.create_portfolio(portfolio_service.resolve_user(token), payload)
    except PortfolioBackendError as exc:
        _raise_backend_error(exc)


@router.get("/portfolios/{portfolio_id}")
async def portfolios_get(
    portfolio_id: str,
    increment_views: bool = Query(default=False, alias="incrementViews"),
    token: str | None = Depends(bearer_token),
) -> Any:
    try:
        return await portfolio_service.get_portfolio(portfolio_id, token, increment_views=increment_views)
    except PortfolioBackendError as exc:
        _raise_backend_error(exc)


@router.put("/portfolios/{portfolio_id}")
async def portfolios_update(
    request: Request,
    portfolio_id: str,
    payload: PortfolioUpdate,
    token: str | None = Depends(bearer_token),
) -> Any:
    enforce_rate_limit(request, limit=30)
    try:
        return await portfolio_service.update_portfolio(portfolio_id, portfolio_service.resolve_user(token), payload)
    except PortfolioBackendError as exc:
        _raise_backend_error(exc)


@router.delete("/portfolios/{portfolio_id}")
async def portfolios_delete(
    request: Request,
    portfolio_id: str,
    token: str | None = Depends(bearer_token),
) -> Any:
    enforce_rate_limit(request, limit=30)
    try:
        return await portfolio_service.delete_portfolio(portfolio_id, portfolio_service.resolve_user(token))
    except PortfolioBackendError as exc:
        _raise_backend_error(exc)
