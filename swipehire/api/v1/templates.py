from __future__ import annotations

import asyncio

from fastapi import APIRouter, HTTPException, Query, Request, status

from swipehire.api.deps import enforce_rate_limit
from swipehire.schemas.templates import (
    AITemplateRecommendation,
    CompatibilityRequest,
    CompatibilityResponse,
    ExperienceLevel,
    IndustryTemplate,
    RecommendationRequest,
    SmartTemplateRecommendations,
    TemplateCategory,
    TemplateCreateRequest,
    TemplateGenerationRequest,
    TemplateGenerationResponse,
    TemplateOptimizeRequest,
    TemplateOptimizeResponse,
    TemplateSearchResult,
)
from swipehire.services.template_service import (
    TemplateGenerationError,
    analyze_job_description,
    catalog,
    compatibility_score,
    create_template,
    generate_custom_template,
    generate_recommendations,
    list_categories,
    optimize_template,
    search_templates,
)

router = APIRouter()


def _template_or_404(template_id: str) -> IndustryTemplate:
    template = catalog.get(template_id)
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return template


@router.get("/templates", response_model=TemplateSearchResult)
async def templates_search(
    search: str = Query(default="", max_length=200),
    industry: str | None = Query(default=None, max_length=60),
    experience_level: ExperienceLevel | None = Query(default=None),
    category: str | None = Query(default=None, max_length=60),
    min_ats_score: int = Query(default=0, ge=0, le=100),
    ai_optimized: bool = Query(default=False),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    items, total, facets, suggestions = search_templates(
        search=search,
        industry=industry,
        experience_level=experience_level,
        category=category,
        min_ats_score=min_ats_score,
        ai_optimized=ai_optimized,
        page=page,
        limit=limit,
    )
    return TemplateSearchResult(
        templates=items,
        total_count=total,
        page=page,
        limit=limit,
        has_more=page * limit < total,
        facets=facets,
        suggestions=suggestions,
    )


@router.get("/templates/categories", response_model=list[TemplateCategory])
async def templates_categories():
    return list_categories()


@router.post("/templates", response_model=IndustryTemplate, status_code=status.HTTP_201_CREATED)
async def templates_create(request: Request, payload: TemplateCreateRequest):
    enforce_rate_limit(request, limit=10)
    return create_template(payload)


@router.post("/templates/recommendations", response_model=SmartTemplateRecommendations)
async def templates_recommendations(request: Request, payload: RecommendationRequest):
    enforce_rate_limit(request, limit=20)
    profile = payload.user_profile
    if payload.preferences is not None:
        profile = profile.model_copy(update={"preferences": payload.preferences})
    return await asyncio.to_thread(
        generate_recommendations,
        profile,
        payload.target_role,
        payload.target_industry,
        payload.experience_level,
    )


@router.post("/templates/analyze-job", response_model=list[AITemplateRecommendation])
async def templates_analyze_job(request: Request, payload: RecommendationRequest):
    enforce_rate_limit(request, limit=20)
    if not (payload.job_description or "").strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Job description is required")
    return await asyncio.to_thread(analyze_job_description, payload.job_description)


@router.post("/templates/{template_id}/compatibility", response_model=CompatibilityResponse)
async def templates_compatibility(template_id: str, payload: CompatibilityRequest):
    template = _template_or_404(template_id)
    score = compatibility_score(template, payload.target_role, payload.target_industry, payload.experience_level)
    return CompatibilityResponse(template_id=template.id, score=score)


@router.post("/templates/{template_id}/optimize", response_model=TemplateOptimizeResponse)
async def templates_optimize(request: Request, template_id: str, payload: TemplateOptimizeRequest):
    enforce_rate_limit(request, limit=20)
    template = _template_or_404(template_id)
    optimized, optimizations = await asyncio.to_thread(
        optimize_template, template, payload.user_profile, payload.target_role, payload.target_industry
    )
    return TemplateOptimizeResponse(optimized_template=optimized, optimizations=optimizations)


@router.post("/templates/generate", response_model=TemplateGenerationResponse)
async def templates_generate(request: Request, payload: TemplateGenerationRequest):
    enforce_rate_limit(request, limit=5)
    try:
        return await asyncio.to_thread(generate_custom_template, payload)
    except TemplateGenerationError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
