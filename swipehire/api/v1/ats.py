import asyncio

from fastapi import APIRouter, Request

from swipehire.api.deps import enforce_rate_limit
from swipehire.schemas.ats import ATSAnalysisRequest, ATSCompatibilityResult
from swipehire.services.ats_service import analyze_ats_compatibility

router = APIRouter()


@router.post("/ats/analyze", response_model=ATSCompatibilityResult)
async def ats_analyze(request: Request, payload: ATSAnalysisRequest):
    enforce_rate_limit(request, limit=20)
    return await asyncio.to_thread(analyze_ats_compatibility, payload)
