from fastapi import APIRouter

from swipehire.core.config import settings
from swipehire.services.llm import llm_enabled

router = APIRouter()


@router.get("/health", summary="Health Check", description="Report service status and which integrations are live.")
async def health_check():
    return {
        "status": "healthy",
        "llm_enabled": llm_enabled(),
        "portfolio_backend_configured": bool(settings.custom_backend_url),
        "analytics_enabled": settings.analytics_enabled,
    }
