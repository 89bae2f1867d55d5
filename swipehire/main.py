import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from swipehire.api.v1.health import router as health_router
from swipehire.api.v1.resume_optimizer import router as resume_optimizer_router
from swipehire.api.v1.ats import router as ats_router
from swipehire.api.v1.analytics import router as analytics_router
from swipehire.api.v1.templates import router as templates_router
from swipehire.api.v1.portfolios import router as portfolios_router
from swipehire.api.v1.events import router as events_router
from swipehire.api.v1.reminders import router as reminders_router
from swipehire.api.v1.career import router as career_router
from swipehire.core.rate_limit import limiter
from swipehire.core.config import settings
from dotenv import load_dotenv
from swipehire.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)

app = FastAPI(title="SwipeHire API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_allowed_origins),
    allow_origin_regex=settings.cors_allow_origin_regex,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(resume_optimizer_router, prefix="/v1", tags=["Resume Optimizer"])
app.include_router(ats_router, prefix="/v1", tags=["ATS"])
app.include_router(analytics_router, prefix="/v1", tags=["Analytics"])
app.include_router(templates_router, prefix="/v1", tags=["Templates"])
app.include_router(portfolios_router, prefix="/v1", tags=["Portfolios"])
app.include_router(events_router, prefix="/v1", tags=["Events"])
app.include_router(reminders_router, prefix="/v1", tags=["Reminders"])
app.include_router(career_router, prefix="/v1", tags=["Career"])
