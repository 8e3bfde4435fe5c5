from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from talentdesk.core.config import get_settings
from talentdesk.core.dependencies import registry
from talentdesk.core.errors import TalentDeskError, talentdesk_error_handler
from talentdesk.core.rate_limit import limiter

logger = structlog.get_logger()
settings = get_settings()

VERSION = "0.1.0"

# --- Sentry ---
if settings.SENTRY_DSN:
    import sentry_sdk

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=0.1,
        profiles_sample_rate=0.1,
        send_default_pii=False,
    )
    logger.info("sentry_initialized", environment=settings.SENTRY_ENVIRONMENT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("app_startup", version=VERSION)
    yield
    registry.close_all()
    logger.info("app_shutdown")


app = FastAPI(
    title="TalentDesk API",
    description="Recruiting agency workspace: talent pool, pipeline, director review and commissions",
    version=VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(TalentDeskError, talentdesk_error_handler)


# --- Security Headers Middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if not settings.DEBUG:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
from talentdesk.api.v1.auth import router as auth_router
from talentdesk.api.v1.candidates import router as candidates_router
from talentdesk.api.v1.clients import router as clients_router
from talentdesk.api.v1.comments import router as comments_router
from talentdesk.api.v1.dashboard import router as dashboard_router
from talentdesk.api.v1.commissions import router as commissions_router
from talentdesk.api.v1.director_review import router as review_router
from talentdesk.api.v1.documents import router as documents_router
from talentdesk.api.v1.interviews import router as interviews_router
from talentdesk.api.v1.outreach import router as outreach_router
from talentdesk.api.v1.overlay import router as overlay_router
from talentdesk.api.v1.pipeline import router as pipeline_router
from talentdesk.api.v1.positions import router as positions_router
from talentdesk.api.v1.realtime import router as realtime_router
from talentdesk.api.v1.recruiters import router as recruiters_router
from talentdesk.api.v1.role_history import router as role_history_router

for router in (
    auth_router,
    dashboard_router,
    clients_router,
    recruiters_router,
    positions_router,
    candidates_router,
    comments_router,
    pipeline_router,
    overlay_router,
    review_router,
    interviews_router,
    outreach_router,
    commissions_router,
    role_history_router,
    documents_router,
    realtime_router,
):
    app.include_router(router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health():
    checks = {"version": VERSION}

    try:
        from sqlalchemy import text

        from talentdesk.core.database import async_session

        async with async_session() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    try:
        import redis.asyncio as aioredis

        r = aioredis.from_url(settings.REDIS_URL)
        await r.ping()
        await r.aclose()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    try:
        import httpx

        async with httpx.AsyncClient() as client:
            resp = await client.get(f"{settings.S3_ENDPOINT}/minio/health/live", timeout=3)
            checks["storage"] = "ok" if resp.status_code == 200 else f"status: {resp.status_code}"
    except Exception as e:
        checks["storage"] = f"error: {e}"

    all_ok = all(v == "ok" for k, v in checks.items() if k != "version")
    checks["status"] = "ok" if all_ok else "degraded"

    return checks
