import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.config import get_settings, get_supabase_client
from src.middleware import setup_middleware
from src.profiles.router import router as profile_router
from src.auth.dependencies import close_http_client

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    required = ["supabase_url", "supabase_service_key"]
    missing = [k for k in required if not getattr(settings, k)]
    if missing:
        logger.warning(f"Missing env vars: {missing}. Profile endpoints will return 503.")
    else:
        get_supabase_client()

    yield

    await close_http_client()


app = FastAPI(
    title="Profile Bootstrap API",
    version="1.0.0",
    docs_url="/docs" if settings.debug else None,
    lifespan=lifespan,
)

setup_middleware(app, settings.frontend_url)

app.include_router(profile_router, prefix="/api/profile")


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "profile-api"}


@app.get("/health/detailed")
async def health_detailed():
    checks = {"api": "healthy"}
    checks["supabase_config"] = (
        "configured" if settings.supabase_url and settings.supabase_service_key else "missing"
    )
    checks["supabase_client"] = "ready" if get_supabase_client() else "unavailable"
    overall = "healthy" if all(v in ("healthy", "configured", "ready") for v in checks.values()) else "degraded"
    return {"status": overall, "checks": checks}
