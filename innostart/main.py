from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from innostart.core.config import settings
from innostart.core.database import async_session_factory, engine
from innostart.core.errors import (
    ModelError,
    NotFoundError,
    global_exception_handler,
    http_exception_handler,
    model_exception_handler,
    not_found_exception_handler,
    validation_exception_handler,
)
from innostart.core.sentry import init_sentry
from innostart.middleware.security import (
    RequestBodySizeLimitMiddleware,
    SecurityHeadersMiddleware,
)

import innostart.models  # noqa: F401  register all models at startup

from innostart.modules.ai.router import router as ai_router
from innostart.modules.business.router import router as business_router
from innostart.modules.knowledge.router import router as admin_router
from innostart.modules.knowledge.router import search_router as knowledge_search_router

# ── Sentry: must be initialised BEFORE FastAPI app is created ─────────────────
init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    logger.info("Starting InnoStart API", env=settings.APP_ENV, model=settings.AI_MODEL)
    if not settings.GEMINI_API_KEY:
        logger.warning("gemini_api_key_missing")
    yield
    logger.info("Shutting down InnoStart API")
    await engine.dispose()


_is_prod = settings.APP_ENV == "production"

app = FastAPI(
    title="InnoStart Pro API",
    description="AI-assisted business ideas, plans and financial projections for entrepreneurs.",
    version="1.0.0",
    docs_url=None if _is_prod else "/docs",
    redoc_url=None if _is_prod else "/redoc",
    openapi_url=None if _is_prod else "/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
)
# Security middleware (added last = outermost = first to see requests, last to touch responses)
app.add_middleware(
    RequestBodySizeLimitMiddleware,  # type: ignore[arg-type]
    max_bytes=settings.MAX_REQUEST_BODY_BYTES,
)
app.add_middleware(
    SecurityHeadersMiddleware,  # type: ignore[arg-type]
    is_production=_is_prod,
)


# ── Health check ──────────────────────────────────────────────────────────────


@app.get("/health")
async def health_check() -> dict:
    """Probe the database; the model provider is not called."""
    checks: dict[str, dict] = {}

    try:
        async with async_session_factory() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = {"status": "healthy"}
    except Exception as exc:
        checks["database"] = {"status": "unhealthy", "error": str(exc)}

    checks["model"] = {
        "status": "configured" if settings.GEMINI_API_KEY else "unconfigured",
        "model": settings.AI_MODEL,
    }

    overall = "healthy" if checks["database"]["status"] == "healthy" else "degraded"
    return {"status": overall, "service": "innostart-api", "checks": checks}


app.include_router(ai_router)
app.include_router(business_router)
app.include_router(knowledge_search_router)
app.include_router(admin_router)

# ── Exception handlers ────────────────────────────────────────────────────────

app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(NotFoundError, not_found_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(ModelError, model_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, global_exception_handler)
