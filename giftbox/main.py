"""FastAPI application for the Ant's Gift Box backend."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from giftbox.config import settings
from giftbox.core import redis_client
from giftbox.core.rate_limit import limiter
from giftbox.database import get_db
from giftbox.routers import auth, children, devices, families, link_requests, parents

logger = logging.getLogger(__name__)

# Request bodies are small JSON documents (approval forms, profile edits)
MAX_BODY_SIZE = 64 * 1024


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Connect Redis eagerly so a missing instance is reported at startup."""
    await redis_client.get_redis()
    logger.info("%s started", settings.APP_NAME)
    yield
    await redis_client.close_redis()
    logger.info("%s shutting down", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
)


# -- Middleware ---------------------------------------------------------------
@app.middleware("http")
async def reject_oversized_body(request: Request, call_next):
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > MAX_BODY_SIZE:
        return JSONResponse(status_code=413, content={"detail": "request-too-large"})
    return await call_next(request)


app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Device-Id"],
)

# -- Rate limiting ------------------------------------------------------------
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# -- Health -------------------------------------------------------------------
async def _database_status(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database unreachable")
        return "error"
    return "ok"


@app.get("/health", tags=["health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Database and Redis connectivity.

    Redis being ``unavailable`` is not degraded: device preferences then
    fall back to their defaults.
    """
    checks = {"db": await _database_status(db), "redis": await redis_client.redis_status()}
    degraded = "error" in checks.values()
    return {"status": "degraded" if degraded else "ok", "app": settings.APP_NAME, **checks}


# -- Routers ------------------------------------------------------------------
for module in (auth, parents, families, link_requests, devices, children):
    app.include_router(module.router, prefix=settings.API_V1_PREFIX)
