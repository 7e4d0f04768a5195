"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.middleware.gzip import GZipMiddleware
from sqlalchemy import text

from coalition.config import get_settings
from coalition.errors import register_exception_handlers
from coalition.models import Base
from coalition.models.base import engine, AsyncSessionLocal
from coalition.api import router as api_router
from coalition.services.cache import build_cache

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info("Starting %s...", settings.app_name)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables verified")

    if getattr(app.state, "cache", None) is None:
        app.state.cache = build_cache()
    if app.state.cache.enabled:
        logger.info("Cache connected: %s", await app.state.cache.ping())
    else:
        logger.info("Cache disabled")
    yield
    logger.info("Shutting down...")
    await app.state.cache.close()
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    description="Member portal for coalition organizations: alerts, announcements, events and surveys",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.app_name}


HEALTH_CHECK_TIMEOUT = 5


async def _check_database() -> dict:
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        return {"ok": False}
    return {"ok": True}


async def _check_cache() -> dict:
    cache = getattr(app.state, "cache", None)
    if cache is None or not cache.enabled:
        return {"ok": True, "enabled": False}
    return {"ok": await cache.ping(), "enabled": True}


def _check_workers() -> dict:
    from coalition.tasks.celery_app import celery_app

    try:
        replies = celery_app.control.ping(timeout=HEALTH_CHECK_TIMEOUT) or []
    except Exception as e:
        logger.warning("Celery health check failed: %s", e)
        replies = []
    workers = sorted(name for reply in replies for name in reply)
    return {"ok": bool(workers), "workers": workers}


@app.get("/health/detailed")
async def detailed_health_check():
    """Database, cache and worker reachability, plus whether outbound email is configured.

    Email configuration is reported but does not affect the overall status.
    """
    checks = {
        "database": await _check_database(),
        "cache": await _check_cache(),
        "workers": await run_in_threadpool(_check_workers),
    }
    healthy = all(check["ok"] for check in checks.values())
    checks["email"] = {"configured": bool(settings.email_api_key)}

    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
