"""FastAPI application entrypoint: lifespan, routers, middleware."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from farmledger.config import get_settings
from farmledger.database import engine
from farmledger.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from farmledger.routes import analytics

logger = structlog.get_logger("farmledger")


async def _run_readiness_checks(_app: FastAPI) -> dict[str, dict[str, Any]]:
    """Probe every backing dependency; never raises."""
    checks: dict[str, dict[str, Any]] = {}
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        checks["database"] = {"ok": True, "message": "ok"}
    except Exception as exc:
        checks["database"] = {"ok": False, "message": str(exc)}
    return checks


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup / shutdown lifecycle.

    Startup:
      1. Initialize structured logging
      2. Verify the record database is reachable

    Shutdown:
      1. Dispose SQLAlchemy engine
    """
    configure_structured_logging()
    settings = get_settings()
    logger.info(
        "farmledger_starting",
        log_level=settings.log_level,
        default_granularity=settings.analytics_default_granularity.value,
    )

    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except Exception as exc:
        logger.exception("startup_failure", error=str(exc))
        raise

    yield

    logger.info("farmledger_shutting_down")
    await engine.dispose()


app = FastAPI(
    title="FarmLedger API",
    description=(
        "Farm record analytics: profit/loss, return on investment, yield "
        "efficiency, growth-stage cost attribution and period-over-period "
        "trends computed from crop, expense and sale records."
    ),
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── Middleware ──────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Basic health check: verifies the API process is alive."""
    return {
        "status": "ok",
        "service": "farmledger",
        "version": "0.1.0",
    }


@app.get("/health/ready", tags=["system"])
async def health_ready() -> JSONResponse:
    """Readiness check: 503 when any backing dependency is down."""
    checks = await _run_readiness_checks(app)
    healthy = all(check["ok"] for check in checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"status": "ok" if healthy else "degraded", "checks": checks},
    )


# ── Router registration ────────────────────────────────────────────────────
app.include_router(analytics.router, prefix="/api/v1")
