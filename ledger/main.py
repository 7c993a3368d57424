"""ASGI entrypoint for the compliance ledger."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ledger import db
from ledger.config import AppInfo, Settings, get_settings
from ledger.core.logging import get_logger, setup_logging
from ledger.core.request_context import REQUEST_ID_HEADER, RequestContextMiddleware
import ledger.models  # registers the tables
from ledger.routers import get_api_router
from ledger.services.cron import expire_export_downloads_once, set_scheduler_active
from ledger.utils.errors import error_response

logger = get_logger(__name__)
scheduler: AsyncIOScheduler | None = None
CREATE_ALL_ENVS = frozenset({"dev", "local", "test"})
SWEEP_JOB_ID = "expire-export-downloads"


def _install_middlewares(fastapi_app: FastAPI, settings: Settings) -> None:
    fastapi_app.add_middleware(RequestContextMiddleware)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Idempotency-Key", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

    if settings.PROMETHEUS_ENABLED:
        from starlette_exporter import PrometheusMiddleware, handle_metrics

        fastapi_app.add_middleware(PrometheusMiddleware, app_name="compliance_ledger")
        fastapi_app.add_route("/metrics", handle_metrics)

    if settings.SENTRY_DSN:
        import sentry_sdk

        sentry_sdk.init(dsn=settings.SENTRY_DSN, traces_sample_rate=0.2)


def _prepare_schema(settings: Settings) -> None:
    """Create tables in throwaway environments; everything else runs migrations."""

    if settings.ALLOW_DB_CREATE_ALL and settings.app_env.lower() in CREATE_ALL_ENVS:
        logger.warning("Creating tables with create_all()", extra={"env": settings.app_env})
        db.create_all()
        return
    logger.info(
        "Schema managed by Alembic",
        extra={"env": settings.app_env, "allow_create_all": settings.ALLOW_DB_CREATE_ALL},
    )


def _start_sweep(settings: Settings) -> AsyncIOScheduler:
    sweep = AsyncIOScheduler()
    sweep.add_job(
        expire_export_downloads_once,
        "interval",
        minutes=settings.EXPORT_SWEEP_INTERVAL_MINUTES,
        id=SWEEP_JOB_ID,
        replace_existing=True,
    )
    sweep.start()
    set_scheduler_active(True)
    # Only one replica may run the sweep; there is no distributed lock.
    logger.info(
        "Export expiry sweep scheduled",
        extra={"env": settings.app_env, "interval_minutes": settings.EXPORT_SWEEP_INTERVAL_MINUTES},
    )
    return sweep


@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    logger.info("Ledger startup", extra={"env": settings.app_env})
    db.init_engine()
    _prepare_schema(settings)
    if settings.SCHEDULER_ENABLED:
        scheduler = _start_sweep(settings)
    try:
        yield
    finally:
        if scheduler is not None:
            scheduler.shutdown(wait=False)
            scheduler = None
        set_scheduler_active(False)
        db.close_engine()
        logger.info("Ledger shutdown", extra={"env": settings.app_env})


app_info = AppInfo()
app = FastAPI(title=app_info.name, version=app_info.version, lifespan=lifespan)
_install_middlewares(app, get_settings())
app.include_router(get_api_router())


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    content: dict[str, Any] = detail if isinstance(detail, dict) and "error" in detail else error_response(
        "HTTP_ERROR", str(detail)
    )
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_response("INTERNAL_SERVER_ERROR", "An unexpected error occurred."),
    )


__all__ = ["app", "lifespan"]
