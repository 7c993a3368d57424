"""Liveness and dependency status."""
from __future__ import annotations

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ledger.config import AppInfo, get_settings
from ledger.db import get_engine
from ledger.services.cron import is_scheduler_active

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)


def _db_status() -> str:
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, RuntimeError, OSError):
        logger.exception("Database health check failed")
        return "error"
    return "ok"


@router.get("", summary="Health check")
def healthcheck() -> dict[str, object]:
    """Report database reachability and whether the expiry sweep is running."""

    settings = get_settings()
    info = AppInfo()
    db_status = _db_status()
    db_ok = db_status == "ok"
    return {
        "status": "ok" if db_ok else "degraded",
        "service": info.name,
        "version": info.version,
        "env": settings.app_env,
        "db_ok": db_ok,
        "db_status": db_status,
        "scheduler_config_enabled": settings.SCHEDULER_ENABLED,
        "scheduler_running": is_scheduler_active(),
    }
