"""Background jobs for ledger maintenance."""
from __future__ import annotations

import logging

from ledger import db as ledger_db
from ledger.services.data_exports import expire_elapsed_downloads

logger = logging.getLogger(__name__)

_scheduler_active = False


def set_scheduler_active(active: bool) -> None:
    global _scheduler_active
    _scheduler_active = active


def is_scheduler_active() -> bool:
    return _scheduler_active


def expire_export_downloads_once() -> int:
    """Store ``expired`` on completed requests past their download window."""

    if ledger_db.engine is None:
        logger.warning("Export expiry sweep skipped: database engine not initialised")
        return 0

    with ledger_db.session_scope() as session:
        try:
            return expire_elapsed_downloads(session)
        except Exception:
            logger.exception("Export expiry sweep failed")
            raise


__all__ = ["expire_export_downloads_once", "is_scheduler_active", "set_scheduler_active"]
