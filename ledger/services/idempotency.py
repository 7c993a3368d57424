"""Idempotency helpers for create-style ledger writes."""
from __future__ import annotations

import logging
from typing import Callable, Optional, Type, TypeVar

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger.utils.errors import error_response

T = TypeVar("T")

logger = logging.getLogger(__name__)


def get_existing_by_key(
    db: Session,
    model: Type[T],
    clinic_id: str,
    key_value: str | None,
    *,
    key_field: str = "idempotency_key",
) -> Optional[T]:
    """Return the clinic's existing record for an idempotency key, if any."""
    if not key_value:
        return None
    if not hasattr(model, key_field):
        raise AttributeError(f"{model.__name__} has no field '{key_field}'")

    column = getattr(model, key_field)
    stmt = select(model).where(model.clinic_id == clinic_id, column == key_value).limit(1)
    return db.scalars(stmt).first()


def _reject_mismatched_replay(existing: T, same_request: Callable[[T], bool], model: type) -> None:
    if same_request(existing):
        return
    logger.warning(
        "Idempotency key reused for a different request",
        extra={"model": model.__name__, "record_id": existing.id},
    )
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error_response(
            "IDEMPOTENCY_KEY_REUSED",
            "Idempotency-Key was already used for a different request.",
        ),
    )


def persist_once(
    db: Session,
    instance: T,
    *,
    clinic_id: str,
    idempotency_key: str | None,
    after_flush: Callable[[T], None],
    same_request: Callable[[T], bool],
) -> tuple[T, bool]:
    """Insert ``instance`` and its side effects in one transaction.

    ``after_flush`` runs once the instance has its id and must only add rows
    to the session. Returns ``(record, created)``. When the idempotency key is
    already stored, the existing record is returned only if ``same_request``
    accepts it; a key replayed with different content raises 409.
    """
    model = type(instance)
    existing = get_existing_by_key(db, model, clinic_id, idempotency_key)
    if existing is not None:
        _reject_mismatched_replay(existing, same_request, model)
        logger.info(
            "Idempotent write reused",
            extra={"model": model.__name__, "clinic_id": clinic_id, "record_id": existing.id},
        )
        return existing, False

    try:
        db.add(instance)
        db.flush()
        after_flush(instance)
        db.commit()
    except IntegrityError:
        db.rollback()
        # Concurrent writer won the race -> re-read its record.
        existing = get_existing_by_key(db, model, clinic_id, idempotency_key)
        if existing is None:
            raise
        _reject_mismatched_replay(existing, same_request, model)
        return existing, False
    except Exception:
        db.rollback()
        raise
    db.refresh(instance)
    return instance, True


__all__ = ["get_existing_by_key", "persist_once"]
