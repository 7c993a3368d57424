"""Data-subject request tracking services."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from fastapi import HTTPException, status as http_status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger.models.audit import AuditAction, AuditResourceType
from ledger.models.consent import DataCategory
from ledger.models.data_export import (
    DOWNLOAD_WINDOW,
    DataExportRequest,
    DataSubjectRight,
    ExportFormat,
    ExportStatus,
    derive_effective_status,
)
from ledger.schemas.audit import AuditEventCreate
from ledger.services.audit import record_audit_event
from ledger.services.idempotency import persist_once
from ledger.utils.errors import coerce_enum, coerce_enum_list, error_response, not_found
from ledger.utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)

# Terminal statuses never regress; completed may still be marked expired.
ALLOWED_TRANSITIONS: dict[ExportStatus, frozenset[ExportStatus]] = {
    ExportStatus.pending: frozenset(
        {ExportStatus.pending, ExportStatus.processing, ExportStatus.completed, ExportStatus.failed}
    ),
    ExportStatus.processing: frozenset(
        {ExportStatus.processing, ExportStatus.completed, ExportStatus.failed}
    ),
    ExportStatus.completed: frozenset({ExportStatus.expired}),
    ExportStatus.failed: frozenset(),
    ExportStatus.expired: frozenset(),
}


def _status(value: ExportStatus | str) -> ExportStatus:
    return coerce_enum(ExportStatus, value, code="INVALID_EXPORT_STATUS")


def create(
    db: Session,
    clinic_id: str,
    user_id: str,
    type: DataSubjectRight | str,
    data_categories: Iterable[DataCategory | str],
    format: ExportFormat | str,
    reason: str | None = None,
    *,
    user_name: str = "",
    idempotency_key: str | None = None,
) -> DataExportRequest:
    """Open a pending rights request and audit it in the same transaction."""

    right = coerce_enum(DataSubjectRight, type, code="INVALID_REQUEST_TYPE")
    export_format = coerce_enum(ExportFormat, format, code="INVALID_EXPORT_FORMAT")
    categories = coerce_enum_list(DataCategory, data_categories, code="INVALID_DATA_CATEGORY")

    now = utcnow()
    request = DataExportRequest(
        clinic_id=clinic_id,
        user_id=user_id,
        type=right,
        status=ExportStatus.pending,
        data_categories=[category.value for category in categories],
        format=export_format,
        reason=reason or None,
        download_url=None,
        download_expires_at=None,
        completed_at=None,
        idempotency_key=idempotency_key,
        created_at=now,
        updated_at=now,
    )

    def _audit(saved: DataExportRequest) -> None:
        record_audit_event(
            db,
            clinic_id,
            user_id,
            user_name,
            AuditEventCreate(
                action=AuditAction.data_request,
                resource_type=AuditResourceType.user,
                resource_id=user_id,
                details={
                    "request_id": saved.id,
                    "type": right.value,
                    "data_categories": saved.data_categories,
                },
            ),
            commit=False,
        )

    def _same_request(stored: DataExportRequest) -> bool:
        return (
            stored.user_id == user_id
            and stored.type is right
            and stored.format is export_format
            and sorted(stored.data_categories) == sorted(request.data_categories)
        )

    request, created = persist_once(
        db,
        request,
        clinic_id=clinic_id,
        idempotency_key=idempotency_key,
        after_flush=_audit,
        same_request=_same_request,
    )
    if created:
        logger.info(
            "Data export request created",
            extra={"clinic_id": clinic_id, "request_id": request.id, "type": right.value},
        )
    return request


def get_by_id(db: Session, clinic_id: str, request_id: int) -> DataExportRequest | None:
    """Return the request, or ``None`` when the id does not resolve."""

    stmt = select(DataExportRequest).where(
        DataExportRequest.clinic_id == clinic_id,
        DataExportRequest.id == request_id,
    )
    return db.scalars(stmt).first()


def list_for_user(db: Session, clinic_id: str, user_id: str) -> list[DataExportRequest]:
    stmt = (
        select(DataExportRequest)
        .where(DataExportRequest.clinic_id == clinic_id, DataExportRequest.user_id == user_id)
        .order_by(DataExportRequest.created_at.desc(), DataExportRequest.id.desc())
    )
    return list(db.scalars(stmt).all())


def list_by_status(
    db: Session,
    clinic_id: str,
    status: ExportStatus | str = ExportStatus.pending,
) -> list[DataExportRequest]:
    """Operator fulfilment queue: requests in one stored status, oldest first."""

    stmt = (
        select(DataExportRequest)
        .where(DataExportRequest.clinic_id == clinic_id, DataExportRequest.status == _status(status))
        .order_by(DataExportRequest.created_at.asc(), DataExportRequest.id.asc())
    )
    return list(db.scalars(stmt).all())


def set_status(
    db: Session,
    clinic_id: str,
    request_id: int,
    status: ExportStatus | str,
    download_url: str | None = None,
    *,
    error_message: str | None = None,
    notes: str | None = None,
) -> DataExportRequest:
    """Move a request through its lifecycle.

    Completing with a ``download_url`` stamps ``completed_at`` and opens a
    24 hour download window. Completing without a URL is accepted and leaves
    the artifact fields empty.
    """

    new_status = _status(status)
    request = get_by_id(db, clinic_id, request_id)
    if request is None:
        raise not_found("EXPORT_REQUEST_NOT_FOUND", "Data export request not found.")

    current = request.status
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise HTTPException(
            status_code=http_status.HTTP_409_CONFLICT,
            detail=error_response(
                "INVALID_STATUS_TRANSITION",
                f"Cannot move a {current.value} request to {new_status.value}.",
                {"current": current.value, "requested": new_status.value},
            ),
        )

    request.status = new_status
    if new_status is ExportStatus.completed and download_url:
        now = utcnow()
        request.download_url = download_url
        request.completed_at = now
        request.download_expires_at = now + DOWNLOAD_WINDOW
    elif new_status is ExportStatus.expired:
        request.download_url = None
        request.download_expires_at = None
    if new_status is ExportStatus.failed and error_message:
        request.error_message = error_message
    if notes is not None:
        request.notes = notes

    db.commit()
    db.refresh(request)
    logger.info(
        "Data export request status updated",
        extra={
            "clinic_id": clinic_id,
            "request_id": request.id,
            "from_status": current.value,
            "to_status": new_status.value,
        },
    )
    return request


def effective_status(request: DataExportRequest, now: datetime | None = None) -> ExportStatus:
    """Stored status, with an elapsed download window read as expired."""

    return derive_effective_status(
        request.status,
        ensure_utc(request.download_expires_at),
        ensure_utc(now) or utcnow(),
    )


def expire_elapsed_downloads(
    db: Session,
    clinic_id: str | None = None,
    *,
    reference_time: datetime | None = None,
) -> int:
    """Store ``expired`` on completed requests whose download window elapsed."""

    now = ensure_utc(reference_time) or utcnow()
    stmt = select(DataExportRequest).where(
        DataExportRequest.status == ExportStatus.completed,
        DataExportRequest.download_expires_at.is_not(None),
        DataExportRequest.download_expires_at <= now,
    )
    if clinic_id is not None:
        stmt = stmt.where(DataExportRequest.clinic_id == clinic_id)
    elapsed = db.scalars(stmt).all()
    if not elapsed:
        return 0

    for request in elapsed:
        set_status(db, request.clinic_id, request.id, ExportStatus.expired)

    logger.info("Expired export downloads closed", extra={"count": len(elapsed)})
    return len(elapsed)


__all__ = [
    "ALLOWED_TRANSITIONS",
    "create",
    "get_by_id",
    "list_for_user",
    "list_by_status",
    "set_status",
    "effective_status",
    "expire_elapsed_downloads",
]
