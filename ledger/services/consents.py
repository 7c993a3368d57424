"""Consent ledger services.

Grant and withdraw calls always append a new record; ``is_valid`` resolves
the most recent record for a (user, purpose) pair and is the only place
consent validity is computed.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger.core.request_context import current_user_agent
from ledger.models.audit import AuditAction, AuditResourceType
from ledger.models.consent import (
    DEFAULT_CONSENT_VERSION,
    ConsentRecord,
    ConsentStatus,
    DataCategory,
    ProcessingPurpose,
)
from ledger.schemas.audit import AuditEventCreate
from ledger.services.audit import record_audit_event
from ledger.services.idempotency import persist_once
from ledger.utils.errors import coerce_enum, coerce_enum_list, not_found
from ledger.utils.time import ensure_utc, utcnow

logger = logging.getLogger(__name__)

_AUDIT_ACTIONS = {
    ConsentStatus.granted: AuditAction.consent_grant,
    ConsentStatus.withdrawn: AuditAction.consent_withdraw,
}


def _purpose(value: ProcessingPurpose | str) -> ProcessingPurpose:
    return coerce_enum(ProcessingPurpose, value, code="INVALID_PURPOSE")


def _status(value: ConsentStatus | str) -> ConsentStatus:
    return coerce_enum(ConsentStatus, value, code="INVALID_CONSENT_STATUS")


def grant_or_withdraw(
    db: Session,
    clinic_id: str,
    user_id: str,
    purpose: ProcessingPurpose | str,
    data_categories: Iterable[DataCategory | str],
    status: ConsentStatus | str,
    version: str | None = None,
    *,
    expires_at: datetime | None = None,
    ip_address: str | None = None,
    user_name: str = "",
    idempotency_key: str | None = None,
) -> ConsentRecord:
    """Append a grant or withdraw event and audit it in the same transaction."""

    purpose = _purpose(purpose)
    status = _status(status)
    categories = coerce_enum_list(DataCategory, data_categories, code="INVALID_DATA_CATEGORY")

    now = utcnow()
    record = ConsentRecord(
        clinic_id=clinic_id,
        user_id=user_id,
        purpose=purpose,
        data_categories=[category.value for category in categories],
        status=status,
        version=version or DEFAULT_CONSENT_VERSION,
        ip_address=ip_address,
        user_agent=current_user_agent(),
        granted_at=now if status is ConsentStatus.granted else None,
        withdrawn_at=now if status is ConsentStatus.withdrawn else None,
        expires_at=ensure_utc(expires_at),
        idempotency_key=idempotency_key,
        created_at=now,
        updated_at=now,
    )

    def _audit(saved: ConsentRecord) -> None:
        record_audit_event(
            db,
            clinic_id,
            user_id,
            user_name,
            AuditEventCreate(
                action=_AUDIT_ACTIONS[status],
                resource_type=AuditResourceType.consent,
                resource_id=str(saved.id),
                details={
                    "purpose": purpose.value,
                    "data_categories": saved.data_categories,
                },
                ip_address=ip_address,
            ),
            commit=False,
        )

    def _same_request(stored: ConsentRecord) -> bool:
        return (
            stored.user_id == user_id
            and stored.purpose is purpose
            and stored.status is status
            and sorted(stored.data_categories) == sorted(record.data_categories)
        )

    record, created = persist_once(
        db,
        record,
        clinic_id=clinic_id,
        idempotency_key=idempotency_key,
        after_flush=_audit,
        same_request=_same_request,
    )
    if created:
        logger.info(
            "Consent recorded",
            extra={
                "clinic_id": clinic_id,
                "consent_id": record.id,
                "purpose": purpose.value,
                "status": status.value,
            },
        )
    return record


def list_for_user(db: Session, clinic_id: str, user_id: str) -> list[ConsentRecord]:
    """Return every consent record of a subject, newest first."""

    stmt = (
        select(ConsentRecord)
        .where(ConsentRecord.clinic_id == clinic_id, ConsentRecord.user_id == user_id)
        .order_by(ConsentRecord.created_at.desc(), ConsentRecord.id.desc())
    )
    return list(db.scalars(stmt).all())


def get_consent(db: Session, clinic_id: str, record_id: int) -> ConsentRecord | None:
    stmt = select(ConsentRecord).where(ConsentRecord.clinic_id == clinic_id, ConsentRecord.id == record_id)
    return db.scalars(stmt).first()


def set_status(
    db: Session,
    clinic_id: str,
    record_id: int,
    status: ConsentStatus | str,
) -> ConsentRecord:
    """Correct the status of an existing record in place.

    Only the stored status, the granted/withdrawn timestamps and ``updated_at``
    change (the timestamp of the other status is cleared); no new
    record and no audit entry are written.
    """

    status = _status(status)
    record = get_consent(db, clinic_id, record_id)
    if record is None:
        raise not_found("CONSENT_NOT_FOUND", "Consent record not found.")

    now = utcnow()
    record.status = status
    if status is ConsentStatus.granted:
        record.granted_at, record.withdrawn_at = now, None
    else:
        record.granted_at, record.withdrawn_at = None, now
    record.updated_at = now
    db.commit()
    db.refresh(record)
    logger.info(
        "Consent status updated",
        extra={"clinic_id": clinic_id, "consent_id": record.id, "status": status.value},
    )
    return record


def current_record(
    db: Session,
    clinic_id: str,
    user_id: str,
    purpose: ProcessingPurpose | str,
) -> ConsentRecord | None:
    """Return the most recent record for a (user, purpose) pair."""

    stmt = (
        select(ConsentRecord)
        .where(
            ConsentRecord.clinic_id == clinic_id,
            ConsentRecord.user_id == user_id,
            ConsentRecord.purpose == _purpose(purpose),
        )
        .order_by(ConsentRecord.created_at.desc(), ConsentRecord.id.desc())
        .limit(1)
    )
    return db.scalars(stmt).first()


def is_valid(
    db: Session,
    clinic_id: str,
    user_id: str,
    purpose: ProcessingPurpose | str,
    *,
    reference_time: datetime | None = None,
) -> bool:
    """Return whether ``purpose`` is currently authorized for the subject."""

    record = current_record(db, clinic_id, user_id, purpose)
    if record is None or record.status is not ConsentStatus.granted:
        return False

    expires_at = ensure_utc(record.expires_at)
    now = ensure_utc(reference_time) or utcnow()
    if expires_at is not None and expires_at < now:
        return False
    return True


__all__ = [
    "grant_or_withdraw",
    "list_for_user",
    "get_consent",
    "set_status",
    "current_record",
    "is_valid",
]
