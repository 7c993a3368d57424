"""Audit log services.

Entries are append-only: this module inserts and reads, it never updates or
deletes. Store errors propagate to the caller untouched.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger.core.request_context import current_user_agent
from ledger.models.audit import AuditAction, AuditLog, AuditResourceType
from ledger.schemas.audit import AuditEventCreate
from ledger.utils.audit import diff_fields, sanitize_payload_for_audit
from ledger.utils.errors import coerce_enum
from ledger.utils.time import utcnow

logger = logging.getLogger(__name__)

DEFAULT_QUERY_LIMIT = 100


def _resource_type(value: AuditResourceType | str) -> AuditResourceType:
    return coerce_enum(AuditResourceType, value, code="INVALID_RESOURCE_TYPE")


def _sanitized(value: dict[str, Any] | None) -> dict[str, Any] | None:
    if value is None:
        return None
    return sanitize_payload_for_audit(value)


def record_audit_event(
    db: Session,
    clinic_id: str,
    user_id: str,
    user_name: str,
    event: AuditEventCreate,
    *,
    commit: bool = True,
) -> AuditLog:
    """Append one audit entry and return it.

    With ``commit=False`` the entry is only flushed so the caller can commit it
    together with the record it describes.
    """

    entry = AuditLog(
        clinic_id=clinic_id,
        user_id=user_id,
        user_name=user_name or "",
        action=event.action,
        resource_type=event.resource_type,
        resource_id=event.resource_id,
        details=_sanitized(event.details),
        modified_fields=list(event.modified_fields) if event.modified_fields is not None else None,
        previous_values=_sanitized(event.previous_values),
        new_values=_sanitized(event.new_values),
        ip_address=event.ip_address,
        user_agent=current_user_agent(),
        location=event.location.model_dump(exclude_none=True) if event.location else None,
        session_id=event.session_id,
        request_id=str(uuid.uuid4()),
        timestamp=utcnow(),
    )
    db.add(entry)
    db.flush()
    if commit:
        db.commit()
    logger.info(
        "Audit event recorded",
        extra={
            "clinic_id": clinic_id,
            "audit_id": entry.id,
            "action": entry.action.value,
            "resource_type": entry.resource_type.value,
        },
    )
    return entry


def _query(db: Session, clinic_id: str, *conditions: Any, limit: int) -> list[AuditLog]:
    stmt = (
        select(AuditLog)
        .where(AuditLog.clinic_id == clinic_id, *conditions)
        .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt).all())


def query_by_resource(
    db: Session,
    clinic_id: str,
    resource_type: AuditResourceType | str,
    resource_id: str,
    limit: int = DEFAULT_QUERY_LIMIT,
) -> list[AuditLog]:
    """Return entries for one resource, most recent first."""

    resource_type = _resource_type(resource_type)
    return _query(
        db,
        clinic_id,
        AuditLog.resource_type == resource_type,
        AuditLog.resource_id == resource_id,
        limit=limit,
    )


def query_by_user(db: Session, clinic_id: str, user_id: str, limit: int = DEFAULT_QUERY_LIMIT) -> list[AuditLog]:
    """Return entries where ``user_id`` is the actor, most recent first."""

    return _query(db, clinic_id, AuditLog.user_id == user_id, limit=limit)


def query_by_action(
    db: Session,
    clinic_id: str,
    action: AuditAction | str,
    limit: int = DEFAULT_QUERY_LIMIT,
) -> list[AuditLog]:
    """Return entries of one action type, most recent first."""

    action = coerce_enum(AuditAction, action, code="INVALID_AUDIT_ACTION")
    return _query(db, clinic_id, AuditLog.action == action, limit=limit)


@dataclass(frozen=True)
class AuditUserContext:
    """The actor on whose behalf business code writes audit entries."""

    clinic_id: str
    user_id: str
    user_name: str = ""


def log_event(db: Session, context: AuditUserContext, event: AuditEventCreate) -> AuditLog:
    return record_audit_event(db, context.clinic_id, context.user_id, context.user_name, event)


def log_view(
    db: Session,
    context: AuditUserContext,
    resource_type: AuditResourceType | str,
    resource_id: str,
    details: dict[str, Any] | None = None,
) -> AuditLog:
    return log_event(
        db,
        context,
        AuditEventCreate(
            action=AuditAction.view,
            resource_type=_resource_type(resource_type),
            resource_id=resource_id,
            details=details,
        ),
    )


def log_create(
    db: Session,
    context: AuditUserContext,
    resource_type: AuditResourceType | str,
    resource_id: str,
    new_values: dict[str, Any] | None = None,
) -> AuditLog:
    return log_event(
        db,
        context,
        AuditEventCreate(
            action=AuditAction.create,
            resource_type=_resource_type(resource_type),
            resource_id=resource_id,
            new_values=new_values,
        ),
    )


def log_update(
    db: Session,
    context: AuditUserContext,
    resource_type: AuditResourceType | str,
    resource_id: str,
    previous_values: dict[str, Any],
    new_values: dict[str, Any],
) -> AuditLog:
    """Record an update; ``modified_fields`` is derived from the two snapshots."""

    return log_event(
        db,
        context,
        AuditEventCreate(
            action=AuditAction.update,
            resource_type=_resource_type(resource_type),
            resource_id=resource_id,
            modified_fields=diff_fields(previous_values, new_values),
            previous_values=previous_values,
            new_values=new_values,
        ),
    )


def log_delete(
    db: Session,
    context: AuditUserContext,
    resource_type: AuditResourceType | str,
    resource_id: str,
    previous_values: dict[str, Any] | None = None,
) -> AuditLog:
    return log_event(
        db,
        context,
        AuditEventCreate(
            action=AuditAction.delete,
            resource_type=_resource_type(resource_type),
            resource_id=resource_id,
            previous_values=previous_values,
        ),
    )


def log_export(
    db: Session,
    context: AuditUserContext,
    resource_type: AuditResourceType | str,
    resource_id: str,
    details: dict[str, Any] | None = None,
) -> AuditLog:
    return log_event(
        db,
        context,
        AuditEventCreate(
            action=AuditAction.export,
            resource_type=_resource_type(resource_type),
            resource_id=resource_id,
            details=details,
        ),
    )


__all__ = [
    "DEFAULT_QUERY_LIMIT",
    "AuditUserContext",
    "record_audit_event",
    "query_by_resource",
    "query_by_user",
    "query_by_action",
    "log_event",
    "log_view",
    "log_create",
    "log_update",
    "log_delete",
    "log_export",
]
