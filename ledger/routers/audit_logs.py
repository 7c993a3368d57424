"""Audit trail endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ledger.db import get_db
from ledger.models.audit import AuditAction, AuditLog, AuditResourceType
from ledger.schemas.audit import AuditEventCreate, AuditLogCreate, AuditLogRead
from ledger.services import audit as audit_service

router = APIRouter(prefix="/clinics/{clinic_id}/audit-logs", tags=["audit"])

LimitQuery = Query(default=audit_service.DEFAULT_QUERY_LIMIT, ge=1, le=1000)


@router.post("", response_model=AuditLogRead, status_code=status.HTTP_201_CREATED)
def record_audit_log(clinic_id: str, payload: AuditLogCreate, db: Session = Depends(get_db)) -> AuditLog:
    """Append an audit entry on behalf of a business action."""

    event = AuditEventCreate.model_validate(payload.model_dump(exclude={"user_id", "user_name"}))
    return audit_service.record_audit_event(db, clinic_id, payload.user_id, payload.user_name, event)


@router.get("/resources/{resource_type}/{resource_id}", response_model=list[AuditLogRead])
def list_resource_audit_logs(
    clinic_id: str,
    resource_type: AuditResourceType,
    resource_id: str,
    limit: int = LimitQuery,
    db: Session = Depends(get_db),
) -> list[AuditLog]:
    return audit_service.query_by_resource(db, clinic_id, resource_type, resource_id, limit=limit)


@router.get("/users/{user_id}", response_model=list[AuditLogRead])
def list_user_audit_logs(
    clinic_id: str,
    user_id: str,
    limit: int = LimitQuery,
    db: Session = Depends(get_db),
) -> list[AuditLog]:
    return audit_service.query_by_user(db, clinic_id, user_id, limit=limit)


@router.get("/actions/{action}", response_model=list[AuditLogRead])
def list_action_audit_logs(
    clinic_id: str,
    action: AuditAction,
    limit: int = LimitQuery,
    db: Session = Depends(get_db),
) -> list[AuditLog]:
    return audit_service.query_by_action(db, clinic_id, action, limit=limit)
