"""Audit log model."""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Enum as SqlEnum, Index, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TenantScopedMixin


class AuditAction(str, enum.Enum):
    view = "view"
    create = "create"
    update = "update"
    delete = "delete"
    export = "export"
    share = "share"
    login = "login"
    logout = "logout"
    consent_grant = "consent_grant"
    consent_withdraw = "consent_withdraw"
    data_request = "data_request"
    data_breach = "data_breach"


class AuditResourceType(str, enum.Enum):
    patient = "patient"
    appointment = "appointment"
    medical_record = "medical_record"
    prescription = "prescription"
    lab_result = "lab_result"
    transaction = "transaction"
    user = "user"
    consent = "consent"
    document = "document"
    telemedicine_session = "telemedicine_session"
    conversation = "conversation"
    message = "message"
    record_version = "record_version"
    guia = "guia"
    glosa = "glosa"
    task = "task"
    clinic = "clinic"
    operadora = "operadora"


class AuditLog(TenantScopedMixin, Base):
    """Immutable fact about one action taken against one resource."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_resource", "clinic_id", "resource_type", "resource_id"),
        Index("ix_audit_logs_action", "clinic_id", "action"),
    )

    user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    action: Mapped[AuditAction] = mapped_column(SqlEnum(AuditAction, name="audit_action"), nullable=False)
    resource_type: Mapped[AuditResourceType] = mapped_column(
        SqlEnum(AuditResourceType, name="audit_resource_type"), nullable=False
    )
    resource_id: Mapped[str] = mapped_column(String(128), nullable=False)
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    modified_fields: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    previous_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_values: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    location: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    request_id: Mapped[str] = mapped_column(String(36), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


__all__ = ["AuditAction", "AuditLog", "AuditResourceType"]
