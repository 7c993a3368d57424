"""Pydantic schemas for audit log entries."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ledger.models.audit import AuditAction, AuditResourceType


class AuditLocation(BaseModel):
    country: str | None = None
    region: str | None = None
    city: str | None = None


class AuditEventCreate(BaseModel):
    """What happened, plus optional forensic detail supplied by the caller."""

    action: AuditAction
    resource_type: AuditResourceType
    resource_id: str = Field(min_length=1, max_length=128)
    details: dict[str, Any] | None = None
    modified_fields: list[str] | None = None
    previous_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    ip_address: str | None = Field(default=None, max_length=64)
    session_id: str | None = Field(default=None, max_length=128)
    location: AuditLocation | None = None


class AuditLogCreate(AuditEventCreate):
    """Payload schema to record an audit entry over HTTP."""

    user_id: str = Field(min_length=1, max_length=128)
    user_name: str = Field(default="", max_length=255)


class AuditLogRead(BaseModel):
    id: int
    clinic_id: str
    user_id: str
    user_name: str
    action: AuditAction
    resource_type: AuditResourceType
    resource_id: str
    details: dict[str, Any] | None = None
    modified_fields: list[str] | None = None
    previous_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    location: AuditLocation | None = None
    session_id: str | None = None
    request_id: str
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
