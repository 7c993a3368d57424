"""Pydantic schemas for consent records."""
from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledger.models.consent import ConsentStatus, DataCategory, ProcessingPurpose


class ConsentCreate(BaseModel):
    """Payload schema to grant or withdraw consent for one purpose."""

    user_id: str = Field(min_length=1, max_length=128)
    user_name: str = Field(default="", max_length=255)
    purpose: ProcessingPurpose
    data_categories: list[DataCategory] | None = None
    status: ConsentStatus
    version: str | None = Field(default=None, max_length=32)
    expires_at: datetime | None = None
    ip_address: str | None = Field(default=None, max_length=64)

    @field_validator("expires_at")
    @classmethod
    def _ensure_timezone(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class ConsentStatusUpdate(BaseModel):
    status: ConsentStatus


class ConsentRead(BaseModel):
    id: int
    clinic_id: str
    user_id: str
    purpose: ProcessingPurpose
    data_categories: list[DataCategory]
    status: ConsentStatus
    version: str
    ip_address: str | None = None
    user_agent: str | None = None
    granted_at: datetime | None = None
    withdrawn_at: datetime | None = None
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConsentValidity(BaseModel):
    user_id: str
    purpose: ProcessingPurpose
    valid: bool


class RequiredConsentsStatus(BaseModel):
    user_id: str
    complete: bool
    missing: list[ProcessingPurpose]
