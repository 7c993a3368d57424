"""Pydantic schemas for data-subject requests."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ledger.models.consent import DataCategory
from ledger.models.data_export import (
    DataSubjectRight,
    ExportFormat,
    ExportStatus,
    derive_effective_status,
)
from ledger.utils.time import ensure_utc, utcnow


class DataExportCreate(BaseModel):
    """Payload schema for a subject opening a rights request."""

    user_id: str = Field(min_length=1, max_length=128)
    user_name: str = Field(default="", max_length=255)
    type: DataSubjectRight
    data_categories: list[DataCategory]
    format: ExportFormat
    reason: str | None = Field(default=None, max_length=2000)


class DataExportStatusUpdate(BaseModel):
    status: ExportStatus
    download_url: str | None = Field(default=None, max_length=2048)
    error_message: str | None = None
    notes: str | None = None


class DataExportRead(BaseModel):
    id: int
    clinic_id: str
    user_id: str
    type: DataSubjectRight
    status: ExportStatus
    effective_status: ExportStatus | None = None
    data_categories: list[DataCategory]
    format: ExportFormat
    reason: str | None = None
    notes: str | None = None
    error_message: str | None = None
    download_url: str | None = None
    download_expires_at: datetime | None = None
    created_at: datetime
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def _derive_effective_status(self) -> "DataExportRead":
        if self.effective_status is None:
            self.effective_status = derive_effective_status(
                self.status, ensure_utc(self.download_expires_at), utcnow()
            )
        return self
