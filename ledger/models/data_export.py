"""Data-subject request model."""
from __future__ import annotations

import enum
from datetime import datetime, timedelta

from sqlalchemy import DateTime, Enum as SqlEnum, Index, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TenantScopedMixin

DOWNLOAD_WINDOW = timedelta(hours=24)


class DataSubjectRight(str, enum.Enum):
    """Rights a data subject can exercise (LGPD Art. 18)."""

    access = "access"
    correction = "correction"
    anonymization = "anonymization"
    portability = "portability"
    deletion = "deletion"
    information = "information"
    revocation = "revocation"
    opposition = "opposition"


class ExportStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"
    expired = "expired"


class ExportFormat(str, enum.Enum):
    json = "json"
    pdf = "pdf"
    csv = "csv"


class DataExportRequest(TenantScopedMixin, Base):
    """Tracks a subject-rights request from creation to fulfilment."""

    __tablename__ = "data_export_requests"
    __table_args__ = (
        UniqueConstraint("clinic_id", "idempotency_key", name="uq_data_export_requests_idempotency_key"),
        Index("ix_data_export_requests_status", "clinic_id", "status"),
    )

    type: Mapped[DataSubjectRight] = mapped_column(
        SqlEnum(DataSubjectRight, name="data_subject_right"), nullable=False
    )
    status: Mapped[ExportStatus] = mapped_column(
        SqlEnum(ExportStatus, name="export_status"), nullable=False, default=ExportStatus.pending
    )
    data_categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    format: Mapped[ExportFormat] = mapped_column(SqlEnum(ExportFormat, name="export_format"), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    download_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    download_expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(128), nullable=True)


def derive_effective_status(
    status: ExportStatus,
    download_expires_at: datetime | None,
    now: datetime,
) -> ExportStatus:
    """Read a completed request whose download window elapsed as expired."""

    if status is ExportStatus.completed and download_expires_at is not None:
        if download_expires_at.tzinfo is None:
            download_expires_at = download_expires_at.replace(tzinfo=now.tzinfo)
        if download_expires_at <= now:
            return ExportStatus.expired
    return status


__all__ = [
    "DOWNLOAD_WINDOW",
    "DataExportRequest",
    "DataSubjectRight",
    "ExportFormat",
    "ExportStatus",
    "derive_effective_status",
]
