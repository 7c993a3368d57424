"""Consent ledger model."""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum as SqlEnum, Index, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TenantScopedMixin

DEFAULT_CONSENT_VERSION = "1.0.0"


class ProcessingPurpose(str, enum.Enum):
    """Legal bases for processing personal data (LGPD Art. 7)."""

    healthcare_provision = "healthcare_provision"
    legal_obligation = "legal_obligation"
    vital_interests = "vital_interests"
    legitimate_interest = "legitimate_interest"
    consent_based = "consent_based"
    marketing = "marketing"
    analytics = "analytics"
    research = "research"


class DataCategory(str, enum.Enum):
    identification = "identification"
    contact = "contact"
    health = "health"
    financial = "financial"
    biometric = "biometric"
    genetic = "genetic"
    location = "location"
    behavioral = "behavioral"


class ConsentStatus(str, enum.Enum):
    granted = "granted"
    withdrawn = "withdrawn"


class ConsentRecord(TenantScopedMixin, Base):
    """One grant or withdraw event for a (user, purpose) pair."""

    __tablename__ = "consents"
    __table_args__ = (
        UniqueConstraint("clinic_id", "idempotency_key", name="uq_consents_idempotency_key"),
        Index("ix_consents_user_purpose", "clinic_id", "user_id", "purpose"),
    )

    purpose: Mapped[ProcessingPurpose] = mapped_column(
        SqlEnum(ProcessingPurpose, name="processing_purpose"), nullable=False
    )
    data_categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[ConsentStatus] = mapped_column(SqlEnum(ConsentStatus, name="consent_status"), nullable=False)
    version: Mapped[str] = mapped_column(String(32), nullable=False, default=DEFAULT_CONSENT_VERSION)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    granted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    withdrawn_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    idempotency_key: Mapped[str | None] = mapped_column(String(128), nullable=True)


__all__ = [
    "DEFAULT_CONSENT_VERSION",
    "ConsentRecord",
    "ConsentStatus",
    "DataCategory",
    "ProcessingPurpose",
]
