"""Consent ledger endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from ledger.db import get_db
from ledger.models.consent import ConsentRecord, ProcessingPurpose
from ledger.schemas.consent import (
    ConsentCreate,
    ConsentRead,
    ConsentStatusUpdate,
    ConsentValidity,
    RequiredConsentsStatus,
)
from ledger.services import consent_policy
from ledger.services import consents as consent_service

router = APIRouter(prefix="/clinics/{clinic_id}/consents", tags=["consents"])


@router.post("", response_model=ConsentRead, status_code=status.HTTP_201_CREATED)
def record_consent(
    clinic_id: str,
    payload: ConsentCreate,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
) -> ConsentRecord:
    """Grant or withdraw consent for one processing purpose."""

    categories = payload.data_categories
    if categories is None:
        categories = consent_policy.default_categories(payload.purpose)
    return consent_service.grant_or_withdraw(
        db,
        clinic_id,
        payload.user_id,
        payload.purpose,
        categories,
        payload.status,
        payload.version,
        expires_at=payload.expires_at,
        ip_address=payload.ip_address,
        user_name=payload.user_name,
        idempotency_key=idempotency_key,
    )


@router.get("/users/{user_id}", response_model=list[ConsentRead])
def list_user_consents(clinic_id: str, user_id: str, db: Session = Depends(get_db)) -> list[ConsentRecord]:
    return consent_service.list_for_user(db, clinic_id, user_id)


@router.patch("/{consent_id}/status", response_model=ConsentRead)
def update_consent_status(
    clinic_id: str,
    consent_id: int,
    payload: ConsentStatusUpdate,
    db: Session = Depends(get_db),
) -> ConsentRecord:
    return consent_service.set_status(db, clinic_id, consent_id, payload.status)


@router.get("/users/{user_id}/purposes/{purpose}", response_model=ConsentValidity)
def check_consent(
    clinic_id: str,
    user_id: str,
    purpose: ProcessingPurpose,
    db: Session = Depends(get_db),
) -> ConsentValidity:
    """Return whether the purpose is currently authorized for the subject."""

    valid = consent_service.is_valid(db, clinic_id, user_id, purpose)
    return ConsentValidity(user_id=user_id, purpose=purpose, valid=valid)


@router.get("/users/{user_id}/required", response_model=RequiredConsentsStatus)
def required_consents(clinic_id: str, user_id: str, db: Session = Depends(get_db)) -> RequiredConsentsStatus:
    missing = consent_policy.missing_required_purposes(db, clinic_id, user_id)
    return RequiredConsentsStatus(user_id=user_id, complete=not missing, missing=missing)
