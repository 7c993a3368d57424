"""Caller-side consent policy built on the per-purpose validity check."""
from __future__ import annotations

from sqlalchemy.orm import Session

from ledger.models.consent import DataCategory, ProcessingPurpose
from ledger.services.consents import is_valid

# Purposes a subject must have accepted for basic service operation.
REQUIRED_PURPOSES: tuple[ProcessingPurpose, ...] = (
    ProcessingPurpose.healthcare_provision,
    ProcessingPurpose.legal_obligation,
)

PURPOSE_DATA_CATEGORIES: dict[ProcessingPurpose, tuple[DataCategory, ...]] = {
    ProcessingPurpose.healthcare_provision: (
        DataCategory.identification,
        DataCategory.contact,
        DataCategory.health,
    ),
    ProcessingPurpose.legal_obligation: (DataCategory.identification, DataCategory.health),
    ProcessingPurpose.vital_interests: (DataCategory.identification, DataCategory.health),
    ProcessingPurpose.legitimate_interest: (DataCategory.identification, DataCategory.behavioral),
    ProcessingPurpose.consent_based: (DataCategory.identification,),
    ProcessingPurpose.marketing: (DataCategory.contact,),
    ProcessingPurpose.analytics: (DataCategory.behavioral,),
    ProcessingPurpose.research: (DataCategory.health,),
}

SENSITIVE_CATEGORIES = frozenset({DataCategory.health, DataCategory.biometric, DataCategory.genetic})

EXPLICIT_CONSENT_PURPOSES = frozenset(
    {ProcessingPurpose.consent_based, ProcessingPurpose.marketing, ProcessingPurpose.research}
)

LEGAL_BASES: dict[ProcessingPurpose, str] = {
    ProcessingPurpose.healthcare_provision: "Art. 7, II - Execução de contrato",
    ProcessingPurpose.legal_obligation: "Art. 7, II - Cumprimento de obrigação legal",
    ProcessingPurpose.vital_interests: "Art. 7, VII - Proteção da vida",
    ProcessingPurpose.legitimate_interest: "Art. 7, IX - Interesse legítimo",
    ProcessingPurpose.consent_based: "Art. 7, I - Consentimento",
    ProcessingPurpose.marketing: "Art. 7, I - Consentimento",
    ProcessingPurpose.analytics: "Art. 7, IX - Interesse legítimo",
    ProcessingPurpose.research: "Art. 7, IV - Pesquisa",
}


def missing_required_purposes(db: Session, clinic_id: str, user_id: str) -> list[ProcessingPurpose]:
    return [purpose for purpose in REQUIRED_PURPOSES if not is_valid(db, clinic_id, user_id, purpose)]


def has_all_required_consents(db: Session, clinic_id: str, user_id: str) -> bool:
    return not missing_required_purposes(db, clinic_id, user_id)


def is_sensitive_category(category: DataCategory) -> bool:
    return DataCategory(category) in SENSITIVE_CATEGORIES


def requires_explicit_consent(purpose: ProcessingPurpose) -> bool:
    return ProcessingPurpose(purpose) in EXPLICIT_CONSENT_PURPOSES


def legal_basis(purpose: ProcessingPurpose) -> str:
    return LEGAL_BASES[ProcessingPurpose(purpose)]


def default_categories(purpose: ProcessingPurpose) -> list[DataCategory]:
    return list(PURPOSE_DATA_CATEGORIES[ProcessingPurpose(purpose)])


__all__ = [
    "REQUIRED_PURPOSES",
    "PURPOSE_DATA_CATEGORIES",
    "SENSITIVE_CATEGORIES",
    "EXPLICIT_CONSENT_PURPOSES",
    "LEGAL_BASES",
    "missing_required_purposes",
    "has_all_required_consents",
    "is_sensitive_category",
    "requires_explicit_consent",
    "legal_basis",
    "default_categories",
]
