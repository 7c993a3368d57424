"""ORM models package."""
from .audit import AuditAction, AuditLog, AuditResourceType
from .base import Base
from .consent import DEFAULT_CONSENT_VERSION, ConsentRecord, ConsentStatus, DataCategory, ProcessingPurpose
from .data_export import DataExportRequest, DataSubjectRight, ExportFormat, ExportStatus

__all__ = [
    "AuditAction",
    "AuditLog",
    "AuditResourceType",
    "Base",
    "ConsentRecord",
    "ConsentStatus",
    "DataCategory",
    "DataExportRequest",
    "DataSubjectRight",
    "DEFAULT_CONSENT_VERSION",
    "ExportFormat",
    "ExportStatus",
    "ProcessingPurpose",
]
