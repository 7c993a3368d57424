"""Schema package exports."""
from .audit import AuditEventCreate, AuditLocation, AuditLogCreate, AuditLogRead
from .consent import (
    ConsentCreate,
    ConsentRead,
    ConsentStatusUpdate,
    ConsentValidity,
    RequiredConsentsStatus,
)
from .data_export import DataExportCreate, DataExportRead, DataExportStatusUpdate

__all__ = [
    "AuditEventCreate",
    "AuditLocation",
    "AuditLogCreate",
    "AuditLogRead",
    "ConsentCreate",
    "ConsentRead",
    "ConsentStatusUpdate",
    "ConsentValidity",
    "RequiredConsentsStatus",
    "DataExportCreate",
    "DataExportRead",
    "DataExportStatusUpdate",
]
