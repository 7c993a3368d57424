"""Data-subject request endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from ledger.db import get_db
from ledger.models.data_export import DataExportRequest, ExportStatus
from ledger.schemas.data_export import DataExportCreate, DataExportRead, DataExportStatusUpdate
from ledger.services import data_exports as export_service
from ledger.utils.errors import not_found

router = APIRouter(prefix="/clinics/{clinic_id}/data-requests", tags=["data-requests"])


@router.post("", response_model=DataExportRead, status_code=status.HTTP_201_CREATED)
def create_data_request(
    clinic_id: str,
    payload: DataExportCreate,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
) -> DataExportRequest:
    """Open an access, portability or deletion request for a subject."""

    return export_service.create(
        db,
        clinic_id,
        payload.user_id,
        payload.type,
        payload.data_categories,
        payload.format,
        payload.reason,
        user_name=payload.user_name,
        idempotency_key=idempotency_key,
    )


@router.get("", response_model=list[DataExportRead])
def list_data_requests_by_status(
    clinic_id: str,
    status: ExportStatus = ExportStatus.pending,
    db: Session = Depends(get_db),
) -> list[DataExportRequest]:
    """Operator queue of requests in one stored status."""

    return export_service.list_by_status(db, clinic_id, status)


@router.post("/expire", status_code=status.HTTP_202_ACCEPTED)
def expire_data_request_downloads(clinic_id: str, db: Session = Depends(get_db)) -> dict[str, int]:
    """Mark completed requests whose download window elapsed as expired."""

    expired = export_service.expire_elapsed_downloads(db, clinic_id)
    return {"expired": expired}


@router.get("/users/{user_id}", response_model=list[DataExportRead])
def list_user_data_requests(
    clinic_id: str,
    user_id: str,
    db: Session = Depends(get_db),
) -> list[DataExportRequest]:
    return export_service.list_for_user(db, clinic_id, user_id)


@router.get("/{request_id}", response_model=DataExportRead)
def get_data_request(clinic_id: str, request_id: int, db: Session = Depends(get_db)) -> DataExportRequest:
    request = export_service.get_by_id(db, clinic_id, request_id)
    if request is None:
        raise not_found("EXPORT_REQUEST_NOT_FOUND", "Data export request not found.")
    return request


@router.patch("/{request_id}/status", response_model=DataExportRead)
def update_data_request_status(
    clinic_id: str,
    request_id: int,
    payload: DataExportStatusUpdate,
    db: Session = Depends(get_db),
) -> DataExportRequest:
    return export_service.set_status(
        db,
        clinic_id,
        request_id,
        payload.status,
        payload.download_url,
        error_message=payload.error_message,
        notes=payload.notes,
    )
