"""API routers for the compliance ledger."""
from fastapi import APIRouter

from . import audit_logs, consents, data_requests, health


def get_api_router() -> APIRouter:
    """Return the root API router."""

    api_router = APIRouter()
    api_router.include_router(health.router)
    api_router.include_router(audit_logs.router)
    api_router.include_router(consents.router)
    api_router.include_router(data_requests.router)
    return api_router
