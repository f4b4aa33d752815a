"""
HTTP routes for the school data service.

Exposes the status line and the configuration / sync / import entry points
to the external UI. Domain actions are not exposed here; the UI process
embeds the service for those.

Error mapping:
    RemoteDisabledError       -> 409
    RemoteUnauthorizedError   -> 401
    RemoteSyncError (other)   -> 502
    LocalPersistenceError     -> 507
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from .._version import __version__
from ..errors import (
    DataStoreError,
    LocalPersistenceError,
    RemoteDisabledError,
    RemoteSyncError,
    RemoteUnauthorizedError,
)
from ..service import SchoolDataService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["School data"])


# =============================================================================
# Request/Response Models
# =============================================================================


class StatusResponse(BaseModel):
    """Current sync status."""
    state: str = Field(..., description="Sync state")
    error: Optional[str] = Field(None, description="Error kind when state is 'error'")
    text: str = Field(..., description="Short human-readable status line")
    sync_enabled: bool = Field(..., description="Whether remote credentials are configured")
    last_updated: int = Field(..., description="lastUpdated of the canonical snapshot (Unix ms)")


class RemoteSettingsRequest(BaseModel):
    """New remote credentials. Empty values disable sync."""
    url: str = Field("", description="Remote project URL")
    key: str = Field("", description="Public (anon) API key")


class RemoteSettingsResponse(BaseModel):
    """Saved remote credentials; the key itself is never returned."""
    url: str
    key_configured: bool
    sync_enabled: bool
    arbitration: Optional[str] = None
    status: Optional[StatusResponse] = None


class ImportResponse(BaseModel):
    last_updated: int
    status: StatusResponse


class PullResponse(BaseModel):
    pulled: bool = Field(..., description="False when no remote document exists")
    last_updated: int
    status: StatusResponse


# =============================================================================
# Helpers
# =============================================================================


def get_service(request: Request) -> SchoolDataService:
    """Get the service from app state."""
    return request.app.state.service


def _status(service: SchoolDataService) -> StatusResponse:
    status = service.status
    return StatusResponse(
        state=status.state.value,
        error=status.error.value if status.error else None,
        text=status.text,
        sync_enabled=service.sync_enabled,
        last_updated=service.current().last_updated,
    )


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, RemoteDisabledError):
        return HTTPException(status_code=409, detail=e.message)
    if isinstance(e, RemoteUnauthorizedError):
        return HTTPException(status_code=401, detail=e.message)
    if isinstance(e, RemoteSyncError):
        return HTTPException(status_code=502, detail=e.message)
    if isinstance(e, LocalPersistenceError):
        return HTTPException(status_code=507, detail=e.message)
    return HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/health")
async def health():
    return {"status": "healthy", "service": "school-datastore", "version": __version__}


@router.get("/status", response_model=StatusResponse)
async def get_status(service: SchoolDataService = Depends(get_service)):
    """Current sync status line."""
    return _status(service)


@router.get("/snapshot")
async def get_snapshot(service: SchoolDataService = Depends(get_service)) -> dict[str, Any]:
    """Full canonical snapshot (export)."""
    return service.current().to_document()


@router.put("/snapshot", response_model=ImportResponse)
async def import_snapshot(
    document: dict[str, Any] = Body(...),
    service: SchoolDataService = Depends(get_service),
):
    """
    Replace the whole snapshot with an imported document.

    The document is sanitized; malformed collections fall back to defaults.
    """
    installed = service.import_snapshot(document)
    logger.info("Snapshot imported over HTTP", extra={"last_updated": installed.last_updated})
    return ImportResponse(last_updated=installed.last_updated, status=_status(service))


@router.get("/settings/remote", response_model=RemoteSettingsResponse)
async def get_remote_settings(service: SchoolDataService = Depends(get_service)):
    credentials = service.credentials
    return RemoteSettingsResponse(
        url=credentials.endpoint,
        key_configured=bool(credentials.key),
        sync_enabled=service.sync_enabled,
    )


@router.put("/settings/remote", response_model=RemoteSettingsResponse)
async def update_remote_settings(
    request: RemoteSettingsRequest,
    service: SchoolDataService = Depends(get_service),
):
    """
    Save remote credentials and reconnect.

    Reconnecting runs the startup arbitration again, which may replace the
    local snapshot with a newer remote copy.
    """
    try:
        outcome = await service.update_credentials(request.url, request.key)
    except DataStoreError as e:
        logger.error(f"Saving remote settings failed: {e}")
        raise _http_error(e)

    credentials = service.credentials
    return RemoteSettingsResponse(
        url=credentials.endpoint,
        key_configured=bool(credentials.key),
        sync_enabled=service.sync_enabled,
        arbitration=outcome.value,
        status=_status(service),
    )


@router.post("/sync/push", response_model=StatusResponse)
async def force_push(service: SchoolDataService = Depends(get_service)):
    """Upload the current snapshot now."""
    try:
        await service.force_sync()
    except DataStoreError as e:
        logger.warning(f"Force push failed: {e}")
        raise _http_error(e)
    return _status(service)


@router.post("/sync/pull", response_model=PullResponse)
async def force_pull(service: SchoolDataService = Depends(get_service)):
    """Replace the local snapshot with the remote copy, ignoring timestamps."""
    try:
        installed = await service.force_pull()
    except DataStoreError as e:
        logger.warning(f"Force pull failed: {e}")
        raise _http_error(e)
    return PullResponse(
        pulled=installed is not None,
        last_updated=service.current().last_updated,
        status=_status(service),
    )
