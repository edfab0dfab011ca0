"""Printer profile routes (list, add, edit, delete, select, connection test)."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..storage import PrinterProfile, ProfileDraft, ProfilePatch
from .exceptions import handle_printer_errors, printer_not_found
from .models import VersionInfo

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/printers", tags=["printers"])


class ConnectionTestRequest(BaseModel):
    """Credentials to check before saving a profile."""

    serverUrl: str = Field(..., min_length=1)
    apiKey: str = Field(..., min_length=1)


def _profile_dict(profile: PrinterProfile, active_id: Optional[str]) -> Dict[str, Any]:
    data = profile.model_dump()
    data["active"] = profile.id == active_id
    return data


@router.get("")
async def list_printers(request: Request) -> List[Dict[str, Any]]:
    """Return all printer profiles in display order."""
    registry = request.app.state.session.registry
    return [_profile_dict(p, registry.active_id) for p in registry.list()]


@router.get("/active")
async def get_active_printer(request: Request) -> Optional[Dict[str, Any]]:
    """Return the active printer, or null when none is configured."""
    registry = request.app.state.session.registry
    active = registry.get_active()
    return _profile_dict(active, registry.active_id) if active else None


@router.post("", status_code=201)
@handle_printer_errors
async def add_printer(request: Request, draft: ProfileDraft) -> Dict[str, Any]:
    """Add a printer profile; it becomes the active printer."""
    registry = request.app.state.session.registry
    printer_id = registry.add(draft)
    return _profile_dict(registry.require(printer_id), registry.active_id)


@router.patch("/{printer_id}")
@handle_printer_errors
async def update_printer(request: Request, printer_id: str, patch: ProfilePatch) -> Dict[str, Any]:
    """Edit fields of an existing profile."""
    registry = request.app.state.session.registry
    if not registry.update(printer_id, patch):
        raise printer_not_found(printer_id)
    return _profile_dict(registry.require(printer_id), registry.active_id)


@router.delete("/{printer_id}")
async def delete_printer(request: Request, printer_id: str) -> Dict[str, Any]:
    """Delete a profile; the first remaining printer becomes active if needed."""
    registry = request.app.state.session.registry
    if not registry.remove(printer_id):
        raise printer_not_found(printer_id)
    return {"detail": "deleted", "active_id": registry.active_id}


@router.post("/{printer_id}/select")
async def select_printer(request: Request, printer_id: str) -> Dict[str, Any]:
    """Make a profile the active printer."""
    registry = request.app.state.session.registry
    if not registry.set_active(printer_id):
        raise printer_not_found(printer_id)
    return _profile_dict(registry.require(printer_id), registry.active_id)


@router.post("/test")
@handle_printer_errors
async def test_connection(request: Request, body: ConnectionTestRequest) -> VersionInfo:
    """Check that a URL/API key pair reaches an OctoPrint server."""
    dispatcher = request.app.state.session.dispatcher
    return await dispatcher.test_connection(body.serverUrl, body.apiKey)
