"""File management routes on the active printer (list, upload, print, delete)."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, File, Request, UploadFile

from .exceptions import handle_printer_errors, invalid_printer_data

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("")
@handle_printer_errors
async def list_files(request: Request) -> List[Dict[str, Any]]:
    """List printable files stored on the active printer."""
    files = await request.app.state.session.dispatcher.list_files()
    return [entry.model_dump() for entry in files]


@router.post("", status_code=201)
@handle_printer_errors
async def upload_file(request: Request, file: UploadFile = File(...)) -> Dict[str, str]:
    """Upload a G-code file to the active printer."""
    if not file.filename:
        raise invalid_printer_data("uploaded file has no name")
    content = await file.read()
    await request.app.state.session.dispatcher.upload_file(file.filename, content)
    return {"detail": "uploaded", "name": file.filename}


@router.post("/{filename:path}/print")
@handle_printer_errors
async def start_print(request: Request, filename: str) -> Dict[str, str]:
    """Select a stored file and start printing it."""
    await request.app.state.session.dispatcher.start_print(filename)
    return {"detail": "print started", "name": filename}


@router.delete("/{filename:path}")
@handle_printer_errors
async def delete_file(request: Request, filename: str) -> Dict[str, str]:
    """Delete a stored file."""
    await request.app.state.session.dispatcher.delete_file(filename)
    return {"detail": "deleted", "name": filename}
