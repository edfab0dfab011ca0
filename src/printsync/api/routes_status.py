"""Live status and notification routes."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Query, Request

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["status"])


@router.get("/status")
async def get_status(request: Request) -> Dict[str, Any]:
    """Return the latest polled status of the active printer."""
    return request.app.state.session.poller.snapshot()


@router.post("/status/refresh", status_code=202)
async def refresh_status(request: Request) -> Dict[str, Any]:
    """Trigger an out-of-cycle status read of the active printer."""
    poller = request.app.state.session.poller
    task = poller.refresh()
    return {"scheduled": task is not None}


@router.get("/notifications")
async def get_notifications(
    request: Request,
    after: int = Query(0, ge=0),
    limit: int = Query(20, ge=0),
) -> List[Dict[str, Any]]:
    """Return recent notifications, optionally only those newer than ``after``."""
    notifier = request.app.state.session.notifier
    recent = getattr(notifier, "recent", None)
    if recent is None:
        return []
    return [entry.to_dict() for entry in recent(limit=limit, after_id=after)]
