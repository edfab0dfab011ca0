"""Printer control routes: job control, temperatures, jogging and extrusion.

Each endpoint forwards to the session's CommandDispatcher, which notifies the
operator and refreshes status on its own; the routes only translate errors
into HTTP responses.
"""

import logging
from typing import Dict, Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ..constants import EXTRUDE_FEEDRATE, MOVE_FEEDRATE
from .exceptions import handle_printer_errors

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["commands"])

JobAction = Literal["pause", "resume", "cancel"]


# ============================================================================
# Request Models
# ============================================================================


class TemperatureRequest(BaseModel):
    """Target temperature for the bed or a tool."""

    target: str = Field(..., description="'bed' or a tool name such as 'tool0'")
    value: float = Field(..., allow_inf_nan=False, description="Target temperature in °C")


class MoveRequest(BaseModel):
    """Relative jog of one axis."""

    axis: str = Field(..., description="X, Y or Z")
    distance: float = Field(
        ..., allow_inf_nan=False, description="Distance in mm (negative moves back)"
    )
    feedrate: int = Field(MOVE_FEEDRATE, gt=0)


class HomeRequest(BaseModel):
    """Axes to home."""

    axes: str = Field("XYZ", description="Any combination of X, Y and Z")


class ExtrudeRequest(BaseModel):
    """Extrusion (positive) or retraction (negative) amount."""

    amount: float = Field(..., allow_inf_nan=False, description="Filament length in mm")
    feedrate: int = Field(EXTRUDE_FEEDRATE, gt=0)


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/job/{action}")
@handle_printer_errors
async def job_control(request: Request, action: JobAction) -> Dict[str, str]:
    """Pause, resume or cancel the current print."""
    dispatcher = request.app.state.session.dispatcher
    if action == "pause":
        await dispatcher.pause_job()
    elif action == "resume":
        await dispatcher.resume_job()
    else:
        await dispatcher.cancel_job()
    return {"detail": f"{action} sent"}


@router.post("/temperature")
@handle_printer_errors
async def set_temperature(request: Request, body: TemperatureRequest) -> Dict[str, str]:
    """Set a heater's target temperature."""
    await request.app.state.session.dispatcher.set_temperature(body.target, body.value)
    return {"detail": "temperature set"}


@router.post("/move")
@handle_printer_errors
async def move_axis(request: Request, body: MoveRequest) -> Dict[str, str]:
    """Jog an axis by a relative distance."""
    await request.app.state.session.dispatcher.move_axis(body.axis, body.distance, body.feedrate)
    return {"detail": "move sent"}


@router.post("/home")
@handle_printer_errors
async def home_axes(request: Request, body: HomeRequest) -> Dict[str, str]:
    """Home one or more axes."""
    await request.app.state.session.dispatcher.home(body.axes)
    return {"detail": "home sent"}


@router.post("/extrude")
@handle_printer_errors
async def extrude(request: Request, body: ExtrudeRequest) -> Dict[str, str]:
    """Extrude or retract filament."""
    await request.app.state.session.dispatcher.extrude(body.amount, body.feedrate)
    return {"detail": "extrude sent"}
