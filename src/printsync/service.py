"""FastAPI service module for the printer session.

This module keeps only the web-facing FastAPI wiring. The session itself
(registry, poller, dispatcher) lives in ``session.py``; the app creates one
session in its lifespan and exposes it to the routers as
``app.state.session``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI

from .api.routes_commands import router as commands_router
from .api.routes_files import router as files_router
from .api.routes_printers import router as printers_router
from .api.routes_status import router as status_router
from .session import PrinterSession

SERVICE_NAME = "printsync"
SERVICE_VERSION = "1.0.0"


def create_app(session: Optional[PrinterSession] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        session: Session to serve; when omitted one is created from the
            environment at startup
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage session startup and shutdown via FastAPI lifespan."""
        active_session = session or PrinterSession.from_settings()
        app.state.session = active_session
        await active_session.start()
        try:
            yield
        finally:
            await active_session.stop()

    app = FastAPI(title="Printer Session Service", version=SERVICE_VERSION, lifespan=lifespan)

    @app.get("/api/health")
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint for container monitoring."""
        active_session: PrinterSession = app.state.session
        active = active_session.registry.get_active()
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "printers": {
                "configured": len(active_session.registry),
                "active": active.name if active else None,
                "polling": active_session.poller.is_polling,
            },
        }

    app.include_router(printers_router)
    app.include_router(status_router)
    app.include_router(commands_router)
    app.include_router(files_router)
    return app


app = create_app()


def main() -> None:  # pragma: no cover
    """Run the FastAPI service under Uvicorn.

    Started with ``python -m printsync.service`` or the ``printsync``
    console script. Configuration comes from PRINTSYNC_* environment
    variables.
    """
    import logging

    import uvicorn

    from .logging_config import configure_logging, get_uvicorn_log_config
    from .utils import get_env_int

    configure_logging()
    logger = logging.getLogger(__name__)

    port = get_env_int("PRINTSYNC_PORT", 8000)
    logger.info("Starting %s on port %d", SERVICE_NAME, port)
    uvicorn.run(app, host="0.0.0.0", port=port, log_config=get_uvicorn_log_config())


if __name__ == "__main__":
    main()
