"""FastAPI web server exposing the device session."""

from __future__ import annotations

import asyncio
import logging

from fastapi import FastAPI

from device_session.app import DeviceSessionApp
from device_session.constants import VERSION, WEB_DEFAULT_HOST, WEB_DEFAULT_PORT
from device_session.web.api.session_routes import router as session_router
from device_session.web.api.status_routes import router as status_router

logger = logging.getLogger(__name__)


def create_app(session_app: DeviceSessionApp) -> FastAPI:
    """Build the API around an existing session app."""
    app = FastAPI(
        title="Device Session",
        version=VERSION,
        docs_url="/api/docs",
        redoc_url=None,
    )
    app.state.session_app = session_app

    app.include_router(status_router, prefix="/api")
    app.include_router(session_router, prefix="/api")
    return app


def run_server(
    session_app: DeviceSessionApp,
    host: str = WEB_DEFAULT_HOST,
    port: int = WEB_DEFAULT_PORT,
) -> None:
    """Serve the API until interrupted, then tear down the pipeline."""
    import uvicorn

    logger.info("Starting device session API on http://%s:%d", host, port)
    try:
        uvicorn.run(create_app(session_app), host=host, port=port, log_level="info")
    finally:
        asyncio.run(session_app.close())
