"""Status API routes."""

from __future__ import annotations

from fastapi import APIRouter, Request

from device_session.constants import VERSION

router = APIRouter(tags=["status"])


@router.get("/status")
async def get_status(request: Request) -> dict:
    """Get application status and version info."""
    session_app = request.app.state.session_app
    return {
        "version": VERSION,
        "status": "running",
        "app_name": "device-session",
        "pipeline_open": session_app.pipeline.is_open,
    }
