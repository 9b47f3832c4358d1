"""Session API routes: inspect the device session and issue intents."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from device_session.app import DeviceSessionApp
from device_session.pipeline.base import PipelineError
from device_session.session.models import Device, Session, TransitionRecord

router = APIRouter(tags=["session"])


class SelectDeviceRequest(BaseModel):
    device_id: str


class SetStageRequest(BaseModel):
    enabled: bool


def _get_app(request: Request) -> DeviceSessionApp:
    return request.app.state.session_app


def _device_to_dict(device: Device, session: Session) -> dict[str, Any]:
    return {
        "id": device.id,
        "label": device.label,
        "kind": device.kind.value,
        "is_default": device.is_default,
        "selected": device.id == session.selected_device_id,
        "reported": device.id == session.reported_device_id,
    }


def _record_to_dict(record: TransitionRecord) -> dict[str, Any]:
    return {
        "sequence": record.sequence,
        "kind": record.kind.value,
        "status": record.status.value,
        "selected_device_id": record.selected_device_id,
        "reported_device_id": record.reported_device_id,
        "detail": record.detail,
        "error": record.error.value if record.error else None,
    }


def session_to_dict(session: Session) -> dict[str, Any]:
    """Serialize a session for the API."""
    return {
        "status": session.status.value,
        "selected_device_id": session.selected_device_id,
        "selected_label": session.label_for(session.selected_device_id),
        "reported_device_id": session.reported_device_id,
        "reported_label": session.label_for(session.reported_device_id),
        "stage_enabled": session.stage_enabled,
        "pending_switch": session.pending_switch,
        "pending_stage": session.pending_stage,
        "error": (
            {"kind": session.error.kind.value, "message": session.error.message}
            if session.error
            else None
        ),
        "devices": [_device_to_dict(d, session) for d in session.devices],
        "history": [_record_to_dict(r) for r in session.history],
    }


def _result(session: Session) -> dict[str, Any]:
    # Successful intents clear the error, so a set error means this one was rejected.
    if session.error is not None:
        raise HTTPException(
            status_code=409,
            detail={"kind": session.error.kind.value, "message": session.error.message},
        )
    return session_to_dict(session)


@router.get("/session")
async def get_session(app: DeviceSessionApp = Depends(_get_app)) -> dict:
    """Get the current device session, including its history."""
    return session_to_dict(app.session)


@router.get("/devices")
async def get_devices(app: DeviceSessionApp = Depends(_get_app)) -> dict:
    """Get the known input devices."""
    session = app.session
    return {"devices": [_device_to_dict(d, session) for d in session.devices]}


@router.post("/session/initialize")
async def initialize_session(app: DeviceSessionApp = Depends(_get_app)) -> dict:
    """Open the pipeline and start a fresh session."""
    try:
        session = await app.initialize()
    except PipelineError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    return _result(session)


@router.post("/session/device")
async def select_device(
    body: SelectDeviceRequest, app: DeviceSessionApp = Depends(_get_app)
) -> dict:
    """Select the input device."""
    return _result(await app.select_device(body.device_id))


@router.post("/session/stage")
async def set_stage(body: SetStageRequest, app: DeviceSessionApp = Depends(_get_app)) -> dict:
    """Enable or disable the processing stage."""
    return _result(await app.set_stage_enabled(body.enabled))


@router.post("/session/devices/refresh")
async def refresh_devices(app: DeviceSessionApp = Depends(_get_app)) -> dict:
    """Re-enumerate input devices."""
    return _result(await app.refresh_devices())


@router.post("/session/reset")
async def reset_session(app: DeviceSessionApp = Depends(_get_app)) -> dict:
    """Abandon outstanding pipeline requests and return to ready."""
    return session_to_dict(await app.reset())
