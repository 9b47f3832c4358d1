"""Device session state machine."""

from device_session.session.models import (
    Device,
    DeviceKind,
    ErrorKind,
    Session,
    SessionStatus,
    SetStageEffect,
    SwitchDeviceEffect,
    TrackerError,
    Transition,
    TransitionKind,
    TransitionRecord,
)
from device_session.session.tracker import (
    initialize,
    reconcile_device_report,
    refresh_devices,
    reset_to_ready,
    select_device,
    set_stage_enabled,
)

__all__ = [
    "Device",
    "DeviceKind",
    "ErrorKind",
    "Session",
    "SessionStatus",
    "SetStageEffect",
    "SwitchDeviceEffect",
    "TrackerError",
    "Transition",
    "TransitionKind",
    "TransitionRecord",
    "initialize",
    "reconcile_device_report",
    "refresh_devices",
    "reset_to_ready",
    "select_device",
    "set_stage_enabled",
]
