"""Session state, transition records and effects for the device tracker."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Union


class DeviceKind(Enum):
    """Direction of an audio device."""

    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class Device:
    """An audio device as seen by the enumerator.

    ``id`` is opaque and stable per physical device; ``label`` is for display
    only and may repeat across distinct ids.
    """

    id: str
    label: str
    kind: DeviceKind = DeviceKind.INPUT
    is_default: bool = False


class SessionStatus(Enum):
    """Lifecycle of a device session."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"
    TRANSITIONING = "transitioning"
    ERROR = "error"


class ErrorKind(Enum):
    """Failures and notable conditions reported by the tracker."""

    NO_DEVICES_FOUND = "no_devices_found"
    UNKNOWN_DEVICE = "unknown_device"
    OPERATION_IN_PROGRESS = "operation_in_progress"
    NOT_READY = "not_ready"
    SPURIOUS_REVERT = "spurious_revert"  # logged, self-correcting
    EXTERNAL_DEVICE_CHANGE = "external_device_change"  # informational


class TransitionKind(Enum):
    """Kinds of entries in a session's history."""

    INITIALIZED = "initialized"
    DEVICES_REFRESHED = "devices_refreshed"
    DEVICE_SELECTED = "device_selected"
    STAGE_REQUESTED = "stage_requested"
    DEVICE_CONFIRMED = "device_confirmed"
    STAGE_CONFIRMED = "stage_confirmed"
    REVERT_CORRECTED = "revert_corrected"
    STALE_REPORT = "stale_report"
    SPURIOUS_REVERT = "spurious_revert"
    EXTERNAL_DEVICE_CHANGE = "external_device_change"
    REPORT_WHILE_ERROR = "report_while_error"
    RESET = "reset"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TrackerError:
    """A structured failure attached to a session."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class TransitionRecord:
    """One diagnostic entry in a session's append-only history."""

    sequence: int
    kind: TransitionKind
    status: SessionStatus
    selected_device_id: str | None
    reported_device_id: str | None
    detail: str = ""
    error: ErrorKind | None = None


@dataclass(frozen=True)
class SwitchDeviceEffect:
    """Ask the pipeline to capture from ``device_id``."""

    device_id: str


@dataclass(frozen=True)
class SetStageEffect:
    """Ask the pipeline to enable or disable its processing stage."""

    enabled: bool


Effect = Union[SwitchDeviceEffect, SetStageEffect]


@dataclass(frozen=True)
class Session:
    """Full tracker state. Owned by the caller and replaced, never mutated."""

    devices: tuple[Device, ...] = ()
    selected_device_id: str | None = None
    reported_device_id: str | None = None
    stage_enabled: bool = False
    status: SessionStatus = SessionStatus.UNINITIALIZED
    pending_switch: str | None = None
    pending_switch_corrective: bool = False
    pending_stage: bool | None = None
    error: TrackerError | None = None
    history: tuple[TransitionRecord, ...] = ()

    @property
    def device_ids(self) -> frozenset[str]:
        return frozenset(d.id for d in self.devices)

    @property
    def has_outstanding_effect(self) -> bool:
        return self.pending_switch is not None or self.pending_stage is not None

    def find_device(self, device_id: str | None) -> Device | None:
        """Return the known device with ``device_id``, if any."""
        for device in self.devices:
            if device.id == device_id:
                return device
        return None

    def label_for(self, device_id: str | None) -> str:
        """Display label for a device id, falling back to the id itself."""
        device = self.find_device(device_id)
        if device is not None:
            return device.label
        return device_id if device_id is not None else "unset"


class Transition(NamedTuple):
    """Result of a tracker operation: the new session plus effects to run."""

    session: Session
    effects: list[Effect]
