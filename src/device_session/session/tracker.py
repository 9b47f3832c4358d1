"""Device session tracker: a pure state machine over :class:`Session` values.

Every operation takes a session and returns a :class:`Transition` holding the
new session and the effects the caller must run against the pipeline. Nothing
here raises for domain failures; rejected intents come back as a session with
``error`` set and a ``REJECTED`` history record.

Reconciliation policy for device reports:

* while TRANSITIONING, a report matching the selected device confirms every
  outstanding effect and the session returns to READY;
* while a stage toggle is outstanding, a report naming another device is a
  spurious revert: the selection is kept and a corrective switch is emitted;
* while only a switch is outstanding, other reports are intermediate and only
  refresh ``reported_device_id``;
* while READY, a report naming another device is an external change and the
  selection follows it.

A report that changes nothing is a no-op, so reconciliation is idempotent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

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

logger = logging.getLogger(__name__)


def _advance(
    session: Session,
    kind: TransitionKind,
    detail: str = "",
    error_kind: ErrorKind | None = None,
    **changes: Any,
) -> Session:
    """Apply ``changes`` and append a history record describing the result."""
    updated = replace(session, **changes)
    record = TransitionRecord(
        sequence=len(updated.history),
        kind=kind,
        status=updated.status,
        selected_device_id=updated.selected_device_id,
        reported_device_id=updated.reported_device_id,
        detail=detail,
        error=error_kind,
    )
    return replace(updated, history=updated.history + (record,))


def _reject(session: Session, kind: ErrorKind, message: str) -> Transition:
    # An outstanding effect still has to be reconciled, so the session keeps
    # TRANSITIONING instead of dropping to ERROR.
    status = (
        SessionStatus.TRANSITIONING
        if session.has_outstanding_effect
        else SessionStatus.ERROR
    )
    logger.debug("Rejected (%s): %s", kind.value, message)
    updated = _advance(
        replace(session, error=TrackerError(kind, message)),
        TransitionKind.REJECTED,
        message,
        kind,
        status=status,
    )
    return Transition(updated, [])


def _input_devices(devices: Iterable[Device | str]) -> tuple[Device, ...]:
    result: list[Device] = []
    for device in devices:
        if isinstance(device, str):
            device = Device(id=device, label=device)
        if device.kind is DeviceKind.INPUT:
            result.append(device)
    return tuple(result)


def _not_ready(session: Session) -> bool:
    return session.status in (SessionStatus.UNINITIALIZED, SessionStatus.ERROR)


def initialize(
    available_devices: Iterable[Device | str],
    active_device_report: str | None,
    *,
    stage_enabled: bool = True,
    history: Iterable[TransitionRecord] = (),
) -> Transition:
    """Create a session from the enumerated devices and the pipeline's report.

    Plain strings are accepted as device ids for convenience. When the
    pipeline has not reported a device yet, the default input (or the first
    one) is assumed active. ``history`` carries diagnostics over from a
    previous session.
    """
    devices = _input_devices(available_devices)
    base = Session(devices=devices, stage_enabled=stage_enabled, history=tuple(history))

    if not devices:
        return _reject(base, ErrorKind.NO_DEVICES_FOUND, "No input devices found")

    active = active_device_report
    if active is None:
        active = next((d.id for d in devices if d.is_default), devices[0].id)

    session = _advance(
        base,
        TransitionKind.INITIALIZED,
        f"Found {len(devices)} input device(s), active: {base.label_for(active)}",
        selected_device_id=active,
        reported_device_id=active,
        status=SessionStatus.READY,
    )
    return Transition(session, [])


def refresh_devices(session: Session, available_devices: Iterable[Device | str]) -> Transition:
    """Replace the known device set without touching the selection."""
    if _not_ready(session):
        return _reject(
            session,
            ErrorKind.NOT_READY,
            f"Cannot refresh devices while session is {session.status.value}",
        )

    devices = _input_devices(available_devices)
    if not devices:
        return _reject(session, ErrorKind.NO_DEVICES_FOUND, "No input devices found")
    if devices == session.devices:
        if session.error is not None:
            session = replace(session, error=None)
        return Transition(session, [])

    updated = _advance(
        session,
        TransitionKind.DEVICES_REFRESHED,
        f"Device list refreshed: {len(devices)} input device(s)",
        devices=devices,
        error=None,
    )
    return Transition(updated, [])


def select_device(session: Session, device_id: str) -> Transition:
    """Record an explicit user selection and request the pipeline switch."""
    if _not_ready(session):
        return _reject(
            session,
            ErrorKind.NOT_READY,
            f"Cannot select {device_id!r} while session is {session.status.value}",
        )
    if device_id not in session.device_ids:
        return _reject(session, ErrorKind.UNKNOWN_DEVICE, f"Unknown device {device_id!r}")
    if session.pending_switch is not None:
        return _reject(
            session,
            ErrorKind.OPERATION_IN_PROGRESS,
            f"Switch to {session.label_for(session.pending_switch)} still in progress",
        )

    updated = _advance(
        session,
        TransitionKind.DEVICE_SELECTED,
        f"Changing device to: {session.label_for(device_id)}",
        selected_device_id=device_id,
        pending_switch=device_id,
        pending_switch_corrective=False,
        status=SessionStatus.TRANSITIONING,
        error=None,
    )
    return Transition(updated, [SwitchDeviceEffect(device_id)])


def set_stage_enabled(session: Session, enabled: bool) -> Transition:
    """Request a processing stage toggle. Never changes the selected device."""
    action = "enable" if enabled else "disable"
    if _not_ready(session):
        return _reject(
            session,
            ErrorKind.NOT_READY,
            f"Cannot {action} stage while session is {session.status.value}",
        )
    if session.pending_stage is not None:
        return _reject(session, ErrorKind.OPERATION_IN_PROGRESS, "Stage toggle still in progress")

    updated = _advance(
        session,
        TransitionKind.STAGE_REQUESTED,
        f"Requested stage {action}",
        stage_enabled=enabled,
        pending_stage=enabled,
        status=SessionStatus.TRANSITIONING,
        error=None,
    )
    return Transition(updated, [SetStageEffect(enabled)])


def reconcile_device_report(session: Session, reported_device_id: str) -> Transition:
    """Fold an asynchronous device report from the pipeline into the session."""
    report = reported_device_id
    status = session.status

    if status is SessionStatus.UNINITIALIZED:
        return Transition(session, [])

    if status is SessionStatus.ERROR:
        if report == session.reported_device_id:
            return Transition(session, [])
        updated = _advance(
            session,
            TransitionKind.REPORT_WHILE_ERROR,
            f"Pipeline reports {session.label_for(report)}",
            reported_device_id=report,
        )
        return Transition(updated, [])

    if status is SessionStatus.READY:
        if report == session.reported_device_id:
            return Transition(session, [])
        if report == session.selected_device_id:
            updated = _advance(
                session,
                TransitionKind.DEVICE_CONFIRMED,
                f"Pipeline confirms {session.label_for(report)}",
                reported_device_id=report,
            )
            return Transition(updated, [])
        updated = _advance(
            session,
            TransitionKind.EXTERNAL_DEVICE_CHANGE,
            f"Device changed outside the session: "
            f"{session.label_for(session.reported_device_id)} -> {session.label_for(report)}",
            error_kind=ErrorKind.EXTERNAL_DEVICE_CHANGE,
            selected_device_id=report,
            reported_device_id=report,
        )
        return Transition(updated, [])

    # TRANSITIONING
    if report == session.selected_device_id:
        if session.pending_switch is not None and session.pending_switch_corrective:
            kind = TransitionKind.REVERT_CORRECTED
            detail = f"Re-asserted {session.label_for(report)}"
        elif session.pending_switch is not None:
            kind = TransitionKind.DEVICE_CONFIRMED
            detail = f"Device changed successfully: {session.label_for(report)}"
        else:
            kind = TransitionKind.STAGE_CONFIRMED
            state = "enabled" if session.stage_enabled else "disabled"
            detail = f"Stage {state}, device kept: {session.label_for(report)}"
        updated = _advance(
            session,
            kind,
            detail,
            reported_device_id=report,
            pending_switch=None,
            pending_switch_corrective=False,
            pending_stage=None,
            status=SessionStatus.READY,
        )
        return Transition(updated, [])

    target = session.selected_device_id
    if session.pending_stage is not None and target is not None:
        updated = _advance(
            session,
            TransitionKind.SPURIOUS_REVERT,
            f"Stage toggle moved the pipeline to {session.label_for(report)}, "
            f"re-asserting {session.label_for(target)}",
            error_kind=ErrorKind.SPURIOUS_REVERT,
            reported_device_id=report,
            pending_stage=None,
            pending_switch=target,
            pending_switch_corrective=True,
        )
        return Transition(updated, [SwitchDeviceEffect(target)])

    if report == session.reported_device_id:
        return Transition(session, [])
    updated = _advance(
        session,
        TransitionKind.STALE_REPORT,
        f"Pipeline still reports {session.label_for(report)} while switching to "
        f"{session.label_for(session.pending_switch)}",
        reported_device_id=report,
    )
    return Transition(updated, [])


def reset_to_ready(session: Session, stage_enabled: bool | None = None) -> Transition:
    """Abandon outstanding effects and force the session back to READY.

    ``stage_enabled`` is the stage state the pipeline actually holds; pass it
    when an effect failed so the session stops claiming the requested state.
    """
    if session.status is not SessionStatus.TRANSITIONING:
        return Transition(session, [])
    if stage_enabled is None:
        stage_enabled = session.stage_enabled

    updated = _advance(
        session,
        TransitionKind.RESET,
        "Outstanding pipeline requests abandoned",
        pending_switch=None,
        pending_switch_corrective=False,
        stage_enabled=stage_enabled,
        pending_stage=None,
        status=SessionStatus.READY,
    )
    return Transition(updated, [])
