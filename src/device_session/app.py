"""Application orchestrator: runs intents through the tracker against a pipeline."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from device_session.config import AppConfig
from device_session.constants import EVENT_DEVICE_REPORT, EVENT_SESSION_TRANSITION
from device_session.events import EventBus
from device_session.pipeline.base import PipelineController, PipelineError
from device_session.pipeline.simulated import SimulatedPipeline, make_simulated_devices
from device_session.session import tracker
from device_session.session.models import (
    Device,
    Effect,
    Session,
    SessionStatus,
    SwitchDeviceEffect,
    Transition,
    TransitionKind,
    TransitionRecord,
)

logger = logging.getLogger(__name__)

Enumerator = Callable[[], Sequence[Device]]

_WARNING_KINDS = {TransitionKind.SPURIOUS_REVERT, TransitionKind.REJECTED}


def build_pipeline(
    config: AppConfig, event_bus: EventBus
) -> tuple[PipelineController, Enumerator]:
    """Create the configured pipeline backend and its device enumerator."""
    backend = config.pipeline.backend

    if backend == "sounddevice":
        from device_session.audio.devices import list_input_devices
        from device_session.pipeline.stream import SoundDevicePipeline

        pipeline = SoundDevicePipeline(
            event_bus,
            sample_rate=config.pipeline.sample_rate,
            stage_enabled=config.pipeline.stage_enabled,
        )
        return pipeline, list_input_devices

    if backend != "simulated":
        logger.warning("Unknown pipeline backend '%s', falling back to simulated", backend)

    simulated = SimulatedPipeline(
        event_bus,
        make_simulated_devices(config.devices.simulated),
        revert_on_toggle=config.pipeline.revert_on_toggle,
        stage_enabled=config.pipeline.stage_enabled,
    )
    return simulated, simulated.list_input_devices


class DeviceSessionApp:
    """Owns one device session and the pipeline it describes.

    Flow: intent -> tracker -> effects executed on the pipeline -> device
    reports (from the event bus and from polling the pipeline after each
    effect) -> tracker. Everything runs on one event loop; the tracker itself
    never suspends.
    """

    def __init__(
        self,
        pipeline: PipelineController,
        enumerator: Enumerator,
        event_bus: EventBus,
        config: AppConfig | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._enumerator = enumerator
        self._event_bus = event_bus
        self._config = config or AppConfig()
        self._session = Session()
        self._subscribed = False

    @classmethod
    def from_config(cls, config: AppConfig, event_bus: EventBus | None = None) -> DeviceSessionApp:
        bus = event_bus or EventBus()
        pipeline, enumerator = build_pipeline(config, bus)
        return cls(pipeline, enumerator, bus, config)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def pipeline(self) -> PipelineController:
        return self._pipeline

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    def list_devices(self) -> list[Device]:
        """Enumerate input devices without touching the session."""
        return list(self._enumerator())

    # --- Intents ---

    async def initialize(self) -> Session:
        """Open the pipeline, enumerate devices and start a fresh session."""
        logger.info("Initializing pipeline...")
        if not self._subscribed:
            self._event_bus.on(EVENT_DEVICE_REPORT, self._on_device_report)
            self._subscribed = True

        if not self._pipeline.is_open:
            await self._pipeline.open()

        devices = await asyncio.to_thread(self._enumerator)
        logger.info("Found %d input device(s)", len(devices))

        await self._apply(
            tracker.initialize(
                devices,
                self._pipeline.active_device_id,
                stage_enabled=self._pipeline.stage_enabled,
                history=self._session.history,
            )
        )

        preferred = self._config.devices.preferred
        session = self._session
        if (
            preferred
            and session.status is SessionStatus.READY
            and preferred != session.selected_device_id
        ):
            logger.info("Selecting preferred device %s", preferred)
            await self.select_device(preferred)

        return self._session

    async def select_device(self, device_id: str) -> Session:
        return await self._apply(tracker.select_device(self._session, device_id))

    async def set_stage_enabled(self, enabled: bool) -> Session:
        return await self._apply(tracker.set_stage_enabled(self._session, enabled))

    async def enable_stage(self) -> Session:
        return await self.set_stage_enabled(True)

    async def disable_stage(self) -> Session:
        return await self.set_stage_enabled(False)

    async def refresh_devices(self) -> Session:
        devices = await asyncio.to_thread(self._enumerator)
        return await self._apply(tracker.refresh_devices(self._session, devices))

    async def reset(self) -> Session:
        """Abandon outstanding pipeline requests and resync with the pipeline."""
        await self._apply(
            tracker.reset_to_ready(self._session, self._pipeline.stage_enabled)
        )
        await self._reconcile_active()
        return self._session

    async def close(self) -> None:
        """Tear down the pipeline and discard the session."""
        if self._subscribed:
            self._event_bus.off(EVENT_DEVICE_REPORT, self._on_device_report)
            self._subscribed = False
        if self._pipeline.is_open:
            await self._pipeline.close()
        self._session = Session()
        logger.info("Pipeline closed")

    # --- Reconciliation ---

    async def _on_device_report(self, device_id: str, **_: object) -> None:
        logger.info("Device report from pipeline: %s", self._session.label_for(device_id))
        await self._apply(tracker.reconcile_device_report(self._session, device_id))

    async def _reconcile_active(self) -> None:
        active = self._pipeline.active_device_id
        if active is not None:
            await self._apply(tracker.reconcile_device_report(self._session, active))

    async def _apply(self, transition: Transition) -> Session:
        self._commit(transition.session)
        for effect in transition.effects:
            await self._execute(effect)
        return self._session

    def _commit(self, session: Session) -> None:
        known = len(self._session.history)
        self._session = session
        for record in session.history[known:]:
            self._log_record(record)
            self._event_bus.emit(EVENT_SESSION_TRANSITION, record=record, session=session)

    def _log_record(self, record: TransitionRecord) -> None:
        level = logging.WARNING if record.kind in _WARNING_KINDS else logging.INFO
        logger.log(
            level,
            "[%s] %s (selected=%s, reported=%s, status=%s)",
            record.kind.value,
            record.detail,
            record.selected_device_id,
            record.reported_device_id,
            record.status.value,
        )

    async def _execute(self, effect: Effect) -> None:
        label = self._session.label_for
        if isinstance(effect, SwitchDeviceEffect):
            action = f"switch to {label(effect.device_id)}"
        else:
            action = "stage enable" if effect.enabled else "stage disable"
        logger.info(
            "Current device before %s: %s", action, label(self._pipeline.active_device_id)
        )

        try:
            if isinstance(effect, SwitchDeviceEffect):
                await self._pipeline.switch_device(effect.device_id)
            else:
                await self._pipeline.set_stage_enabled(effect.enabled)
        except PipelineError:
            logger.exception("Pipeline failed to apply %s", action)
            await self._apply(
                tracker.reset_to_ready(self._session, self._pipeline.stage_enabled)
            )

        logger.info(
            "Current device after %s: %s", action, label(self._pipeline.active_device_id)
        )
        await self._reconcile_active()
