"""In-memory pipeline that reproduces the device revert on stage toggles."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from device_session.pipeline.base import PipelineController, PipelineError
from device_session.session.models import Device, DeviceKind

if TYPE_CHECKING:
    from device_session.events import EventBus

logger = logging.getLogger(__name__)


def make_simulated_devices(labels: Sequence[str]) -> list[Device]:
    """Build input devices from labels; the first one is the system default."""
    return [
        Device(
            id=f"sim-{i}",
            label=label,
            kind=DeviceKind.INPUT,
            is_default=(i == 0),
        )
        for i, label in enumerate(labels)
    ]


class SimulatedPipeline(PipelineController):
    """Pipeline with no audio behind it.

    With ``revert_on_toggle`` enabled, toggling the processing stage rebuilds
    the capture track without the user's device constraint, so the pipeline
    falls back to the default device and reports that change.
    """

    def __init__(
        self,
        event_bus: EventBus,
        devices: Sequence[Device],
        revert_on_toggle: bool = True,
        stage_enabled: bool = True,
    ) -> None:
        super().__init__(event_bus)
        self._devices = list(devices)
        self._revert_on_toggle = revert_on_toggle
        self._stage_enabled = stage_enabled
        self._active: str | None = None
        self._open = False
        self.fail_next: str | None = None  # operation name that should raise once
        self.calls: list[tuple[str, object]] = []

    @property
    def devices(self) -> list[Device]:
        return list(self._devices)

    @property
    def default_device_id(self) -> str | None:
        for device in self._devices:
            if device.is_default:
                return device.id
        return self._devices[0].id if self._devices else None

    @property
    def active_device_id(self) -> str | None:
        return self._active

    @property
    def stage_enabled(self) -> bool:
        return self._stage_enabled

    @property
    def is_open(self) -> bool:
        return self._open

    def list_input_devices(self) -> list[Device]:
        """Device enumerator over the simulated devices."""
        return self.devices

    def _check(self, operation: str) -> None:
        if self.fail_next == operation:
            self.fail_next = None
            raise PipelineError(f"Simulated failure in {operation}")
        if operation != "open" and not self._open:
            raise PipelineError("Pipeline is not open")

    async def open(self, device_id: str | None = None) -> None:
        self.calls.append(("open", device_id))
        self._check("open")
        target = device_id or self.default_device_id
        if target is None:
            raise PipelineError("No input devices available")
        self._active = target
        self._open = True
        logger.info("Simulated track created on %s", target)

    async def switch_device(self, device_id: str) -> None:
        self.calls.append(("switch_device", device_id))
        self._check("switch_device")
        if all(d.id != device_id for d in self._devices):
            raise PipelineError(f"Device not found: {device_id}")
        self._active = device_id
        logger.debug("Simulated device set to %s", device_id)
        await self._report_device(device_id)

    async def set_stage_enabled(self, enabled: bool) -> None:
        self.calls.append(("set_stage_enabled", enabled))
        self._check("set_stage_enabled")
        self._stage_enabled = enabled
        logger.debug("Simulated stage %s", "enabled" if enabled else "disabled")

        default = self.default_device_id
        if self._revert_on_toggle and default is not None and self._active != default:
            logger.debug("Simulated track rebuilt on default device %s", default)
            self._active = default
            await self._report_device(default)

    async def close(self) -> None:
        self.calls.append(("close", None))
        self._open = False
        self._active = None

    async def unplug(self, device_id: str) -> None:
        """Remove a device, falling back to the default like an OS would."""
        self._devices = [d for d in self._devices if d.id != device_id]
        if self._active == device_id:
            self._active = self.default_device_id
            await self._report_device(self._active)
