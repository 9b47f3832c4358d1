"""Abstract audio pipeline interface."""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from device_session.constants import EVENT_DEVICE_REPORT

if TYPE_CHECKING:
    from device_session.events import EventBus


class PipelineError(Exception):
    """Raised when the audio backend fails to carry out a request."""


class PipelineController(abc.ABC):
    """An input pipeline with a processing stage that can be toggled.

    Implementations publish ``pipeline.device_report`` events (with a
    ``device_id`` keyword) on the event bus whenever the device they capture
    from changes, including changes they were not asked to make.
    """

    def __init__(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus

    @abc.abstractmethod
    async def open(self, device_id: str | None = None) -> None:
        """Start capturing from ``device_id`` (None = backend default)."""
        ...

    @abc.abstractmethod
    async def switch_device(self, device_id: str) -> None:
        """Capture from another device."""
        ...

    @abc.abstractmethod
    async def set_stage_enabled(self, enabled: bool) -> None:
        """Enable or disable the processing stage."""
        ...

    @abc.abstractmethod
    async def close(self) -> None:
        """Stop capturing and release the device."""
        ...

    @property
    @abc.abstractmethod
    def active_device_id(self) -> str | None:
        """Device the pipeline is capturing from right now."""
        ...

    @property
    @abc.abstractmethod
    def stage_enabled(self) -> bool:
        ...

    @property
    @abc.abstractmethod
    def is_open(self) -> bool:
        ...

    async def _report_device(self, device_id: str | None) -> None:
        if device_id is not None:
            await self._event_bus.emit_async(EVENT_DEVICE_REPORT, device_id=device_id)
