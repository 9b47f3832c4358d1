"""Input pipeline backed by a sounddevice input stream."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING

import numpy as np
import sounddevice as sd

from device_session.audio.devices import device_id_for_index, find_device_index
from device_session.constants import (
    AUDIO_BLOCKSIZE,
    AUDIO_CHANNELS,
    AUDIO_DTYPE,
    AUDIO_SAMPLE_RATE,
)
from device_session.pipeline.base import PipelineController, PipelineError

if TYPE_CHECKING:
    from device_session.events import EventBus

logger = logging.getLogger(__name__)


class SoundDevicePipeline(PipelineController):
    """Captures from a real input device.

    The processing stage carries no signal processing here; toggling it
    rebuilds the input stream on the current device, much as browser pipelines
    rebuild their capture track, and reports whichever device the backend
    actually opened.
    """

    def __init__(
        self,
        event_bus: EventBus,
        sample_rate: int = AUDIO_SAMPLE_RATE,
        stage_enabled: bool = True,
    ) -> None:
        super().__init__(event_bus)
        self._sample_rate = sample_rate
        self._stage_enabled = stage_enabled
        self._device_index: int | None = None
        self._active: str | None = None
        self._stream: sd.InputStream | None = None
        self._lock = threading.Lock()
        self._blocks = 0

    @property
    def active_device_id(self) -> str | None:
        return self._active

    @property
    def stage_enabled(self) -> bool:
        return self._stage_enabled

    @property
    def is_open(self) -> bool:
        return self._stream is not None

    @property
    def blocks_captured(self) -> int:
        return self._blocks

    async def open(self, device_id: str | None = None) -> None:
        index = await self._resolve(device_id) if device_id is not None else None
        await asyncio.to_thread(self._restart_stream, index)
        await self._report_device(self._active)

    async def switch_device(self, device_id: str) -> None:
        index = await self._resolve(device_id)
        await asyncio.to_thread(self._restart_stream, index)
        await self._report_device(self._active)

    async def set_stage_enabled(self, enabled: bool) -> None:
        if self._stream is None:
            raise PipelineError("Pipeline is not open")
        await asyncio.to_thread(self._restart_stream, self._device_index)
        self._stage_enabled = enabled
        logger.info("Processing stage %s", "enabled" if enabled else "disabled")
        await self._report_device(self._active)

    async def close(self) -> None:
        await asyncio.to_thread(self._stop_stream)
        self._active = None

    async def _resolve(self, device_id: str) -> int:
        index = await asyncio.to_thread(find_device_index, device_id)
        if index is None:
            raise PipelineError(f"Device not found: {device_id}")
        return index

    def _restart_stream(self, index: int | None) -> None:
        with self._lock:
            self._stop_stream_locked()
            self._active = None
            stream = None
            try:
                stream = sd.InputStream(
                    samplerate=self._sample_rate,
                    channels=AUDIO_CHANNELS,
                    dtype=AUDIO_DTYPE,
                    blocksize=AUDIO_BLOCKSIZE,
                    device=index,
                    callback=self._audio_callback,
                )
                stream.start()
            except sd.PortAudioError as e:
                if stream is not None:
                    stream.close()
                raise PipelineError(f"Failed to open input stream: {e}") from e

            self._stream = stream
            self._device_index = index
            self._active = device_id_for_index(stream.device)
            logger.info(
                "Input stream started (device=%s, rate=%d)", self._active, self._sample_rate
            )

    def _stop_stream(self) -> None:
        with self._lock:
            self._stop_stream_locked()

    def _stop_stream_locked(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None

    def _audio_callback(
        self,
        indata: np.ndarray,
        frames: int,
        time_info: object,
        status: sd.CallbackFlags,
    ) -> None:
        """Called by sounddevice for each audio block."""
        if status:
            logger.warning("Audio callback status: %s", status)
        self._blocks += 1
