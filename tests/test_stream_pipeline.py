"""Tests for the sounddevice-backed pipeline."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock, patch

import pytest

try:
    import sounddevice as sd

    from device_session.pipeline import stream as stream_module

    _HAS_PORTAUDIO = True
except OSError:
    _HAS_PORTAUDIO = False

from device_session.constants import EVENT_DEVICE_REPORT
from device_session.events import EventBus
from device_session.pipeline.base import PipelineError

pytestmark = pytest.mark.skipif(not _HAS_PORTAUDIO, reason="PortAudio library not found")

_IDS = {0: "ALSA:HDA Intel", 2: "ALSA:USB Headset"}


def _make_stream(**kwargs: object) -> MagicMock:
    stream = MagicMock()
    # The backend opens its default (index 0) when no device is given.
    stream.device = kwargs["device"] if kwargs["device"] is not None else 0
    return stream


@pytest.fixture
def fake_backend():
    with patch.object(stream_module.sd, "InputStream", side_effect=_make_stream) as input_stream, \
            patch.object(
                stream_module,
                "find_device_index",
                side_effect=lambda device_id: {v: k for k, v in _IDS.items()}.get(device_id),
            ), \
            patch.object(stream_module, "device_id_for_index", side_effect=_IDS.get):
        yield input_stream


class TestSoundDevicePipeline:
    def test_open_reports_backend_default(self, event_bus: EventBus, fake_backend: MagicMock) -> None:
        pipeline = stream_module.SoundDevicePipeline(event_bus)
        reports: list[str] = []
        event_bus.on(EVENT_DEVICE_REPORT, lambda device_id: reports.append(device_id))

        asyncio.run(pipeline.open())

        assert pipeline.is_open
        assert pipeline.active_device_id == "ALSA:HDA Intel"
        assert reports == ["ALSA:HDA Intel"]
        assert fake_backend.call_args.kwargs["device"] is None

    def test_switch_device_reopens_stream(self, event_bus: EventBus, fake_backend: MagicMock) -> None:
        pipeline = stream_module.SoundDevicePipeline(event_bus)

        async def scenario() -> None:
            await pipeline.open()
            await pipeline.switch_device("ALSA:USB Headset")

        asyncio.run(scenario())

        assert pipeline.active_device_id == "ALSA:USB Headset"
        assert fake_backend.call_count == 2
        assert fake_backend.call_args.kwargs["device"] == 2

    def test_stage_toggle_keeps_device(self, event_bus: EventBus, fake_backend: MagicMock) -> None:
        pipeline = stream_module.SoundDevicePipeline(event_bus)

        async def scenario() -> None:
            await pipeline.open("ALSA:USB Headset")
            await pipeline.set_stage_enabled(False)

        asyncio.run(scenario())

        assert pipeline.stage_enabled is False
        assert pipeline.active_device_id == "ALSA:USB Headset"
        assert fake_backend.call_args.kwargs["device"] == 2

    def test_unknown_device_raises(self, event_bus: EventBus, fake_backend: MagicMock) -> None:
        pipeline = stream_module.SoundDevicePipeline(event_bus)
        with pytest.raises(PipelineError, match="not found"):
            asyncio.run(pipeline.switch_device("missing"))

    def test_stage_toggle_requires_open(self, event_bus: EventBus, fake_backend: MagicMock) -> None:
        pipeline = stream_module.SoundDevicePipeline(event_bus)
        with pytest.raises(PipelineError, match="not open"):
            asyncio.run(pipeline.set_stage_enabled(True))

    def test_portaudio_error_wrapped(self, event_bus: EventBus, fake_backend: MagicMock) -> None:
        fake_backend.side_effect = sd.PortAudioError("device busy")
        pipeline = stream_module.SoundDevicePipeline(event_bus)
        with pytest.raises(PipelineError, match="device busy"):
            asyncio.run(pipeline.open())

    def test_close_stops_stream(self, event_bus: EventBus, fake_backend: MagicMock) -> None:
        pipeline = stream_module.SoundDevicePipeline(event_bus)

        async def scenario() -> MagicMock:
            await pipeline.open()
            stream = pipeline._stream
            await pipeline.close()
            return stream

        stream = asyncio.run(scenario())

        assert not pipeline.is_open
        assert pipeline.active_device_id is None
        stream.stop.assert_called_once()
        stream.close.assert_called_once()

    def test_failed_restart_closes_stream(self, event_bus: EventBus, fake_backend: MagicMock) -> None:
        pipeline = stream_module.SoundDevicePipeline(event_bus)
        asyncio.run(pipeline.open("ALSA:USB Headset"))

        broken = MagicMock()
        broken.start.side_effect = sd.PortAudioError("device busy")
        fake_backend.side_effect = None
        fake_backend.return_value = broken

        with pytest.raises(PipelineError, match="device busy"):
            asyncio.run(pipeline.set_stage_enabled(False))

        broken.close.assert_called_once()
        assert not pipeline.is_open
        assert pipeline.active_device_id is None
        assert pipeline.stage_enabled is True
