"""Shared test fixtures."""

from __future__ import annotations

import pytest

from device_session.app import DeviceSessionApp
from device_session.config import AppConfig
from device_session.events import EventBus
from device_session.pipeline.simulated import SimulatedPipeline, make_simulated_devices
from device_session.session import tracker
from device_session.session.models import Device, Session


@pytest.fixture
def event_bus() -> EventBus:
    """Fresh event bus for each test."""
    bus = EventBus()
    yield bus
    bus.clear()


@pytest.fixture
def config() -> AppConfig:
    """Default config for testing."""
    return AppConfig()


@pytest.fixture
def devices() -> list[Device]:
    return [
        Device(id="mic-A", label="Built-in Microphone", is_default=True),
        Device(id="mic-B", label="USB Headset"),
    ]


@pytest.fixture
def ready_session(devices: list[Device]) -> Session:
    """Session initialized on mic-A (Scenario A)."""
    session, _ = tracker.initialize(devices, "mic-A")
    return session


@pytest.fixture
def on_mic_b(ready_session: Session) -> Session:
    """Ready session after selecting and confirming mic-B (Scenario B)."""
    session, _ = tracker.select_device(ready_session, "mic-B")
    session, _ = tracker.reconcile_device_report(session, "mic-B")
    return session


@pytest.fixture
def make_app(event_bus: EventBus):
    """Factory for session apps over a simulated pipeline ("sim-0" is the default)."""

    def _make(
        labels: list[str] | None = None,
        revert_on_toggle: bool = True,
        config: AppConfig | None = None,
    ) -> tuple[DeviceSessionApp, SimulatedPipeline]:
        pipeline = SimulatedPipeline(
            event_bus,
            make_simulated_devices(labels or ["Built-in Microphone", "USB Headset"]),
            revert_on_toggle=revert_on_toggle,
        )
        app = DeviceSessionApp(pipeline, pipeline.list_input_devices, event_bus, config)
        return app, pipeline

    return _make
