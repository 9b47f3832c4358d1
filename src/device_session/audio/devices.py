"""Audio input device enumeration."""

from __future__ import annotations

import logging

import sounddevice as sd

from device_session.session.models import Device, DeviceKind

logger = logging.getLogger(__name__)


def _query_input_devices() -> list[tuple[int, Device]]:
    """Return (backend index, device) pairs for every input-capable device."""
    result: list[tuple[int, Device]] = []
    default_input = sd.default.device[0]  # input device index
    hostapis = sd.query_hostapis()
    seen: dict[str, int] = {}

    for i, dev in enumerate(sd.query_devices()):  # type: ignore[arg-type]
        if dev["max_input_channels"] <= 0:  # type: ignore[index]
            continue
        name = dev["name"]  # type: ignore[index]
        hostapi = hostapis[dev["hostapi"]]["name"]  # type: ignore[index]
        device_id = f"{hostapi}:{name}"
        # Identical names on one host API get a stable ordinal suffix.
        seen[device_id] = seen.get(device_id, 0) + 1
        if seen[device_id] > 1:
            device_id = f"{device_id}#{seen[device_id]}"

        result.append(
            (
                i,
                Device(
                    id=device_id,
                    label=name,
                    kind=DeviceKind.INPUT,
                    is_default=(i == default_input),
                ),
            )
        )
    return result


def list_input_devices() -> list[Device]:
    """List all available audio input devices."""
    try:
        return [device for _, device in _query_input_devices()]
    except Exception:
        logger.exception("Failed to enumerate audio devices")
        return []


def find_device_index(device_id: str) -> int | None:
    """Map a device id back to the audio backend's device index."""
    for index, device in _query_input_devices():
        if device.id == device_id:
            return index
    return None


def device_id_for_index(index: int) -> str | None:
    """Map an audio backend device index to its device id."""
    for i, device in _query_input_devices():
        if i == index:
            return device.id
    return None
