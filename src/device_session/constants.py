"""Default values, paths, and version constants."""

from __future__ import annotations

import os
from pathlib import Path

# Version
VERSION = "0.1.0"
APP_NAME = "device-session"

# XDG directories
XDG_CONFIG_HOME = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))

# Configuration files
CONFIG_DIR = XDG_CONFIG_HOME / APP_NAME
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Pipeline backends
PIPELINE_BACKENDS = ["simulated", "sounddevice"]
DEFAULT_PIPELINE_BACKEND = "simulated"

# Audio stream defaults
AUDIO_SAMPLE_RATE = 48000
AUDIO_CHANNELS = 1
AUDIO_DTYPE = "int16"
AUDIO_BLOCKSIZE = 480

# Simulated devices (first one is the system default)
SIMULATED_DEVICES = [
    "Built-in Microphone",
    "USB Headset Microphone",
    "External Audio Interface",
]

# Web API
WEB_DEFAULT_HOST = "127.0.0.1"
WEB_DEFAULT_PORT = 7866

# Pipeline events
EVENT_DEVICE_REPORT = "pipeline.device_report"
EVENT_SESSION_TRANSITION = "session.transition"
