"""Device session tracking for audio pipelines with a toggleable processing stage."""

from device_session.constants import VERSION as __version__

__all__ = ["__version__"]
