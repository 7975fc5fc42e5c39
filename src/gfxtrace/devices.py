"""Device directory interface for Android traces.

Enumerating devices is done elsewhere (typically through adb); the core
only needs the serials that are currently available.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class DeviceDirectory(ABC):
    """Abstract source of Android device serials."""

    @abstractmethod
    async def list_devices(self) -> list[str]:
        """Return the serials of devices available for tracing."""
        ...


def pick_default_device(devices: list[str], remembered: str) -> str | None:
    """Select the remembered device if it is still connected."""
    if remembered and remembered in devices:
        return remembered
    if remembered:
        logger.debug("Remembered device %s is not available", remembered)
    return None
