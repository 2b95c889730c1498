"""Permission storage drivers."""
from __future__ import annotations

from permlock.drivers.base import Driver
from permlock.drivers.memory import MemoryDriver

__all__ = [
    "Driver",
    "MemoryDriver",
]
