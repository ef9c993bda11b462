"""
PodBar VM Monitor

Tracks the Podman machine state for a status bar and starts/stops it.
"""

from .config import MonitorConfig
from .core.controller import VMController
from .core.state import ProbeResult, RuntimeState

__all__ = [
    "MonitorConfig",
    "VMController",
    "ProbeResult",
    "RuntimeState",
]

__version__ = "0.1.0"
