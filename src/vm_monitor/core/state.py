"""
VM State - Enums and dataclasses shared by the probe and the controller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RuntimeState(Enum):
    """Podman machine states as seen by the status bar."""
    UNKNOWN = "unknown"
    STOPPED = "stopped"
    STARTING_UP = "starting_up"
    RUNNING = "running"

    @property
    def tooltip(self) -> str:
        return _TOOLTIPS[self]


_TOOLTIPS = {
    RuntimeState.UNKNOWN: "Podman VM: checking...",
    RuntimeState.STOPPED: "Podman VM: not active",
    RuntimeState.STARTING_UP: "Podman VM: starting",
    RuntimeState.RUNNING: "Podman VM: active",
}


class ErrorKind(Enum):
    """Why a probe could not produce usable information."""
    SPAWN_FAILED = "spawn_failed"
    PARSE_FAILED = "parse_failed"
    RESOLVE_FAILED = "resolve_failed"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of a single `machine info` query."""
    running: bool
    raw: bytes = b""
    error: Optional[ErrorKind] = None
    machine_state: Optional[str] = None


@dataclass(frozen=True)
class CommandResult:
    """Exit status and merged stdout/stderr of a finished command."""
    exit_code: int
    output: bytes

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")
