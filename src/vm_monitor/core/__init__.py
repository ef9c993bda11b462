"""
VM Monitor Core - probing, parsing and state reconciliation.
"""

from .command_runner import CommandRunner
from .containers import ContainerLister, parse_container_names
from .controller import VMController
from .locator import ExecutableLocator
from .scheduler import Scheduler, TimerHandle
from .state import CommandResult, ErrorKind, ProbeResult, RuntimeState
from .status_probe import StatusProbe, parse_machine_state

__all__ = [
    "CommandRunner",
    "ContainerLister",
    "parse_container_names",
    "VMController",
    "ExecutableLocator",
    "Scheduler",
    "TimerHandle",
    "CommandResult",
    "ErrorKind",
    "ProbeResult",
    "RuntimeState",
    "StatusProbe",
    "parse_machine_state",
]
