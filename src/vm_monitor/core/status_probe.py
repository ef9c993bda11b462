"""
Status Probe

Asks `podman machine info` whether the machine is running.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from common.exceptions import ExecError, ParseFailedError

from .command_runner import CommandRunner
from .state import ErrorKind, ProbeResult

logger = logging.getLogger(__name__)

MACHINE_INFO_ARGS = ("machine", "info", "--format", "json")
RUNNING_TOKEN = "running"


def parse_machine_state(output: bytes) -> str:
    """
    Extract Host.MachineState from `machine info` JSON output.

    Raises:
        ParseFailedError: If the output is not JSON or lacks the field
    """
    try:
        data = json.loads(output.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ParseFailedError("output is not valid JSON", cause=e) from e

    if not isinstance(data, dict):
        raise ParseFailedError("top-level value is not an object")

    host = data.get("Host")
    if not isinstance(host, dict):
        raise ParseFailedError("missing Host object")

    machine_state = host.get("MachineState")
    if not isinstance(machine_state, str):
        raise ParseFailedError("missing Host.MachineState")

    return machine_state


def is_running_state(machine_state: str) -> bool:
    """Only the literal "running" (any case) counts as running."""
    return machine_state.lower() == RUNNING_TOKEN


class StatusProbe:
    """
    Single liveness query. Never raises: every failure reads as "not running".
    """

    def __init__(self, runner: Optional[CommandRunner] = None):
        self._runner = runner or CommandRunner()

    def probe(self, executable_path: str) -> ProbeResult:
        try:
            result = self._runner.run(executable_path, MACHINE_INFO_ARGS)
        except ExecError as e:
            logger.warning(f"Status probe failed: {e}")
            return ProbeResult(running=False, error=ErrorKind.SPAWN_FAILED)

        try:
            machine_state = parse_machine_state(result.output)
        except ParseFailedError as e:
            logger.debug(f"No usable machine info: {e}")
            return ProbeResult(running=False, raw=result.output, error=ErrorKind.PARSE_FAILED)

        running = is_running_state(machine_state)
        logger.debug(f"MachineState={machine_state!r} running={running}")
        return ProbeResult(
            running=running,
            raw=result.output,
            machine_state=machine_state,
        )
