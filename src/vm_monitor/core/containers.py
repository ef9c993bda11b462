"""
Container Lister

Read-only enumeration of running containers via `podman ps`.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from common.decorators import handle_errors
from common.exceptions import ExecError, ParseFailedError

from .command_runner import CommandRunner

logger = logging.getLogger(__name__)

PS_NAMES_ARGS = ("ps", "--format", "{{.Names}}")


def parse_container_names(output: bytes) -> List[str]:
    """
    Split `ps` output into names: one per line, trimmed, blanks dropped.

    Order and duplicates are preserved.

    Raises:
        ParseFailedError: If the output is not UTF-8
    """
    try:
        text = output.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ParseFailedError("container listing is not UTF-8", cause=e) from e

    return [line.strip() for line in text.splitlines() if line.strip()]


class ContainerLister:
    """Lists running container names. "No containers" and "couldn't ask" look the same."""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self._runner = runner or CommandRunner()

    @handle_errors(
        ExecError, ParseFailedError,
        default_factory=list,
        log_level=logging.WARNING,
        message="Error in container search",
    )
    def list(self, executable_path: str) -> List[str]:
        result = self._runner.run(executable_path, PS_NAMES_ARGS)
        if not result.ok:
            logger.warning(
                f"podman ps exited with code {result.exit_code}: {result.text.strip()}"
            )
            return []
        return parse_container_names(result.output)
