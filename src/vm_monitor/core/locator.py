"""
Executable Locator

Finds the podman binary once at startup.
"""

from __future__ import annotations

import logging
from typing import Optional

from common.exceptions import ExecError, ResolveFailedError

from .command_runner import CommandRunner

logger = logging.getLogger(__name__)


class ExecutableLocator:
    """
    Resolves the absolute path of the runtime executable with `which`.

    GUI apps often start with a minimal PATH, so the lookup can fail even
    when podman is installed; the fallback path is returned in that case
    and probing still goes ahead.
    """

    DEFAULT_BINARY = "podman"
    DEFAULT_FALLBACK = "/opt/homebrew/bin/podman"
    WHICH_PATH = "/usr/bin/which"

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        binary_name: str = DEFAULT_BINARY,
        fallback_path: str = DEFAULT_FALLBACK,
        which_path: str = WHICH_PATH,
    ):
        self._runner = runner or CommandRunner()
        self.binary_name = binary_name
        self.fallback_path = fallback_path
        self.which_path = which_path

    def lookup(self) -> str:
        """
        Run the path lookup.

        Raises:
            ResolveFailedError: If the lookup fails or prints nothing usable
        """
        try:
            result = self._runner.run(self.which_path, [self.binary_name])
        except ExecError as e:
            raise ResolveFailedError(self.binary_name, "lookup failed", cause=e) from e

        if not result.ok:
            raise ResolveFailedError(
                self.binary_name, f"{self.which_path} exited with code {result.exit_code}"
            )

        for line in result.text.splitlines():
            path = line.strip()
            if path:
                return path

        raise ResolveFailedError(self.binary_name, "empty lookup output")

    def resolve(self) -> str:
        """Return the resolved path, or the fallback path if lookup fails."""
        try:
            path = self.lookup()
        except ResolveFailedError as e:
            logger.warning(f"Error in podman path: {e}; using {self.fallback_path}")
            return self.fallback_path

        logger.info(f"Using {self.binary_name} at {path}")
        return path
