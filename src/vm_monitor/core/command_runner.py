"""
Command Runner

Spawns the external runtime executable and captures its output.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from typing import Optional, Sequence

from common.decorators import timed
from common.exceptions import CommandTimeoutError, SpawnFailedError

from .state import CommandResult

logger = logging.getLogger(__name__)


class CommandRunner:
    """
    Runs external commands on behalf of the probe, lister and controller.

    A nonzero exit code is a normal result; only a failure to launch
    (or a timeout) is raised.
    """

    def __init__(self, timeout: Optional[float] = 30.0):
        self.timeout = timeout

    @timed
    def run(self, path: str, args: Sequence[str]) -> CommandResult:
        """
        Run a command to completion.

        Args:
            path: Executable path
            args: Arguments passed to the executable

        Returns:
            Exit code and combined stdout/stderr bytes

        Raises:
            SpawnFailedError: If the executable cannot be launched
            CommandTimeoutError: If the command outlives the timeout
        """
        cmd = [path, *args]
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(path, args, self.timeout) from e
        except OSError as e:
            raise SpawnFailedError(path, args, cause=e) from e

        if result.returncode != 0:
            logger.debug(f"{path} exited with code {result.returncode}")

        return CommandResult(exit_code=result.returncode, output=result.stdout or b"")

    def launch(self, path: str, args: Sequence[str]) -> Optional[subprocess.Popen]:
        """
        Start a command without waiting for it.

        Output is discarded. A daemon thread reaps the child and logs its
        exit code.

        Returns:
            The process handle, or None if it could not be launched
        """
        cmd = [path, *args]
        try:
            proc = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.error(f"Error in command execution: {SpawnFailedError(path, args, cause=e)}")
            return None

        logger.info(f"Launched: {' '.join(cmd)} (pid {proc.pid})")

        def reap():
            code = proc.wait()
            logger.info(f"{' '.join(cmd)} finished with exit code {code}")

        threading.Thread(target=reap, name=f"reap-{proc.pid}", daemon=True).start()
        return proc
