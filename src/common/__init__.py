"""
PodBar Common Utilities

Shared error types, decorators and logging setup.
"""

from .exceptions import (
    PodbarError, ExecError, SpawnFailedError, CommandTimeoutError,
    ParseFailedError, ResolveFailedError, ConfigError, InvalidConfigError,
    MissingConfigError,
)
from .decorators import handle_errors, timed
from .logging_config import setup_logging, LogContext

__all__ = [
    # Exceptions
    "PodbarError", "ExecError", "SpawnFailedError", "CommandTimeoutError",
    "ParseFailedError", "ResolveFailedError", "ConfigError", "InvalidConfigError",
    "MissingConfigError",
    # Decorators
    "handle_errors", "timed",
    # Logging
    "setup_logging", "LogContext",
]
