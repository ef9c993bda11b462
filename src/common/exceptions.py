"""
PodBar Exception Hierarchy

Provides clear, actionable error messages with structured information
for logging, user feedback, and programmatic error handling.
"""

from typing import Optional, Dict, Any, Sequence


class PodbarError(Exception):
    """
    Base exception for all PodBar errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context as key-value pairs
        cause: Original exception that caused this error
        recoverable: Whether the error is recoverable
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable

    def __str__(self):
        s = f"[{self.code}] {self.message}"
        if self.details:
            s += f" (details: {self.details})"
        if self.cause:
            s += f" caused by: {self.cause}"
        return s

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Command execution errors
# =============================================================================

class ExecError(PodbarError):
    """Base for external command execution errors."""
    pass


class SpawnFailedError(ExecError):
    """The executable could not be launched."""
    def __init__(self, path: str, args: Sequence[str], cause: Optional[Exception] = None):
        super().__init__(
            f"Cannot launch '{path}'",
            code="SPAWN_FAILED",
            details={"path": path, "args": list(args)},
            cause=cause,
        )


class CommandTimeoutError(ExecError):
    """The command did not exit in time and was killed."""
    def __init__(self, path: str, args: Sequence[str], timeout: float):
        super().__init__(
            f"'{path}' did not exit within {timeout:g}s",
            code="COMMAND_TIMEOUT",
            details={"path": path, "args": list(args), "timeout": timeout},
        )


# =============================================================================
# Output parsing errors
# =============================================================================

class ParseFailedError(PodbarError):
    """Command output was malformed or lacked the expected fields."""
    def __init__(self, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Unexpected command output: {reason}",
            code="PARSE_FAILED",
            details={"reason": reason},
            cause=cause,
        )


# =============================================================================
# Executable resolution errors
# =============================================================================

class ResolveFailedError(PodbarError):
    """Path lookup produced no usable executable path."""
    def __init__(self, binary: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Cannot resolve path of '{binary}': {reason}",
            code="RESOLVE_FAILED",
            details={"binary": binary, "reason": reason},
            cause=cause,
        )


# =============================================================================
# Configuration errors
# =============================================================================

class ConfigError(PodbarError):
    """Base for configuration errors."""
    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration."""
    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration: {field}={value}: {reason}",
            code="INVALID_CONFIG",
            details={"field": field, "value": str(value), "reason": reason},
            recoverable=False,
        )


class MissingConfigError(ConfigError):
    """Required configuration missing."""
    def __init__(self, field: str):
        super().__init__(
            f"Missing required configuration: {field}",
            code="MISSING_CONFIG",
            details={"field": field},
        )
