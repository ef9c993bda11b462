"""
Monitor Configuration - Dataclass for timing and executable settings.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from common.exceptions import InvalidConfigError, MissingConfigError
from utils.atomic_write import atomic_write_json

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "podbar"
CONFIG_FILE = CONFIG_DIR / "config.json"


@dataclass
class MonitorConfig:
    """Settings for the status monitor. Defaults match the macOS status bar app."""
    binary_name: str = "podman"
    fallback_path: str = "/opt/homebrew/bin/podman"
    which_path: str = "/usr/bin/which"
    # Skips the `which` lookup when set
    executable_path: Optional[str] = None

    poll_interval: float = 5.0
    confirm_delay: float = 5.0
    recheck_delay: float = 2.0
    command_timeout: Optional[float] = 30.0

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.binary_name:
            errors.append("binary_name is required")
        if not self.fallback_path:
            errors.append("fallback_path is required")
        if not self.which_path:
            errors.append("which_path is required")
        if self.executable_path is not None and not self.executable_path.strip():
            errors.append("executable_path must not be blank")

        if self.poll_interval <= 0:
            errors.append("poll_interval must be positive")
        if self.confirm_delay < 0:
            errors.append("confirm_delay must not be negative")
        if self.recheck_delay < 0:
            errors.append("recheck_delay must not be negative")
        if self.command_timeout is not None and self.command_timeout <= 0:
            errors.append("command_timeout must be positive or null")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MonitorConfig":
        """
        Build a config from a dict, ignoring unknown keys.

        Raises:
            MissingConfigError: If a required string field is null
            InvalidConfigError: If a value has the wrong type or fails validation
        """
        known = {f.name: f for f in fields(cls)}
        kwargs = {}

        for key, value in data.items():
            if key not in known:
                logger.warning(f"Ignoring unknown config key: {key}")
                continue
            kwargs[key] = value

        for key in ("binary_name", "fallback_path", "which_path"):
            if key in kwargs:
                if kwargs[key] is None:
                    raise MissingConfigError(key)
                if not isinstance(kwargs[key], str):
                    raise InvalidConfigError(key, kwargs[key], "expected a string")

        if kwargs.get("executable_path") is not None and not isinstance(kwargs["executable_path"], str):
            raise InvalidConfigError("executable_path", kwargs["executable_path"], "expected a string")

        for key in ("poll_interval", "confirm_delay", "recheck_delay", "command_timeout"):
            if key not in kwargs:
                continue
            value = kwargs[key]
            if value is None:
                if key == "command_timeout":
                    continue
                raise MissingConfigError(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidConfigError(key, value, "expected a number of seconds")
            kwargs[key] = float(value)

        config = cls(**kwargs)
        errors = config.validate()
        if errors:
            raise InvalidConfigError("config", data, "; ".join(errors))
        return config

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "MonitorConfig":
        """
        Load config from a JSON file. A missing file yields defaults.

        Raises:
            InvalidConfigError: If the file is not a JSON object or is invalid
        """
        path = path or CONFIG_FILE
        if not path.exists():
            logger.debug(f"No config at {path}, using defaults")
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise InvalidConfigError(str(path), "<unreadable>", str(e)) from e

        if not isinstance(data, dict):
            raise InvalidConfigError(str(path), type(data).__name__, "expected a JSON object")

        logger.debug(f"Loaded config from {path}")
        return cls.from_dict(data)

    def save(self, path: Optional[Path] = None) -> Path:
        """Write config atomically. Returns the path written."""
        path = path or CONFIG_FILE
        atomic_write_json(path, self.to_dict())
        logger.info(f"Saved config to {path}")
        return path
