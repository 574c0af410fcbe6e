"""
Application configuration.

Settings live in ``config.json`` in the working directory unless another
path is given. Environment variables override the file:

    FCB_MIDI_PORT       MIDI port name (substring match)
    FCB_DEVICE_NUMBER   Expected SysEx device number (0-127)
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from fcbmanager.utils.validation import ConfigError, ValidationError, validate_device_number

logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"
ENV_PORT = "FCB_MIDI_PORT"
ENV_DEVICE_NUMBER = "FCB_DEVICE_NUMBER"


@dataclass
class AppConfig:
    """
    Persistent editor settings.

    Attributes:
        port_name: Preferred MIDI port, None for the first available
        device_number: Expected device number of loaded dumps, None to accept any
        sysex_file: Default dump file
        receive_timeout: Seconds to wait for an incoming dump
    """

    port_name: Optional[str] = None
    device_number: Optional[int] = None
    sysex_file: str = "preset_data.syx"
    receive_timeout: float = 30.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AppConfig":
        """
        Build a config from parsed JSON, ignoring unknown keys.

        Raises:
            ConfigError: If a known key has the wrong type or range
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

        config = cls(**{k: v for k, v in data.items() if k in known})
        config.check()
        return config

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def check(self) -> None:
        """Raise ConfigError if any setting is unusable."""
        if self.port_name is not None and not isinstance(self.port_name, str):
            raise ConfigError(f"port_name must be a string, got {self.port_name!r}")
        if self.device_number is not None:
            if isinstance(self.device_number, bool) or not isinstance(self.device_number, int):
                raise ConfigError(f"device_number must be an integer, got {self.device_number!r}")
            try:
                validate_device_number(self.device_number)
            except ValidationError as e:
                raise ConfigError(str(e)) from e
        if not isinstance(self.sysex_file, str) or not self.sysex_file:
            raise ConfigError("sysex_file must be a non-empty string")
        if isinstance(self.receive_timeout, bool) or not isinstance(self.receive_timeout, (int, float)):
            raise ConfigError(f"receive_timeout must be a number, got {self.receive_timeout!r}")
        if self.receive_timeout <= 0:
            raise ConfigError("receive_timeout must be positive")

    def save(self, path: Union[str, Path] = CONFIG_FILE) -> None:
        """Write the settings back as JSON."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise ConfigError(f"Cannot write config {path}: {e}") from e
        logger.debug("Saved config to %s", path)


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    """
    Load settings from JSON and apply environment overrides.

    A missing default ``config.json`` yields the defaults; a missing file
    that was asked for explicitly is an error.

    Raises:
        ConfigError: If the file is unreadable, not JSON, or holds bad values
    """
    explicit = path is not None
    path = Path(path) if explicit else Path(CONFIG_FILE)
    environ = os.environ if environ is None else environ

    data: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Error decoding JSON from {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path} must hold a JSON object")
        logger.debug("Loaded config from %s", path)
    elif explicit:
        raise ConfigError(f"Config file not found: {path}")
    else:
        logger.debug("%s not found, using defaults", path)

    if environ.get(ENV_PORT):
        data["port_name"] = environ[ENV_PORT]
    if environ.get(ENV_DEVICE_NUMBER):
        try:
            data["device_number"] = int(environ[ENV_DEVICE_NUMBER], 0)
        except ValueError as e:
            raise ConfigError(
                f"{ENV_DEVICE_NUMBER} must be an integer, got {environ[ENV_DEVICE_NUMBER]!r}"
            ) from e

    return AppConfig.from_dict(data)
