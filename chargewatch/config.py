"""Configuration management for chargewatch."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from chargewatch.core.types import TemperatureUnit

log = logging.getLogger(__name__)


# Default configuration values
DEFAULTS = {
    # Polling settings
    "polling": {
        "interval_seconds": 3,  # How often to refresh battery information
    },

    "display": {
        "temperature_unit": "C",  # "C" or "F"
    },

    # Which backends to use
    "providers": {
        "telemetry": "auto",  # auto, upower, sysfs, psutil
        "mode_control": True,  # ideapad_acpi charging mode switch
        "hotplug": True,  # Refresh immediately on udev power_supply events
    },

    "battery": {
        "low_percent": 10,  # Fallback low battery threshold
    },
}

TELEMETRY_BACKENDS = ("auto", "upower", "sysfs", "psutil")


def get_config_dir() -> Path:
    """Get the configuration directory, creating it if needed."""
    xdg_config = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg_config:
        config_dir = Path(xdg_config) / "chargewatch"
    else:
        config_dir = Path.home() / ".config" / "chargewatch"

    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    return get_config_dir() / "config.json"


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base, returning new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration from file, merging with defaults."""
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        try:
            with open(config_path, "r") as f:
                user_config = json.load(f)
            if not isinstance(user_config, dict):
                raise ValueError("top-level value is not an object")
            return _deep_merge(DEFAULTS, user_config)
        except (json.JSONDecodeError, ValueError, IOError) as e:
            log.warning("Could not load config from %s: %s", config_path, e)
            return _deep_merge(DEFAULTS, {})

    # Create default config file on first run
    save_config(DEFAULTS, config_path)
    return _deep_merge(DEFAULTS, {})


def save_config(config: dict, config_path: Optional[Path] = None) -> bool:
    """Save configuration to file."""
    if config_path is None:
        config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(config, f, indent=2)
        return True
    except IOError as e:
        log.warning("Could not save config to %s: %s", config_path, e)
        return False


class Config:
    """Read-only configuration accessor.

    Built once by the application and passed to whatever needs it.
    """

    def __init__(self, data: Optional[dict] = None, path: Optional[Path] = None):
        self._config = data if data is not None else load_config(path)

    @classmethod
    def from_dict(cls, overrides: dict) -> "Config":
        return cls(_deep_merge(DEFAULTS, overrides))

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value using dot notation (e.g., 'polling.interval_seconds')."""
        value = self._config
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    @property
    def poll_interval(self) -> float:
        default = DEFAULTS["polling"]["interval_seconds"]
        try:
            interval = float(self.get("polling.interval_seconds", default))
        except (TypeError, ValueError):
            interval = 0
        if interval <= 0:
            log.warning("Invalid poll interval, using %ss", default)
            return float(default)
        return interval

    @property
    def temperature_unit(self) -> TemperatureUnit:
        raw = str(self.get("display.temperature_unit", "C")).upper()
        try:
            return TemperatureUnit(raw)
        except ValueError:
            return TemperatureUnit.CELSIUS

    @property
    def telemetry_backend(self) -> str:
        backend = str(self.get("providers.telemetry", "auto")).lower()
        if backend not in TELEMETRY_BACKENDS:
            log.warning("Unknown telemetry backend %r, using auto", backend)
            return "auto"
        return backend

    @property
    def mode_control_enabled(self) -> bool:
        return bool(self.get("providers.mode_control", True))

    @property
    def hotplug_enabled(self) -> bool:
        return bool(self.get("providers.hotplug", True))

    @property
    def low_battery_percent(self) -> int:
        default = DEFAULTS["battery"]["low_percent"]
        try:
            percent = int(self.get("battery.low_percent", default))
        except (TypeError, ValueError):
            percent = -1
        if not 0 <= percent <= 100:
            log.warning("Invalid low battery threshold, using %s%%", default)
            return default
        return percent
