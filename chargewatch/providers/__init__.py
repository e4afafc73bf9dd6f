"""Telemetry source and mode control implementations."""

from chargewatch.providers.upower import UPowerTelemetrySource
from chargewatch.providers.sysfs import SysfsTelemetrySource
from chargewatch.providers.psutil_source import PsutilTelemetrySource
from chargewatch.providers.ideapad import IdeapadModeProvider

__all__ = [
    "UPowerTelemetrySource",
    "SysfsTelemetrySource",
    "PsutilTelemetrySource",
    "IdeapadModeProvider",
]
