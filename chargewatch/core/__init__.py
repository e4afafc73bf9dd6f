"""Core abstractions for battery polling and charging mode control."""

from chargewatch.core.types import (
    PowerAdapterStatus,
    PowerMode,
    TemperatureUnit,
    BatteryStatus,
    HealthBand,
    ModeChangeResult,
    TelemetrySnapshot,
    DerivedView,
)
from chargewatch.core.errors import (
    ChargewatchError,
    PollCancelled,
    TelemetryUnavailable,
    ModeWriteError,
)
from chargewatch.core.provider import TelemetrySource, ModeControlProvider, UpdateSink
from chargewatch.core.metrics import derive_view
from chargewatch.core.guard import ModeSwitchGuard
from chargewatch.core.poller import PollingCoordinator, PollSession

__all__ = [
    "PowerAdapterStatus",
    "PowerMode",
    "TemperatureUnit",
    "BatteryStatus",
    "HealthBand",
    "ModeChangeResult",
    "TelemetrySnapshot",
    "DerivedView",
    "ChargewatchError",
    "PollCancelled",
    "TelemetryUnavailable",
    "ModeWriteError",
    "TelemetrySource",
    "ModeControlProvider",
    "UpdateSink",
    "derive_view",
    "ModeSwitchGuard",
    "PollingCoordinator",
    "PollSession",
]
