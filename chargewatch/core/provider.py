"""Abstract base classes for the collaborators the battery core talks to."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from chargewatch.core.types import (
    DerivedView, PowerAdapterStatus, PowerMode, TelemetrySnapshot,
)


class TelemetrySource(ABC):
    """A source of raw battery readings.

    Implementations:
    - UPowerTelemetrySource: D-Bus UPower daemon
    - SysfsTelemetrySource: /sys/class/power_supply/
    - PsutilTelemetrySource: psutil.sensors_battery(), any platform

    Every read may block and may raise; the poll loop treats any exception
    as a transient failure for that tick.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name (e.g., 'UPower')."""
        ...

    @abstractmethod
    def read_battery_info(self) -> TelemetrySnapshot:
        """Read a complete battery snapshot."""
        ...

    @abstractmethod
    def read_adapter_status(self) -> PowerAdapterStatus:
        """Read the AC adapter state."""
        ...

    @abstractmethod
    def read_on_battery_since(self) -> Optional[datetime]:
        """When the machine last went on battery, or None while on AC."""
        ...

    def close(self) -> None:
        """Clean up resources."""
        pass


class ModeControlProvider(ABC):
    """Reads and writes the firmware charging mode."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def is_supported(self) -> bool:
        """Whether this machine exposes the charging mode controls at all."""
        ...

    @abstractmethod
    def get_mode(self) -> PowerMode:
        """Read the mode currently applied by the firmware."""
        ...

    @abstractmethod
    def set_mode(self, mode: PowerMode) -> None:
        """Apply a new mode. Raises on failure; may be slow."""
        ...


class UpdateSink(ABC):
    """Consumer of derived views and mode change outcomes.

    Callbacks arrive on the poll thread or on whichever thread requested the
    mode change. Implementations marshal to their own thread if needed.
    """

    @abstractmethod
    def on_snapshot(self, view: DerivedView, mode: Optional[PowerMode]) -> None:
        """Called once per successful tick with the last observed mode."""
        ...

    @abstractmethod
    def on_mode_change_result(self, target: PowerMode, success: bool) -> None:
        """Called once per resolved mode change request."""
        ...

    def on_mode_controls_enabled(self, enabled: bool) -> None:
        """Mode controls became available/unavailable around a write."""
        pass
