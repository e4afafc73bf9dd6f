"""Core data types for battery telemetry and charging mode control."""

from dataclasses import dataclass
from datetime import date
from enum import Enum, auto
from typing import Optional


class PowerAdapterStatus(Enum):
    """Whether the AC adapter is plugged in and able to keep up."""
    DISCONNECTED = auto()
    CONNECTED = auto()
    CONNECTED_LOW_WATTAGE = auto()


class PowerMode(Enum):
    """Battery charging mode exposed by the firmware."""
    CONSERVATION = auto()
    NORMAL = auto()
    RAPID_CHARGE = auto()


class TemperatureUnit(Enum):
    CELSIUS = "C"
    FAHRENHEIT = "F"


class BatteryStatus(Enum):
    """Quick status classification, in precedence order."""
    CHARGING = auto()
    LOW_BATTERY = auto()
    SLOW_CHARGING = auto()
    ON_BATTERY = auto()


class HealthBand(Enum):
    EXCELLENT = auto()
    GOOD = auto()
    FAIR = auto()
    POOR = auto()
    REPLACE_SOON = auto()


class ModeChangeResult(Enum):
    """Outcome of a mode change request."""
    APPLIED = auto()
    UNCHANGED = auto()
    BUSY = auto()


# Sentinel for "battery life unknown or still being estimated".
LIFE_REMAINING_UNKNOWN = -1


@dataclass(frozen=True)
class TelemetrySnapshot:
    """One complete set of raw battery readings.

    Rates are in milliwatts (negative while discharging), capacities in
    milliwatt-hours. ``life_remaining`` is in seconds; any negative value
    means the estimate is not available yet.
    """
    percentage: int
    is_charging: bool
    discharge_rate: int
    min_discharge_rate: int
    max_discharge_rate: int
    estimated_capacity: int
    full_charge_capacity: int
    design_capacity: int
    health: float
    cycle_count: int
    life_remaining: int = LIFE_REMAINING_UNKNOWN
    is_low_battery: bool = False
    temperature_c: Optional[float] = None
    manufacture_date: Optional[date] = None
    first_use_date: Optional[date] = None

    def __post_init__(self):
        if not 0 <= self.percentage <= 100:
            raise ValueError(f"percentage out of range: {self.percentage}")
        if self.cycle_count < 0:
            raise ValueError(f"negative cycle count: {self.cycle_count}")


@dataclass(frozen=True)
class DerivedView:
    """Display-ready values computed from a snapshot.

    Built only by :func:`chargewatch.core.metrics.derive_view`.
    """
    percentage: int
    percent_text: str
    status: BatteryStatus
    status_label: str
    status_text: str
    time_remaining_text: str
    is_actively_charging: bool
    show_low_battery_warning: bool
    show_low_wattage_warning: bool
    discharge_rate_text: str
    min_discharge_rate_text: str
    max_discharge_rate_text: str
    capacity_text: str
    full_charge_capacity_text: str
    design_capacity_text: str
    health: float
    health_text: str
    health_band: HealthBand
    health_label: str
    temperature: Optional[float]
    temperature_text: str
    on_battery_since_text: str
    cycle_count_text: str
    manufacture_date_text: Optional[str] = None
    first_use_date_text: Optional[str] = None

    @property
    def warnings_visible(self) -> bool:
        return self.show_low_battery_warning or self.show_low_wattage_warning
