"""Derived battery metrics.

Everything in here is a pure function of its arguments: no I/O, no clock
reads, no module state. ``derive_view`` takes the current time explicitly so
the "on battery since" duration stays deterministic.
"""

from datetime import date, datetime, timedelta
from typing import Optional

import humanize

from chargewatch.core.types import (
    BatteryStatus, DerivedView, HealthBand, PowerAdapterStatus,
    TelemetrySnapshot, TemperatureUnit,
)

PLACEHOLDER = "—"

# Lower bound of each band, checked top to bottom.
_HEALTH_BANDS = (
    (90.0, HealthBand.EXCELLENT),
    (80.0, HealthBand.GOOD),
    (70.0, HealthBand.FAIR),
    (60.0, HealthBand.POOR),
)

HEALTH_LABELS = {
    HealthBand.EXCELLENT: "Excellent",
    HealthBand.GOOD: "Good",
    HealthBand.FAIR: "Fair",
    HealthBand.POOR: "Poor",
    HealthBand.REPLACE_SOON: "Replace Soon",
}

STATUS_LABELS = {
    BatteryStatus.CHARGING: "Charging",
    BatteryStatus.LOW_BATTERY: "Low Battery",
    BatteryStatus.SLOW_CHARGING: "Slow Charging",
    BatteryStatus.ON_BATTERY: "On Battery",
}

_UNIT_SUFFIX = {
    TemperatureUnit.CELSIUS: "°C",
    TemperatureUnit.FAHRENHEIT: "°F",
}

# (size of the largest unit present, finest unit shown with it, its size)
_DURATION_RESOLUTION = (
    (86400, "hours", 3600),
    (3600, "minutes", 60),
    (60, "seconds", 1),
)


def classify_status(info: TelemetrySnapshot,
                    adapter: PowerAdapterStatus) -> BatteryStatus:
    """First match wins: charging, low battery, weak adapter, on battery."""
    if info.is_charging:
        return BatteryStatus.CHARGING
    if info.is_low_battery:
        return BatteryStatus.LOW_BATTERY
    if adapter == PowerAdapterStatus.CONNECTED_LOW_WATTAGE:
        return BatteryStatus.SLOW_CHARGING
    return BatteryStatus.ON_BATTERY


def health_band(health: float) -> HealthBand:
    for lower, band in _HEALTH_BANDS:
        if health >= lower:
            return band
    return HealthBand.REPLACE_SOON


def time_remaining_text(info: TelemetrySnapshot) -> str:
    if info.is_charging:
        if info.discharge_rate > 0:
            return "Charging"
        return "Fully Charged"

    if info.life_remaining < 0:
        return "Calculating…"

    hours, rest = divmod(info.life_remaining, 3600)
    minutes = rest // 60
    if hours >= 1:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def humanize_duration(delta: timedelta) -> str:
    """Render a duration with its two largest units, down to seconds.

    >>> humanize_duration(timedelta(seconds=5400))
    '1 hour and 30 minutes'
    """
    seconds = max(int(delta.total_seconds()), 0)
    minimum_unit, step = "seconds", 1
    for size, unit, unit_step in _DURATION_RESOLUTION:
        if seconds >= size:
            minimum_unit, step = unit, unit_step
            break
    # Truncate below the finest shown unit so it never renders fractional.
    truncated = timedelta(seconds=seconds - seconds % step)
    return humanize.precisedelta(truncated, minimum_unit=minimum_unit,
                                 suppress=("months", "years"))


def status_text(info: TelemetrySnapshot) -> str:
    """Long-form status line shown under the percentage."""
    if info.is_charging:
        if info.discharge_rate > 0:
            return "AC adapter connected and charging"
        return "AC adapter connected, not charging"

    if info.life_remaining < 0:
        return "Estimating battery life…"

    remaining = humanize_duration(timedelta(seconds=info.life_remaining))
    return f"Estimated battery life remaining: {remaining}"


def convert_temperature(celsius: Optional[float],
                        unit: TemperatureUnit) -> Optional[float]:
    if celsius is None:
        return None
    if unit == TemperatureUnit.FAHRENHEIT:
        return celsius * 9.0 / 5.0 + 32
    return celsius


def temperature_text(celsius: Optional[float], unit: TemperatureUnit) -> str:
    value = convert_temperature(celsius, unit)
    if value is None:
        return PLACEHOLDER
    return f"{value:.1f} {_UNIT_SUFFIX[unit]}"


def format_watts(milliwatts: int) -> str:
    """Signed watts with two decimals; zero carries no sign."""
    watts = milliwatts / 1000.0
    if round(watts, 2) == 0:
        return "0.00 W"
    return f"{watts:+.2f} W"


def format_watt_hours(milliwatt_hours: int) -> str:
    return f"{milliwatt_hours / 1000.0:.2f} Wh"


def on_battery_since_text(info: TelemetrySnapshot,
                          on_battery_since: Optional[datetime],
                          now: datetime) -> str:
    if info.is_charging or on_battery_since is None:
        return "-"
    duration = humanize_duration(now - on_battery_since)
    return f"{on_battery_since:%Y-%m-%d %H:%M:%S} ({duration})"


def _date_text(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def derive_view(info: TelemetrySnapshot,
                adapter: PowerAdapterStatus,
                on_battery_since: Optional[datetime],
                unit: TemperatureUnit,
                now: datetime) -> DerivedView:
    """Compute every display value for one tick."""
    status = classify_status(info, adapter)
    band = health_band(info.health)

    return DerivedView(
        percentage=info.percentage,
        percent_text=f"{info.percentage}%",
        status=status,
        status_label=STATUS_LABELS[status],
        status_text=status_text(info),
        time_remaining_text=time_remaining_text(info),
        is_actively_charging=info.is_charging and info.discharge_rate > 0,
        show_low_battery_warning=info.is_low_battery,
        show_low_wattage_warning=adapter == PowerAdapterStatus.CONNECTED_LOW_WATTAGE,
        discharge_rate_text=format_watts(info.discharge_rate),
        min_discharge_rate_text=format_watts(info.min_discharge_rate),
        max_discharge_rate_text=format_watts(info.max_discharge_rate),
        capacity_text=format_watt_hours(info.estimated_capacity),
        full_charge_capacity_text=format_watt_hours(info.full_charge_capacity),
        design_capacity_text=format_watt_hours(info.design_capacity),
        health=info.health,
        health_text=f"{info.health:.2f}%",
        health_band=band,
        health_label=HEALTH_LABELS[band],
        temperature=convert_temperature(info.temperature_c, unit),
        temperature_text=temperature_text(info.temperature_c, unit),
        on_battery_since_text=on_battery_since_text(info, on_battery_since, now),
        cycle_count_text=str(info.cycle_count),
        manufacture_date_text=_date_text(info.manufacture_date),
        first_use_date_text=_date_text(info.first_use_date),
    )
