"""Unit tests for the derived battery metrics."""

from datetime import date, datetime, timedelta

import pytest

from chargewatch.core.metrics import (
    PLACEHOLDER,
    classify_status,
    derive_view,
    format_watt_hours,
    format_watts,
    health_band,
    humanize_duration,
    on_battery_since_text,
    status_text,
    temperature_text,
    time_remaining_text,
)
from chargewatch.core.types import (
    BatteryStatus,
    HealthBand,
    PowerAdapterStatus,
    TelemetrySnapshot,
    TemperatureUnit,
)

NOW = datetime(2026, 1, 2, 12, 5, 0)


# ---------------------------------------------------------------------------
# Health banding
# ---------------------------------------------------------------------------


class TestHealthBand:
    @pytest.mark.parametrize(
        "health, band",
        [
            (100.0, HealthBand.EXCELLENT),
            (104.2, HealthBand.EXCELLENT),
            (90.0, HealthBand.EXCELLENT),
            (89.99, HealthBand.GOOD),
            (80.0, HealthBand.GOOD),
            (79.99, HealthBand.FAIR),
            (70.0, HealthBand.FAIR),
            (60.0, HealthBand.POOR),
            (59.99, HealthBand.REPLACE_SOON),
            (0.0, HealthBand.REPLACE_SOON),
        ],
    )
    def test_lower_bound_is_inclusive(self, health, band):
        assert health_band(health) == band

    def test_label_for_lowest_band(self, snapshot_factory):
        view = derive_view(snapshot_factory(health=42.0),
                           PowerAdapterStatus.DISCONNECTED, None,
                           TemperatureUnit.CELSIUS, NOW)
        assert view.health_label == "Replace Soon"
        assert view.health_text == "42.00%"


# ---------------------------------------------------------------------------
# Temperature
# ---------------------------------------------------------------------------


class TestTemperature:
    def test_fahrenheit(self):
        assert temperature_text(20.0, TemperatureUnit.FAHRENHEIT) == "68.0 °F"

    def test_celsius(self):
        assert temperature_text(20.0, TemperatureUnit.CELSIUS) == "20.0 °C"

    def test_missing_reading_uses_placeholder(self):
        assert temperature_text(None, TemperatureUnit.FAHRENHEIT) == PLACEHOLDER

    def test_view_carries_converted_value(self, snapshot_factory):
        view = derive_view(snapshot_factory(temperature_c=20.0),
                           PowerAdapterStatus.DISCONNECTED, None,
                           TemperatureUnit.FAHRENHEIT, NOW)
        assert view.temperature == pytest.approx(68.0)
        assert view.temperature_text == "68.0 °F"


# ---------------------------------------------------------------------------
# Time remaining
# ---------------------------------------------------------------------------


class TestTimeRemaining:
    def test_unknown_sentinel(self, snapshot_factory):
        assert time_remaining_text(snapshot_factory(life_remaining=-1)) == "Calculating…"

    def test_hours_and_minutes(self, snapshot_factory):
        assert time_remaining_text(snapshot_factory(life_remaining=5400)) == "1h 30m"

    def test_exact_hour(self, snapshot_factory):
        assert time_remaining_text(snapshot_factory(life_remaining=3600)) == "1h 0m"

    def test_minutes_only(self, snapshot_factory):
        assert time_remaining_text(snapshot_factory(life_remaining=120)) == "2m"

    def test_charging(self, snapshot_factory):
        info = snapshot_factory(is_charging=True, discharge_rate=25000)
        assert time_remaining_text(info) == "Charging"

    def test_charging_without_rate_is_full(self, snapshot_factory):
        info = snapshot_factory(is_charging=True, discharge_rate=0, life_remaining=-1)
        assert time_remaining_text(info) == "Fully Charged"


class TestStatusText:
    def test_estimating(self, snapshot_factory):
        assert status_text(snapshot_factory(life_remaining=-1)) == "Estimating battery life…"

    def test_remaining(self, snapshot_factory):
        assert (status_text(snapshot_factory(life_remaining=5400))
                == "Estimated battery life remaining: 1 hour and 30 minutes")

    def test_charging(self, snapshot_factory):
        info = snapshot_factory(is_charging=True, discharge_rate=1000)
        assert status_text(info) == "AC adapter connected and charging"

    def test_plugged_not_charging(self, snapshot_factory):
        info = snapshot_factory(is_charging=True, discharge_rate=0)
        assert status_text(info) == "AC adapter connected, not charging"


class TestHumanizeDuration:
    @pytest.mark.parametrize(
        "seconds, text",
        [
            (0, "0 seconds"),
            (61, "1 minute and 1 second"),
            (7500, "2 hours and 5 minutes"),
            (90061, "1 day and 1 hour"),
            (3600, "1 hour"),
            (7530, "2 hours and 5 minutes"),
            (3_456_000, "40 days"),
        ],
    )
    def test_two_largest_units(self, seconds, text):
        assert humanize_duration(timedelta(seconds=seconds)) == text

    def test_negative_is_zero(self):
        assert humanize_duration(timedelta(seconds=-5)) == "0 seconds"


# ---------------------------------------------------------------------------
# Status classification
# ---------------------------------------------------------------------------


class TestClassifyStatus:
    def test_charging_wins_over_everything(self, snapshot_factory):
        info = snapshot_factory(is_charging=True, is_low_battery=True)
        status = classify_status(info, PowerAdapterStatus.CONNECTED_LOW_WATTAGE)
        assert status == BatteryStatus.CHARGING

    def test_low_battery_before_slow_adapter(self, snapshot_factory):
        info = snapshot_factory(is_low_battery=True)
        status = classify_status(info, PowerAdapterStatus.CONNECTED_LOW_WATTAGE)
        assert status == BatteryStatus.LOW_BATTERY

    def test_slow_adapter(self, snapshot_factory):
        status = classify_status(snapshot_factory(), PowerAdapterStatus.CONNECTED_LOW_WATTAGE)
        assert status == BatteryStatus.SLOW_CHARGING

    def test_on_battery(self, snapshot_factory):
        status = classify_status(snapshot_factory(), PowerAdapterStatus.DISCONNECTED)
        assert status == BatteryStatus.ON_BATTERY


# ---------------------------------------------------------------------------
# Number formatting
# ---------------------------------------------------------------------------


class TestFormatting:
    def test_positive_watts_have_sign(self):
        assert format_watts(12340) == "+12.34 W"

    def test_negative_watts(self):
        assert format_watts(-8100) == "-8.10 W"

    def test_zero_watts_unsigned(self):
        assert format_watts(0) == "0.00 W"
        assert format_watts(4) == "0.00 W"

    def test_watt_hours(self):
        assert format_watt_hours(45600) == "45.60 Wh"


class TestOnBatterySince:
    def test_discharging(self, snapshot_factory):
        since = datetime(2026, 1, 2, 10, 0, 0)
        assert (on_battery_since_text(snapshot_factory(), since, NOW)
                == "2026-01-02 10:00:00 (2 hours and 5 minutes)")

    def test_charging_hides_timestamp(self, snapshot_factory):
        since = datetime(2026, 1, 2, 10, 0, 0)
        info = snapshot_factory(is_charging=True)
        assert on_battery_since_text(info, since, NOW) == "-"

    def test_no_timestamp(self, snapshot_factory):
        assert on_battery_since_text(snapshot_factory(), None, NOW) == "-"


# ---------------------------------------------------------------------------
# Full view
# ---------------------------------------------------------------------------


class TestDeriveView:
    def test_identical_input_gives_identical_output(self, snapshot_factory):
        info = snapshot_factory()
        since = datetime(2026, 1, 2, 11, 0, 0)
        first = derive_view(info, PowerAdapterStatus.DISCONNECTED, since,
                            TemperatureUnit.CELSIUS, NOW)
        second = derive_view(info, PowerAdapterStatus.DISCONNECTED, since,
                             TemperatureUnit.CELSIUS, NOW)
        assert first == second

    def test_fields(self, snapshot_factory):
        info = snapshot_factory(manufacture_date=date(2023, 5, 17))
        view = derive_view(info, PowerAdapterStatus.CONNECTED_LOW_WATTAGE, None,
                           TemperatureUnit.CELSIUS, NOW)

        assert view.percent_text == "57%"
        assert view.status == BatteryStatus.SLOW_CHARGING
        assert view.status_label == "Slow Charging"
        assert view.time_remaining_text == "1h 30m"
        assert view.discharge_rate_text == "-8.10 W"
        assert view.min_discharge_rate_text == "-12.00 W"
        assert view.max_discharge_rate_text == "-5.00 W"
        assert view.capacity_text == "45.60 Wh"
        assert view.full_charge_capacity_text == "50.00 Wh"
        assert view.design_capacity_text == "57.00 Wh"
        assert view.health_band == HealthBand.GOOD
        assert view.cycle_count_text == "123"
        assert view.manufacture_date_text == "2023-05-17"
        assert view.first_use_date_text is None
        assert view.show_low_wattage_warning
        assert not view.show_low_battery_warning
        assert view.warnings_visible
        assert not view.is_actively_charging

    def test_actively_charging(self, snapshot_factory):
        info = snapshot_factory(is_charging=True, discharge_rate=30000)
        view = derive_view(info, PowerAdapterStatus.CONNECTED, None,
                           TemperatureUnit.CELSIUS, NOW)
        assert view.is_actively_charging
        assert not view.warnings_visible


class TestSnapshotValidation:
    def test_rejects_out_of_range_percentage(self, snapshot_factory):
        with pytest.raises(ValueError):
            snapshot_factory(percentage=101)

    def test_rejects_negative_cycle_count(self, snapshot_factory):
        with pytest.raises(ValueError):
            snapshot_factory(cycle_count=-1)

    def test_is_immutable(self, snapshot_factory):
        info = snapshot_factory()
        with pytest.raises(AttributeError):
            info.percentage = 10  # type: ignore[misc]
        assert isinstance(info, TelemetrySnapshot)
