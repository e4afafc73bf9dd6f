"""UPower telemetry source - reads the laptop battery via the UPower D-Bus daemon.

Preferred over sysfs when the daemon is running: UPower already smooths the
rate and time-to-empty estimates.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from chargewatch.core.errors import TelemetryUnavailable
from chargewatch.core.provider import TelemetrySource
from chargewatch.core.types import (
    LIFE_REMAINING_UNKNOWN, PowerAdapterStatus, TelemetrySnapshot,
)
from chargewatch.providers.tracking import DischargeRateRange, OnBatteryClock

log = logging.getLogger(__name__)

# UPower device type constants
_UPOWER_TYPE_LINE_POWER = 1
_UPOWER_TYPE_BATTERY = 2

# UPower state constants
_UPOWER_STATE_CHARGING = 1
_UPOWER_STATE_DISCHARGING = 2
_UPOWER_STATE_FULLY_CHARGED = 4

# WarningLevel: 3 = low, 4 = critical, 5 = action
_UPOWER_WARNING_LOW = 3

_IFACE_DEVICE = "org.freedesktop.UPower.Device"
_IFACE_PROPS = "org.freedesktop.DBus.Properties"
_IFACE_UPOWER = "org.freedesktop.UPower"
_UPOWER_PATH = "/org/freedesktop/UPower"
_UPOWER_BUS = "org.freedesktop.UPower"


def _try_import_dbus():
    """Import dbus lazily so the module is loadable even without dbus-python."""
    try:
        import dbus
        return dbus
    except ImportError:
        return None


class UPowerTelemetrySource(TelemetrySource):
    """Telemetry source using the UPower D-Bus daemon."""

    def __init__(self, low_percent: int = 10,
                 clock: Callable[[], datetime] = datetime.now):
        self._bus = None
        self._low_percent = low_percent
        self._on_battery = OnBatteryClock(clock)
        self._rates = DischargeRateRange()

    @property
    def name(self) -> str:
        return "UPower"

    def _get_bus(self):
        if self._bus is None:
            dbus = _try_import_dbus()
            if dbus is None:
                raise TelemetryUnavailable("dbus-python is not installed")
            try:
                self._bus = dbus.SystemBus()
            except Exception as e:
                raise TelemetryUnavailable("Could not connect to system D-Bus") from e
        return self._bus

    def is_available(self) -> bool:
        try:
            return self._find_device(_UPOWER_TYPE_BATTERY) is not None
        except Exception:
            log.debug("UPower not available", exc_info=True)
            return False

    def _device_props(self, dev_path: str) -> dict:
        dbus = _try_import_dbus()
        dev_obj = self._get_bus().get_object(_UPOWER_BUS, dev_path)
        props = dbus.Interface(dev_obj, _IFACE_PROPS)
        return props.GetAll(_IFACE_DEVICE)

    def _find_device(self, dev_type: int) -> Optional[dict]:
        """Properties of the first power-supply device of the given type."""
        dbus = _try_import_dbus()
        bus = self._get_bus()
        upower_obj = bus.get_object(_UPOWER_BUS, _UPOWER_PATH)
        upower_iface = dbus.Interface(upower_obj, _IFACE_UPOWER)

        for dev_path in upower_iface.EnumerateDevices():
            props = self._device_props(str(dev_path))
            if int(props.get("Type", 0)) != dev_type:
                continue
            if dev_type == _UPOWER_TYPE_BATTERY and not bool(props.get("PowerSupply", False)):
                continue
            return props
        return None

    # --- Reads ---

    def read_battery_info(self) -> TelemetrySnapshot:
        props = self._find_device(_UPOWER_TYPE_BATTERY)
        if props is None:
            raise TelemetryUnavailable("UPower reports no system battery")

        state = int(props.get("State", 0))
        line_power = self._find_device(_UPOWER_TYPE_LINE_POWER)
        if line_power is not None:
            is_charging = bool(line_power.get("Online", False))
        else:
            is_charging = state != _UPOWER_STATE_DISCHARGING

        percentage = max(0, min(100, int(round(float(props.get("Percentage", 0))))))

        power_mw = int(abs(float(props.get("EnergyRate", 0.0))) * 1000)
        if state == _UPOWER_STATE_CHARGING:
            rate = power_mw
        elif state == _UPOWER_STATE_DISCHARGING:
            rate = -power_mw
        else:
            rate = 0
        min_rate, max_rate = self._rates.update(rate)

        time_to_empty = int(props.get("TimeToEmpty", 0))
        if state == _UPOWER_STATE_DISCHARGING and time_to_empty > 0:
            life_remaining = time_to_empty
        else:
            life_remaining = LIFE_REMAINING_UNKNOWN

        warning = int(props.get("WarningLevel", 0))
        is_low = warning >= _UPOWER_WARNING_LOW or (
            not is_charging and percentage <= self._low_percent
        )

        # UPower uses 0 for "no sensor" and -1 for "unknown cycle count".
        temperature = float(props.get("Temperature", 0.0))
        cycles = int(props.get("ChargeCycles", -1))

        self._on_battery.update(is_charging)

        return TelemetrySnapshot(
            percentage=percentage,
            is_charging=is_charging,
            discharge_rate=rate,
            min_discharge_rate=min_rate,
            max_discharge_rate=max_rate,
            estimated_capacity=int(float(props.get("Energy", 0.0)) * 1000),
            full_charge_capacity=int(float(props.get("EnergyFull", 0.0)) * 1000),
            design_capacity=int(float(props.get("EnergyFullDesign", 0.0)) * 1000),
            health=float(props.get("Capacity", 0.0)),
            cycle_count=max(cycles, 0),
            life_remaining=life_remaining,
            is_low_battery=is_low,
            temperature_c=temperature if temperature else None,
        )

    def read_adapter_status(self) -> PowerAdapterStatus:
        line_power = self._find_device(_UPOWER_TYPE_LINE_POWER)
        battery = self._find_device(_UPOWER_TYPE_BATTERY)
        state = int(battery.get("State", 0)) if battery is not None else 0

        if line_power is not None:
            online = bool(line_power.get("Online", False))
        else:
            online = state in (_UPOWER_STATE_CHARGING, _UPOWER_STATE_FULLY_CHARGED)

        if not online:
            return PowerAdapterStatus.DISCONNECTED
        if state == _UPOWER_STATE_DISCHARGING:
            return PowerAdapterStatus.CONNECTED_LOW_WATTAGE
        return PowerAdapterStatus.CONNECTED

    def read_on_battery_since(self) -> Optional[datetime]:
        return self._on_battery.since

    def close(self) -> None:
        self._bus = None
