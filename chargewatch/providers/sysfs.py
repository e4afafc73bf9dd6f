"""sysfs telemetry source - reads /sys/class/power_supply/ for the system battery.

Works on any Linux kernel without extra daemons. Units in sysfs are micro-
(µW, µWh, µA, µV); everything is converted to milli- on the way out.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional

from chargewatch.core.errors import TelemetryUnavailable
from chargewatch.core.provider import TelemetrySource
from chargewatch.core.types import (
    LIFE_REMAINING_UNKNOWN, PowerAdapterStatus, TelemetrySnapshot,
)
from chargewatch.providers.tracking import DischargeRateRange, OnBatteryClock

log = logging.getLogger(__name__)

_POWER_SUPPLY_DIR = Path("/sys/class/power_supply")

_LOW_CAPACITY_LEVELS = ("low", "critical")


def _read_sysfs(path: Path) -> Optional[str]:
    """Read a sysfs attribute file, returning stripped content or None."""
    try:
        return path.read_text().strip()
    except (OSError, IOError):
        return None


def _read_int(path: Path) -> Optional[int]:
    value = _read_sysfs(path)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class SysfsTelemetrySource(TelemetrySource):
    """Telemetry source reading the first system battery under power_supply."""

    def __init__(self, root: Path = _POWER_SUPPLY_DIR, low_percent: int = 10,
                 clock: Callable[[], datetime] = datetime.now):
        self._root = Path(root)
        self._low_percent = low_percent
        self._on_battery = OnBatteryClock(clock)
        self._rates = DischargeRateRange()

    @property
    def name(self) -> str:
        return "sysfs"

    @staticmethod
    def is_available(root: Path = _POWER_SUPPLY_DIR) -> bool:
        try:
            return SysfsTelemetrySource(root)._find_battery() is not None
        except OSError:
            return False

    # --- Discovery ---

    def _find_battery(self) -> Optional[Path]:
        if not self._root.is_dir():
            return None
        for entry in sorted(self._root.iterdir()):
            if _read_sysfs(entry / "type") != "Battery":
                continue
            # Peripheral batteries (mice, headsets) report scope=Device.
            if _read_sysfs(entry / "scope") == "Device":
                continue
            return entry
        return None

    def _mains_online(self) -> Optional[bool]:
        """AC state from Mains supplies, or None if the machine has none."""
        if not self._root.is_dir():
            return None
        found = False
        for entry in sorted(self._root.iterdir()):
            if _read_sysfs(entry / "type") != "Mains":
                continue
            found = True
            if _read_int(entry / "online") == 1:
                return True
        return False if found else None

    def _battery_dir(self) -> Path:
        bat = self._find_battery()
        if bat is None:
            raise TelemetryUnavailable(f"No system battery under {self._root}")
        return bat

    # --- Reads ---

    def read_battery_info(self) -> TelemetrySnapshot:
        bat = self._battery_dir()

        capacity = _read_int(bat / "capacity")
        if capacity is None:
            raise TelemetryUnavailable(f"{bat.name}: capacity not readable")
        percentage = max(0, min(100, capacity))

        status = (_read_sysfs(bat / "status") or "Unknown").lower()
        online = self._mains_online()
        is_charging = online if online is not None else status != "discharging"

        power = self._read_power_uw(bat)
        if status == "charging":
            rate = power // 1000
        elif status == "discharging":
            rate = -(power // 1000)
        else:
            rate = 0
        min_rate, max_rate = self._rates.update(rate)

        voltage_design = _read_int(bat / "voltage_min_design") or _read_int(bat / "voltage_now") or 0
        energy_now = self._read_energy_uwh(bat, "now", voltage_design)
        energy_full = self._read_energy_uwh(bat, "full", voltage_design)
        energy_design = self._read_energy_uwh(bat, "full_design", voltage_design)

        health = energy_full / energy_design * 100.0 if energy_design > 0 else 0.0

        life_remaining = LIFE_REMAINING_UNKNOWN
        if status == "discharging" and power > 0:
            life_remaining = int(energy_now / power * 3600)

        level = (_read_sysfs(bat / "capacity_level") or "").lower()
        is_low = level in _LOW_CAPACITY_LEVELS or (
            not is_charging and percentage <= self._low_percent
        )

        temp = _read_int(bat / "temp")
        cycles = _read_int(bat / "cycle_count")

        self._on_battery.update(is_charging)

        return TelemetrySnapshot(
            percentage=percentage,
            is_charging=is_charging,
            discharge_rate=rate,
            min_discharge_rate=min_rate,
            max_discharge_rate=max_rate,
            estimated_capacity=energy_now // 1000,
            full_charge_capacity=energy_full // 1000,
            design_capacity=energy_design // 1000,
            health=health,
            cycle_count=max(cycles or 0, 0),
            life_remaining=life_remaining,
            is_low_battery=is_low,
            temperature_c=temp / 10.0 if temp is not None else None,
            manufacture_date=self._read_manufacture_date(bat),
        )

    def read_adapter_status(self) -> PowerAdapterStatus:
        online = self._mains_online()
        bat = self._find_battery()
        status = (_read_sysfs(bat / "status") or "").lower() if bat else ""

        if online is None:
            online = status not in ("discharging", "")
        if not online:
            return PowerAdapterStatus.DISCONNECTED
        # Plugged in but still draining: the adapter cannot keep up.
        if status == "discharging":
            return PowerAdapterStatus.CONNECTED_LOW_WATTAGE
        return PowerAdapterStatus.CONNECTED

    def read_on_battery_since(self) -> Optional[datetime]:
        return self._on_battery.since

    # --- Helpers ---

    @staticmethod
    def _read_power_uw(bat: Path) -> int:
        power = _read_int(bat / "power_now")
        if power is not None:
            return abs(power)
        current = _read_int(bat / "current_now")
        voltage = _read_int(bat / "voltage_now")
        if current is None or voltage is None:
            return 0
        return abs(current) * voltage // 1_000_000

    @staticmethod
    def _read_energy_uwh(bat: Path, suffix: str, voltage_uv: int) -> int:
        energy = _read_int(bat / f"energy_{suffix}")
        if energy is not None:
            return energy
        # Batteries reporting charge (µAh) instead of energy.
        charge = _read_int(bat / f"charge_{suffix}")
        if charge is None or not voltage_uv:
            return 0
        return charge * voltage_uv // 1_000_000

    @staticmethod
    def _read_manufacture_date(bat: Path) -> Optional[date]:
        year = _read_int(bat / "manufacture_year")
        month = _read_int(bat / "manufacture_month")
        day = _read_int(bat / "manufacture_day")
        if not (year and month and day):
            return None
        try:
            return date(year, month, day)
        except ValueError:
            log.debug("Invalid manufacture date %s-%s-%s", year, month, day)
            return None
