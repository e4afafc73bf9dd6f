"""psutil telemetry source - portable fallback when neither UPower nor sysfs works.

psutil only knows percentage, plug state and seconds left; every other field
of the snapshot is reported as zero or absent.
"""

from datetime import datetime
from typing import Callable, Optional

import psutil

from chargewatch.core.errors import TelemetryUnavailable
from chargewatch.core.provider import TelemetrySource
from chargewatch.core.types import (
    LIFE_REMAINING_UNKNOWN, PowerAdapterStatus, TelemetrySnapshot,
)
from chargewatch.providers.tracking import OnBatteryClock


class PsutilTelemetrySource(TelemetrySource):

    def __init__(self, low_percent: int = 10,
                 clock: Callable[[], datetime] = datetime.now):
        self._low_percent = low_percent
        self._on_battery = OnBatteryClock(clock)

    @property
    def name(self) -> str:
        return "psutil"

    @staticmethod
    def is_available() -> bool:
        try:
            return psutil.sensors_battery() is not None
        except Exception:
            return False

    def _sensors_battery(self):
        battery = psutil.sensors_battery()
        if battery is None:
            raise TelemetryUnavailable("psutil reports no battery")
        return battery

    def read_battery_info(self) -> TelemetrySnapshot:
        battery = self._sensors_battery()
        plugged = bool(battery.power_plugged)
        percentage = max(0, min(100, int(round(battery.percent))))

        if battery.secsleft in (psutil.POWER_TIME_UNKNOWN, psutil.POWER_TIME_UNLIMITED):
            life_remaining = LIFE_REMAINING_UNKNOWN
        else:
            life_remaining = int(battery.secsleft)

        self._on_battery.update(plugged)

        return TelemetrySnapshot(
            percentage=percentage,
            is_charging=plugged,
            discharge_rate=0,
            min_discharge_rate=0,
            max_discharge_rate=0,
            estimated_capacity=0,
            full_charge_capacity=0,
            design_capacity=0,
            health=0.0,
            cycle_count=0,
            life_remaining=life_remaining if not plugged else LIFE_REMAINING_UNKNOWN,
            is_low_battery=not plugged and percentage <= self._low_percent,
        )

    def read_adapter_status(self) -> PowerAdapterStatus:
        if self._sensors_battery().power_plugged:
            return PowerAdapterStatus.CONNECTED
        return PowerAdapterStatus.DISCONNECTED

    def read_on_battery_since(self) -> Optional[datetime]:
        return self._on_battery.since
