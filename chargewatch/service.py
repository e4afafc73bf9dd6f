"""Battery service - wires sources, guard, coordinator and hotplug monitor."""

import logging
from typing import Optional

from chargewatch.config import Config
from chargewatch.core.guard import ModeSwitchGuard
from chargewatch.core.poller import DEFAULT_POLL_INTERVAL, PollingCoordinator
from chargewatch.core.provider import ModeControlProvider, TelemetrySource, UpdateSink
from chargewatch.core.types import ModeChangeResult, PowerMode, TemperatureUnit
from chargewatch.providers.ideapad import IdeapadModeProvider
from chargewatch.providers.psutil_source import PsutilTelemetrySource
from chargewatch.providers.sysfs import SysfsTelemetrySource
from chargewatch.providers.udev import PowerSupplyMonitor
from chargewatch.providers.upower import UPowerTelemetrySource

log = logging.getLogger(__name__)


def create_telemetry_source(config: Config) -> TelemetrySource:
    """Pick the telemetry backend named in the config.

    ``auto`` prefers UPower, then sysfs, then psutil.
    """
    backend = config.telemetry_backend
    low = config.low_battery_percent

    if backend == "upower":
        return UPowerTelemetrySource(low_percent=low)
    if backend == "sysfs":
        return SysfsTelemetrySource(low_percent=low)
    if backend == "psutil":
        return PsutilTelemetrySource(low_percent=low)

    upower = UPowerTelemetrySource(low_percent=low)
    if upower.is_available():
        return upower
    if SysfsTelemetrySource.is_available():
        return SysfsTelemetrySource(low_percent=low)
    return PsutilTelemetrySource(low_percent=low)


class BatteryService:
    """Everything the battery page needs behind one start/stop pair.

    The caller decides when the page is visible and calls start()/stop()
    accordingly; mode buttons call request_mode_change().
    """

    def __init__(self, source: TelemetrySource, sink: UpdateSink,
                 mode_provider: Optional[ModeControlProvider] = None,
                 interval: float = DEFAULT_POLL_INTERVAL,
                 temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS,
                 hotplug: bool = False):
        self.source = source
        self._sink = sink
        self.guard = ModeSwitchGuard(mode_provider, sink) if mode_provider else None
        self.coordinator = PollingCoordinator(
            source, sink, guard=self.guard,
            interval=interval, temperature_unit=temperature_unit,
        )
        self._monitor = PowerSupplyMonitor(self.coordinator.refresh_now) if hotplug else None

    @classmethod
    def from_config(cls, config: Config, sink: UpdateSink) -> "BatteryService":
        source = create_telemetry_source(config)
        mode_provider = IdeapadModeProvider() if config.mode_control_enabled else None
        log.debug("Using telemetry source %s, mode control %s",
                  source.name, mode_provider.name if mode_provider else "disabled")
        return cls(
            source, sink,
            mode_provider=mode_provider,
            interval=config.poll_interval,
            temperature_unit=config.temperature_unit,
            hotplug=config.hotplug_enabled,
        )

    @property
    def is_running(self) -> bool:
        return self.coordinator.is_running

    def start(self) -> None:
        self.coordinator.start()
        if self._monitor is not None:
            try:
                self._monitor.start()
            except Exception:
                # No udev (containers, non-Linux): plain polling still works.
                log.debug("power_supply monitor unavailable", exc_info=True)
                self._monitor = None

    def stop(self) -> None:
        if self._monitor is not None:
            self._monitor.stop()
        self.coordinator.stop()

    def request_mode_change(self, target: PowerMode) -> ModeChangeResult:
        if self.guard is None:
            self._sink.on_mode_change_result(target, False)
            return ModeChangeResult.UNCHANGED
        return self.guard.request_mode_change(target)

    def close(self) -> None:
        self.stop()
        self.source.close()
