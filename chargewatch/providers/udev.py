"""udev power_supply monitor - triggers an immediate refresh on AC plug/unplug."""

import logging
import threading
from typing import Callable, Optional

import pyudev

log = logging.getLogger(__name__)

# How long a single netlink poll blocks before re-checking the stop flag.
_POLL_TIMEOUT = 1.0


class PowerSupplyMonitor:
    """Watches the power_supply subsystem from a daemon thread.

    Every event (adapter plugged, battery status change) calls ``on_change``
    on the watcher thread. Bursts are not debounced here; the poll
    coordinator coalesces wakeups on its own.
    """

    def __init__(self, on_change: Callable[[], None]):
        self._on_change = on_change
        self._thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return

        context = pyudev.Context()
        monitor = pyudev.Monitor.from_netlink(context)
        monitor.filter_by(subsystem="power_supply")
        monitor.start()

        self._stopping.clear()
        self._thread = threading.Thread(
            target=self._watch, args=(monitor,),
            name="chargewatch-udev", daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stopping.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._thread = None

    def _watch(self, monitor) -> None:
        while not self._stopping.is_set():
            device = monitor.poll(timeout=_POLL_TIMEOUT)
            if device is None or self._stopping.is_set():
                continue
            log.debug("power_supply %s: %s", device.action, device.sys_name)
            try:
                self._on_change()
            except Exception:
                log.exception("power_supply change handler failed")
