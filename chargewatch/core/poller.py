"""Polling coordinator - runs the battery refresh loop on a background thread."""

import itertools
import logging
import threading
from datetime import datetime
from typing import Callable, List, Optional

from chargewatch.core.errors import PollCancelled
from chargewatch.core.guard import ModeSwitchGuard
from chargewatch.core.metrics import derive_view
from chargewatch.core.provider import TelemetrySource, UpdateSink
from chargewatch.core.types import TemperatureUnit

log = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0

_session_ids = itertools.count(1)


class PollSession:
    """One run of the poll loop, from start() to stop().

    Owns the cancellation signal and the loop thread. A session is never
    restarted; the coordinator creates a fresh one each time.
    """

    def __init__(self, interval: float):
        self.id = next(_session_ids)
        self.interval = interval
        self.thread: Optional[threading.Thread] = None
        self._cancelled = threading.Event()
        # Set on cancel and on refresh_now(); ends the inter-tick wait early.
        self._wake = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def start(self, target: Callable[["PollSession"], None]) -> None:
        self.thread = threading.Thread(
            target=target, args=(self,),
            name=f"chargewatch-poll-{self.id}", daemon=True,
        )
        self.thread.start()

    def cancel(self) -> None:
        self._cancelled.set()
        self._wake.set()

    def wake(self) -> None:
        self._wake.set()

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise PollCancelled()

    def wait(self) -> bool:
        """Sleep until the next tick is due. Returns True if cancelled."""
        self._wake.wait(self.interval)
        self._wake.clear()
        return self._cancelled.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self.thread is not None:
            self.thread.join(timeout)

    def is_alive(self) -> bool:
        return self.thread is not None and self.thread.is_alive()


class PollingCoordinator:
    """Owns the lifecycle of the telemetry poll loop.

    Each tick reads the telemetry source, refreshes the observed charging
    mode through the guard, derives a view and hands it to the sink. Read
    failures are logged and retried on the next tick; only stop() ends the
    loop.
    """

    def __init__(self, source: TelemetrySource, sink: UpdateSink,
                 guard: Optional[ModeSwitchGuard] = None,
                 interval: float = DEFAULT_POLL_INTERVAL,
                 temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS,
                 clock: Callable[[], datetime] = datetime.now):
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval}")
        self._source = source
        self._sink = sink
        self._guard = guard
        self._interval = interval
        self._unit = temperature_unit
        self._clock = clock

        # Guards _session/_retired and serializes emission against cancel.
        # Reentrant so a sink callback may call start()/stop().
        self._lock = threading.RLock()
        self._session: Optional[PollSession] = None
        # Superseded sessions that may still be finishing their last tick.
        self._retired: List[PollSession] = []

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def temperature_unit(self) -> TemperatureUnit:
        return self._unit

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._session is not None

    # --- Lifecycle ---

    def start(self) -> PollSession:
        """Start a new session, cancelling the current one if any."""
        with self._lock:
            previous = self._session
            if previous is not None:
                previous.cancel()
                self._retired.append(previous)
            self._retired = [s for s in self._retired if s.is_alive()]

            session = PollSession(self._interval)
            self._session = session
            session.start(self._run)

        log.debug("Started poll session %d (interval %.1fs)",
                  session.id, self._interval)
        return session

    def stop(self) -> None:
        """Cancel the active session and wait for its thread to exit.

        Also waits for superseded sessions still finishing a tick. No-op when
        nothing is running.
        """
        with self._lock:
            sessions = list(self._retired)
            if self._session is not None:
                sessions.append(self._session)
            self._session = None
            self._retired = []
            for session in sessions:
                session.cancel()

        current = threading.current_thread()
        for session in sessions:
            if session.thread is not current:
                session.join()

    def refresh_now(self) -> None:
        """Run the next tick immediately instead of after the interval."""
        with self._lock:
            if self._session is not None:
                self._session.wake()

    # --- Loop ---

    def _run(self, session: PollSession) -> None:
        log.debug("Battery information refresh started (session %d)", session.id)

        while not session.cancelled:
            try:
                self._tick(session)
            except PollCancelled:
                break
            except Exception:
                log.debug("Battery information refresh failed", exc_info=True)

            if session.wait():
                break

        log.debug("Battery information refresh stopped (session %d)", session.id)

    def _tick(self, session: PollSession) -> None:
        info = self._source.read_battery_info()
        session.raise_if_cancelled()
        adapter = self._source.read_adapter_status()
        session.raise_if_cancelled()
        on_battery_since = self._source.read_on_battery_since()
        session.raise_if_cancelled()

        if self._guard is not None:
            self._guard.refresh_observed_mode()
            session.raise_if_cancelled()

        view = derive_view(info, adapter, on_battery_since, self._unit, self._clock())

        with self._lock:
            if session.cancelled or session is not self._session:
                raise PollCancelled()
            mode = self._guard.observed_mode if self._guard is not None else None
            self._sink.on_snapshot(view, mode)
