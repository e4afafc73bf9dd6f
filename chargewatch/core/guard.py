"""Mode-switch guard: serializes charging mode writes.

The guard owns the only state shared between the poll thread and the write
path: the last observed :class:`PowerMode`. One lock protects it, together
with the in-flight flag and a write generation counter. Hardware calls are
never made while holding the lock.
"""

import logging
import threading
from typing import Optional

from chargewatch.core.errors import ModeWriteError
from chargewatch.core.provider import ModeControlProvider, UpdateSink
from chargewatch.core.types import ModeChangeResult, PowerMode

log = logging.getLogger(__name__)


class ModeSwitchGuard:
    """Deduplicates and serializes mode change requests.

    A request is rejected with ``BUSY`` while another write is in flight;
    requests are never queued. Opportunistic reads from the poll loop are
    skipped during a write, and a read that overlapped a write is dropped so
    it cannot overwrite the freshly written value.
    """

    def __init__(self, provider: ModeControlProvider,
                 sink: Optional[UpdateSink] = None):
        self._provider = provider
        self._sink = sink
        self._lock = threading.Lock()
        self._observed: Optional[PowerMode] = None
        self._writing = False
        # Bumped whenever a write starts, so reads that began earlier are stale.
        self._generation = 0

    @property
    def provider(self) -> ModeControlProvider:
        return self._provider

    @property
    def observed_mode(self) -> Optional[PowerMode]:
        """Last mode seen on the hardware, or None if never read."""
        with self._lock:
            return self._observed

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._writing

    @property
    def controls_enabled(self) -> bool:
        if self.is_busy:
            return False
        return self._is_supported()

    def _is_supported(self) -> bool:
        try:
            return self._provider.is_supported()
        except Exception:
            log.debug("Capability check failed for %s", self._provider.name,
                      exc_info=True)
            return False

    def refresh_observed_mode(self) -> Optional[PowerMode]:
        """Best-effort read of the current mode into the cache.

        Returns the cached mode afterwards. Errors leave the cache as is.
        """
        if not self._is_supported():
            return self.observed_mode

        with self._lock:
            if self._writing:
                log.debug("Skipping mode refresh, write in flight")
                return self._observed
            generation = self._generation

        try:
            mode = self._provider.get_mode()
        except Exception:
            log.debug("Mode refresh failed for %s", self._provider.name,
                      exc_info=True)
            return self.observed_mode

        with self._lock:
            if self._writing or self._generation != generation:
                log.debug("Discarding stale mode read %s", mode.name)
            else:
                self._observed = mode
            return self._observed

    def request_mode_change(self, target: PowerMode) -> ModeChangeResult:
        """Apply ``target`` unless it is redundant or another write is running.

        Raises ModeWriteError if the write cannot be carried out; the cached
        mode is left untouched in that case.
        """
        if not self._is_supported():
            self._report(target, False)
            return ModeChangeResult.UNCHANGED

        if self.observed_mode is None:
            self.refresh_observed_mode()

        with self._lock:
            if self._writing:
                result = ModeChangeResult.BUSY
            elif self._observed == target:
                result = ModeChangeResult.UNCHANGED
            else:
                result = None
                self._writing = True
                self._generation += 1

        if result is not None:
            if result == ModeChangeResult.BUSY:
                log.debug("Rejecting change to %s, write in flight", target.name)
            self._report(target, False)
            return result

        try:
            self._notify_controls(False)
            self._provider.set_mode(target)
        except Exception as e:
            with self._lock:
                self._writing = False
            log.warning("Failed to set battery mode to %s: %s", target.name, e)
            self._notify_controls(True)
            self._report(target, False)
            raise ModeWriteError(target) from e

        with self._lock:
            previous = self._observed
            self._observed = target
            self._generation += 1
            self._writing = False

        log.info("Battery mode changed: %s -> %s",
                 previous.name if previous else "unknown", target.name)
        self._notify_controls(True)
        self._report(target, True)
        return ModeChangeResult.APPLIED

    # --- Internal ---

    def _report(self, target: PowerMode, success: bool) -> None:
        if self._sink is not None:
            self._sink.on_mode_change_result(target, success)

    def _notify_controls(self, enabled: bool) -> None:
        if self._sink is not None:
            self._sink.on_mode_controls_enabled(enabled)
