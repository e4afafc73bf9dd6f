"""Small stateful helpers shared by the telemetry sources."""

import threading
from datetime import datetime
from typing import Callable, Optional, Tuple


class OnBatteryClock:
    """Remembers when the machine went on battery.

    Set by the first discharging reading, cleared once charging resumes.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._since: Optional[datetime] = None
        self._lock = threading.Lock()

    def update(self, is_charging: bool) -> Optional[datetime]:
        with self._lock:
            if is_charging:
                self._since = None
            elif self._since is None:
                self._since = self._clock()
            return self._since

    @property
    def since(self) -> Optional[datetime]:
        with self._lock:
            return self._since


class DischargeRateRange:
    """Lowest and highest discharge rate seen so far, in milliwatts."""

    def __init__(self):
        self._min: Optional[int] = None
        self._max: Optional[int] = None
        self._lock = threading.Lock()

    def update(self, rate: int) -> Tuple[int, int]:
        with self._lock:
            self._min = rate if self._min is None else min(self._min, rate)
            self._max = rate if self._max is None else max(self._max, rate)
            return self._min, self._max
