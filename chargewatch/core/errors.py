"""Exception types raised by the battery core."""

from chargewatch.core.types import PowerMode


class ChargewatchError(Exception):
    """Base class for all chargewatch errors."""


class PollCancelled(ChargewatchError):
    """The poll session was cancelled while a tick was in progress.

    This is a normal way for a tick to end, not a failure.
    """


class TelemetryUnavailable(ChargewatchError):
    """A telemetry source could not find a battery or its backend."""


class ModeWriteError(ChargewatchError):
    """Writing a new charging mode to the hardware failed."""

    def __init__(self, target: PowerMode, message: str = ""):
        self.target = target
        super().__init__(message or f"Failed to set battery mode to {target.name}")
