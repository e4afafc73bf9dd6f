"""Qt bridge: delivers core callbacks as Qt signals.

The poll loop calls the sink on its own thread. Connecting these signals to
slots on GUI objects gives queued delivery on the GUI thread for free.
"""

from typing import Optional

from PyQt5.QtCore import QObject, pyqtSignal

from chargewatch.core.provider import UpdateSink
from chargewatch.core.types import DerivedView, PowerMode


class _SinkSignals(QObject):
    """Thread-safe bridge: poll/write threads -> Qt main thread."""

    snapshot_ready = pyqtSignal(object, object)
    mode_change_finished = pyqtSignal(object, bool)
    mode_controls_enabled = pyqtSignal(bool)


class QtUpdateSink(UpdateSink):
    """UpdateSink that re-emits every callback as a Qt signal.

    Signals (on ``.signals``):
        snapshot_ready(DerivedView, PowerMode | None)
        mode_change_finished(PowerMode, bool)
        mode_controls_enabled(bool)
    """

    def __init__(self, parent: Optional[QObject] = None):
        self.signals = _SinkSignals(parent)

    def on_snapshot(self, view: DerivedView, mode: Optional[PowerMode]) -> None:
        self.signals.snapshot_ready.emit(view, mode)

    def on_mode_change_result(self, target: PowerMode, success: bool) -> None:
        self.signals.mode_change_finished.emit(target, success)

    def on_mode_controls_enabled(self, enabled: bool) -> None:
        self.signals.mode_controls_enabled.emit(enabled)
