"""Shared fixtures for the chargewatch tests."""

import threading
from typing import List, Optional, Tuple

import pytest

from chargewatch.core.provider import ModeControlProvider, UpdateSink
from chargewatch.core.types import DerivedView, PowerMode, TelemetrySnapshot


def build_snapshot(**overrides) -> TelemetrySnapshot:
    values = dict(
        percentage=57,
        is_charging=False,
        discharge_rate=-8100,
        min_discharge_rate=-12000,
        max_discharge_rate=-5000,
        estimated_capacity=45600,
        full_charge_capacity=50000,
        design_capacity=57000,
        health=87.72,
        cycle_count=123,
        life_remaining=5400,
        is_low_battery=False,
        temperature_c=31.5,
    )
    values.update(overrides)
    return TelemetrySnapshot(**values)


@pytest.fixture
def snapshot_factory():
    return build_snapshot


class RecordingSink(UpdateSink):
    """Sink that records every callback and lets tests wait for them."""

    def __init__(self):
        self.snapshots: List[Tuple[DerivedView, Optional[PowerMode], str]] = []
        self.results: List[Tuple[PowerMode, bool]] = []
        self.controls: List[bool] = []
        self._cond = threading.Condition()

    def on_snapshot(self, view, mode):
        with self._cond:
            self.snapshots.append((view, mode, threading.current_thread().name))
            self._cond.notify_all()

    def on_mode_change_result(self, target, success):
        self.results.append((target, success))

    def on_mode_controls_enabled(self, enabled):
        self.controls.append(enabled)

    def wait_for_snapshots(self, count: int, timeout: float = 2.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: len(self.snapshots) >= count, timeout)


@pytest.fixture
def sink():
    return RecordingSink()


class FakeModeProvider(ModeControlProvider):
    """In-memory mode provider.

    ``write_gate``/``read_gate`` make set_mode/get_mode block until the test
    releases them; ``write_entered``/``read_entered`` signal the call began.
    """

    def __init__(self, mode: PowerMode = PowerMode.NORMAL, supported: bool = True):
        self.mode = mode
        self.supported = supported
        self.writes: List[PowerMode] = []
        self.reads = 0
        self.fail_with: Optional[Exception] = None
        self.write_gate: Optional[threading.Event] = None
        self.write_entered = threading.Event()
        self.read_gate: Optional[threading.Event] = None
        self.read_entered = threading.Event()

    @property
    def name(self):
        return "fake"

    def is_supported(self):
        return self.supported

    def get_mode(self):
        self.reads += 1
        value = self.mode
        if self.read_gate is not None:
            self.read_entered.set()
            self.read_gate.wait(5)
        return value

    def set_mode(self, mode):
        self.writes.append(mode)
        self.write_entered.set()
        if self.write_gate is not None:
            self.write_gate.wait(5)
        if self.fail_with is not None:
            raise self.fail_with
        self.mode = mode


@pytest.fixture
def mode_provider():
    return FakeModeProvider()
