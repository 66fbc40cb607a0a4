"""
Unit tests for bounded read retries and bus recovery.

Run with: python test/test_bus_guard.py
"""
import sys

sys.path.insert(0, "src/lib")
sys.path.insert(0, "test")

from chord_controller.bus_guard import BusGuard
from chord_controller.errors import BusFault
from mock_hal import ALWAYS, MockControlSurfaceHAL


class TestRetries:

    def test_glitch_retried_transparently(self):
        controls = MockControlSurfaceHAL()
        controls.positions[2] = 7
        controls.fail_reads(("position", 2), count=2)
        sleeps = []
        guard = BusGuard(controls, sleep_ms=sleeps.append, retries=3, backoff_ms=2)
        assert guard.read(("position", 2), controls.read_position, 2) == 7
        assert sleeps == [2, 2]
        assert guard.faults[("position", 2)] == 0

    def test_exhausted_retries_return_none(self):
        controls = MockControlSurfaceHAL()
        controls.fail_reads(("button", 0), count=ALWAYS)
        guard = BusGuard(controls, retries=3)
        assert guard.read(("button", 0), controls.read_button_level, 0) is None
        assert guard.faults[("button", 0)] == 1

    def test_rejected_value_retried(self):
        controls = MockControlSurfaceHAL()
        controls.positions[1] = 9
        controls.glitch_zero(1)
        guard = BusGuard(controls)
        value = guard.read(("position", 1), controls.read_position, 1,
                           validate=lambda v: v != 0)
        assert value == 9

    def test_consistent_rejected_value_accepted(self):
        controls = MockControlSurfaceHAL()
        guard = BusGuard(controls, retries=3)
        value = guard.read(("position", 1), controls.read_position, 1,
                           validate=lambda v: v != 0)
        assert value == 0
        assert guard.faults[("position", 1)] == 0

    def test_rejected_value_mixed_with_failures_skipped(self):
        controls = MockControlSurfaceHAL()
        controls.fail_reads(("position", 1), count=1)
        guard = BusGuard(controls, retries=3)
        value = guard.read(("position", 1), controls.read_position, 1,
                           validate=lambda v: v != 0)
        assert value is None
        assert guard.faults[("position", 1)] == 1

    def test_faults_counted_per_key(self):
        controls = MockControlSurfaceHAL()
        controls.fail_reads(("position", 0), count=ALWAYS)
        guard = BusGuard(controls, retries=0, fault_threshold=2)
        for _ in range(3):
            guard.read(("position", 0), controls.read_position, 0)
            assert guard.read(("position", 1), controls.read_position, 1) == 0
        assert guard.faults[("position", 0)] == 3
        assert guard.faults[("position", 1)] == 0
        assert guard.needs_recovery


class TestRecovery:

    def test_recover_resets_counters(self):
        controls = MockControlSurfaceHAL()
        guard = BusGuard(controls)
        guard.faults[("switch",)] = 50
        guard.recover()
        assert controls.reset_calls == 1
        assert guard.faults == {}
        assert not guard.needs_recovery
        assert guard.recoveries == 1

    def test_failed_recovery_raises_bus_fault(self):
        controls = MockControlSurfaceHAL()
        controls.reset_fails = True
        guard = BusGuard(controls)
        try:
            guard.recover()
            raised = False
        except BusFault:
            raised = True
        assert raised


if __name__ == "__main__":
    from run_tests import run_test_classes
    sys.exit(0 if run_test_classes([TestRetries, TestRecovery]) else 1)
