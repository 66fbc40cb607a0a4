"""
Desktop clock for the tick loop.
"""
import time

from chord_controller.hal_protocol import ClockHAL


class MonotonicClock(ClockHAL):
    """ClockHAL backed by time.monotonic()."""

    def __init__(self):
        self._start = time.monotonic()

    def ticks_ms(self):
        return int((time.monotonic() - self._start) * 1000)

    def sleep_ms(self, ms):
        time.sleep(ms / 1000.0)
