"""
Bounded retry around hardware reads.
Turns TransientIoError into "no data this tick" and decides when the bus
needs recovering. Failures are counted per read key so one bad channel
never hides or blocks the others.
"""
from .constants import Bus
from .errors import BusFault, TransientIoError
from .log import log, TAG_BUS


class BusGuard:

    def __init__(self, controls, sleep_ms=None, retries=Bus.READ_RETRIES,
                 fault_threshold=Bus.FAULT_THRESHOLD, backoff_ms=Bus.BACKOFF_MS):
        """
        Args:
            controls: ControlSurfaceHAL, used for reset_bus()
            sleep_ms: Callable used for the retry backoff, or None
            retries: Extra attempts after the first failed read
            fault_threshold: Consecutive failed reads of one key that
                             trigger bus recovery
            backoff_ms: Pause between attempts
        """
        self.controls = controls
        self.sleep_ms = sleep_ms
        self.retries = retries
        self.fault_threshold = fault_threshold
        self.backoff_ms = backoff_ms

        # Key: read key, Value: consecutive failed reads
        self.faults = {}
        self.recoveries = 0

    def read(self, key, fn, *args, validate=None):
        """
        Call fn(*args), retrying transient failures.

        Args:
            key: Hashable identifying the channel, e.g. ("position", 3)
            fn: Read function
            validate: Optional predicate; a value it rejects is treated
                      like a failed read, unless every attempt of the
                      burst read back that same value

        Returns:
            The value read, or None when every attempt failed
        """
        rejected = []
        for attempt in range(self.retries + 1):
            if attempt > 0 and self.sleep_ms and self.backoff_ms:
                self.sleep_ms(self.backoff_ms)
            try:
                value = fn(*args)
            except TransientIoError as e:
                log(TAG_BUS, str(key) + " read failed (" + str(e) + "), attempt " + str(attempt + 1), level=2)
                continue
            if validate is not None and not validate(value):
                log(TAG_BUS, str(key) + " rejected implausible value " + str(value), level=2)
                rejected.append(value)
                continue
            self.faults[key] = 0
            return value

        # The same value on every attempt is real data, not a glitch
        if len(rejected) > 1 and len(rejected) == self.retries + 1 \
                and rejected.count(rejected[0]) == len(rejected):
            log(TAG_BUS, str(key) + " accepted " + str(rejected[0]) + " after a consistent burst", level=2)
            self.faults[key] = 0
            return rejected[0]

        self.faults[key] = self.faults.get(key, 0) + 1
        log(TAG_BUS, str(key) + " skipped this tick (" + str(self.faults[key]) + " in a row)")
        return None

    @property
    def needs_recovery(self):
        for count in self.faults.values():
            if count > self.fault_threshold:
                return True
        return False

    def recover(self):
        """
        Reset the bus. Raises BusFault if the recovery itself fails.
        """
        log(TAG_BUS, "fault threshold exceeded, resetting bus", is_error=True)
        try:
            self.controls.reset_bus()
        except TransientIoError as e:
            raise BusFault("bus reset failed: " + str(e)) from e
        self.faults = {}
        self.recoveries += 1
