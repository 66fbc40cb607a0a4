"""
Encoder signal conditioning - platform independent.
Turns raw absolute counter readings into debounced musical steps.
"""
from .constants import EncoderConfig, Hardware, Midi, Timing
from .log import log, TAG_ENCODER


class EncoderChannel:
    """Per-encoder conditioning state. Owned by EncoderConditioner."""

    def __init__(self, index, sample_count=EncoderConfig.SAMPLE_COUNT):
        self.index = index

        # Last raw reading and last accepted (stable) value
        self.position = 0
        self.stable_value = 0

        # Ring buffer of the most recent debounced samples
        self.samples = [0] * sample_count
        self._next_sample = 0
        self.last_sample_ms = None

        # Signed raw steps not yet turned into a musical change
        self.accumulator = 0

        # Only the note encoders carry a velocity
        if index < Hardware.NUM_NOTE_KEYS:
            self.velocity = Midi.VELOCITY_DEFAULT
        else:
            self.velocity = None

        # Set when the hardware counter must be written back to zero
        self.needs_reset = False

    def push_sample(self, value):
        self.samples[self._next_sample] = value
        self._next_sample = (self._next_sample + 1) % len(self.samples)

    def samples_agree(self):
        first = self.samples[0]
        for sample in self.samples:
            if sample != first:
                return False
        return True

    def clear(self):
        """Back to a zeroed counter. Velocity is a user setting and survives."""
        self.position = 0
        self.stable_value = 0
        self.samples = [0] * len(self.samples)
        self._next_sample = 0
        self.last_sample_ms = None
        self.accumulator = 0


class EncoderConditioner:
    """
    Debounces raw encoder positions and emits one musical change per
    detent click.

    A raw value is only sampled once more than `debounce_ms` has passed
    since the previous sample, and only counts as stable once the last
    `sample_count` samples agree. Each stable change is reduced to a
    single step of +1 or -1 whatever its size, and `steps_per_click`
    same-direction steps make one change.
    """

    def __init__(self, count=Hardware.NUM_ENCODERS,
                 sample_count=EncoderConfig.SAMPLE_COUNT,
                 debounce_ms=Timing.ENCODER_DEBOUNCE_MS,
                 range_limit=EncoderConfig.RANGE_LIMIT,
                 steps_per_click=EncoderConfig.STEPS_PER_CLICK):
        self.channels = [EncoderChannel(i, sample_count) for i in range(count)]
        self.debounce_ms = debounce_ms
        self.range_limit = range_limit
        self.steps_per_click = steps_per_click

    def read(self, index, raw_position, now_ms):
        """
        Feed one raw reading for an encoder.

        Args:
            index: Encoder index 0-7
            raw_position: Absolute hardware counter value
            now_ms: Current time in milliseconds

        Returns:
            Signed musical change, 0 when nothing fires this tick
        """
        channel = self.channels[index]

        # Frozen until the caller has re-zeroed the hardware counter
        if channel.needs_reset:
            return 0

        channel.position = raw_position

        if channel.last_sample_ms is not None:
            if now_ms - channel.last_sample_ms <= self.debounce_ms:
                return 0
        channel.last_sample_ms = now_ms
        channel.push_sample(raw_position)

        if not channel.samples_agree() or raw_position == channel.stable_value:
            return 0

        # Clamp to a unit step so electrical noise cannot jump several values
        step = 1 if raw_position > channel.stable_value else -1
        channel.stable_value = raw_position
        change = self._accumulate(channel, step)

        if abs(raw_position) >= self.range_limit:
            self._rezero(channel)

        return change

    def is_plausible(self, index, raw_position):
        """
        A zero reading straight after a value more than one step away is a
        bus glitch, not a real rotation.
        """
        if raw_position != 0:
            return True
        return abs(self.channels[index].position) <= 1

    def acknowledge_reset(self, index):
        """The hardware counter has been written back to zero."""
        channel = self.channels[index]
        channel.needs_reset = False
        channel.position = 0

    def reset(self, index):
        self.channels[index].clear()
        self.channels[index].needs_reset = False

    def reset_all(self):
        for index in range(len(self.channels)):
            self.reset(index)

    def _accumulate(self, channel, step):
        channel.accumulator += step
        if abs(channel.accumulator) < self.steps_per_click:
            return 0
        change = abs(channel.accumulator) // self.steps_per_click
        if channel.accumulator < 0:
            change = -change
        channel.accumulator = 0
        return change

    def _rezero(self, channel):
        log(TAG_ENCODER, "encoder " + str(channel.index) + " reached range limit, re-zeroing", level=2)
        channel.clear()
        channel.needs_reset = True
