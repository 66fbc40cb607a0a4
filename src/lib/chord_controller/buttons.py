"""
Button state machine - platform independent.
Turns debounced press/release samples into press, short-release, hold and
unlatch transitions, and calls the active action for each one.
"""
from .constants import Hardware, Timing
from .log import log, TAG_BUTTONS


class ButtonState:
    """Per-control state."""
    RELEASED = "released"
    PRESSED_WAITING_HOLD = "pressed_waiting_hold"
    LATCHED = "latched"

    ALL = [RELEASED, PRESSED_WAITING_HOLD, LATCHED]


class Edge:
    """Debounced level transitions."""
    PRESS = "press"
    RELEASE = "release"


class ButtonChannel:
    """Debouncer plus state for one control."""

    def __init__(self, index, debounce_ms=Timing.BUTTON_DEBOUNCE_MS):
        self.index = index
        self.debounce_ms = debounce_ms

        # Debounce
        self._last_raw = False
        self._stable = False
        self._last_change = None

        # State machine
        self.state = ButtonState.RELEASED
        self.press_start_ms = None
        self.hold_processed = False
        self.waiting_for_next_press = False

    @property
    def is_pressed(self):
        """Debounced level."""
        return self._stable

    def sample(self, pressed, now_ms):
        """
        Debounce one raw sample.

        Args:
            pressed: True while held, None when the read failed this tick
            now_ms: Current time in milliseconds

        Returns:
            Edge.PRESS, Edge.RELEASE, or None
        """
        if pressed is None:
            return None

        if pressed != self._last_raw or self._last_change is None:
            self._last_change = now_ms
            self._last_raw = pressed

        if now_ms - self._last_change >= self.debounce_ms and pressed != self._stable:
            self._stable = pressed
            return Edge.PRESS if pressed else Edge.RELEASE
        return None

    def to_released(self):
        self.state = ButtonState.RELEASED
        self.press_start_ms = None
        self.waiting_for_next_press = False


class ButtonStateMachine:
    """
    Runs one ButtonChannel per control.

    Released --press--> PressedWaitingHold
    PressedWaitingHold --release--> Released        (on_release_short, or
                                                     on_release_after_hold)
    PressedWaitingHold --hold--> Latched           (on_hold, latching actions)
    PressedWaitingHold --hold--> PressedWaitingHold (on_hold, other actions)
    Latched --press--> Released                    (on_press_while_latched)

    Every (state, edge) pair has a defined outcome; pairs not listed above
    leave the state unchanged.
    """

    def __init__(self, count=Hardware.NUM_BUTTON_CHANNELS, hold_ms=Timing.HOLD_MS,
                 debounce_ms=Timing.BUTTON_DEBOUNCE_MS):
        self.hold_ms = hold_ms
        self.channels = [ButtonChannel(i, debounce_ms) for i in range(count)]

    def level(self, index):
        """Debounced level of a channel (used for the toggle switch)."""
        return self.channels[index].is_pressed

    def sample_level(self, index, pressed, now_ms):
        """Debounce a level-only channel without running the state machine."""
        return self.channels[index].sample(pressed, now_ms)

    def update(self, index, pressed, now_ms, action, ctx):
        """
        Advance one control by one tick.

        Args:
            index: Control index
            pressed: Raw pressed level, or None for no data this tick
            now_ms: Current time in milliseconds
            action: Action bound to this control right now
            ctx: Object handed to the action callbacks
        """
        channel = self.channels[index]
        edge = channel.sample(pressed, now_ms)
        state = channel.state

        if state == ButtonState.RELEASED:
            if edge == Edge.PRESS:
                channel.state = ButtonState.PRESSED_WAITING_HOLD
                channel.press_start_ms = now_ms
                channel.hold_processed = False
                action.on_press_start(ctx, index)

        elif state == ButtonState.PRESSED_WAITING_HOLD:
            if edge == Edge.RELEASE:
                hold_processed = channel.hold_processed
                channel.to_released()
                if hold_processed:
                    action.on_release_after_hold(ctx, index)
                else:
                    action.on_release_short(ctx, index)
            elif not channel.hold_processed and now_ms - channel.press_start_ms >= self.hold_ms:
                channel.hold_processed = True
                if action.allows_latch:
                    channel.state = ButtonState.LATCHED
                    channel.waiting_for_next_press = True
                    log(TAG_BUTTONS, "control " + str(index) + " latched")
                action.on_hold(ctx, index)

        elif state == ButtonState.LATCHED:
            if edge == Edge.PRESS:
                channel.to_released()
                log(TAG_BUTTONS, "control " + str(index) + " unlatched")
                action.on_press_while_latched(ctx, index)

    def force_release_all(self, action_for, ctx):
        """
        Panic path: return every channel to Released immediately.
        Latched channels get exactly one on_press_while_latched call.
        Debounced levels are kept, so a button still held down does not
        produce a fresh press edge afterwards.

        Args:
            action_for: Callable mapping a control index to its action
            ctx: Object handed to the action callbacks

        Returns:
            List of indices that were latched
        """
        latched = []
        for channel in self.channels:
            was_latched = channel.state == ButtonState.LATCHED
            channel.to_released()
            if was_latched:
                latched.append(channel.index)
                action_for(channel.index).on_press_while_latched(ctx, channel.index)
        return latched

    def latched_indices(self):
        return [c.index for c in self.channels if c.state == ButtonState.LATCHED]

    def snapshot(self):
        """Per-channel states for the display."""
        return [c.state for c in self.channels]
