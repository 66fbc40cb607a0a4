"""
Hardware Abstraction Layer Protocol Definitions.
These are abstract base classes that each platform must implement.

This allows the same application code to run on:
- MicroPython / CircuitPython on the controller itself
- Desktop Python for testing and for driving a software synth
"""
from .constants import Midi


class ControlSurfaceHAL:
    """
    Abstract interface for the 8 encoders, their push-buttons and the
    toggle switch. All reads raise TransientIoError on a bus glitch.
    """

    def read_position(self, channel):
        """
        Read an encoder's absolute counter.

        Args:
            channel: Encoder index 0-7

        Returns:
            Integer counter value
        """
        raise NotImplementedError

    def set_position(self, channel, value):
        """
        Overwrite an encoder's counter (used to re-zero it).

        Args:
            channel: Encoder index 0-7
            value: New counter value
        """
        raise NotImplementedError

    def read_button_level(self, channel):
        """
        Read an encoder push-button.

        Args:
            channel: Encoder index 0-7

        Returns:
            Electrical level; the buttons are active-low, so False = pressed
        """
        raise NotImplementedError

    def read_switch_level(self):
        """
        Read the toggle switch.

        Returns:
            True when the switch is on (chord mode)
        """
        raise NotImplementedError

    def reset_bus(self):
        """
        Recover the bus and re-initialize every channel to zero.
        Raises BusFault when recovery fails.
        """
        raise NotImplementedError


class MidiOutputHAL:
    """Abstract interface for MIDI output. Calls are no-ops when unconnected."""

    def send_note_on(self, channel, note, velocity):
        """
        Send MIDI Note On message.

        Args:
            channel: MIDI channel 0-15
            note: MIDI note number 0-127
            velocity: Note velocity 0-127
        """
        raise NotImplementedError

    def send_note_off(self, channel, note, velocity=0):
        """
        Send MIDI Note Off message.

        Args:
            channel: MIDI channel 0-15
            note: MIDI note number 0-127
            velocity: Release velocity 0-127
        """
        raise NotImplementedError

    def send_control_change(self, channel, control, value):
        """
        Send MIDI Control Change message.

        Args:
            channel: MIDI channel 0-15
            control: CC number 0-127
            value: CC value 0-127
        """
        raise NotImplementedError

    def send_chord_on(self, channel, notes, velocity):
        """
        Convenience: send Note On for multiple notes.

        Args:
            channel: MIDI channel 0-15
            notes: List of MIDI note numbers
            velocity: Note velocity 0-127
        """
        for note in notes:
            self.send_note_on(channel, note, velocity)

    def send_chord_off(self, channel, notes, velocity=0):
        """
        Convenience: send Note Off for multiple notes.

        Args:
            channel: MIDI channel 0-15
            notes: List of MIDI note numbers
            velocity: Release velocity 0-127
        """
        for note in notes:
            self.send_note_off(channel, note, velocity)

    def send_all_sound_off(self, channel):
        """
        Convenience: all sound off, all notes off and sustain off.

        Args:
            channel: MIDI channel 0-15
        """
        self.send_control_change(channel, Midi.CC_ALL_SOUND_OFF, 0)
        self.send_control_change(channel, Midi.CC_ALL_NOTES_OFF, 0)
        self.send_control_change(channel, Midi.CC_SUSTAIN, 0)


class DisplayHAL:
    """Abstract interface for the display. Never blocks the tick loop."""

    def clear(self):
        """Clear the display (forces a full redraw)."""
        raise NotImplementedError

    def show_state(self, snapshot):
        """
        Render a read-only state snapshot.

        Args:
            snapshot: Dict from ParameterRouter.get_display_data() plus
                      "buttons", the per-control ButtonState list
        """
        raise NotImplementedError

    def show_message(self, message):
        """
        Display a status message.

        Args:
            message: Message string
        """
        raise NotImplementedError

    def update(self):
        """Push changes to display hardware."""
        raise NotImplementedError


class TouchStripHAL:
    """Abstract interface for the auxiliary touch surface (MPR121 with 12 pads)."""

    def update(self):
        """Poll touch states. Call in main loop."""
        raise NotImplementedError

    def get_touched(self):
        """
        Get bitmask of currently touched pads.

        Returns:
            Integer bitmask where bit N is set if pad N is touched
        """
        raise NotImplementedError

    def was_touched(self, pad):
        """
        Check if pad was just touched (newly pressed).

        Args:
            pad: Pad index 0-11

        Returns:
            True if pad was touched since last update
        """
        raise NotImplementedError

    def any_touched(self):
        """
        True if any pad was newly touched since the last update.
        Edge-triggered: a pad that stays down reports False on later
        updates, otherwise the panic burst repeats every tick.
        """
        for pad in range(12):
            if self.was_touched(pad):
                return True
        return False


class ClockHAL:
    """Abstract interface for the millisecond clock."""

    def ticks_ms(self):
        """Milliseconds since an arbitrary fixed point."""
        raise NotImplementedError

    def sleep_ms(self, ms):
        """Block for a short time (bus retry backoff)."""
        raise NotImplementedError


class HardwarePort:
    """
    Complete hardware port interface.
    A platform provides an instance of this with all HAL implementations.
    """

    def __init__(
        self,
        controls,
        display,
        midi_output,
        clock,
        touch_strip=None,
    ):
        """
        Args:
            controls: ControlSurfaceHAL implementation
            display: DisplayHAL implementation
            midi_output: MidiOutputHAL implementation
            clock: ClockHAL implementation
            touch_strip: Optional TouchStripHAL implementation
        """
        self.controls = controls
        self.display = display
        self.midi_output = midi_output
        self.clock = clock
        self.touch_strip = touch_strip

    def update_inputs(self):
        """Poll all edge-tracked input devices."""
        if self.touch_strip:
            self.touch_strip.update()

    def update_outputs(self):
        """Push all output changes."""
        self.display.update()
