"""
Main Chord Controller Application.
Ties together signal conditioning, the button state machine, action
dispatch, parameter routing and the scale/chord engine.
Platform-independent - receives hardware through dependency injection.
"""
from .actions import ActionTable
from .buttons import ButtonStateMachine
from .bus_guard import BusGuard
from .constants import Bus, Hardware, Midi as MidiConst, Mode, Music, Octave, Timing
from .encoder import EncoderConditioner
from .errors import BusFault
from .log import log, TAG_APP
from .router import Event, ParameterRouter
from .scale_engine import ScaleChordEngine


class ControllerApp:
    """
    Main application class for the Chord Controller.
    Call update() once per tick from a single loop.
    """

    def __init__(self, hardware, midi_channel=MidiConst.CHANNEL_DEFAULT,
                 chord_velocity=MidiConst.VELOCITY_DEFAULT,
                 root=Music.DEFAULT_ROOT, scale_index=Music.DEFAULT_SCALE_INDEX,
                 octave=Octave.DEFAULT, hold_ms=Timing.HOLD_MS,
                 button_debounce_ms=Timing.BUTTON_DEBOUNCE_MS,
                 encoder_debounce_ms=Timing.ENCODER_DEBOUNCE_MS,
                 read_retries=Bus.READ_RETRIES, fault_threshold=Bus.FAULT_THRESHOLD):
        """
        Initialize the Chord Controller.

        Args:
            hardware: HardwarePort instance with all HAL implementations
            midi_channel: MIDI channel 0-15
            chord_velocity: Velocity for chord triggers 0-127
            root: Power-on root pitch class (0 = C)
            scale_index: Power-on scale 0-8
            octave: Power-on octave -1..9
            hold_ms: Press duration that counts as a hold
            button_debounce_ms: Button debounce window
            encoder_debounce_ms: Encoder sampling window
            read_retries: Retries per failed hardware read
            fault_threshold: Consecutive failed reads before bus recovery
        """
        # Hardware (injected)
        self.hw = hardware

        # Business logic
        self.engine = ScaleChordEngine(root=root, scale_index=scale_index, octave=octave)
        self.conditioner = EncoderConditioner(debounce_ms=encoder_debounce_ms)
        self.router = ParameterRouter(
            self.engine,
            hardware.midi_output,
            self.conditioner.channels,
            midi_channel=midi_channel,
            chord_velocity=chord_velocity,
        )
        self.buttons = ButtonStateMachine(hold_ms=hold_ms, debounce_ms=button_debounce_ms)
        self.table = ActionTable(self.router.mode, self.router.chord_submode)
        self.guard = BusGuard(
            hardware.controls,
            sleep_ms=hardware.clock.sleep_ms,
            retries=read_retries,
            fault_threshold=fault_threshold,
        )

        self._full_redraw = True
        self._last_buttons = self.buttons.snapshot()

        self.router.subscribe(Event.MODE_CHANGED, self._on_mode_changed)

        # Initial display update
        self._update_display()

    def _on_mode_changed(self, data):
        self._full_redraw = True

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def update(self, now_ms=None):
        """
        Main update loop - call this once per tick.
        Polls inputs and processes state changes.

        Raises:
            BusFault: bus recovery failed; every note has been stopped
        """
        if now_ms is None:
            now_ms = self.hw.clock.ticks_ms()

        self._poll_touch_strip()
        self._poll_switch(now_ms)
        self._poll_encoders(now_ms)
        self._poll_buttons(now_ms)

        if self.guard.needs_recovery:
            self._recover_bus()

        buttons = self.buttons.snapshot()
        if self.router.display_dirty or self._full_redraw or buttons != self._last_buttons:
            self._update_display()

        # Push output updates
        self.hw.update_outputs()

    def _poll_touch_strip(self):
        if self.hw.touch_strip is None:
            return
        if self.guard.read(("touch",), self._read_touch_strip):
            self.panic()

    def _read_touch_strip(self):
        self.hw.update_inputs()
        return self.hw.touch_strip.any_touched()

    def _poll_switch(self, now_ms):
        level = self.guard.read(("switch",), self.hw.controls.read_switch_level)
        if level is None:
            return
        edge = self.buttons.sample_level(Hardware.SWITCH_INDEX, bool(level), now_ms)
        if edge is not None:
            mode = Mode.CHORD if self.buttons.level(Hardware.SWITCH_INDEX) else Mode.SCALE
            self.set_mode(mode)

    def _poll_encoders(self, now_ms):
        controls = self.hw.controls
        for ch in range(Hardware.NUM_ENCODERS):
            if self.conditioner.channels[ch].needs_reset:
                if self.guard.read(("zero", ch), self._zero_encoder, ch):
                    self.conditioner.acknowledge_reset(ch)
                continue

            raw = self.guard.read(
                ("position", ch),
                controls.read_position,
                ch,
                validate=lambda value, ch=ch: self.conditioner.is_plausible(ch, value),
            )
            if raw is None:
                continue

            change = self.conditioner.read(ch, raw, now_ms)
            if change != 0:
                self.router.route_delta(ch, change)

    def _zero_encoder(self, ch):
        self.hw.controls.set_position(ch, 0)
        return True

    def _poll_buttons(self, now_ms):
        controls = self.hw.controls
        for ch in range(Hardware.NUM_ENCODERS):
            level = self.guard.read(("button", ch), controls.read_button_level, ch)
            # Active-low
            pressed = None if level is None else not level
            self.buttons.update(ch, pressed, now_ms, self.table.action_for(ch), self)

    def _recover_bus(self):
        try:
            self.guard.recover()
        except BusFault:
            log(TAG_APP, "bus recovery failed, stopping all notes before restart", is_error=True)
            self.panic()
            raise
        self.conditioner.reset_all()
        log(TAG_APP, "bus recovered, encoders re-zeroed")

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------
    def set_mode(self, mode):
        """Switch operating mode and swap the action row."""
        self.router.set_mode(mode)
        self.table.select(self.router.mode, self.router.chord_submode)
        log(TAG_APP, "mode " + self.router.mode)

    def toggle_chord_submode(self):
        self.router.toggle_chord_submode()
        self.table.select(self.router.mode, self.router.chord_submode)
        log(TAG_APP, "chord sub-mode " + self.router.chord_submode)

    # ------------------------------------------------------------------
    # Panic
    # ------------------------------------------------------------------
    def panic(self):
        """
        Force every control to Released and silence everything.
        Safe to call at any point in a tick, including from an action.

        Returns:
            Indices of the controls that were latched
        """
        latched = self.buttons.force_release_all(self.table.action_for, self)
        self.router.panic()
        log(TAG_APP, "panic, released " + str(len(latched)) + " latched control(s)")
        return latched

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def get_display_data(self):
        snapshot = self.router.get_display_data()
        snapshot["buttons"] = self.buttons.snapshot()
        return snapshot

    def _update_display(self):
        """Update display with current state."""
        if self._full_redraw:
            self.hw.display.clear()
            self._full_redraw = False
        self.hw.display.show_state(self.get_display_data())
        self._last_buttons = self.buttons.snapshot()
        self.router.clear_display_dirty()

    # ------------------------------------------------------------------
    # Misc
    # ------------------------------------------------------------------
    def set_midi_channel(self, channel):
        """Set the MIDI channel. Notes on the old channel are stopped first."""
        self.router.stop_all()
        self.router.midi_channel = max(MidiConst.CHANNEL_MIN, min(MidiConst.CHANNEL_MAX, channel))

    def cleanup(self):
        """Clean shutdown - turn off all notes and clear the display."""
        self.panic()
        self.hw.display.clear()
        self.hw.display.update()
