"""
Integration tests for the Chord Controller app, driven tick by tick
through the mock HAL.

Run with: python test/test_controller_app.py
"""
import sys

sys.path.insert(0, "src/lib")
sys.path.insert(0, "test")

from chord_controller.actions import ChordTrigger, NoteKey
from chord_controller.buttons import ButtonState
from chord_controller.constants import ChordSubMode, Mode
from chord_controller.controller_app import ControllerApp
from chord_controller.errors import BusFault
from chord_controller.log import debug
from mock_hal import ALWAYS, create_mock_hardware_port

TICK = 10


def make_app(**kwargs):
    port, mocks = create_mock_hardware_port()
    kwargs.setdefault("button_debounce_ms", 0)
    app = ControllerApp(port, **kwargs)
    return app, mocks


def tick(app, mocks, ms=TICK):
    mocks["clock"].advance(ms)
    app.update()


def turn(app, mocks, channel, clicks):
    """Rotate an encoder by whole detent clicks, one raw step at a time."""
    direction = 1 if clicks > 0 else -1
    for _ in range(abs(clicks) * 2):
        mocks["controls"].simulate_rotate(channel, direction)
        for _ in range(3):
            tick(app, mocks)


def press(app, mocks, channel):
    mocks["controls"].simulate_press(channel)
    tick(app, mocks)


def release(app, mocks, channel):
    mocks["controls"].simulate_release(channel)
    tick(app, mocks)


def latch(app, mocks, channel):
    press(app, mocks, channel)
    tick(app, mocks, 1000)
    release(app, mocks, channel)


class TestModeSwitch:

    def test_initial_display(self):
        app, mocks = make_app()
        assert mocks["display"].count("clear") == 1
        assert mocks["display"].last_state["mode"] == Mode.SCALE
        assert mocks["display"].last_state["buttons"][0] == ButtonState.RELEASED

    def test_switch_selects_chord_mode(self):
        app, mocks = make_app()
        tick(app, mocks)
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        assert app.router.mode == Mode.CHORD
        assert isinstance(app.table.action_for(0), ChordTrigger)
        assert mocks["display"].count("clear") == 2
        mocks["controls"].simulate_switch(False)
        tick(app, mocks)
        assert app.router.mode == Mode.SCALE
        assert isinstance(app.table.action_for(0), NoteKey)

    def test_idle_ticks_do_not_redraw(self):
        app, mocks = make_app()
        tick(app, mocks)
        shown = mocks["display"].count("show_state")
        for _ in range(5):
            tick(app, mocks)
        assert mocks["display"].count("show_state") == shown
        assert mocks["display"].count("update") == 6


class TestEncoderTicks:

    def test_two_steps_make_one_click(self):
        app, mocks = make_app()
        mocks["controls"].simulate_rotate(0, 1)
        for _ in range(3):
            tick(app, mocks)
        assert app.router.velocity_for(0) == 100
        mocks["controls"].simulate_rotate(0, 1)
        for _ in range(3):
            tick(app, mocks)
        assert app.router.velocity_for(0) == 104
        assert mocks["display"].last_state["velocities"][0] == 104

    def test_encoder_seven_edits_root(self):
        app, mocks = make_app()
        turn(app, mocks, 7, 2)
        assert app.engine.root == 2
        turn(app, mocks, 7, -3)
        assert app.engine.root == 11

    def test_large_jump_is_one_step(self):
        app, mocks = make_app()
        mocks["controls"].simulate_rotate(1, 5)
        for _ in range(3):
            tick(app, mocks)
        assert app.conditioner.channels[1].accumulator == 1
        assert app.router.velocity_for(1) == 100

    def test_range_limit_rezeroes_counter(self):
        app, mocks = make_app()
        mocks["controls"].positions[4] = 60
        for _ in range(3):
            tick(app, mocks)
        assert app.conditioner.channels[4].needs_reset
        tick(app, mocks)
        assert mocks["controls"].set_calls == [(4, 0)]
        assert not app.conditioner.channels[4].needs_reset
        assert app.conditioner.channels[4].accumulator == 0

    def test_chord_mode_root_encoder_revoices_latched_chord(self):
        app, mocks = make_app()
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        latch(app, mocks, 0)
        midi = mocks["midi_output"]
        assert midi.held_notes() == [60, 64, 67]
        turn(app, mocks, 2, 2)
        assert midi.held_notes() == [62, 66, 69]


class TestButtonTicks:

    def test_short_press_plays_and_stops(self):
        app, mocks = make_app()
        press(app, mocks, 2)
        assert mocks["midi_output"].held_notes() == [64]
        release(app, mocks, 2)
        assert mocks["midi_output"].held_notes() == []

    def test_hold_latches_until_next_press(self):
        app, mocks = make_app()
        latch(app, mocks, 0)
        assert app.buttons.channels[0].state == ButtonState.LATCHED
        assert mocks["midi_output"].held_notes() == [60]
        assert mocks["display"].last_state["buttons"][0] == ButtonState.LATCHED
        press(app, mocks, 0)
        assert mocks["midi_output"].held_notes() == []
        release(app, mocks, 0)
        assert app.buttons.channels[0].state == ButtonState.RELEASED
        assert mocks["midi_output"].held_notes() == []

    def test_latched_note_stopped_after_mode_swap(self):
        app, mocks = make_app()
        latch(app, mocks, 3)
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        # Control 3 is a no-op in the chord row but still unlatches
        press(app, mocks, 3)
        assert mocks["midi_output"].held_notes() == []

    def test_note_stops_when_released_after_mode_swap(self):
        app, mocks = make_app()
        press(app, mocks, 3)
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        # Control 3 is a no-op in the chord row, its release still stops the note
        release(app, mocks, 3)
        for _ in range(5):
            tick(app, mocks)
        assert mocks["midi_output"].held_notes() == []
        assert app.router.voices == {}

    def test_note_stops_when_held_past_hold_after_mode_swap(self):
        app, mocks = make_app()
        press(app, mocks, 3)
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        tick(app, mocks, 1000)
        assert app.buttons.channels[3].state == ButtonState.PRESSED_WAITING_HOLD
        release(app, mocks, 3)
        assert mocks["midi_output"].held_notes() == []

    def test_chord_stops_when_submode_toggled_while_held(self):
        app, mocks = make_app()
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        press(app, mocks, 0)
        app.toggle_chord_submode()
        release(app, mocks, 0)
        assert mocks["midi_output"].held_notes() == []

    def test_mode_cycle_hold_enters_assign(self):
        app, mocks = make_app()
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        press(app, mocks, 7)
        tick(app, mocks, 1000)
        release(app, mocks, 7)
        assert app.router.chord_submode == ChordSubMode.ASSIGN
        press(app, mocks, 4)
        assert mocks["midi_output"].held_notes() == [67, 71, 74]


class TestPanic:

    def test_touch_strip_panic(self):
        app, mocks = make_app()
        latch(app, mocks, 0)
        press(app, mocks, 1)
        mocks["touch_strip"].simulate_touch(5)
        tick(app, mocks)
        midi = mocks["midi_output"]
        assert midi.held_notes() == []
        assert ("cc", 0, 120, 0) in midi.messages
        assert app.buttons.latched_indices() == []
        # Button 1 is still physically held but does not fire again
        tick(app, mocks, 2000)
        assert midi.held_notes() == []

    def test_touch_panics_once_per_touch(self):
        app, mocks = make_app()
        mocks["touch_strip"].simulate_touch(2)
        tick(app, mocks)
        midi = mocks["midi_output"]
        assert ("cc", 0, 120, 0) in midi.messages
        midi.clear_messages()
        for _ in range(3):
            tick(app, mocks)
        assert midi.messages == []

    def test_touch_strip_glitch_is_retried(self):
        app, mocks = make_app()
        press(app, mocks, 0)
        mocks["touch_strip"].fail_next_update = True
        mocks["touch_strip"].simulate_touch(0)
        tick(app, mocks)
        assert mocks["midi_output"].held_notes() == []

    def test_panic_control_in_chord_mode(self):
        app, mocks = make_app()
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        latch(app, mocks, 0)
        press(app, mocks, 6)
        assert mocks["midi_output"].held_notes() == []
        for state in app.buttons.snapshot():
            assert state == ButtonState.RELEASED

    def test_panic_returns_latched(self):
        app, mocks = make_app()
        latch(app, mocks, 1)
        latch(app, mocks, 5)
        assert app.panic() == [1, 5]


class TestBusFaults:

    def test_failing_button_does_not_block_others(self):
        app, mocks = make_app()
        mocks["controls"].fail_reads(("button", 0), count=ALWAYS)
        press(app, mocks, 1)
        assert mocks["midi_output"].held_notes() == [62]
        assert app.guard.faults[("button", 0)] == 1
        assert app.guard.faults[("button", 1)] == 0

    def test_failing_encoder_does_not_block_others(self):
        app, mocks = make_app()
        mocks["controls"].fail_reads(("position", 0), count=ALWAYS)
        turn(app, mocks, 1, 1)
        assert app.router.velocity_for(1) == 104
        assert app.router.velocity_for(0) == 100

    def test_transient_failure_retried_with_backoff(self):
        app, mocks = make_app()
        mocks["controls"].fail_reads(("switch",), count=2)
        mocks["controls"].simulate_switch(True)
        tick(app, mocks)
        assert app.router.mode == Mode.CHORD
        assert mocks["clock"].sleeps == [2, 2]

    def test_implausible_zero_is_rejected(self):
        app, mocks = make_app()
        mocks["controls"].positions[2] = 5
        for _ in range(3):
            tick(app, mocks)
        assert app.conditioner.channels[2].stable_value == 5
        mocks["controls"].glitch_zero(2)
        for _ in range(3):
            tick(app, mocks)
        assert app.conditioner.channels[2].stable_value == 5
        assert app.guard.faults[("position", 2)] == 0

    def test_fast_turn_back_to_zero_is_real(self):
        app, mocks = make_app()
        mocks["controls"].simulate_rotate(0, 3)
        for _ in range(3):
            tick(app, mocks)
        assert app.conditioner.channels[0].stable_value == 3
        mocks["controls"].simulate_rotate(0, -3)
        for _ in range(15):
            tick(app, mocks)
        assert app.conditioner.channels[0].stable_value == 0
        assert app.guard.faults[("position", 0)] == 0
        assert app.guard.recoveries == 0
        assert mocks["controls"].reset_calls == 0

    def test_recovery_after_threshold(self):
        app, mocks = make_app()
        controls = mocks["controls"]
        controls.fail_reads(("position", 3), count=ALWAYS)
        for _ in range(10):
            tick(app, mocks)
        assert controls.reset_calls == 0
        tick(app, mocks)
        assert controls.reset_calls == 1
        assert app.guard.recoveries == 1
        assert not app.guard.needs_recovery
        # Channel works again after the reset
        turn(app, mocks, 3, 1)
        assert app.router.velocity_for(3) == 104

    def test_failed_recovery_panics_and_raises(self):
        app, mocks = make_app()
        latch(app, mocks, 0)
        controls = mocks["controls"]
        controls.fail_reads(("switch",), count=ALWAYS)
        controls.reset_fails = True
        for _ in range(10):
            tick(app, mocks)
        try:
            tick(app, mocks)
            raised = False
        except BusFault:
            raised = True
        assert raised
        midi = mocks["midi_output"]
        assert midi.held_notes() == []
        assert ("cc", 0, 123, 0) in midi.messages
        assert app.buttons.latched_indices() == []


class TestMisc:

    def test_set_midi_channel(self):
        app, mocks = make_app()
        press(app, mocks, 0)
        app.set_midi_channel(20)
        assert app.router.midi_channel == 15
        assert mocks["midi_output"].held_notes() == []
        release(app, mocks, 0)
        press(app, mocks, 0)
        assert mocks["midi_output"].messages[-1] == ("note_on", 15, 60, 100)

    def test_cleanup(self):
        app, mocks = make_app()
        latch(app, mocks, 2)
        app.cleanup()
        assert mocks["midi_output"].held_notes() == []
        assert mocks["display"].calls[-2:] == [("clear",), ("update",)]

    def test_debug_toggle(self):
        previous = debug()
        try:
            debug(True, 2)
            assert debug() == {"enabled": True, "level": 2}
            debug(False)
            assert debug()["enabled"] is False
        finally:
            debug(previous["enabled"], previous["level"])


if __name__ == "__main__":
    from run_tests import run_test_classes
    sys.exit(0 if run_test_classes(
        [TestModeSwitch, TestEncoderTicks, TestButtonTicks, TestPanic, TestBusFaults, TestMisc]
    ) else 1)
