"""
Action dispatch - what each control does in each operating mode.

An action is an object with five callbacks and an `allows_latch` flag.
The ButtonStateMachine calls them; `ctx` is the ControllerApp.
"""
from .constants import ChordSubMode, Hardware, Mode


class Action:
    """
    Base action. Press and hold do nothing.
    Every release and every unlatch stops whatever the control is sounding,
    whichever action started it, so a voice left over from another mode
    still goes quiet.
    """

    name = "noop"
    allows_latch = False

    def on_press_start(self, ctx, index):
        pass

    def on_release_short(self, ctx, index):
        ctx.router.stop_control(index)

    def on_hold(self, ctx, index):
        pass

    def on_release_after_hold(self, ctx, index):
        """Release of a non-latching control whose hold already fired."""
        ctx.router.stop_control(index)

    def on_press_while_latched(self, ctx, index):
        ctx.router.stop_control(index)

    def __repr__(self):
        return "<" + self.__class__.__name__ + " " + self.name + ">"


class NoOp(Action):
    pass


class NoteKey(Action):
    """Plays one scale degree at the velocity of its encoder. Latchable."""

    allows_latch = True

    def __init__(self, degree):
        self.degree = degree
        self.name = "note" + str(degree)

    def on_press_start(self, ctx, index):
        ctx.router.play_note(index, self.degree)


class ChordTrigger(Action):
    """Plays the selected chord. Latchable."""

    name = "chord"
    allows_latch = True

    def on_press_start(self, ctx, index):
        ctx.router.play_chord(index)


class AssignTrigger(ChordTrigger):
    """Plays the chord on the degree bound to an assign slot. Latchable."""

    def __init__(self, slot):
        self.slot = slot
        self.name = "assign" + str(slot)

    def on_press_start(self, ctx, index):
        ctx.router.play_assigned_chord(index, self.slot)


class Panic(Action):
    """Stops all sound."""

    name = "panic"

    def on_press_start(self, ctx, index):
        ctx.panic()


class ModeCycle(Action):
    """
    Short press cycles the parameter edited by encoder 7.
    Hold in chord mode toggles the Normal/Assign sub-mode.
    """

    name = "mode_cycle"

    def on_release_short(self, ctx, index):
        ctx.router.cycle_param_mode()

    def on_hold(self, ctx, index):
        if ctx.router.mode == Mode.CHORD:
            ctx.toggle_chord_submode()


def _build_rows():
    mode_cycle = ModeCycle()
    noop = NoOp()

    scale_row = [NoteKey(d) for d in range(Hardware.NUM_NOTE_KEYS)]
    scale_row.append(mode_cycle)

    normal_row = [noop] * Hardware.NUM_ENCODERS
    normal_row[0] = ChordTrigger()
    normal_row[Hardware.PANIC_INDEX] = Panic()
    normal_row[Hardware.MODE_CYCLE_INDEX] = mode_cycle

    assign_row = [AssignTrigger(s) for s in range(Hardware.NUM_NOTE_KEYS)]
    assign_row.append(mode_cycle)

    return {
        (Mode.SCALE, ChordSubMode.NORMAL): scale_row,
        (Mode.SCALE, ChordSubMode.ASSIGN): scale_row,
        (Mode.CHORD, ChordSubMode.NORMAL): normal_row,
        (Mode.CHORD, ChordSubMode.ASSIGN): assign_row,
    }


class ActionTable:
    """
    Lookup of (mode, chord sub-mode) x control index -> action.
    Scale mode ignores the chord sub-mode.
    """

    def __init__(self, mode=Mode.SCALE, submode=ChordSubMode.NORMAL):
        self._rows = _build_rows()
        self._noop = NoOp()
        self.mode = mode
        self.submode = submode
        self._active = self._rows[(mode, submode)]

    def select(self, mode, submode):
        """Swap the active row. Latched controls are left alone."""
        self.mode = mode
        self.submode = submode
        self._active = self._rows[(mode, submode)]

    def action_for(self, index):
        if 0 <= index < len(self._active):
            return self._active[index]
        return self._noop

    def row(self):
        return list(self._active)
