"""
Parameter routing and note output - platform independent.
Routes encoder changes to musical parameters, tracks which notes each
control is sounding, and keeps those notes consistent when the scale or
chord changes underneath them.
"""
from .constants import ChordSubMode, Hardware, Midi, Mode, ModeIndicator, Music, ParamEdit
from .log import log, TAG_ROUTER


class Event:
    """Event type constants for state changes."""

    SCALE_CHANGED = "scale_changed"
    ROOT_CHANGED = "root_changed"
    OCTAVE_CHANGED = "octave_changed"
    CHORD_CHANGED = "chord_changed"
    VELOCITY_CHANGED = "velocity_changed"
    ASSIGN_CHANGED = "assign_changed"
    NOTES_ON = "notes_on"
    NOTES_OFF = "notes_off"
    MODE_CHANGED = "mode_changed"
    PANIC = "panic"


class Voice:
    """Notes sounding for one control, and how to recompute them."""

    NOTE = "note"
    CHORD = "chord"
    ASSIGN = "assign"

    def __init__(self, kind, arg, velocity, notes):
        self.kind = kind
        self.arg = arg
        self.velocity = velocity
        self.notes = notes


def _clamp(value, low, high):
    return max(low, min(high, value))


class ParameterRouter:
    """
    Owns mode state and the note ledger, and talks to the MIDI output.
    All scale/chord math is delegated to the ScaleChordEngine.
    """

    def __init__(self, engine, midi_output, encoders, midi_channel=Midi.CHANNEL_DEFAULT,
                 chord_velocity=Midi.VELOCITY_DEFAULT):
        """
        Args:
            engine: ScaleChordEngine instance
            midi_output: MidiOutputHAL implementation
            encoders: EncoderChannel list; channels 0-6 hold note velocities
            midi_channel: MIDI channel 0-15
            chord_velocity: Velocity for chord triggers 0-127
        """
        self.engine = engine
        self.midi_output = midi_output
        self.encoders = encoders
        self.midi_channel = _clamp(midi_channel, Midi.CHANNEL_MIN, Midi.CHANNEL_MAX)
        self.chord_velocity = _clamp(chord_velocity, Midi.VELOCITY_MIN, Midi.VELOCITY_MAX)

        self.mode = Mode.SCALE
        self.chord_submode = ChordSubMode.NORMAL
        self.param_mode = ParamEdit.ROOT

        # Identity mapping: slot i plays degree i
        self.assign_slots = list(range(Hardware.NUM_NOTE_KEYS))

        # Key: control index, Value: Voice
        self.voices = {}

        self.display_dirty = True
        self._subscribers = {}

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def subscribe(self, event_type, callback):
        """
        Subscribe to an event type.

        Args:
            event_type: Event type constant from Event class
            callback: Function to call when event occurs, receives data dict
        """
        if event_type not in self._subscribers:
            self._subscribers[event_type] = []
        self._subscribers[event_type].append(callback)

    def unsubscribe(self, event_type, callback):
        """Remove a callback from an event type."""
        if event_type in self._subscribers:
            try:
                self._subscribers[event_type].remove(callback)
            except ValueError:
                pass

    def emit(self, event_type, data=None):
        """Emit an event to all subscribers."""
        if event_type in self._subscribers:
            for callback in self._subscribers[event_type]:
                callback(data)

    # ------------------------------------------------------------------
    # Velocities
    # ------------------------------------------------------------------
    def velocity_for(self, index):
        return self.encoders[index].velocity

    def velocities(self):
        return [self.encoders[i].velocity for i in range(Hardware.NUM_NOTE_KEYS)]

    def change_velocity(self, index, change):
        encoder = self.encoders[index]
        encoder.velocity = _clamp(
            encoder.velocity + change * Midi.VELOCITY_STEP,
            Midi.VELOCITY_MIN,
            Midi.VELOCITY_MAX,
        )
        self.display_dirty = True
        self.emit(Event.VELOCITY_CHANGED, {"index": index, "velocity": encoder.velocity})

    def change_chord_velocity(self, change):
        self.chord_velocity = _clamp(
            self.chord_velocity + change * Midi.VELOCITY_STEP,
            Midi.VELOCITY_MIN,
            Midi.VELOCITY_MAX,
        )
        self.display_dirty = True
        self.emit(Event.VELOCITY_CHANGED, {"index": None, "velocity": self.chord_velocity})

    # ------------------------------------------------------------------
    # Encoder routing
    # ------------------------------------------------------------------
    def route_delta(self, encoder_index, change):
        """
        Apply one conditioned encoder change.

        Args:
            encoder_index: Encoder 0-7
            change: Signed musical change (non-zero)
        """
        if change == 0:
            return

        if encoder_index == Hardware.MODE_CYCLE_INDEX:
            self._edit_param(self.param_mode, change)
            return

        if self.mode == Mode.SCALE:
            self.change_velocity(encoder_index, change)
        elif self.chord_submode == ChordSubMode.ASSIGN:
            self.rotate_assign_slot(encoder_index, change)
        elif encoder_index == 0:
            self.revoice(self.engine.step_chord_degree, change)
            self._chord_changed()
        elif encoder_index == 1:
            self.revoice(self.engine.step_chord_type, change)
            self._chord_changed()
        elif encoder_index == 2:
            self._edit_param(ParamEdit.ROOT, change)
        elif encoder_index == 3:
            self._edit_param(ParamEdit.SCALE, change)
        elif encoder_index == 4:
            self._edit_param(ParamEdit.OCTAVE, change)
        elif encoder_index == 5:
            self.change_chord_velocity(change)

    def _edit_param(self, param, change):
        if param == ParamEdit.ROOT:
            self.revoice(self.engine.step_root, change)
            self.emit(Event.ROOT_CHANGED, {"root": self.engine.root})
        elif param == ParamEdit.SCALE:
            self.revoice(self.engine.step_scale, change)
            self.emit(Event.SCALE_CHANGED,
                      {"index": self.engine.scale_index, "name": self.engine.scale_name})
        elif param == ParamEdit.OCTAVE:
            self.revoice(self.engine.step_octave, change)
            self.emit(Event.OCTAVE_CHANGED, {"octave": self.engine.octave})
        self.display_dirty = True

    def _chord_changed(self):
        chord = self.engine.chord
        self.display_dirty = True
        self.emit(Event.CHORD_CHANGED, {
            "degree": chord.degree,
            "chord_type": chord.chord_type,
            "name": chord.name,
            "numeral": chord.numeral,
        })

    def rotate_assign_slot(self, slot, change):
        """Rotate the degree bound to an assign slot (wraps 0-6)."""
        if not 0 <= slot < len(self.assign_slots):
            return

        def rotate(delta):
            self.assign_slots[slot] = (self.assign_slots[slot] + delta) % Music.SCALE_DEGREES

        self.revoice(rotate, change)
        self.display_dirty = True
        self.emit(Event.ASSIGN_CHANGED, {"slot": slot, "degree": self.assign_slots[slot]})

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------
    def set_mode(self, mode):
        """Set the operating mode (driven by the toggle switch)."""
        if mode in Mode.ALL and mode != self.mode:
            self.mode = mode
            self.display_dirty = True
            self.emit(Event.MODE_CHANGED, self._mode_data())

    def toggle_chord_submode(self):
        if self.chord_submode == ChordSubMode.NORMAL:
            self.chord_submode = ChordSubMode.ASSIGN
        else:
            self.chord_submode = ChordSubMode.NORMAL
        self.display_dirty = True
        self.emit(Event.MODE_CHANGED, self._mode_data())

    def cycle_param_mode(self):
        """Cycle the parameter edited by encoder 7."""
        current_idx = ParamEdit.ALL.index(self.param_mode)
        self.param_mode = ParamEdit.ALL[(current_idx + 1) % len(ParamEdit.ALL)]
        self.display_dirty = True
        self.emit(Event.MODE_CHANGED, self._mode_data())

    def _mode_data(self):
        return {
            "mode": self.mode,
            "submode": self.chord_submode,
            "mode_indicator": ModeIndicator.get(self.mode, self.chord_submode),
            "param_mode": self.param_mode,
        }

    # ------------------------------------------------------------------
    # Note output
    # ------------------------------------------------------------------
    def play_note(self, control, degree):
        """Sound one scale degree for a control."""
        self._start(control, Voice.NOTE, degree, self.velocity_for(degree % Hardware.NUM_NOTE_KEYS))

    def play_chord(self, control):
        """Sound the selected chord for a control."""
        self._start(control, Voice.CHORD, None, self.chord_velocity)

    def play_assigned_chord(self, control, slot):
        """Sound the chord on the degree bound to an assign slot."""
        self._start(control, Voice.ASSIGN, slot, self.chord_velocity)

    def stop_control(self, control):
        """Stop whatever a control is sounding. Safe when it is silent."""
        voice = self.voices.pop(control, None)
        if voice is None:
            return
        self._send_off(voice.notes)
        self._update_sounding()
        self.emit(Event.NOTES_OFF, {"control": control, "notes": voice.notes})

    def stop_all(self):
        for control in list(self.voices.keys()):
            self.stop_control(control)

    def panic(self):
        """Note-off for everything in the ledger, then all sound/notes/sustain off."""
        self.stop_all()
        self.midi_output.send_all_sound_off(self.midi_channel)
        log(TAG_ROUTER, "panic: all sound off on channel " + str(self.midi_channel))
        self.display_dirty = True
        self.emit(Event.PANIC, {"channel": self.midi_channel})

    def is_sounding(self, control=None):
        if control is None:
            return len(self.voices) > 0
        return control in self.voices

    def sounding_notes(self):
        notes = []
        for voice in self.voices.values():
            notes.extend(voice.notes)
        return notes

    def revoice(self, change_fn, *args):
        """
        Apply a change and move every sounding voice onto its new notes.

        All note-offs for changed voices go out before any note-on, and use
        the pitches actually sent, so an octave change releases the old
        octave. Voices whose notes did not change are left sounding.
        """
        result = change_fn(*args)

        changed = []
        for control, voice in self.voices.items():
            new_notes = self._notes_for(voice.kind, voice.arg)
            if new_notes != voice.notes:
                changed.append((control, voice, new_notes))

        for control, voice, _ in changed:
            self._send_off(voice.notes)
        for control, voice, new_notes in changed:
            voice.notes = new_notes
            self._send_on(new_notes, voice.velocity)

        if changed:
            log(TAG_ROUTER, "revoiced " + str(len(changed)) + " voice(s)", level=2)
        return result

    def _start(self, control, kind, arg, velocity):
        # A control never owns two voices
        if control in self.voices:
            self.stop_control(control)
        notes = self._notes_for(kind, arg)
        self.voices[control] = Voice(kind, arg, velocity, notes)
        self._send_on(notes, velocity)
        self._update_sounding()
        self.display_dirty = True
        self.emit(Event.NOTES_ON, {"control": control, "notes": notes, "velocity": velocity})

    def _notes_for(self, kind, arg):
        if kind == Voice.NOTE:
            notes = [self.engine.scale_note(arg)]
        elif kind == Voice.ASSIGN:
            notes = list(self.engine.build_chord(self.assign_slots[arg]).notes)
        else:
            notes = list(self.engine.chord.notes)
        return [n for n in notes if Midi.NOTE_MIN <= n <= Midi.NOTE_MAX]

    def _send_on(self, notes, velocity):
        self.midi_output.send_chord_on(self.midi_channel, notes, velocity)

    def _send_off(self, notes):
        self.midi_output.send_chord_off(self.midi_channel, notes)

    def _update_sounding(self):
        sounding = False
        for voice in self.voices.values():
            if voice.kind == Voice.CHORD:
                sounding = True
        self.engine.chord.sounding = sounding

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def get_display_data(self):
        """
        Get data needed for display rendering.

        Returns:
            Dict with display information
        """
        scale = self.engine.scale
        chord = self.engine.chord
        return {
            "mode": self.mode,
            "submode": self.chord_submode,
            "mode_indicator": ModeIndicator.get(self.mode, self.chord_submode),
            "param_mode": self.param_mode,
            "scale_name": self.engine.get_scale_display_name(),
            "root": scale.root,
            "scale_index": scale.scale_index,
            "octave": scale.octave,
            "degrees": list(scale.degrees),
            "intervals": list(scale.intervals),
            "key_map": list(scale.key_map),
            "chord": {
                "degree": chord.degree,
                "chord_type": chord.chord_type,
                "quality": chord.quality,
                "name": chord.name,
                "numeral": chord.numeral,
                "pitch_classes": list(chord.pitch_classes),
                "sounding": chord.sounding,
            },
            "velocities": self.velocities(),
            "chord_velocity": self.chord_velocity,
            "assign_slots": list(self.assign_slots),
            "sounding_controls": sorted(self.voices.keys()),
        }

    def clear_display_dirty(self):
        """Mark display as updated."""
        self.display_dirty = False
