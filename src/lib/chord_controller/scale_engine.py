"""
Scale and chord generation engine - pure business logic.
No hardware dependencies.
"""
from .music_theory import (
    CHORD_TYPES,
    NOTE_NAMES,
    chord_suffix,
    degree_offset,
    get_chord_quality_in_scale,
    get_scale_names,
    get_scale_semitones,
    midi_note,
    roman_numeral,
    stacked_thirds,
)
from .constants import ChordType, Music, Octave


def _wrap(value, low, high):
    """Wrap value into the inclusive range [low, high]."""
    return (value - low) % (high - low + 1) + low


class ScaleState:
    """Root, scale and octave plus everything derived from them."""

    def __init__(self):
        self.root = Music.DEFAULT_ROOT
        self.scale_index = Music.DEFAULT_SCALE_INDEX
        self.octave = Octave.DEFAULT

        # Derived
        self.degrees = []
        self.intervals = []
        self.closing_interval = 0
        self.key_map = []

    @property
    def scale_name(self):
        return get_scale_names()[self.scale_index]

    @property
    def root_midi(self):
        """MIDI note number of the fundamental in the current octave."""
        return midi_note(self.root, self.octave)

    def step_pattern(self):
        """All seven steps of the scale, including the one closing the octave."""
        return self.intervals + [self.closing_interval]

    def fundamental_key(self):
        """Index of the single key flagged as fundamental."""
        for key, (_, is_fundamental) in enumerate(self.key_map):
            if is_fundamental:
                return key
        return None

    def recompute(self):
        in_scale = set()
        for offset in get_scale_semitones(self.scale_index):
            in_scale.add((self.root + offset) % Music.NOTES_PER_OCTAVE)

        self.key_map = [
            (key in in_scale, key == self.root)
            for key in range(Music.NOTES_PER_OCTAVE)
        ]

        # Walk the chromatic keys upward starting at the fundamental so
        # degree 0 is always the root.
        self.degrees = []
        for step in range(Music.NOTES_PER_OCTAVE):
            key = (self.root + step) % Music.NOTES_PER_OCTAVE
            if self.key_map[key][0]:
                self.degrees.append(key)

        self.intervals = [
            (self.degrees[i + 1] - self.degrees[i]) % Music.NOTES_PER_OCTAVE
            for i in range(len(self.degrees) - 1)
        ]
        self.closing_interval = (self.degrees[0] - self.degrees[-1]) % Music.NOTES_PER_OCTAVE


class ChordState:
    """The selected chord: degree and type, plus the resolved tones."""

    def __init__(self):
        self.degree = Music.DEFAULT_DEGREE
        self.chord_type = Music.DEFAULT_CHORD_TYPE
        self.sounding = False

        # Derived
        self.quality = None
        self.root = 0
        self.pitch_classes = []
        self.notes = []
        self.name = ""
        self.numeral = ""

    def is_auto(self):
        """True when the quality comes from the scale, not a forced shape."""
        return self.chord_type in ChordType.AUTO


class ScaleChordEngine:
    """
    Derives scale degrees, intervals and chord tones from root, scale and
    octave. Every setter recomputes all derived state before returning and
    performs no I/O, so calling one twice with the same value is harmless.
    """

    def __init__(self, root=Music.DEFAULT_ROOT, scale_index=Music.DEFAULT_SCALE_INDEX,
                 octave=Octave.DEFAULT):
        """
        Args:
            root: Root pitch class 0-11 (0 = C)
            scale_index: Index into the scale table 0-8
            octave: Octave -1..9 (4 holds middle C)
        """
        self.scale = ScaleState()
        self.chord = ChordState()
        self.scale.root = root % Music.NOTES_PER_OCTAVE
        self.scale.scale_index = scale_index % len(get_scale_names())
        self.scale.octave = _wrap(octave, Octave.MIN, Octave.MAX)
        self._recompute()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def root(self):
        return self.scale.root

    @property
    def scale_index(self):
        return self.scale.scale_index

    @property
    def scale_name(self):
        return self.scale.scale_name

    @property
    def octave(self):
        return self.scale.octave

    @property
    def root_note(self):
        """Get the root note as MIDI note number."""
        return self.scale.root_midi

    def get_scale_display_name(self):
        """Return formatted scale name for display."""
        root_name = NOTE_NAMES[self.scale.root]
        # MicroPython: no .title() method, capitalize first letter of each word manually
        scale_words = self.scale.scale_name.replace("_", " ").split(" ")
        capitalized = []
        for word in scale_words:
            if len(word) > 0:
                capitalized.append(word[0].upper() + word[1:])
            else:
                capitalized.append(word)
        return root_name + " " + " ".join(capitalized)

    # ------------------------------------------------------------------
    # Setters (wrap, never error)
    # ------------------------------------------------------------------
    def set_root(self, pitch_class):
        self.scale.root = pitch_class % Music.NOTES_PER_OCTAVE
        self._recompute()

    def set_scale(self, index):
        self.scale.scale_index = index % len(get_scale_names())
        self._recompute()

    def set_octave(self, octave):
        self.scale.octave = _wrap(octave, Octave.MIN, Octave.MAX)
        self._recompute()

    def set_chord_degree(self, degree):
        self.chord.degree = degree % Music.SCALE_DEGREES
        self._recompute_chord()

    def set_chord_type(self, chord_type):
        """
        Select a chord type by name or by position in ChordType.ALL.
        Unknown names are ignored.
        """
        if isinstance(chord_type, int):
            chord_type = ChordType.ALL[chord_type % len(ChordType.ALL)]
        if chord_type in ChordType.ALL:
            self.chord.chord_type = chord_type
            self._recompute_chord()

    # ------------------------------------------------------------------
    # Relative steps, as driven by the encoders
    # ------------------------------------------------------------------
    def step_root(self, delta):
        self.set_root(self.scale.root + delta)
        return self.scale.root

    def step_scale(self, delta):
        self.set_scale(self.scale.scale_index + delta)
        return self.scale.scale_index

    def step_octave(self, delta):
        self.set_octave(self.scale.octave + delta)
        return self.scale.octave

    def step_chord_degree(self, delta):
        self.set_chord_degree(self.chord.degree + delta)
        return self.chord.degree

    def step_chord_type(self, delta):
        index = ChordType.ALL.index(self.chord.chord_type)
        self.set_chord_type(index + delta)
        return self.chord.chord_type

    # ------------------------------------------------------------------
    # Note queries
    # ------------------------------------------------------------------
    def scale_note(self, degree):
        """
        Get MIDI note number for a scale degree.
        Supports extended degrees beyond the 7-note scale (wraps with octaves).

        Args:
            degree: Scale degree 0-6, or higher for the octaves above

        Returns:
            MIDI note number
        """
        return self.scale.root_midi + degree_offset(self.scale.scale_index, degree)

    def build_chord(self, degree, chord_type=None):
        """
        Build a chord on any degree without touching the selected chord.

        Args:
            degree: Scale degree (wraps 0-6)
            chord_type: ChordType value, defaults to the selected type

        Returns:
            ChordState describing the chord
        """
        chord = ChordState()
        chord.degree = degree % Music.SCALE_DEGREES
        chord.chord_type = self.chord.chord_type if chord_type is None else chord_type
        self._fill_chord(chord)
        return chord

    def get_chord(self, degree):
        """
        Get MIDI notes for the chord on a degree using the selected type.

        Returns:
            Tuple of (chord_notes, chord_name, roman_numeral)
        """
        chord = self.build_chord(degree)
        return (chord.notes, chord.name, chord.numeral)

    def get_all_chords_in_scale(self):
        """Return info for all 7 diatonic chords."""
        return [self.get_chord(i) for i in range(Music.SCALE_DEGREES)]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _recompute(self):
        self.scale.recompute()
        self._recompute_chord()

    def _recompute_chord(self):
        self._fill_chord(self.chord)

    def _fill_chord(self, chord):
        scale_index = self.scale.scale_index
        degree = chord.degree

        if chord.is_auto():
            seventh = chord.chord_type == ChordType.DIATONIC7
            offsets = stacked_thirds(scale_index, degree, 4 if seventh else 3)
            quality = get_chord_quality_in_scale(scale_index, degree, seventh)
        else:
            offsets = CHORD_TYPES[chord.chord_type]
            quality = chord.chord_type

        chord_root = self.scale_note(degree)
        chord.quality = quality
        chord.root = chord_root % Music.NOTES_PER_OCTAVE
        chord.notes = [chord_root + offset for offset in offsets]
        chord.pitch_classes = [note % Music.NOTES_PER_OCTAVE for note in chord.notes]
        chord.name = NOTE_NAMES[chord.root] + chord_suffix(quality)
        chord.numeral = roman_numeral(degree, quality)
