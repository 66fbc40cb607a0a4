"""
Pure music theory calculations - no hardware dependencies.
This module can run on any Python implementation (CPython, MicroPython, PyScript).
"""

# Interval definitions (in semitones)
INTERVALS = {
    "unison": 0,
    "minor_second": 1,
    "major_second": 2,
    "minor_third": 3,
    "major_third": 4,
    "perfect_fourth": 5,
    "tritone": 6,
    "perfect_fifth": 7,
    "minor_sixth": 8,
    "major_sixth": 9,
    "minor_seventh": 10,
    "major_seventh": 11,
    "octave": 12,
}

# Scale definitions as interval patterns from root.
# Order matters: the scale index (0-8) selects by position.
SCALES = {
    "major": [0, 2, 4, 5, 7, 9, 11],  # W-W-H-W-W-W-H
    "natural_minor": [0, 2, 3, 5, 7, 8, 10],  # W-H-W-W-H-W-W
    "harmonic_minor": [0, 2, 3, 5, 7, 8, 11],  # W-H-W-W-H-A2-H
    "melodic_minor": [0, 2, 3, 5, 7, 9, 11],  # W-H-W-W-W-W-H (ascending)
    "dorian": [0, 2, 3, 5, 7, 9, 10],
    "phrygian": [0, 1, 3, 5, 7, 8, 10],
    "lydian": [0, 2, 4, 6, 7, 9, 11],
    "mixolydian": [0, 2, 4, 5, 7, 9, 10],
    "locrian": [0, 1, 3, 5, 6, 8, 10],
}

# Root note names
NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Chord shapes as semitone offsets from the chord root
CHORD_TYPES = {
    "major": [0, 4, 7],  # root, major 3rd, perfect 5th
    "minor": [0, 3, 7],  # root, minor 3rd, perfect 5th
    "diminished": [0, 3, 6],  # root, minor 3rd, diminished 5th
    "augmented": [0, 4, 8],  # root, major 3rd, augmented 5th
    "major7": [0, 4, 7, 11],
    "minor7": [0, 3, 7, 10],
    "dominant7": [0, 4, 7, 10],
    "diminished7": [0, 3, 6, 9],
    "half_diminished7": [0, 3, 6, 10],
}

# Triad quality keyed by the two successive gaps (root->third, third->fifth)
TRIAD_GAPS = {
    (4, 3): "major",
    (3, 4): "minor",
    (3, 3): "diminished",
    (4, 4): "augmented",
}

# Seventh quality keyed by (triad quality, root->seventh distance)
SEVENTH_QUALITIES = {
    ("major", 11): "major7",
    ("major", 10): "dominant7",
    ("minor", 10): "minor7",
    ("diminished", 9): "diminished7",
    ("diminished", 10): "half_diminished7",
}

CHORD_SUFFIXES = {
    "major": "",
    "minor": "m",
    "diminished": "dim",
    "augmented": "aug",
    "major7": "maj7",
    "minor7": "m7",
    "dominant7": "7",
    "diminished7": "dim7",
    "half_diminished7": "m7b5",
}

# Roman numeral labels
ROMAN_NUMERALS = ["I", "II", "III", "IV", "V", "VI", "VII"]

_LOWERCASE_QUALITIES = ("minor", "diminished", "minor7", "diminished7", "half_diminished7")


def get_scale_names():
    """Return list of available scale names."""
    # Use list() for MicroPython dict_keys compatibility
    return list(SCALES.keys())


def get_scale_degrees(scale):
    """
    Return the interval pattern for a scale.

    Args:
        scale: Scale name, or scale index (wraps over the table)
    """
    if isinstance(scale, int):
        names = get_scale_names()
        return SCALES[names[scale % len(names)]]
    return SCALES.get(scale, SCALES["major"])


def note_name(midi_note):
    """Convert MIDI note number to note name."""
    return NOTE_NAMES[midi_note % 12]


def midi_note(pitch_class, octave):
    """MIDI note number for a pitch class in an octave (C-1 = 0, C4 = 60)."""
    return (octave + 1) * 12 + pitch_class


def degree_offset(scale, degree):
    """
    Semitones above the scale root for a degree.
    Degrees past 6 continue into the next octave.
    """
    pattern = get_scale_degrees(scale)
    return pattern[degree % 7] + 12 * (degree // 7)


def stacked_thirds(scale, degree, count=3):
    """
    Offsets of `count` stacked diatonic thirds above a degree, relative
    to that degree's own root. Always ascending.
    """
    base = degree_offset(scale, degree)
    return [degree_offset(scale, degree + 2 * i) - base for i in range(count)]


def classify_triad(third_gap, fifth_gap):
    """
    Classify a triad by its successive gaps.
    Returns: 'major', 'minor', 'diminished', or 'augmented'
    """
    # Shapes outside the four diatonic triads fall back to major
    return TRIAD_GAPS.get((third_gap, fifth_gap), "major")


def classify_seventh(triad_quality, seventh_interval):
    """Classify a seventh chord from its triad and root->seventh distance."""
    return SEVENTH_QUALITIES.get((triad_quality, seventh_interval), triad_quality)


def get_chord_quality_in_scale(scale, degree, seventh=False):
    """
    Determine chord quality for a scale degree (0-6).

    Args:
        scale: Scale name or index
        degree: Scale degree 0-6
        seventh: Include the degree+6 tone

    Returns:
        Quality name, a key of CHORD_TYPES
    """
    degree = degree % 7
    tones = stacked_thirds(scale, degree, 4 if seventh else 3)
    quality = classify_triad(tones[1] - tones[0], tones[2] - tones[1])
    if seventh:
        quality = classify_seventh(quality, tones[3])
    return quality


def get_scale_semitones(scale):
    """
    Get set of semitones (0-11) that are in the scale.

    Args:
        scale: Name or index of the scale

    Returns:
        Set of semitone values (0-11) in the scale
    """
    return set(get_scale_degrees(scale))


def chord_suffix(quality):
    """Chord name suffix, e.g. 'm' for minor."""
    return CHORD_SUFFIXES.get(quality, "")


def roman_numeral(degree, quality):
    """
    Roman numeral for a chord: uppercase for major, lowercase for
    minor and diminished, with quality marks.
    """
    numeral = ROMAN_NUMERALS[degree % 7]
    if quality in _LOWERCASE_QUALITIES:
        numeral = numeral.lower()
    if quality == "diminished":
        numeral += "°"
    elif quality == "diminished7":
        numeral += "°7"
    elif quality == "half_diminished7":
        numeral += "ø7"
    elif quality == "augmented":
        numeral += "+"
    elif quality == "major7":
        numeral += "maj7"
    elif quality in ("minor7", "dominant7"):
        numeral += "7"
    return numeral
