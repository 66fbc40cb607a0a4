"""
Constants for the Chord Controller.
All magic strings and numbers are defined here for easy maintenance.
"""


# ============================================================================
# OPERATING MODES
# ============================================================================
class Mode:
    """Operating mode constants, selected by the toggle switch."""
    SCALE = "scale"
    CHORD = "chord"

    ALL = [SCALE, CHORD]


class ChordSubMode:
    """Sub-modes of chord mode, toggled by holding the mode-cycle control."""
    NORMAL = "normal"
    ASSIGN = "assign"

    ALL = [NORMAL, ASSIGN]


class ParamEdit:
    """Parameter edited by encoder 7, cycled by a short press on control 7."""
    ROOT = "root"
    SCALE = "scale"
    OCTAVE = "octave"

    # Cycle order
    ALL = [ROOT, SCALE, OCTAVE]


# ============================================================================
# MODE DISPLAY INDICATORS
# ============================================================================
class ModeIndicator:
    """Characters shown on display for each mode."""
    SCALE = ">"
    CHORD = "#"
    ASSIGN = "*"
    UNKNOWN = "?"

    @classmethod
    def get(cls, mode, submode=None):
        """Get indicator character for a mode."""
        if mode == Mode.CHORD and submode == ChordSubMode.ASSIGN:
            return cls.ASSIGN
        indicators = {
            Mode.SCALE: cls.SCALE,
            Mode.CHORD: cls.CHORD,
        }
        return indicators.get(mode, cls.UNKNOWN)


# ============================================================================
# CHORD TYPES
# ============================================================================
class ChordType:
    """
    Chord type selections.
    DIATONIC and DIATONIC7 classify the chord from the scale itself,
    every other value forces that exact shape on the chosen degree.
    """
    DIATONIC = "diatonic"
    DIATONIC7 = "diatonic7"
    MAJOR = "major"
    MINOR = "minor"
    DIMINISHED = "diminished"
    AUGMENTED = "augmented"
    MAJOR7 = "major7"
    MINOR7 = "minor7"
    DIMINISHED7 = "diminished7"
    DOMINANT7 = "dominant7"
    HALF_DIMINISHED7 = "half_diminished7"

    AUTO = [DIATONIC, DIATONIC7]

    # Encoder cycle order
    ALL = [
        DIATONIC,
        DIATONIC7,
        MAJOR,
        MINOR,
        DIMINISHED,
        AUGMENTED,
        MAJOR7,
        MINOR7,
        DIMINISHED7,
        DOMINANT7,
        HALF_DIMINISHED7,
    ]


# ============================================================================
# MIDI CONSTANTS
# ============================================================================
class Midi:
    """MIDI-related constants."""
    # Channel range
    CHANNEL_MIN = 0
    CHANNEL_MAX = 15
    CHANNEL_DEFAULT = 0

    # Velocity range
    VELOCITY_MIN = 0
    VELOCITY_MAX = 127
    VELOCITY_DEFAULT = 100
    VELOCITY_STEP = 4

    # Note range
    NOTE_MIN = 0
    NOTE_MAX = 127

    # Control change numbers used by the panic path
    CC_SUSTAIN = 64
    CC_ALL_SOUND_OFF = 120
    CC_ALL_NOTES_OFF = 123


# ============================================================================
# OCTAVE CONSTANTS
# ============================================================================
class Octave:
    """Octave-related constants (octave 4 holds middle C, MIDI 60)."""
    MIN = -1  # C-1 = MIDI 0
    MAX = 9   # C9 = MIDI 120
    DEFAULT = 4
    REFERENCE = 4  # Octave 4 has no tick marks

    # Tick mark characters for octave display
    TICK_UP = "'"
    TICK_DOWN = ","


# ============================================================================
# HARDWARE CONSTANTS
# ============================================================================
class Hardware:
    """Hardware-related constants."""
    NUM_ENCODERS = 8

    # Encoders 0-6 carry a per-note velocity
    NUM_NOTE_KEYS = 7

    # 8 encoder push-buttons + the toggle switch
    NUM_BUTTON_CHANNELS = 9
    SWITCH_INDEX = 8

    # Fixed control roles
    PANIC_INDEX = 6
    MODE_CYCLE_INDEX = 7

    # Auxiliary touch strip (MPR121)
    TOUCH_PAD_COUNT = 12


# ============================================================================
# TIMING CONSTANTS
# ============================================================================
class Timing:
    """All durations in milliseconds."""
    HOLD_MS = 1000
    BUTTON_DEBOUNCE_MS = 20
    ENCODER_DEBOUNCE_MS = 5
    TICK_MS = 20


# ============================================================================
# ENCODER CONDITIONING
# ============================================================================
class EncoderConfig:
    """Encoder signal conditioning parameters."""
    # Samples that must agree before a value counts as stable
    SAMPLE_COUNT = 3

    # Raw counter is re-zeroed once it reaches +/- this value
    RANGE_LIMIT = 60

    # Detented encoders produce two raw transitions per physical click
    STEPS_PER_CLICK = 2


# ============================================================================
# BUS FAULT HANDLING
# ============================================================================
class Bus:
    """Retry policy for the shared I2C bus."""
    READ_RETRIES = 3
    FAULT_THRESHOLD = 10
    BACKOFF_MS = 2


# ============================================================================
# MUSIC CONSTANTS
# ============================================================================
class Music:
    """Music theory constants."""
    NOTES_PER_OCTAVE = 12
    SCALE_DEGREES = 7

    # Power-on defaults: C major, octave 4, degree I
    DEFAULT_ROOT = 0
    DEFAULT_SCALE_INDEX = 0
    DEFAULT_DEGREE = 0
    DEFAULT_CHORD_TYPE = ChordType.DIATONIC
