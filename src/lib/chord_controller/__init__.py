"""
Chord Controller - platform-independent encoder conditioning, button
latching and diatonic scale/chord generation with MIDI output.
"""

from .music_theory import (
    INTERVALS,
    SCALES,
    NOTE_NAMES,
    CHORD_TYPES,
    ROMAN_NUMERALS,
    get_scale_names,
    get_scale_degrees,
    note_name,
    get_chord_quality_in_scale,
)
from .scale_engine import ScaleChordEngine, ScaleState, ChordState
from .encoder import EncoderChannel, EncoderConditioner
from .buttons import ButtonState, ButtonChannel, ButtonStateMachine
from .actions import (
    Action,
    NoOp,
    NoteKey,
    ChordTrigger,
    AssignTrigger,
    Panic,
    ModeCycle,
    ActionTable,
)
from .router import ParameterRouter, Event
from .errors import ChordControllerError, TransientIoError, BusFault
from .bus_guard import BusGuard
from .hal_protocol import (
    ControlSurfaceHAL,
    MidiOutputHAL,
    DisplayHAL,
    TouchStripHAL,
    ClockHAL,
    HardwarePort,
)
from .controller_app import ControllerApp

__all__ = [
    # Music Theory
    "INTERVALS",
    "SCALES",
    "NOTE_NAMES",
    "CHORD_TYPES",
    "ROMAN_NUMERALS",
    "get_scale_names",
    "get_scale_degrees",
    "note_name",
    "get_chord_quality_in_scale",
    # Engine
    "ScaleChordEngine",
    "ScaleState",
    "ChordState",
    # Signal conditioning
    "EncoderChannel",
    "EncoderConditioner",
    # Buttons
    "ButtonState",
    "ButtonChannel",
    "ButtonStateMachine",
    # Actions
    "Action",
    "NoOp",
    "NoteKey",
    "ChordTrigger",
    "AssignTrigger",
    "Panic",
    "ModeCycle",
    "ActionTable",
    # Routing
    "ParameterRouter",
    "Event",
    # Errors
    "ChordControllerError",
    "TransientIoError",
    "BusFault",
    "BusGuard",
    # HAL Protocol
    "ControlSurfaceHAL",
    "MidiOutputHAL",
    "DisplayHAL",
    "TouchStripHAL",
    "ClockHAL",
    "HardwarePort",
    # Application
    "ControllerApp",
]
