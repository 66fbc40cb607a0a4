#!/usr/bin/env python3
"""
MIDI output for desktop Python via mido (USB MIDI interfaces, virtual ports).
"""

import mido

from chord_controller.constants import Midi as MidiConst
from chord_controller.hal_protocol import MidiOutputHAL
from chord_controller.log import log, TAG_MIDI


def list_outputs():
    """List all available MIDI output ports."""
    outputs = mido.get_output_names()
    if not outputs:
        log(TAG_MIDI, "No MIDI output ports found!", is_error=True)
        return []
    log(TAG_MIDI, "Available MIDI outputs:")
    for i, name in enumerate(outputs):
        log(TAG_MIDI, f"  [{i}] {name}")
    return outputs


def open_output(port_name=None):
    """
    Open a MIDI output port.

    Args:
        port_name: Port to open, or None for the first available one

    Returns:
        MidoMidiOutputHAL, unconnected when no port exists
    """
    if port_name is None:
        outputs = list_outputs()
        if not outputs:
            return MidoMidiOutputHAL(None)
        port_name = outputs[0]
        log(TAG_MIDI, f"Using first available port: {port_name}")
    return MidoMidiOutputHAL(mido.open_output(port_name))


class MidoMidiOutputHAL(MidiOutputHAL):
    """
    MidiOutputHAL that sends mido messages to an output port.
    With port=None every call is a no-op.
    """

    def __init__(self, port):
        """
        Args:
            port: Anything with a send(message) method, usually a mido port
        """
        self.port = port

    def _send(self, message):
        if self.port is None:
            return
        self.port.send(message)

    def send_note_on(self, channel, note, velocity):
        # Skip notes outside the MIDI range
        if note < MidiConst.NOTE_MIN or note > MidiConst.NOTE_MAX:
            return
        self._send(mido.Message("note_on", channel=channel, note=note, velocity=velocity))

    def send_note_off(self, channel, note, velocity=0):
        if note < MidiConst.NOTE_MIN or note > MidiConst.NOTE_MAX:
            return
        self._send(mido.Message("note_off", channel=channel, note=note, velocity=velocity))

    def send_control_change(self, channel, control, value):
        self._send(mido.Message("control_change", channel=channel, control=control, value=value))

    def close(self):
        if self.port is not None:
            self.port.close()
            self.port = None
