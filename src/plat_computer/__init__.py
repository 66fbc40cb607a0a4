"""Desktop platform: mido MIDI output and a monotonic clock."""
