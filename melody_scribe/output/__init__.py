"""Output layer - Export to MIDI.

Melody, generated harmony voices and chord accompaniment are written as
separate tracks of one Standard MIDI File.
"""

from .midi import MIDIExporter

__all__ = [
    "MIDIExporter",
]
