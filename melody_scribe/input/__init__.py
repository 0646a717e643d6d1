"""Input layer - Audio decoding and MIDI import."""

from .loader import AudioLoader, DecodedAudio
from .midi import MIDIImporter, ImportedMidi

__all__ = [
    "AudioLoader",
    "DecodedAudio",
    "MIDIImporter",
    "ImportedMidi",
]
