"""Note data classes - the fundamental units of musical transcription."""

from dataclasses import dataclass, replace
from typing import List, Optional
import numpy as np

from .constants import A4_FREQUENCY, A4_MIDI, PITCH_NAMES, PITCH_NAMES_FLAT


# Keys whose signatures are written with flats
FLAT_KEYS = ("F", "Bb", "Eb", "Ab", "Db", "Gb")


def freq_to_midi(freq: float) -> int:
    """Convert frequency (Hz) to the nearest MIDI pitch, -1 for no pitch."""
    if freq <= 0:
        return -1
    return int(round(A4_MIDI + 12 * np.log2(freq / A4_FREQUENCY)))


def midi_to_freq(midi: float) -> float:
    """Convert MIDI pitch to frequency (Hz)."""
    return A4_FREQUENCY * (2 ** ((midi - A4_MIDI) / 12.0))


def cents_deviation(freq: float, midi: int) -> float:
    """Offset of ``freq`` from the equal-tempered pitch ``midi``, in cents."""
    return float(1200 * np.log2(freq / midi_to_freq(midi)))


def is_valid_midi(midi: int) -> bool:
    return 0 <= midi <= 127


def midi_to_note_name(midi: int, key_signature: Optional[str] = None) -> str:
    """Get note name (e.g., 'C4', 'Bb3'), spelled with flats in flat keys."""
    octave = (midi // 12) - 1
    names = PITCH_NAMES_FLAT if key_signature in FLAT_KEYS else PITCH_NAMES
    return f"{names[midi % 12]}{octave}"


@dataclass(frozen=True)
class NoteEvent:
    """A single sounding note in seconds.

    Notes are values: edit them with :meth:`with_midi` or
    :func:`dataclasses.replace`, never in place.
    """

    midi: int  # MIDI pitch (0-127)
    frequency: float  # Hz, informational
    start_time: float  # seconds, >= 0
    duration: float  # seconds, > 0
    velocity: int = 80  # MIDI velocity (1-127)
    cents_deviation: Optional[float] = None
    vibrato_rate: Optional[float] = None
    vibrato_depth: Optional[float] = None

    @property
    def end_time(self) -> float:
        """Note end in seconds."""
        return self.start_time + self.duration

    @property
    def pitch_class(self) -> int:
        """Get pitch class (0-11, where 0=C)."""
        return self.midi % 12

    @property
    def pitch_name(self) -> str:
        return midi_to_note_name(self.midi)

    def with_midi(self, midi: int) -> "NoteEvent":
        """Copy of this note transposed to ``midi``, frequency recomputed."""
        return replace(self, midi=midi, frequency=midi_to_freq(midi))

    @classmethod
    def from_midi(
        cls,
        midi: int,
        start_time: float,
        duration: float,
        velocity: int = 80,
    ) -> "NoteEvent":
        """Build a note whose frequency is the exact equal-tempered pitch."""
        return cls(
            midi=midi,
            frequency=midi_to_freq(midi),
            start_time=start_time,
            duration=duration,
            velocity=velocity,
        )


def sort_notes(notes: List[NoteEvent]) -> List[NoteEvent]:
    """Return notes ordered by start time (stable for equal starts)."""
    return sorted(notes, key=lambda n: n.start_time)
