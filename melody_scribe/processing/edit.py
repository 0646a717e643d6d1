"""Whole-melody edits applied before re-quantization."""

from typing import List, Sequence

from ..core import NoteEvent
from ..core.constants import PIANO_MAX, PIANO_MIN
from ..inference.key import get_scale_notes


def snap_midi_to_key(midi: int, key: str, is_minor: bool = False) -> int:
    """Move an out-of-scale pitch to the nearest scale tone, upward on a tie."""
    scale = set(get_scale_notes(key, is_minor))
    pitch_class = midi % 12
    if pitch_class in scale:
        return midi

    for offset in range(1, 7):
        if (pitch_class + offset) % 12 in scale:
            return midi + offset
        if (pitch_class - offset) % 12 in scale:
            return midi - offset

    return midi


def snap_to_key(notes: Sequence[NoteEvent], key: str, is_minor: bool = False) -> List[NoteEvent]:
    """
    Snap every note of a melody into the key's scale.

    Notes already in the scale are returned unchanged; timing and velocity
    are always kept.

    Raises:
        ConfigurationError: If ``key`` is not a known key signature
    """
    snapped = []
    for note in notes:
        midi = snap_midi_to_key(note.midi, key, is_minor)
        snapped.append(note if midi == note.midi else note.with_midi(midi))
    return snapped


def transpose(
    notes: Sequence[NoteEvent],
    semitones: int,
    low: int = PIANO_MIN,
    high: int = PIANO_MAX,
) -> List[NoteEvent]:
    """Shift every note by ``semitones``, clamped to the piano range."""
    if semitones == 0:
        return list(notes)
    return [n.with_midi(max(low, min(high, n.midi + semitones))) for n in notes]
