"""Note cleanup - merge, filter and re-anchor segmented notes.

Each utility returns a new list and never edits its input. They are
composable but order-sensitive; the transcriber applies them as
merge (optional) -> filter -> normalize.
"""

from dataclasses import replace
from typing import List

from ..core import NoteEvent


def merge_consecutive_notes(notes: List[NoteEvent], max_gap: float = 0.05) -> List[NoteEvent]:
    """Merge adjacent notes of the same pitch separated by less than ``max_gap``.

    The merged note spans both notes and carries their averaged velocity.

    Args:
        notes: Notes ordered by start time
        max_gap: Largest gap (seconds) that still merges

    Returns:
        List with same-pitch neighbours merged
    """
    if len(notes) <= 1:
        return list(notes)

    merged = []
    current = notes[0]

    for note in notes[1:]:
        gap = note.start_time - current.end_time
        if note.midi == current.midi and gap < max_gap:
            current = replace(
                current,
                duration=note.end_time - current.start_time,
                velocity=int(round((current.velocity + note.velocity) / 2)),
            )
        else:
            merged.append(current)
            current = note

    merged.append(current)
    return merged


def filter_short_notes(notes: List[NoteEvent], min_duration: float = 0.05) -> List[NoteEvent]:
    """Remove notes shorter than ``min_duration`` (likely noise)."""
    return [n for n in notes if n.duration >= min_duration]


def normalize_start_times(notes: List[NoteEvent]) -> List[NoteEvent]:
    """Shift all notes so the first one starts at time 0 (trims leading silence)."""
    if not notes:
        return []

    first_start = notes[0].start_time
    if first_start <= 0:
        return list(notes)

    return [replace(n, start_time=n.start_time - first_start) for n in notes]
