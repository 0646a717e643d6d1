"""MIDI import - read a melody and its tempo from a Standard MIDI File."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Union

import pretty_midi

from ..core import NoteEvent, sort_notes
from ..core.constants import DEFAULT_TEMPO
from ..core.errors import InputError


@dataclass
class ImportedMidi:
    """Notes and tempo read from a MIDI file."""

    notes: List[NoteEvent] = field(default_factory=list)
    tempo: float = DEFAULT_TEMPO


class MIDIImporter:
    """Load note events from MIDI files."""

    def __init__(self, include_drums: bool = False):
        self.include_drums = include_drums

    def load(self, path: Union[str, Path]) -> ImportedMidi:
        """
        Load all non-drum notes of a MIDI file.

        The tempo is the first tempo change, 120 BPM when the file has none.

        Raises:
            InputError: If the file is missing or not a valid MIDI file
        """
        path = Path(path)
        if not path.exists():
            raise InputError(f"MIDI file not found: {path}")

        try:
            midi = pretty_midi.PrettyMIDI(str(path))
        except Exception as exc:
            raise InputError(f"Could not read MIDI file {path}: {exc}") from exc

        return ImportedMidi(notes=self.extract_notes(midi), tempo=self.first_tempo(midi))

    def extract_notes(self, midi: pretty_midi.PrettyMIDI) -> List[NoteEvent]:
        notes = []
        for instrument in midi.instruments:
            if instrument.is_drum and not self.include_drums:
                continue
            for note in instrument.notes:
                if note.end <= note.start:
                    continue
                notes.append(
                    NoteEvent.from_midi(
                        midi=note.pitch,
                        start_time=float(note.start),
                        duration=float(note.end - note.start),
                        velocity=max(1, note.velocity),
                    )
                )
        return sort_notes(notes)

    @staticmethod
    def first_tempo(midi: pretty_midi.PrettyMIDI) -> float:
        _, tempi = midi.get_tempo_changes()
        if len(tempi) == 0:
            return DEFAULT_TEMPO
        return float(tempi[0])
