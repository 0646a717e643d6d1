"""MIDI export - melody, harmony voices and chords as a multi-track file."""

import pretty_midi
from typing import List, Optional, Sequence
from pathlib import Path

from ..core import NoteEvent
from ..core.constants import DEFAULT_BEATS_PER_MEASURE, DEFAULT_TEMPO
from ..inference.chords import ChordEvent, chord_to_note_events
from ..inference.harmony import HarmonyVoice


class MIDIExporter:
    """Export notes to MIDI format, one instrument track per voice."""

    def __init__(
        self,
        tempo: float = DEFAULT_TEMPO,
        beats_per_measure: int = DEFAULT_BEATS_PER_MEASURE,
        instrument_program: int = 0,
        chord_program: int = 0,
    ):
        """
        Initialize MIDIExporter.

        Args:
            tempo: Tempo in BPM
            beats_per_measure: Time signature numerator (quarter-note beats)
            instrument_program: MIDI program for melody and voices (0 = piano)
            chord_program: MIDI program for the chord track
        """
        self.tempo = tempo
        self.beats_per_measure = beats_per_measure
        self.instrument_program = instrument_program
        self.chord_program = chord_program

    def export(
        self,
        notes: Sequence[NoteEvent],
        output_path: str,
        voices: Optional[Sequence[HarmonyVoice]] = None,
        chords: Optional[Sequence[ChordEvent]] = None,
    ) -> None:
        """
        Export a melody (plus optional voices and chords) to a MIDI file.

        Args:
            notes: Melody notes
            output_path: Path to output MIDI file
            voices: Extra named voices, one track each
            chords: Chord progression, rendered to its own track
        """
        midi = self.to_pretty_midi(notes, voices, chords)

        # Ensure output directory exists
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        midi.write(str(output_path))

    def to_pretty_midi(
        self,
        notes: Sequence[NoteEvent],
        voices: Optional[Sequence[HarmonyVoice]] = None,
        chords: Optional[Sequence[ChordEvent]] = None,
    ) -> pretty_midi.PrettyMIDI:
        """Build the PrettyMIDI object without saving."""
        midi = pretty_midi.PrettyMIDI(initial_tempo=self.tempo)
        midi.time_signature_changes.append(
            pretty_midi.TimeSignature(self.beats_per_measure, 4, 0.0)
        )

        midi.instruments.append(self._track("Melody", notes, self.instrument_program))
        for voice in voices or []:
            midi.instruments.append(self._track(voice.name, voice.notes, self.instrument_program))

        if chords:
            chord_notes: List[NoteEvent] = []
            for chord in chords:
                chord_notes.extend(chord_to_note_events(chord, self.tempo))
            midi.instruments.append(self._track("Chords", chord_notes, self.chord_program))

        return midi

    @staticmethod
    def _track(name: str, notes: Sequence[NoteEvent], program: int) -> pretty_midi.Instrument:
        instrument = pretty_midi.Instrument(program=program, name=name)
        for note in notes:
            instrument.notes.append(
                pretty_midi.Note(
                    velocity=int(min(127, max(1, note.velocity))),
                    pitch=int(min(127, max(0, note.midi))),
                    start=float(note.start_time),
                    end=float(note.end_time),
                )
            )
        return instrument
