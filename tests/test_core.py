"""Tests for core note and pitch types."""

import dataclasses

import pytest

from melody_scribe.core import (
    NoteEvent,
    PitchContour,
    PitchFrame,
    freq_to_midi,
    midi_to_freq,
    midi_to_note_name,
    sort_notes,
)
from melody_scribe.core.errors import ConfigurationError, InputError, MelodyScribeError


class TestNoteEvent:
    """Tests for NoteEvent dataclass."""

    def test_note_creation(self):
        note = NoteEvent(midi=60, frequency=261.63, start_time=0.5, duration=1.0, velocity=90)
        assert note.midi == 60
        assert note.start_time == 0.5
        assert note.end_time == 1.5
        assert note.velocity == 90
        assert note.cents_deviation is None
        assert note.vibrato_rate is None

    def test_default_velocity(self):
        note = NoteEvent(midi=60, frequency=261.63, start_time=0.0, duration=1.0)
        assert note.velocity == 80

    def test_pitch_name(self):
        assert NoteEvent.from_midi(60, 0, 1).pitch_name == "C4"
        assert NoteEvent.from_midi(69, 0, 1).pitch_name == "A4"
        assert NoteEvent.from_midi(61, 0, 1).pitch_name == "C#4"

    def test_pitch_class(self):
        assert NoteEvent.from_midi(62, 0, 1).pitch_class == 2
        assert NoteEvent.from_midi(74, 0, 1).pitch_class == 2

    def test_notes_are_immutable(self):
        note = NoteEvent.from_midi(60, 0, 1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            note.midi = 62

    def test_with_midi_recomputes_frequency(self):
        note = NoteEvent(midi=60, frequency=263.0, start_time=1.0, duration=0.5, velocity=70)
        moved = note.with_midi(69)

        assert moved.midi == 69
        assert moved.frequency == pytest.approx(440.0)
        assert moved.start_time == 1.0
        assert moved.velocity == 70
        assert note.midi == 60, "Original must be left untouched"

    def test_sort_notes(self):
        notes = [NoteEvent.from_midi(60, 1.0, 0.5), NoteEvent.from_midi(62, 0.0, 0.5)]
        assert [n.midi for n in sort_notes(notes)] == [62, 60]


class TestPitchConversion:
    """Tests for frequency/MIDI helpers."""

    def test_freq_to_midi(self):
        assert freq_to_midi(440.0) == 69  # A4
        assert freq_to_midi(261.63) == 60  # C4 (approx)
        assert freq_to_midi(880.0) == 81  # A5

    def test_freq_to_midi_no_pitch(self):
        assert freq_to_midi(0.0) == -1

    def test_midi_to_freq(self):
        assert midi_to_freq(69) == 440.0
        assert abs(midi_to_freq(60) - 261.63) < 1.0

    def test_flat_spelling_in_flat_keys(self):
        assert midi_to_note_name(70) == "A#4"
        assert midi_to_note_name(70, "F") == "Bb4"
        assert midi_to_note_name(70, "Bb") == "Bb4"
        assert midi_to_note_name(70, "G") == "A#4"


class TestPitchContour:
    """Tests for PitchFrame and PitchContour."""

    def test_invalid_frame(self):
        frame = PitchFrame(time=0.0, frequency=None, clarity=0.2)
        assert not frame.is_valid

    def test_valid_count_and_hop(self):
        contour = PitchContour(
            frames=[
                PitchFrame(time=0.0, frequency=440.0, clarity=0.9, midi=69),
                PitchFrame(time=0.1, frequency=None, clarity=0.1),
            ],
            sample_rate=22050,
            hop_size=512,
        )
        assert len(contour) == 2
        assert contour.valid_count == 1
        assert contour.hop_duration == pytest.approx(512 / 22050)


class TestErrors:
    """Tests for the error taxonomy."""

    def test_configuration_error_names_parameter(self):
        error = ConfigurationError("key", "H", "unknown note")
        assert error.parameter == "key"
        assert error.value == "H"
        assert "key" in str(error)
        assert "'H'" in str(error)

    def test_errors_are_value_errors(self):
        assert issubclass(InputError, ValueError)
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(InputError, MelodyScribeError)
