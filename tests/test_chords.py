"""Tests for the chord model, symbols and chord suggestion."""

import pytest

from melody_scribe.core import ConfigurationError, NoteEvent
from melody_scribe.inference import (
    ChordAlteration,
    ChordEvent,
    ChordExtension,
    SeventhType,
    TriadQuality,
    chord_at_beat,
    chord_fits_key,
    chord_symbol,
    chord_to_midi,
    chord_to_note_events,
    get_chord_intervals,
    parse_chord,
    recalculate_durations,
    suggest_chords,
)


def note(midi, start, duration=0.5):
    return NoteEvent.from_midi(midi, start, duration)


class TestChordIntervals:
    """Tests for chord spelling."""

    def test_triads(self):
        assert get_chord_intervals(ChordEvent(root=0)) == [0, 4, 7]
        assert get_chord_intervals(ChordEvent(root=0, triad=TriadQuality.MINOR)) == [0, 3, 7]
        assert get_chord_intervals(ChordEvent(root=0, triad=TriadQuality.POWER)) == [0, 7]

    def test_sevenths(self):
        dominant = ChordEvent(root=7, seventh=SeventhType.DOMINANT7)
        assert get_chord_intervals(dominant) == [0, 4, 7, 10]

        major7 = ChordEvent(root=0, seventh=SeventhType.MAJOR7)
        assert get_chord_intervals(major7) == [0, 4, 7, 11]

    def test_ninth_implies_seventh(self):
        ninth = ChordEvent(root=0, extensions=(ChordExtension.NINTH,))
        assert get_chord_intervals(ninth) == [0, 4, 7, 10, 14]

    def test_add9_has_no_seventh(self):
        add9 = ChordEvent(root=0, extensions=(ChordExtension.ADD9,))
        assert get_chord_intervals(add9) == [0, 4, 7, 14]

    def test_alteration_replaces_tone(self):
        flat5 = ChordEvent(root=0, seventh=SeventhType.DOMINANT7, alterations=(ChordAlteration.FLAT5,))
        assert get_chord_intervals(flat5) == [0, 4, 6, 10]

    def test_pitch_classes_include_slash_bass(self):
        chord = ChordEvent(root=0, bass=2)
        assert chord.pitch_classes == [0, 2, 4, 7]


class TestChordVoicing:
    """Tests for chord_to_midi and chord_to_note_events."""

    def test_root_position(self):
        assert chord_to_midi(ChordEvent(root=0)) == [48, 52, 55]

    def test_first_inversion(self):
        assert chord_to_midi(ChordEvent(root=0, inversion=1)) == [52, 55, 60]

    def test_slash_bass(self):
        assert chord_to_midi(ChordEvent(root=0, bass=4)) == [40, 48, 52, 55]

    def test_note_events_timing(self):
        chord = ChordEvent(root=9, triad=TriadQuality.MINOR, start_beat=4, duration_beats=2)
        notes = chord_to_note_events(chord, tempo=120.0)

        assert [n.midi for n in notes] == [57, 60, 64]
        assert all(n.start_time == 2.0 for n in notes)
        assert all(n.duration == 1.0 for n in notes)


class TestChordSymbols:
    """Tests for chord symbols and parsing."""

    @pytest.mark.parametrize("chord,expected", [
        (ChordEvent(root=0), "C"),
        (ChordEvent(root=9, triad=TriadQuality.MINOR), "Am"),
        (ChordEvent(root=7, seventh=SeventhType.DOMINANT7), "G7"),
        (ChordEvent(root=0, seventh=SeventhType.MAJOR7), "Cmaj7"),
        (ChordEvent(root=11, triad=TriadQuality.DIMINISHED, seventh=SeventhType.MINOR7), "Bm7b5"),
        (ChordEvent(root=2, triad=TriadQuality.SUS4), "Dsus4"),
        (ChordEvent(root=4, triad=TriadQuality.POWER), "E5"),
        (ChordEvent(root=0, bass=4), "C/E"),
        (ChordEvent(root=7, seventh=SeventhType.DOMINANT7, alterations=(ChordAlteration.FLAT9,)), "G7(b9)"),
    ])
    def test_symbol(self, chord, expected):
        assert chord_symbol(chord) == expected

    def test_flat_spelling_in_flat_key(self):
        chord = ChordEvent(root=10)
        assert chord.symbol("F") == "Bb"
        assert chord.symbol("C") == "A#"

    @pytest.mark.parametrize("symbol", ["C", "Am", "G7", "Cmaj7", "Bm7b5", "Dsus4", "E5", "C/E"])
    def test_parse_symbol(self, symbol):
        assert parse_chord(symbol).symbol() == symbol

    def test_parse_sets_position(self):
        chord = parse_chord("F", start_beat=8, duration_beats=2)
        assert chord.root == 5
        assert chord.start_beat == 8
        assert chord.end_beat == 10

    def test_parse_flat_root(self):
        assert parse_chord("Bb").root == 10

    @pytest.mark.parametrize("symbol", ["H", "Cxyz", "", "c"])
    def test_parse_invalid(self, symbol):
        with pytest.raises(ConfigurationError):
            parse_chord(symbol)


class TestRomanNumerals:
    """Tests for roman numeral analysis."""

    def test_major_key(self):
        assert ChordEvent(root=0).roman_numeral("C") == "I"
        assert ChordEvent(root=2, triad=TriadQuality.MINOR).roman_numeral("C") == "ii"
        assert ChordEvent(root=7, seventh=SeventhType.DOMINANT7).roman_numeral("C") == "V7"
        assert ChordEvent(root=11, triad=TriadQuality.DIMINISHED).roman_numeral("C") == "vii°"

    def test_minor_key(self):
        assert ChordEvent(root=9, triad=TriadQuality.MINOR).roman_numeral("A", is_minor=True) == "i"
        assert ChordEvent(root=0).roman_numeral("A", is_minor=True) == "III"

    def test_non_diatonic(self):
        assert ChordEvent(root=1).roman_numeral("C") == "(C#)"


class TestChordFitsKey:
    """Tests for chord_fits_key."""

    def test_diatonic(self):
        assert chord_fits_key(ChordEvent(root=7, seventh=SeventhType.DOMINANT7), "C")
        assert chord_fits_key(ChordEvent(root=9, triad=TriadQuality.MINOR), "C")

    def test_chromatic(self):
        assert not chord_fits_key(ChordEvent(root=1), "C")


class TestSuggestChords:
    """Tests for suggest_chords."""

    def test_tonic_note_suggests_tonic(self):
        suggestions = suggest_chords([note(60, 0.0, 2.0)], key="C")

        assert len(suggestions) == 1
        assert suggestions[0].root == 0
        assert suggestions[0].triad == TriadQuality.MAJOR
        assert suggestions[0].roman_numeral("C") == "I"

    def test_f_a_c_suggests_subdominant(self):
        melody = [note(65, 0.0), note(69, 0.5), note(72, 1.0)]
        suggestions = suggest_chords(melody, key="C")
        assert suggestions[0].roman_numeral("C") == "IV"

    def test_one_chord_per_measure(self):
        melody = [note(60, 0.0, 2.0), note(67, 2.0, 2.0), note(65, 4.0, 2.0)]
        suggestions = suggest_chords(melody, key="C", beats_per_measure=4, tempo=120.0)

        assert [c.start_beat for c in suggestions] == [0.0, 4.0, 8.0]
        assert all(c.duration_beats == 4.0 for c in suggestions)

    def test_empty_measure_skipped(self):
        melody = [note(60, 0.0, 2.0), note(67, 4.0, 2.0)]
        suggestions = suggest_chords(melody, key="C", tempo=120.0)
        assert [c.start_beat for c in suggestions] == [0.0, 8.0]

    def test_minor_key(self):
        suggestions = suggest_chords([note(57, 0.0, 2.0)], key="A", is_minor=True)
        assert suggestions[0].root == 9
        assert suggestions[0].triad == TriadQuality.MINOR

    def test_empty_melody(self):
        assert suggest_chords([], key="C") == []

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            suggest_chords([note(60, 0.0)], key="H")
        assert exc_info.value.parameter == "key"


class TestRecalculateDurations:
    """Tests for recalculate_durations."""

    @pytest.fixture
    def unordered(self):
        return [
            ChordEvent(root=7, start_beat=8, duration_beats=1),
            ChordEvent(root=0, start_beat=0, duration_beats=1),
            ChordEvent(root=5, start_beat=3, duration_beats=7),
        ]

    def test_chords_tile_timeline(self, unordered):
        chords = recalculate_durations(unordered, total_beats=16)
        for current, following in zip(chords, chords[1:]):
            assert current.start_beat + current.duration_beats == following.start_beat

    def test_last_chord_reaches_end(self, unordered):
        chords = recalculate_durations(unordered, total_beats=16)
        assert chords[-1].end_beat >= 16

    def test_last_chord_at_least_one_measure(self, unordered):
        chords = recalculate_durations(unordered, total_beats=9)
        assert chords[-1].duration_beats == 4

    def test_sorted(self, unordered):
        chords = recalculate_durations(unordered, total_beats=16)
        assert [c.root for c in chords] == [0, 5, 7]

    def test_same_start_keeps_later_chord(self, unordered):
        replacement = ChordEvent(root=9, start_beat=3, duration_beats=1)
        chords = recalculate_durations(unordered + [replacement], total_beats=16)

        assert [c.root for c in chords] == [0, 9, 7]
        assert all(c.duration_beats > 0 for c in chords)

    def test_chord_at_beat(self, unordered):
        chords = recalculate_durations(unordered, total_beats=16)
        assert chord_at_beat(chords, 0.0).root == 0
        assert chord_at_beat(chords, 3.0).root == 5
        assert chord_at_beat(chords, 15.9).root == 7
        assert chord_at_beat(chords, 16.0) is None
