"""Tests for the command-line interface."""

import json

import pretty_midi
import pytest
from typer.testing import CliRunner

from melody_scribe.cli import StageTimings, app
from melody_scribe.core import NoteEvent
from melody_scribe.output import MIDIExporter

runner = CliRunner()


@pytest.fixture
def melody_mid(tmp_path):
    """Two measures of C major quarter notes at 120 BPM."""
    midis = [60, 64, 67, 64, 65, 69, 72, 69]
    notes = [NoteEvent.from_midi(m, i * 0.5, 0.5) for i, m in enumerate(midis)]
    path = tmp_path / "tune.mid"
    MIDIExporter(tempo=120.0).export(notes, str(path))
    return path


class TestTranscribeCommand:
    """Tests for `melody-scribe transcribe`."""

    def test_midi_input(self, melody_mid, tmp_path):
        output = tmp_path / "out.mid"
        result = runner.invoke(app, ["transcribe", str(melody_mid), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()

    def test_json_output(self, melody_mid, tmp_path):
        output = tmp_path / "out.mid"
        result = runner.invoke(app, ["transcribe", str(melody_mid), "-o", str(output), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output[result.output.index("{"):])
        assert data["notes_count"] == 8
        assert len(data["measures"]) == 2
        assert data["measures"][0][0] == {"note": "C4", "duration": "quarter", "start_beat": 0.0}

    def test_transpose_and_snap(self, melody_mid, tmp_path):
        output = tmp_path / "out.mid"
        args = ["transcribe", str(melody_mid), "-o", str(output), "--json"]

        result = runner.invoke(app, args + ["--transpose", "1"])
        data = json.loads(result.output[result.output.index("{"):])
        assert data["measures"][0][0]["note"] == "C#4"

        result = runner.invoke(app, args + ["--transpose", "1", "--snap-to-key"])
        data = json.loads(result.output[result.output.index("{"):])
        assert data["measures"][0][0]["note"] == "D4"
        assert pretty_midi.PrettyMIDI(str(output)).instruments[0].notes[0].pitch == 62

    def test_minor_key_spelling(self, melody_mid, tmp_path):
        output = tmp_path / "out.mid"
        result = runner.invoke(
            app,
            ["transcribe", str(melody_mid), "-o", str(output), "--json", "-k", "D", "--minor", "--transpose", "10"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output[result.output.index("{"):])
        assert data["minor"] is True
        assert data["measures"][0][0]["note"] == "Bb4"

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["transcribe", str(tmp_path / "nope.wav")])
        assert result.exit_code == 1

    def test_bad_quantization(self, melody_mid, tmp_path):
        result = runner.invoke(app, ["transcribe", str(melody_mid), "-o", str(tmp_path / "o.mid"), "-q", "tiny"])
        assert result.exit_code == 1
        assert "min_quantization" in result.output


class TestHarmonizeCommand:
    """Tests for `melody-scribe harmonize`."""

    def test_thirds_with_chords(self, melody_mid, tmp_path):
        output = tmp_path / "harmony.mid"
        result = runner.invoke(
            app,
            ["harmonize", str(melody_mid), "-o", str(output), "-s", "thirds-below", "-c", "C F"],
        )

        assert result.exit_code == 0, result.output
        midi = pretty_midi.PrettyMIDI(str(output))
        names = [i.name for i in midi.instruments]
        assert names[0] == "Melody"
        assert names[-1] == "Chords"
        assert len(midi.instruments) == 3

    def test_four_part_suggested(self, melody_mid, tmp_path):
        output = tmp_path / "satb.mid"
        result = runner.invoke(
            app,
            ["harmonize", str(melody_mid), "-o", str(output), "-s", "four-part", "--suggest"],
        )

        assert result.exit_code == 0, result.output
        midi = pretty_midi.PrettyMIDI(str(output))
        assert len(midi.instruments) == 5

    def test_unknown_style(self, melody_mid, tmp_path):
        result = runner.invoke(
            app, ["harmonize", str(melody_mid), "-o", str(tmp_path / "x.mid"), "-s", "ninths"]
        )
        assert result.exit_code == 1

    def test_bad_chord_symbol(self, melody_mid, tmp_path):
        result = runner.invoke(
            app, ["harmonize", str(melody_mid), "-o", str(tmp_path / "x.mid"), "-c", "C Hm"]
        )
        assert result.exit_code == 1


class TestChordsCommand:
    """Tests for `melody-scribe chords`."""

    def test_suggests_chords(self, melody_mid):
        result = runner.invoke(app, ["chords", str(melody_mid), "-k", "C"])

        assert result.exit_code == 0, result.output
        assert "IV" in result.output

    def test_auto_key(self, melody_mid):
        result = runner.invoke(app, ["chords", str(melody_mid)])

        assert result.exit_code == 0, result.output
        assert "Detected key" in result.output


class TestStageTimings:
    """Tests for StageTimings."""

    def test_mark_records_stages(self):
        timings = StageTimings()
        timings.mark("onsets")
        timings.mark("tempo")

        assert list(timings.stages) == ["onsets", "tempo"]
        assert timings.total_time >= 0
        assert timings.to_dict()["stages"] == timings.stages
