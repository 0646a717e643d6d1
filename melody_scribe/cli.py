"""Command-line interface for Melody Scribe.

Provides commands for:
- transcribe: Convert a melody recording to quantized notation and MIDI
- harmonize: Add harmony voices (and chords) to a melody
- chords: Suggest a chord progression for a melody
- info: Show audio file information
"""

import typer
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, Any, List, Tuple
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from .core import NoteEvent, MelodyScribeError
from .core.constants import DEFAULT_BEATS_PER_MEASURE

app = typer.Typer(
    name="melody-scribe",
    help="Melody transcription, harmonization and chord suggestion",
    rich_markup_mode="markdown",
)
console = Console()

MIDI_SUFFIXES = {".mid", ".midi"}


@dataclass
class StageTimings:
    """Track timing of pipeline stages from progress callbacks."""

    stages: Dict[str, float] = field(default_factory=dict)
    _last: float = field(default_factory=time.time, repr=False)

    def mark(self, stage: str) -> None:
        """Record the time since the previous mark as ``stage``."""
        now = time.time()
        self.stages[stage] = now - self._last
        self._last = now

    @property
    def total_time(self) -> float:
        """Get total time across all stages."""
        return sum(self.stages.values())

    def print_summary(self) -> None:
        """Print timing summary to console."""
        console.print("\n[bold]Timing Summary:[/bold]")
        for stage, duration in self.stages.items():
            console.print(f"  {stage}: {duration:.2f}s")
        console.print(f"  [bold]Total: {self.total_time:.2f}s[/bold]")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "stages": self.stages,
            "total_time": self.total_time,
        }


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


def _load_melody(
    input_file: Path,
    snap: bool = False,
    merge_gap: Optional[float] = None,
    timings: Optional[StageTimings] = None,
) -> Tuple[List[NoteEvent], float, float]:
    """
    Load a melody from audio (transcribed) or a MIDI file.

    Returns:
        Tuple of (notes, tempo in BPM, tempo confidence)
    """
    from .input import AudioLoader, MIDIImporter
    from .transcription import MonophonicTranscriber, AnalysisConfig

    if not input_file.exists():
        _fail(f"File not found: {input_file}")

    if input_file.suffix.lower() in MIDI_SUFFIXES:
        console.print(f"[blue]Loading MIDI:[/blue] {input_file}")
        imported = MIDIImporter().load(input_file)
        return imported.notes, imported.tempo, 1.0

    console.print(f"[blue]Loading audio:[/blue] {input_file}")
    decoded = AudioLoader().load(input_file)

    config = AnalysisConfig(snap_to_semitone=snap, merge_gap=merge_gap)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Analyzing...", total=1.0)

        def report(stage: str, fraction: float) -> None:
            if timings is not None:
                timings.mark(stage)
            progress.update(task, completed=fraction, description=f"Analyzing ({stage})")

        transcriber = MonophonicTranscriber(config=config, progress=report)
        result = transcriber.analyze(decoded.samples, decoded.sample_rate)

    console.print(
        f"  Detected {len(result.onsets)} onsets, {len(result.notes)} notes, "
        f"tempo {result.tempo.bpm:.1f} BPM (confidence {result.tempo.confidence:.2f})"
    )
    return result.notes, result.tempo.bpm, result.tempo.confidence


def _resolve_key(key: str, minor: bool, notes: List[NoteEvent]) -> Tuple[str, bool]:
    """Use ``key`` as given, or detect it from the notes when it is 'auto'."""
    from .inference import KeyDetector

    if key.lower() != "auto":
        return key, minor

    key_info = KeyDetector().analyze(notes)
    console.print(f"  Detected key: {key_info.name} (confidence: {key_info.confidence:.2f})")
    return key_info.root, key_info.is_minor


@app.command()
def transcribe(
    input_file: Path = typer.Argument(..., help="Input audio file (WAV, MP3, FLAC...) or MIDI file"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output MIDI file path"
    ),
    tempo: float = typer.Option(
        0.0, "-t", "--tempo", help="Override tempo (BPM). 0 = auto-detect"
    ),
    quantization: str = typer.Option(
        "sixteenth", "-q", "--quantization", help="Finest note value: whole/half/quarter/eighth/sixteenth"
    ),
    key: str = typer.Option(
        "C", "-k", "--key", help="Key root for note spelling, or 'auto'"
    ),
    minor: bool = typer.Option(False, "-m", "--minor", help="Minor key"),
    beats_per_measure: int = typer.Option(
        DEFAULT_BEATS_PER_MEASURE, "-b", "--beats", help="Beats per measure"
    ),
    snap: bool = typer.Option(
        False, "--snap", help="Auto-tune mode: snap pitch to the nearest semitone"
    ),
    merge_gap: Optional[float] = typer.Option(
        None, "--merge-gap", help="Merge same-pitch notes closer than this (seconds)"
    ),
    snap_key: bool = typer.Option(
        False, "--snap-to-key", help="Move out-of-scale notes to the nearest scale tone"
    ),
    semitones: int = typer.Option(
        0, "--transpose", help="Transpose the melody by this many semitones"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
):
    """Transcribe a melody recording to quantized notes and MIDI.

    **Examples:**

        melody-scribe transcribe humming.wav

        melody-scribe transcribe take2.mp3 -o take2.mid -q eighth -k auto
    """
    from .processing import Quantizer, group_into_measures, snap_to_key, transpose
    from .output import MIDIExporter

    if output is None:
        output = input_file.with_suffix(".transcribed.mid" if input_file.suffix.lower() in MIDI_SUFFIXES else ".mid")

    timings = StageTimings()
    try:
        notes, detected_tempo, confidence = _load_melody(input_file, snap, merge_gap, timings)
        if tempo <= 0:
            tempo = detected_tempo

        notes = transpose(notes, semitones)
        key, minor = _resolve_key(key, minor, notes)
        if snap_key:
            notes = snap_to_key(notes, key, minor)

        quantizer = Quantizer(
            tempo=tempo, min_quantization=quantization, key_signature=key, is_minor=minor
        )
        measures = group_into_measures(quantizer.quantize(notes), beats_per_measure)

        if not json_output:
            console.print(f"[blue]Exporting to:[/blue] {output}")
        MIDIExporter(tempo=tempo, beats_per_measure=beats_per_measure).export(notes, str(output))
    except MelodyScribeError as exc:
        _fail(str(exc))

    if json_output:
        console.print_json(data={
            "input": str(input_file),
            "output": str(output),
            "notes_count": len(notes),
            "tempo": tempo,
            "tempo_confidence": confidence,
            "key": key,
            "minor": minor,
            "measures": [
                [
                    {
                        "note": n.note_name,
                        "duration": n.duration.value,
                        "start_beat": n.start_beat,
                    }
                    for n in measure
                ]
                for measure in measures
            ],
            "timings": timings.to_dict(),
        })
        return

    _show_measures_table(measures, f"{key} {'minor' if minor else 'major'}")
    if verbose:
        _show_notes_table(notes)
        timings.print_summary()
    console.print("[green]Transcription complete![/green]")


@app.command()
def harmonize(
    input_file: Path = typer.Argument(..., help="Melody as MIDI or audio file"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output MIDI file path"
    ),
    style: str = typer.Option(
        "thirds-above", "-s", "--style",
        help="thirds-above/below, sixths-above/below, power-fifths, triads, four-part, octave-double, parallel-thirds-sixths",
    ),
    key: str = typer.Option("C", "-k", "--key", help="Key root, or 'auto'"),
    minor: bool = typer.Option(False, "-m", "--minor", help="Minor key"),
    chords: Optional[str] = typer.Option(
        None, "-c", "--chords", help="Chord progression, one symbol per measure (e.g. 'C Am F G')"
    ),
    suggest: bool = typer.Option(
        False, "--suggest", help="Harmonize against suggested chords and add a chord track"
    ),
    beats_per_measure: int = typer.Option(
        DEFAULT_BEATS_PER_MEASURE, "-b", "--beats", help="Beats per measure"
    ),
    tempo: float = typer.Option(
        0.0, "-t", "--tempo", help="Override tempo (BPM). 0 = from input"
    ),
    snap_key: bool = typer.Option(
        False, "--snap-to-key", help="Move out-of-scale notes to the nearest scale tone"
    ),
    semitones: int = typer.Option(
        0, "--transpose", help="Transpose the melody by this many semitones"
    ),
):
    """Generate harmony voices for a melody and write a multi-track MIDI file.

    **Examples:**

        melody-scribe harmonize tune.mid -s four-part -k G

        melody-scribe harmonize tune.mid -s thirds-below -c "C Am F G"
    """
    import math
    from .inference import Harmonizer, parse_chord, recalculate_durations, suggest_chords
    from .output import MIDIExporter
    from .processing import snap_to_key, transpose

    if output is None:
        output = input_file.with_suffix(".harmony.mid")

    try:
        notes, detected_tempo, _ = _load_melody(input_file)
        if tempo <= 0:
            tempo = detected_tempo
        if not notes:
            _fail("No melody notes found")

        notes = transpose(notes, semitones)
        key, minor = _resolve_key(key, minor, notes)
        if snap_key:
            notes = snap_to_key(notes, key, minor)
        total_beats = math.ceil(notes[-1].end_time * tempo / 60.0)

        progression = []
        if chords:
            progression = [
                parse_chord(symbol, start_beat=i * beats_per_measure)
                for i, symbol in enumerate(chords.split())
            ]
        elif suggest:
            progression = suggest_chords(notes, key, minor, beats_per_measure, tempo)
        progression = recalculate_durations(progression, total_beats, beats_per_measure)

        voices = Harmonizer().generate(notes, style, key, minor, progression, tempo)
        console.print(f"[blue]Generated {len(voices)} voice(s):[/blue] " + ", ".join(v.name for v in voices))
        if progression:
            _show_chords_table(progression, key, minor)

        console.print(f"[blue]Exporting to:[/blue] {output}")
        MIDIExporter(tempo=tempo, beats_per_measure=beats_per_measure).export(
            notes, str(output), voices=voices, chords=progression
        )
    except MelodyScribeError as exc:
        _fail(str(exc))

    console.print("[green]Harmonization complete![/green]")


@app.command(name="chords")
def chords_command(
    input_file: Path = typer.Argument(..., help="Melody as MIDI or audio file"),
    key: str = typer.Option("auto", "-k", "--key", help="Key root, or 'auto'"),
    minor: bool = typer.Option(False, "-m", "--minor", help="Minor key"),
    beats_per_measure: int = typer.Option(
        DEFAULT_BEATS_PER_MEASURE, "-b", "--beats", help="Beats per measure"
    ),
):
    """Suggest one diatonic chord per measure for a melody."""
    import math
    from .inference import recalculate_durations, suggest_chords

    try:
        notes, tempo, _ = _load_melody(input_file)
        key, minor = _resolve_key(key, minor, notes)
        suggestions = suggest_chords(notes, key, minor, beats_per_measure, tempo)
        total_beats = math.ceil(notes[-1].end_time * tempo / 60.0) if notes else 0
        suggestions = recalculate_durations(suggestions, total_beats, beats_per_measure)
    except MelodyScribeError as exc:
        _fail(str(exc))

    if not suggestions:
        console.print("[yellow]No chords suggested (no notes found)[/yellow]")
        return
    _show_chords_table(suggestions, key, minor)


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input audio file"),
):
    """Show information about an audio file."""
    from .input import AudioLoader
    from .analysis import OnsetDetector, TempoAnalyzer, DynamicsAnalyzer

    try:
        decoded = AudioLoader().load(input_file)
    except MelodyScribeError as exc:
        _fail(str(exc))

    console.print(f"\n[bold]Audio Info:[/bold] {input_file.name}")
    console.print(f"  Duration: {decoded.duration:.2f} seconds")
    console.print(f"  Sample rate: {decoded.sample_rate} Hz")
    console.print(f"  Samples: {len(decoded.samples):,}")

    onsets = OnsetDetector().detect(decoded.samples, decoded.sample_rate)
    console.print(f"  Onsets: {len(onsets)}")

    tempo = TempoAnalyzer().analyze(onsets)
    console.print(f"  Estimated tempo: {tempo.bpm:.1f} BPM (confidence: {tempo.confidence:.2f})")
    if tempo.alternative_bpms:
        console.print("  Alternatives: " + ", ".join(f"{b:.0f}" for b in tempo.alternative_bpms))

    dynamics = DynamicsAnalyzer().analyze(decoded.samples, onsets, decoded.duration, decoded.sample_rate)
    console.print(
        f"  Dynamic range: {dynamics.global_dynamic_range_db:.1f} dB, "
        f"average velocity {dynamics.average_velocity}"
    )


def _show_measures_table(measures, key_name: str = ""):
    """Display quantized measures in a table."""
    table = Table(title=f"Measures ({key_name})" if key_name else "Measures")
    table.add_column("#", style="cyan")
    table.add_column("Notes", style="green")

    for index, measure in enumerate(measures, start=1):
        cells = [f"{n.note_name} {n.duration.value}@{n.start_beat:g}" for n in measure]
        table.add_row(str(index), "  ".join(cells) if cells else "[dim]rest[/dim]")

    console.print(table)


def _show_notes_table(notes):
    """Display notes in a table."""
    table = Table(title="Detected Notes")
    table.add_column("Pitch", style="cyan")
    table.add_column("Onset (s)", style="green")
    table.add_column("Duration (s)", style="yellow")
    table.add_column("Velocity", style="magenta")
    table.add_column("Cents", style="blue")

    for note in notes:
        table.add_row(
            note.pitch_name,
            f"{note.start_time:.3f}",
            f"{note.duration:.3f}",
            str(note.velocity),
            f"{note.cents_deviation:+.0f}" if note.cents_deviation is not None else "",
        )

    console.print(table)


def _show_chords_table(chords, key, is_minor):
    """Display chords in a table."""
    table = Table(title="Chords")
    table.add_column("Chord", style="cyan")
    table.add_column("Roman", style="green")
    table.add_column("Beats", style="yellow")

    for chord in chords:
        table.add_row(
            chord.symbol(key),
            chord.roman_numeral(key, is_minor),
            f"{chord.start_beat:g}-{chord.end_beat:g}",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
