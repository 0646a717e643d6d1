"""Chords - chord model, voicing, symbols and melody-driven suggestion.

A chord is a root pitch class plus a triad quality, optionally extended by a
seventh, upper extensions and altered tones. Chord progressions are beat
positioned and tile their timeline: every chord lasts until the next one
starts (see :func:`recalculate_durations`).
"""

import math
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..core import NoteEvent, midi_to_freq
from ..core.constants import DEFAULT_BEATS_PER_MEASURE, DEFAULT_TEMPO
from ..core.errors import ConfigurationError
from .key import KEY_ROOTS, get_scale_notes, parse_key, pitch_class_name


class TriadQuality(str, Enum):
    MAJOR = "major"
    MINOR = "minor"
    DIMINISHED = "diminished"
    AUGMENTED = "augmented"
    SUS2 = "sus2"
    SUS4 = "sus4"
    POWER = "power"


class SeventhType(str, Enum):
    MAJOR7 = "major7"
    MINOR7 = "minor7"
    DOMINANT7 = "dominant7"
    DIMINISHED7 = "diminished7"


class ChordExtension(str, Enum):
    ADD9 = "add9"
    ADD11 = "add11"
    ADD13 = "add13"
    NINTH = "9"
    ELEVENTH = "11"
    THIRTEENTH = "13"


class ChordAlteration(str, Enum):
    FLAT5 = "b5"
    SHARP5 = "#5"
    FLAT9 = "b9"
    SHARP9 = "#9"
    SHARP11 = "#11"
    FLAT13 = "b13"


# Semitones from the root
TRIAD_INTERVALS: Dict[TriadQuality, Tuple[int, ...]] = {
    TriadQuality.MAJOR: (0, 4, 7),
    TriadQuality.MINOR: (0, 3, 7),
    TriadQuality.DIMINISHED: (0, 3, 6),
    TriadQuality.AUGMENTED: (0, 4, 8),
    TriadQuality.SUS2: (0, 2, 7),
    TriadQuality.SUS4: (0, 5, 7),
    TriadQuality.POWER: (0, 7),
}

SEVENTH_INTERVALS: Dict[SeventhType, int] = {
    SeventhType.MAJOR7: 11,
    SeventhType.MINOR7: 10,
    SeventhType.DOMINANT7: 10,
    SeventhType.DIMINISHED7: 9,
}

EXTENSION_INTERVALS: Dict[ChordExtension, int] = {
    ChordExtension.ADD9: 14,
    ChordExtension.ADD11: 17,
    ChordExtension.ADD13: 21,
    ChordExtension.NINTH: 14,
    ChordExtension.ELEVENTH: 17,
    ChordExtension.THIRTEENTH: 21,
}

# (natural interval replaced, semitone offset)
ALTERATION_INTERVALS: Dict[ChordAlteration, Tuple[int, int]] = {
    ChordAlteration.FLAT5: (7, -1),
    ChordAlteration.SHARP5: (7, 1),
    ChordAlteration.FLAT9: (14, -1),
    ChordAlteration.SHARP9: (14, 1),
    ChordAlteration.SHARP11: (17, 1),
    ChordAlteration.FLAT13: (21, -1),
}

TRIAD_SUFFIX: Dict[TriadQuality, str] = {
    TriadQuality.MAJOR: "",
    TriadQuality.MINOR: "m",
    TriadQuality.DIMINISHED: "dim",
    TriadQuality.AUGMENTED: "aug",
    TriadQuality.SUS2: "sus2",
    TriadQuality.SUS4: "sus4",
    TriadQuality.POWER: "5",
}

SEVENTH_SUFFIX: Dict[SeventhType, str] = {
    SeventhType.MAJOR7: "maj7",
    SeventhType.MINOR7: "7",
    SeventhType.DOMINANT7: "7",
    SeventhType.DIMINISHED7: "7",
}

# Full extensions imply the tones below them
FULL_EXTENSIONS = (ChordExtension.NINTH, ChordExtension.ELEVENTH, ChordExtension.THIRTEENTH)


@dataclass(frozen=True)
class ChordEvent:
    """A chord placed on the beat timeline."""

    root: int  # pitch class 0-11
    triad: TriadQuality = TriadQuality.MAJOR
    start_beat: float = 0.0
    duration_beats: float = DEFAULT_BEATS_PER_MEASURE
    seventh: Optional[SeventhType] = None
    extensions: Tuple[ChordExtension, ...] = ()
    alterations: Tuple[ChordAlteration, ...] = ()
    inversion: int = 0
    bass: Optional[int] = None  # slash-chord bass pitch class

    @property
    def end_beat(self) -> float:
        return self.start_beat + self.duration_beats

    @property
    def pitch_classes(self) -> List[int]:
        """Pitch classes sounded by the chord (bass included)."""
        classes = {(self.root + i) % 12 for i in get_chord_intervals(self)}
        if self.bass is not None:
            classes.add(self.bass % 12)
        return sorted(classes)

    def symbol(self, key: str = "C") -> str:
        return chord_symbol(self, key)

    def roman_numeral(self, key: str, is_minor: bool = False) -> str:
        """
        Roman numeral of the chord in a key (e.g. "IV", "ii7", "vii°").

        Non-diatonic roots are returned as the chord symbol in parentheses.
        """
        interval = (self.root - parse_key(key)) % 12
        if is_minor:
            degree_map = {0: 1, 2: 2, 3: 3, 5: 4, 7: 5, 8: 6, 10: 7}
        else:
            degree_map = {0: 1, 2: 2, 4: 3, 5: 4, 7: 5, 9: 6, 11: 7}

        degree = degree_map.get(interval, 0)
        if degree == 0:
            return f"({self.symbol(key)})"

        numerals = ["", "I", "II", "III", "IV", "V", "VI", "VII"]
        numeral = numerals[degree]

        # Lowercase for minor chords
        if self.triad in (TriadQuality.MINOR, TriadQuality.DIMINISHED):
            numeral = numeral.lower()

        if self.seventh is not None:
            numeral += "7"
        if self.triad == TriadQuality.DIMINISHED:
            numeral += "°"
        elif self.triad == TriadQuality.AUGMENTED:
            numeral += "+"

        return numeral


def get_chord_intervals(chord: ChordEvent) -> List[int]:
    """All intervals (semitones above the root) sounded by ``chord``."""
    intervals = set(TRIAD_INTERVALS[chord.triad])

    if chord.seventh is not None:
        intervals.add(SEVENTH_INTERVALS[chord.seventh])

    for extension in chord.extensions:
        intervals.add(EXTENSION_INTERVALS[extension])
        if extension in FULL_EXTENSIONS and chord.seventh is None:
            intervals.add(SEVENTH_INTERVALS[SeventhType.DOMINANT7])
        if extension in (ChordExtension.ELEVENTH, ChordExtension.THIRTEENTH):
            intervals.add(14)
        if extension == ChordExtension.THIRTEENTH:
            intervals.add(17)

    for alteration in chord.alterations:
        base, offset = ALTERATION_INTERVALS[alteration]
        intervals.discard(base)
        intervals.add(base + offset)

    return sorted(intervals)


def chord_to_midi(chord: ChordEvent, base_octave: int = 3) -> List[int]:
    """
    Voice a chord as MIDI pitches in close position.

    The root sits in ``base_octave`` (C3 = 48 for octave 3). Inversions move
    the lowest tones up an octave; a slash bass is placed an octave lower and
    tones within a whole step above it are dropped.
    """
    base_midi = 12 + base_octave * 12 + chord.root
    pitches = [base_midi + i for i in get_chord_intervals(chord)]

    if chord.inversion > 0:
        for i in range(min(chord.inversion, len(pitches) - 1)):
            pitches[i] += 12
        pitches.sort()

    if chord.bass is not None:
        bass_midi = 12 + (base_octave - 1) * 12 + chord.bass
        pitches = [bass_midi] + [p for p in pitches if p > bass_midi + 2]

    return pitches


def chord_to_note_events(
    chord: ChordEvent,
    tempo: float = DEFAULT_TEMPO,
    base_octave: int = 3,
    velocity: int = 70,
) -> List[NoteEvent]:
    """Render a chord as simultaneous notes in seconds."""
    seconds_per_beat = 60.0 / tempo
    start_time = chord.start_beat * seconds_per_beat
    duration = chord.duration_beats * seconds_per_beat
    return [
        NoteEvent(
            midi=midi,
            frequency=midi_to_freq(midi),
            start_time=start_time,
            duration=duration,
            velocity=velocity,
        )
        for midi in chord_to_midi(chord, base_octave)
    ]


def chord_symbol(chord: ChordEvent, key: str = "C") -> str:
    """Display symbol such as ``"Am7"``, ``"Bbmaj9"`` or ``"G7(b9)/B"``."""
    root = pitch_class_name(chord.root, key)
    triad = TRIAD_SUFFIX[chord.triad]
    seventh = SEVENTH_SUFFIX[chord.seventh] if chord.seventh is not None else ""

    if chord.triad == TriadQuality.DIMINISHED and chord.seventh == SeventhType.MINOR7:
        triad, seventh = "m", "7b5"

    full = [e for e in chord.extensions if e in FULL_EXTENSIONS]
    if full:
        highest = max(full, key=lambda e: EXTENSION_INTERVALS[e]).value
        seventh = seventh[:-1] + highest if seventh.endswith("7") else highest

    if chord.triad in (TriadQuality.SUS2, TriadQuality.SUS4):
        suffix = seventh + triad
    else:
        suffix = triad + seventh

    suffix += "".join(e.value for e in chord.extensions if e not in FULL_EXTENSIONS)
    if chord.alterations:
        suffix += "(" + ",".join(a.value for a in chord.alterations) + ")"

    symbol = root + suffix
    if chord.bass is not None and chord.bass != chord.root:
        symbol += "/" + pitch_class_name(chord.bass, key)
    return symbol


# Symbol suffix -> (triad, seventh, extensions)
CHORD_SUFFIXES: Dict[str, Tuple[TriadQuality, Optional[SeventhType], Tuple[ChordExtension, ...]]] = {
    "": (TriadQuality.MAJOR, None, ()),
    "m": (TriadQuality.MINOR, None, ()),
    "min": (TriadQuality.MINOR, None, ()),
    "dim": (TriadQuality.DIMINISHED, None, ()),
    "aug": (TriadQuality.AUGMENTED, None, ()),
    "+": (TriadQuality.AUGMENTED, None, ()),
    "sus2": (TriadQuality.SUS2, None, ()),
    "sus4": (TriadQuality.SUS4, None, ()),
    "5": (TriadQuality.POWER, None, ()),
    "maj7": (TriadQuality.MAJOR, SeventhType.MAJOR7, ()),
    "m7": (TriadQuality.MINOR, SeventhType.MINOR7, ()),
    "7": (TriadQuality.MAJOR, SeventhType.DOMINANT7, ()),
    "m7b5": (TriadQuality.DIMINISHED, SeventhType.MINOR7, ()),
    "dim7": (TriadQuality.DIMINISHED, SeventhType.DIMINISHED7, ()),
    "7sus4": (TriadQuality.SUS4, SeventhType.DOMINANT7, ()),
    "add9": (TriadQuality.MAJOR, None, (ChordExtension.ADD9,)),
    "madd9": (TriadQuality.MINOR, None, (ChordExtension.ADD9,)),
    "9": (TriadQuality.MAJOR, SeventhType.DOMINANT7, (ChordExtension.NINTH,)),
    "maj9": (TriadQuality.MAJOR, SeventhType.MAJOR7, (ChordExtension.NINTH,)),
    "m9": (TriadQuality.MINOR, SeventhType.MINOR7, (ChordExtension.NINTH,)),
    "11": (TriadQuality.MAJOR, SeventhType.DOMINANT7, (ChordExtension.ELEVENTH,)),
    "13": (TriadQuality.MAJOR, SeventhType.DOMINANT7, (ChordExtension.THIRTEENTH,)),
}

_SYMBOL_RE = re.compile(r"^([A-G][#b]?)([^/]*)(?:/([A-G][#b]?))?$")


def parse_chord(symbol: str, start_beat: float = 0.0, duration_beats: float = DEFAULT_BEATS_PER_MEASURE) -> ChordEvent:
    """
    Parse a chord symbol such as ``"Am"``, ``"G7"`` or ``"C/E"``.

    Raises:
        ConfigurationError: If the symbol is not recognised
    """
    match = _SYMBOL_RE.match(symbol.strip())
    if match is None or match.group(2) not in CHORD_SUFFIXES:
        raise ConfigurationError("chord", symbol, "expected a symbol like 'C', 'Am', 'G7' or 'C/E'")

    root, suffix, bass = match.groups()
    triad, seventh, extensions = CHORD_SUFFIXES[suffix]
    return ChordEvent(
        root=KEY_ROOTS[root],
        triad=triad,
        seventh=seventh,
        extensions=extensions,
        start_beat=start_beat,
        duration_beats=duration_beats,
        bass=KEY_ROOTS[bass] if bass else None,
    )


def chord_fits_key(chord: ChordEvent, key: str, is_minor: bool = False) -> bool:
    """True when at least three of the chord's first four tones are in the scale."""
    scale = set(get_scale_notes(key, is_minor))
    intervals = get_chord_intervals(chord)
    in_scale = sum(1 for i in intervals[:4] if (chord.root + i) % 12 in scale)
    return in_scale >= min(3, len(intervals))


# (semitones above tonic, triad quality, seventh) of each diatonic chord
MAJOR_SCALE_CHORDS: Tuple[Tuple[int, TriadQuality, SeventhType], ...] = (
    (0, TriadQuality.MAJOR, SeventhType.MAJOR7),  # I
    (2, TriadQuality.MINOR, SeventhType.MINOR7),  # ii
    (4, TriadQuality.MINOR, SeventhType.MINOR7),  # iii
    (5, TriadQuality.MAJOR, SeventhType.MAJOR7),  # IV
    (7, TriadQuality.MAJOR, SeventhType.DOMINANT7),  # V
    (9, TriadQuality.MINOR, SeventhType.MINOR7),  # vi
    (11, TriadQuality.DIMINISHED, SeventhType.MINOR7),  # vii°
)

MINOR_SCALE_CHORDS: Tuple[Tuple[int, TriadQuality, SeventhType], ...] = (
    (0, TriadQuality.MINOR, SeventhType.MINOR7),  # i
    (2, TriadQuality.DIMINISHED, SeventhType.MINOR7),  # ii°
    (3, TriadQuality.MAJOR, SeventhType.MAJOR7),  # III
    (5, TriadQuality.MINOR, SeventhType.MINOR7),  # iv
    (7, TriadQuality.MAJOR, SeventhType.DOMINANT7),  # V (harmonic minor)
    (8, TriadQuality.MAJOR, SeventhType.MAJOR7),  # VI
    (10, TriadQuality.MAJOR, SeventhType.DOMINANT7),  # VII
)


def suggest_chords(
    melody: Sequence[NoteEvent],
    key: str = "C",
    is_minor: bool = False,
    beats_per_measure: int = DEFAULT_BEATS_PER_MEASURE,
    tempo: float = DEFAULT_TEMPO,
) -> List[ChordEvent]:
    """
    Suggest one diatonic triad per measure for a melody.

    Each diatonic triad scores one point per melody pitch class it contains,
    plus 0.5 when its root is sounded. Measures without notes are skipped.
    Durations are one measure each; run :func:`recalculate_durations` to make
    the result tile the timeline.

    Raises:
        ConfigurationError: For an unknown key or non-positive tempo/meter
    """
    key_root = parse_key(key)
    if tempo <= 0:
        raise ConfigurationError("tempo", tempo, "must be positive")
    if beats_per_measure <= 0:
        raise ConfigurationError("beats_per_measure", beats_per_measure, "must be positive")
    if not melody:
        return []

    seconds_per_beat = 60.0 / tempo
    last = melody[-1]
    total_beats = math.ceil(last.end_time / seconds_per_beat)
    scale_chords = MINOR_SCALE_CHORDS if is_minor else MAJOR_SCALE_CHORDS

    suggestions = []
    for beat in range(0, total_beats, beats_per_measure):
        window_start = beat * seconds_per_beat
        window_end = (beat + beats_per_measure) * seconds_per_beat
        sounding = {
            n.pitch_class for n in melody
            if n.start_time < window_end and n.end_time > window_start
        }
        if not sounding:
            continue

        best = None
        best_score = -1.0
        for degree, triad, _ in scale_chords:
            chord_root = (key_root + degree) % 12
            chord_pitches = {(chord_root + i) % 12 for i in TRIAD_INTERVALS[triad]}
            score = float(len(sounding & chord_pitches))
            if chord_root in sounding:
                score += 0.5
            if score > best_score:
                best, best_score = (chord_root, triad), score

        if best is not None and best_score > 0:
            suggestions.append(ChordEvent(
                root=best[0],
                triad=best[1],
                start_beat=float(beat),
                duration_beats=float(beats_per_measure),
            ))

    return suggestions


def recalculate_durations(
    chords: Sequence[ChordEvent],
    total_beats: float,
    beats_per_measure: int = DEFAULT_BEATS_PER_MEASURE,
) -> List[ChordEvent]:
    """
    Sort chords and stretch each one to the start of the next.

    The last chord ends at ``total_beats`` or one measure after its start,
    whichever is later, so the progression covers the whole piece. When two
    chords start on the same beat the one given later replaces the other.
    """
    by_start: Dict[float, ChordEvent] = {}
    for chord in chords:
        by_start[chord.start_beat] = chord
    ordered = sorted(by_start.values(), key=lambda c: c.start_beat)
    result = []
    for i, chord in enumerate(ordered):
        if i < len(ordered) - 1:
            end = ordered[i + 1].start_beat
        else:
            end = max(total_beats, chord.start_beat + beats_per_measure)
        result.append(replace(chord, duration_beats=end - chord.start_beat))
    return result


def chord_at_beat(chords: Sequence[ChordEvent], beat: float) -> Optional[ChordEvent]:
    """The chord sounding at ``beat``, if any."""
    for chord in chords:
        if chord.start_beat <= beat < chord.end_beat:
            return chord
    return None
