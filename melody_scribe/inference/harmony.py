"""Harmony generation - rule-based extra voices for a melody.

Diatonic styles place each harmony note a fixed number of scale steps from
the melody and then choose its octave with counterpoint heuristics (avoid
parallel fifths/octaves and voice crossing, prefer contrary and stepwise
motion). Chromatic styles (power fifths, octave doubling) shift by a fixed
number of semitones; parallel motion is the intended sound there.

When a chord progression is supplied, tones are instead chosen from the
chord sounding under each melody note.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core import NoteEvent, sort_notes
from ..core.constants import DEFAULT_TEMPO, MIDI_MAX, MIDI_MIN
from ..core.errors import ConfigurationError
from .chords import ChordEvent, chord_at_beat, chord_to_note_events
from .key import parse_key, scale_degree, scale_intervals


class HarmonyStyle(str, Enum):
    THIRDS_ABOVE = "thirds-above"
    THIRDS_BELOW = "thirds-below"
    SIXTHS_ABOVE = "sixths-above"
    SIXTHS_BELOW = "sixths-below"
    POWER_FIFTHS = "power-fifths"
    TRIADS = "triads"
    FOUR_PART = "four-part"
    OCTAVE_DOUBLE = "octave-double"
    PARALLEL_THIRDS_SIXTHS = "parallel-thirds-sixths"


@dataclass
class HarmonyVoice:
    """One generated voice."""

    name: str
    notes: List[NoteEvent] = field(default_factory=list)
    color: str = "#10b981"  # display only


# Voice ranges (MIDI numbers)
VOICE_RANGES: Dict[str, Tuple[int, int]] = {
    "soprano": (60, 84),  # C4-C6
    "alto": (53, 77),  # F3-F5
    "tenor": (48, 72),  # C3-C5
    "bass": (40, 64),  # E2-E4
}
RANGE_ABOVE = (48, 96)
RANGE_BELOW = (36, 84)

# (name, scale steps, color) per voice; steps are diatonic, negative = below
DIATONIC_VOICES: Dict[HarmonyStyle, Tuple[Tuple[str, int, str], ...]] = {
    HarmonyStyle.THIRDS_ABOVE: (("Voice 2 - Upper Third", 2, "#10b981"),),
    HarmonyStyle.THIRDS_BELOW: (("Voice 2 - Lower Third", -2, "#f59e0b"),),
    HarmonyStyle.SIXTHS_ABOVE: (("Voice 2 - Upper Sixth", 5, "#8b5cf6"),),
    HarmonyStyle.SIXTHS_BELOW: (("Voice 2 - Lower Sixth", -5, "#ec4899"),),
    HarmonyStyle.TRIADS: (
        ("Voice 2 - Third", 2, "#10b981"),
        ("Voice 3 - Fifth", 4, "#8b5cf6"),
    ),
    HarmonyStyle.PARALLEL_THIRDS_SIXTHS: (
        ("Voice 2 - Upper Third", 2, "#10b981"),
        ("Voice 3 - Lower Sixth", -5, "#f59e0b"),
    ),
}

# (name, semitones, color) per voice
CHROMATIC_VOICES: Dict[HarmonyStyle, Tuple[Tuple[str, int, str], ...]] = {
    HarmonyStyle.POWER_FIFTHS: (("Voice 2 - Power Fifth", 7, "#ef4444"),),
    HarmonyStyle.OCTAVE_DOUBLE: (
        ("Voice 2 - Octave Up", 12, "#10b981"),
        ("Voice 3 - Octave Down", -12, "#f59e0b"),
    ),
}

SATB_VOICES = (("Alto", "#10b981"), ("Tenor", "#f59e0b"), ("Bass", "#8b5cf6"))

# Typical size in semitones of a diatonic interval, used to break ties in
# chord-driven voicing
NOMINAL_SEMITONES = {2: 3.5, 4: 7.0, 5: 8.5}


def parse_style(value) -> HarmonyStyle:
    """Coerce a string such as ``"thirds-above"`` to a HarmonyStyle."""
    if isinstance(value, HarmonyStyle):
        return value
    try:
        return HarmonyStyle(value)
    except ValueError:
        raise ConfigurationError(
            "style", value, "expected one of " + ", ".join(s.value for s in HarmonyStyle)
        ) from None


def has_parallel_perfect(prev_1: int, curr_1: int, prev_2: int, curr_2: int) -> bool:
    """
    True when two voices move in parallel perfect intervals.

    Both the previous and current intervals must be the same unison/octave,
    fifth or fourth (mod 12), and both voices must move in the same direction.
    """
    prev_interval = abs(prev_1 - prev_2) % 12
    curr_interval = abs(curr_1 - curr_2) % 12
    perfect = (0, 5, 7)

    if prev_interval not in perfect or curr_interval not in perfect:
        return False
    if prev_interval != curr_interval:
        return False

    direction_1 = np.sign(curr_1 - prev_1)
    direction_2 = np.sign(curr_2 - prev_2)
    return direction_1 == direction_2 and direction_1 != 0


def constrain_to_range(midi: int, voice_range: Tuple[int, int]) -> int:
    """Fold ``midi`` by octaves into ``voice_range``."""
    low, high = voice_range
    while midi < low:
        midi += 12
    while midi > high:
        midi -= 12
    return midi


def chord_tones(degree: int, key_root: int, is_minor: bool) -> Tuple[int, int, int]:
    """Root, third and fifth pitch classes of the diatonic triad on ``degree``."""
    scale = [(key_root + i) % 12 for i in scale_intervals(is_minor)]
    return scale[degree], scale[(degree + 2) % 7], scale[(degree + 4) % 7]


class Harmonizer:
    """Generate harmony voices for a melody in a key."""

    def __init__(self, prefer_contrary_motion: bool = True):
        self.prefer_contrary_motion = prefer_contrary_motion

    def generate(
        self,
        melody: Sequence[NoteEvent],
        style,
        key: str = "C",
        is_minor: bool = False,
        chords: Optional[Sequence[ChordEvent]] = None,
        tempo: float = DEFAULT_TEMPO,
    ) -> List[HarmonyVoice]:
        """
        Generate the voices of ``style`` for ``melody``.

        Args:
            melody: Melody notes, ordered by start time
            style: HarmonyStyle or its string value
            key: Key root name
            is_minor: Minor (natural) instead of major scale
            chords: Optional progression; when given, tones come from the
                chord sounding under each note
            tempo: BPM used to place notes against chord beats

        Returns:
            One HarmonyVoice per generated voice; notes keep the melody's timing

        Raises:
            ConfigurationError: For an unknown style or key, or a non-positive tempo
        """
        style = parse_style(style)
        key_root = parse_key(key)
        if tempo <= 0:
            raise ConfigurationError("tempo", tempo, "must be positive")

        melody = list(melody)
        chords = list(chords or [])

        if style in CHROMATIC_VOICES:
            return [
                HarmonyVoice(name=name, notes=self.chromatic_voice(melody, semitones), color=color)
                for name, semitones, color in CHROMATIC_VOICES[style]
            ]

        if style == HarmonyStyle.FOUR_PART:
            return self.four_part(melody, key_root, is_minor, chords, tempo)

        voices = []
        for name, steps, color in DIATONIC_VOICES[style]:
            voice_range = RANGE_ABOVE if steps > 0 else RANGE_BELOW
            notes = self.diatonic_voice(melody, steps, voice_range, key_root, is_minor, chords, tempo)
            voices.append(HarmonyVoice(name=name, notes=notes, color=color))
        return voices

    def chromatic_voice(self, melody: Sequence[NoteEvent], semitones: int) -> List[NoteEvent]:
        """Shift every melody note by a fixed number of semitones.

        Shifts that leave the MIDI range fold back by octaves.
        """
        return [
            n.with_midi(constrain_to_range(n.midi + semitones, (MIDI_MIN, MIDI_MAX)))
            for n in melody
        ]

    def diatonic_voice(
        self,
        melody: Sequence[NoteEvent],
        steps: int,
        voice_range: Tuple[int, int],
        key_root: int,
        is_minor: bool,
        chords: Sequence[ChordEvent] = (),
        tempo: float = DEFAULT_TEMPO,
    ) -> List[NoteEvent]:
        """Voice ``steps`` scale steps from the melody, note by note."""
        result: List[NoteEvent] = []
        for i, note in enumerate(melody):
            prev_melody = melody[i - 1].midi if i > 0 else None
            prev_harmony = result[i - 1].midi if i > 0 else None

            chord = self._active_chord(chords, note, tempo)
            if chord is not None:
                midi = self.chord_tone_for(note.midi, chord, steps, voice_range)
            else:
                midi = self.find_best_harmony_note(
                    note.midi, steps, voice_range, prev_melody, prev_harmony, key_root, is_minor
                )
            result.append(note.with_midi(midi))
        return result

    def find_best_harmony_note(
        self,
        melody_note: int,
        steps: int,
        voice_range: Tuple[int, int],
        prev_melody: Optional[int],
        prev_harmony: Optional[int],
        key_root: int,
        is_minor: bool,
    ) -> int:
        """
        Harmony pitch ``steps`` scale steps from ``melody_note``.

        Once a previous melody/harmony pair exists the target and its octave
        transpositions inside ``voice_range`` are scored:

        - -50 for parallel fifths/octaves with the melody
        - -40 for landing on the wrong side of the melody
        - +20 contrary motion, -10 parallel motion
        - +15 stepwise, +5 small leap, -10 leap over a fifth
        - +10 for the untransposed target
        """
        intervals = scale_intervals(is_minor)
        degree = scale_degree(melody_note, key_root, is_minor)

        # Octaves are counted from the key root, anchored on the scale tone
        # the melody note was read as (chromatic notes may sit across it)
        offset = (key_root + intervals[degree] - melody_note) % 12
        if offset > 6:
            offset -= 12
        octave = (melody_note + offset - key_root) // 12

        target_degree = (degree + steps) % 7
        octave_shift = (degree + steps) // 7
        target = key_root + (octave + octave_shift) * 12 + intervals[target_degree]
        target = constrain_to_range(target, voice_range)

        if prev_melody is None or prev_harmony is None:
            return target

        low, high = voice_range
        best, best_score = None, None
        for octave_offset in (-1, 0, 1):
            candidate = target + octave_offset * 12
            if candidate < low or candidate > high:
                continue

            score = 100
            if has_parallel_perfect(prev_melody, melody_note, prev_harmony, candidate):
                score -= 50

            if steps < 0 and candidate > melody_note:
                score -= 40
            if steps > 0 and candidate < melody_note:
                score -= 40

            if self.prefer_contrary_motion:
                melody_direction = np.sign(melody_note - prev_melody)
                harmony_direction = np.sign(candidate - prev_harmony)
                if melody_direction != 0 and harmony_direction != 0:
                    score += 20 if melody_direction != harmony_direction else -10

            motion = abs(candidate - prev_harmony)
            if motion <= 2:
                score += 15
            elif motion <= 4:
                score += 5
            elif motion > 7:
                score -= 10

            if octave_offset == 0:
                score += 10

            # Ties keep the earliest (lowest) candidate
            if best_score is None or score > best_score:
                best, best_score = candidate, score

        return best if best is not None else target

    def chord_tone_for(
        self,
        melody_note: int,
        chord: ChordEvent,
        steps: int,
        voice_range: Tuple[int, int],
    ) -> int:
        """
        Best tone of ``chord`` for a voice ``steps`` scale steps from the melody.

        Chord pitch classes are spread over +/-2 octaves around the melody and
        scored: +50 on the intended side of the melody, +30 for a third to a
        fifth away, +20 for a sixth to an octave, -20 closer than a third and
        -100 for a unison. Ties go to the interval closest to the nominal size.
        """
        low, high = voice_range
        above = steps > 0
        nominal = NOMINAL_SEMITONES.get(abs(steps), 3.5)
        octave = melody_note // 12

        best, best_score = None, None
        for pitch_class in chord.pitch_classes:
            for octave_offset in range(-2, 3):
                candidate = (octave + octave_offset) * 12 + pitch_class
                if candidate < low or candidate > high:
                    continue

                interval = candidate - melody_note
                distance = abs(interval)
                score = 0.0
                if (above and interval > 0) or (not above and interval < 0):
                    score += 50
                if distance == 0:
                    score -= 100
                elif distance <= 2:
                    score -= 20
                elif distance <= 7:
                    score += 30
                elif distance <= 12:
                    score += 20
                score -= 0.1 * abs(distance - nominal)

                if best_score is None or score > best_score:
                    best, best_score = candidate, score

        if best is None:
            # No chord tone fits the range; fold the root in
            return constrain_to_range(octave * 12 + chord.root, voice_range)
        return best

    def four_part(
        self,
        melody: Sequence[NoteEvent],
        key_root: int,
        is_minor: bool,
        chords: Sequence[ChordEvent] = (),
        tempo: float = DEFAULT_TEMPO,
    ) -> List[HarmonyVoice]:
        """
        SATB harmony with the melody as soprano.

        Alto is a third below the soprano, tenor a fifth below, both kept
        under the voice above. The bass takes the chord root below the
        melody and steps away from parallel fifths/octaves with the tenor.
        """
        alto: List[NoteEvent] = []
        tenor: List[NoteEvent] = []
        bass: List[NoteEvent] = []

        for i, note in enumerate(melody):
            soprano = note.midi
            prev_soprano = melody[i - 1].midi if i > 0 else None
            prev_alto = alto[i - 1].midi if i > 0 else None
            prev_tenor = tenor[i - 1].midi if i > 0 else None
            prev_bass = bass[i - 1].midi if i > 0 else None

            chord = self._active_chord(chords, note, tempo)
            if chord is not None:
                alto_note = self.chord_tone_for(soprano, chord, -2, VOICE_RANGES["alto"])
                tenor_note = self.chord_tone_for(soprano, chord, -4, VOICE_RANGES["tenor"])
                root = chord.bass if chord.bass is not None else chord.root
            else:
                alto_note = self.find_best_harmony_note(
                    soprano, -2, VOICE_RANGES["alto"], prev_soprano, prev_alto, key_root, is_minor
                )
                tenor_note = self.find_best_harmony_note(
                    soprano, -4, VOICE_RANGES["tenor"], prev_soprano, prev_tenor, key_root, is_minor
                )
                root = chord_tones(scale_degree(soprano, key_root, is_minor), key_root, is_minor)[0]

            if alto_note > soprano:
                alto_note = constrain_to_range(alto_note - 12, VOICE_RANGES["alto"])
            if tenor_note > alto_note:
                tenor_note = constrain_to_range(tenor_note - 12, VOICE_RANGES["tenor"])
            if alto_note - tenor_note > 12:
                tenor_note = constrain_to_range(tenor_note + 12, VOICE_RANGES["tenor"])

            bass_note = self._bass_note(soprano, root, tenor_note, prev_tenor, prev_bass)

            alto.append(note.with_midi(alto_note))
            tenor.append(note.with_midi(tenor_note))
            bass.append(note.with_midi(bass_note))

        return [
            HarmonyVoice(name=name, notes=notes, color=color)
            for (name, color), notes in zip(SATB_VOICES, (alto, tenor, bass))
        ]

    def _bass_note(
        self,
        soprano: int,
        root: int,
        tenor: int,
        prev_tenor: Optional[int],
        prev_bass: Optional[int],
    ) -> int:
        bass_range = VOICE_RANGES["bass"]

        # Nearest chord root at least an octave under the melody
        bass = soprano - 12
        while bass % 12 != root % 12:
            bass -= 1
        bass = constrain_to_range(bass, bass_range)
        if bass > tenor:
            bass = constrain_to_range(bass - 12, bass_range)

        if prev_bass is not None and prev_tenor is not None:
            if has_parallel_perfect(prev_tenor, tenor, prev_bass, bass):
                low, high = bass_range
                for alternative in (bass + 1, bass - 1, bass + 2, bass - 2):
                    if low <= alternative <= high and not has_parallel_perfect(
                        prev_tenor, tenor, prev_bass, alternative
                    ):
                        bass = alternative
                        break
        return bass

    @staticmethod
    def _active_chord(
        chords: Sequence[ChordEvent],
        note: NoteEvent,
        tempo: float,
    ) -> Optional[ChordEvent]:
        if not chords:
            return None
        return chord_at_beat(chords, note.start_time * tempo / 60.0)


def generate_harmony(
    melody: Sequence[NoteEvent],
    style,
    key: str = "C",
    is_minor: bool = False,
    chords: Optional[Sequence[ChordEvent]] = None,
    tempo: float = DEFAULT_TEMPO,
) -> List[HarmonyVoice]:
    """Functional shortcut for ``Harmonizer().generate(...)``."""
    return Harmonizer().generate(melody, style, key, is_minor, chords, tempo)


def combine_voices_for_playback(
    melody: Sequence[NoteEvent],
    voices: Sequence[HarmonyVoice],
    chords: Optional[Sequence[ChordEvent]] = None,
    tempo: float = DEFAULT_TEMPO,
    include_melody: bool = True,
) -> List[NoteEvent]:
    """
    Merge melody, harmony voices and rendered chords into one note list.

    Notes are sorted by start time (stable); inputs are left untouched.
    """
    notes: List[NoteEvent] = list(melody) if include_melody else []
    for voice in voices:
        notes.extend(voice.notes)
    for chord in chords or []:
        notes.extend(chord_to_note_events(chord, tempo))
    return sort_notes(notes)
