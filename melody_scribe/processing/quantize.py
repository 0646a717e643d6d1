"""Note quantization - Map notes in seconds onto rhythmic note values."""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..core import NoteEvent, midi_to_note_name
from ..core.constants import DEFAULT_BEATS_PER_MEASURE
from ..core.errors import ConfigurationError
from ..inference.key import KEY_ROOTS, spelling_key


class NoteDuration(str, Enum):
    """Written note values, longest first."""

    WHOLE_DOTTED = "whole-dotted"
    WHOLE = "whole"
    HALF_DOTTED = "half-dotted"
    HALF = "half"
    QUARTER_DOTTED = "quarter-dotted"
    QUARTER = "quarter"
    EIGHTH_DOTTED = "eighth-dotted"
    EIGHTH = "eighth"
    SIXTEENTH = "sixteenth"

    @property
    def beats(self) -> float:
        return DURATION_VALUES[self]

    @property
    def base(self) -> "NoteDuration":
        """The undotted value (``QUARTER`` for ``QUARTER_DOTTED``)."""
        return NoteDuration(self.value.replace("-dotted", ""))


# Duration values in beats
DURATION_VALUES: Dict[NoteDuration, float] = {
    NoteDuration.WHOLE_DOTTED: 6.0,
    NoteDuration.WHOLE: 4.0,
    NoteDuration.HALF_DOTTED: 3.0,
    NoteDuration.HALF: 2.0,
    NoteDuration.QUARTER_DOTTED: 1.5,
    NoteDuration.QUARTER: 1.0,
    NoteDuration.EIGHTH_DOTTED: 0.75,
    NoteDuration.EIGHTH: 0.5,
    NoteDuration.SIXTEENTH: 0.25,
}

DURATION_ORDER: Tuple[NoteDuration, ...] = tuple(NoteDuration)

# Index into DURATION_ORDER of the finest value allowed by each resolution
MIN_QUANT_INDEX: Dict[NoteDuration, int] = {
    NoteDuration.WHOLE: 1,
    NoteDuration.HALF: 3,
    NoteDuration.QUARTER: 5,
    NoteDuration.EIGHTH: 7,
    NoteDuration.SIXTEENTH: 8,
}


@dataclass(frozen=True)
class QuantizedNote:
    """A note placed on the beat grid."""

    midi: int
    note_name: str  # spelled for the key, e.g. "Bb4"
    duration: NoteDuration
    duration_beats: float
    start_beat: float  # relative to its measure after grouping


def parse_duration(value) -> NoteDuration:
    """Coerce a string such as ``"eighth"`` to a NoteDuration.

    Raises:
        ConfigurationError: If the value is not one of the nine note values
    """
    if isinstance(value, NoteDuration):
        return value
    try:
        return NoteDuration(value)
    except ValueError:
        raise ConfigurationError(
            "min_quantization", value,
            "expected one of " + ", ".join(d.value for d in NoteDuration),
        ) from None


class Quantizer:
    """Quantize note timings to a rhythmic grid."""

    def __init__(
        self,
        tempo: float = 120.0,
        min_quantization="sixteenth",
        key_signature: Optional[str] = None,
        is_minor: bool = False,
    ):
        """
        Initialize Quantizer.

        Args:
            tempo: Tempo in BPM
            min_quantization: Finest note value allowed; also sets the start grid
            key_signature: Key root used to spell note names (flats in flat keys)
            is_minor: Spell with the relative major signature of a minor key

        Raises:
            ConfigurationError: For a non-positive tempo, an unknown note value
                or an unknown key
        """
        if tempo <= 0:
            raise ConfigurationError("tempo", tempo, "must be positive")
        if key_signature is not None and key_signature not in KEY_ROOTS:
            raise ConfigurationError("key_signature", key_signature)

        self.tempo = tempo
        self.min_quantization = parse_duration(min_quantization)
        self.key_signature = key_signature
        self.is_minor = is_minor
        self._spelling = spelling_key(key_signature, is_minor) if key_signature else None

    @property
    def beat_duration(self) -> float:
        """Duration of one beat in seconds."""
        return 60.0 / self.tempo

    @property
    def grid(self) -> float:
        """Start-time grid in beats: the undotted value of the resolution."""
        return DURATION_VALUES[self.min_quantization.base]

    @property
    def allowed_durations(self) -> Tuple[NoteDuration, ...]:
        """Note values from whole-dotted down to the resolution."""
        return DURATION_ORDER[: MIN_QUANT_INDEX[self.min_quantization.base] + 1]

    def quantize(self, notes: Sequence[NoteEvent]) -> List[QuantizedNote]:
        """
        Quantize note starts and durations.

        Args:
            notes: Notes in seconds

        Returns:
            One QuantizedNote per input note, start beats absolute
        """
        quantized = []
        for note in notes:
            start_beat = note.start_time / self.beat_duration
            duration_beats = note.duration / self.beat_duration
            duration = self.best_duration(duration_beats)

            quantized.append(
                QuantizedNote(
                    midi=note.midi,
                    note_name=midi_to_note_name(note.midi, self._spelling),
                    duration=duration,
                    duration_beats=duration.beats,
                    start_beat=self._snap_to_grid(start_beat),
                )
            )

        return quantized

    def best_duration(self, beats: float) -> NoteDuration:
        """
        Closest allowed note value to ``beats``.

        Candidates are scored by |1 - beats/candidate|; a candidate that would
        stretch the note by more than ~43% (ratio < 0.7) is penalised by 0.3,
        so ties lean towards the longer value.
        """
        allowed = self.allowed_durations
        if beats < 0.2:
            return allowed[-1]
        if beats > 6.5:
            return NoteDuration.WHOLE_DOTTED

        best = NoteDuration.QUARTER
        best_score = math.inf
        for candidate in allowed:
            ratio = beats / candidate.beats
            score = abs(1 - ratio)
            if ratio < 0.7:
                score += 0.3
            if score < best_score:
                best, best_score = candidate, score
        return best

    def _snap_to_grid(self, beat: float) -> float:
        """Snap a beat position to the nearest grid line."""
        # Halves round up
        return math.floor(beat / self.grid + 0.5) * self.grid


def group_into_measures(
    notes: Sequence[QuantizedNote],
    beats_per_measure: int = DEFAULT_BEATS_PER_MEASURE,
) -> List[List[QuantizedNote]]:
    """
    Bucket quantized notes into measures.

    Notes go to measure ``floor(start_beat / beats_per_measure)``; measures in
    between that hold no note are kept as empty lists. Start beats are
    rewritten relative to the measure start.

    Raises:
        ConfigurationError: If beats_per_measure is not positive
    """
    if beats_per_measure <= 0:
        raise ConfigurationError("beats_per_measure", beats_per_measure, "must be positive")
    if not notes:
        return []

    measures: List[List[QuantizedNote]] = []
    for note in notes:
        index = int(math.floor(note.start_beat / beats_per_measure))
        while len(measures) <= index:
            measures.append([])
        measures[index].append(
            replace(note, start_beat=note.start_beat - index * beats_per_measure)
        )

    return measures
