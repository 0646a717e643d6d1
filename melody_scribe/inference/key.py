"""Keys and scales - tonal context for spelling, chords and harmony.

Also provides a Krumhansl-Schmuckler key detector so a melody can be
harmonized when the caller does not know its key.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..core import NoteEvent, PITCH_NAMES, PITCH_NAMES_FLAT, FLAT_KEYS
from ..core.errors import ConfigurationError


# Note name -> pitch class, enharmonic spellings included
KEY_ROOTS: Dict[str, int] = {
    "C": 0, "C#": 1, "Db": 1,
    "D": 2, "D#": 3, "Eb": 3,
    "E": 4, "Fb": 4, "E#": 5,
    "F": 5, "F#": 6, "Gb": 6,
    "G": 7, "G#": 8, "Ab": 8,
    "A": 9, "A#": 10, "Bb": 10,
    "B": 11, "Cb": 11, "B#": 0,
}

MAJOR_SCALE = (0, 2, 4, 5, 7, 9, 11)
MINOR_SCALE = (0, 2, 3, 5, 7, 8, 10)  # natural minor


def parse_key(key: str) -> int:
    """Pitch class of a key root name such as ``"Bb"`` or ``"F#"``.

    Raises:
        ConfigurationError: If the name is not a known note
    """
    try:
        return KEY_ROOTS[key]
    except KeyError:
        raise ConfigurationError("key", key, "expected a note name like 'C', 'F#' or 'Bb'") from None


def scale_intervals(is_minor: bool) -> Tuple[int, ...]:
    return MINOR_SCALE if is_minor else MAJOR_SCALE


def get_scale_notes(key: str, is_minor: bool) -> List[int]:
    """Pitch classes of the key's scale, starting at its root."""
    root = parse_key(key)
    return [(root + i) % 12 for i in scale_intervals(is_minor)]


def scale_degree(midi: int, key_root: int, is_minor: bool) -> int:
    """Scale degree (0-6) of ``midi`` in the key.

    Chromatic notes take the degree of the closest scale tone (circular
    distance, lower degree on ties).
    """
    scale = [(key_root + i) % 12 for i in scale_intervals(is_minor)]
    pitch_class = midi % 12
    if pitch_class in scale:
        return scale.index(pitch_class)

    def distance(tone: int) -> int:
        d = abs(pitch_class - tone)
        return min(d, 12 - d)

    return min(range(len(scale)), key=lambda i: distance(scale[i]))


MAJOR_KEY_NAMES = ("C", "Db", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B")


def spelling_key(key: str, is_minor: bool = False) -> str:
    """Major key whose signature spells ``key`` (the relative major for minor keys)."""
    if not is_minor:
        return key
    return MAJOR_KEY_NAMES[(parse_key(key) + 3) % 12]


def pitch_class_name(pitch_class: int, key: str = "C") -> str:
    """Name a pitch class, with flats in flat keys."""
    names = PITCH_NAMES_FLAT if key in FLAT_KEYS else PITCH_NAMES
    return names[pitch_class % 12]


@dataclass
class KeyInfo:
    """Container for key detection results."""

    root: str  # Key root note (e.g., "C", "F#")
    is_minor: bool
    confidence: float  # 0.0 - 1.0
    alternatives: List[Tuple[str, bool, float]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return f"{self.root} {'minor' if self.is_minor else 'major'}"


class KeyDetector:
    """Detect the key of a melody by correlating against key profiles."""

    # Krumhansl-Schmuckler key profiles (cognitive-based)
    MAJOR_PROFILE = np.array(
        [6.35, 2.23, 3.48, 2.33, 4.38, 4.09, 2.52, 5.19, 2.39, 3.66, 2.29, 2.88]
    )
    MINOR_PROFILE = np.array(
        [6.33, 2.68, 3.52, 5.38, 2.60, 3.53, 2.54, 4.75, 3.98, 2.69, 3.34, 3.17]
    )

    # Conventional spelling of each tonic
    MAJOR_NAMES = ["C", "Db", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B"]
    MINOR_NAMES = ["C", "C#", "D", "Eb", "E", "F", "F#", "G", "G#", "A", "Bb", "B"]

    def __init__(self, min_notes: int = 3):
        self.min_notes = min_notes

    def analyze(self, notes: Sequence[NoteEvent]) -> KeyInfo:
        """
        Detect the most likely key of ``notes``.

        Notes are weighted by duration and velocity. With fewer than
        ``min_notes`` notes C major is returned with confidence 0.
        """
        if len(notes) < self.min_notes:
            return KeyInfo(root="C", is_minor=False, confidence=0.0)

        distribution = self.pitch_class_distribution(notes)
        if distribution.sum() == 0:
            return KeyInfo(root="C", is_minor=False, confidence=0.0)

        candidates = []
        for tonic in range(12):
            for is_minor, profile, names in (
                (False, self.MAJOR_PROFILE, self.MAJOR_NAMES),
                (True, self.MINOR_PROFILE, self.MINOR_NAMES),
            ):
                correlation = np.corrcoef(distribution, np.roll(profile, tonic))[0, 1]
                if np.isfinite(correlation):
                    candidates.append((names[tonic], is_minor, float(correlation)))

        if not candidates:
            return KeyInfo(root="C", is_minor=False, confidence=0.0)

        candidates.sort(key=lambda c: c[2], reverse=True)
        root, is_minor, correlation = candidates[0]

        # Correlation can be negative to 1, map to 0-1
        confidence = max(0.0, min(1.0, (correlation + 1) / 2))
        return KeyInfo(
            root=root,
            is_minor=is_minor,
            confidence=confidence,
            alternatives=candidates[1:4],
        )

    @staticmethod
    def pitch_class_distribution(notes: Sequence[NoteEvent]) -> np.ndarray:
        """Normalized 12-bin histogram weighted by duration and velocity."""
        pitch_classes = np.zeros(12)
        for note in notes:
            pitch_classes[note.pitch_class] += note.duration * (note.velocity / 127.0)

        if pitch_classes.sum() > 0:
            pitch_classes /= pitch_classes.sum()
        return pitch_classes
