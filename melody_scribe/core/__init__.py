"""Core types and constants for Melody Scribe."""

from .note import (
    NoteEvent,
    freq_to_midi,
    midi_to_freq,
    midi_to_note_name,
    cents_deviation,
    is_valid_midi,
    sort_notes,
    FLAT_KEYS,
)
from .pitch import PitchFrame, PitchContour, VelocityInfo
from .errors import (
    MelodyScribeError,
    InputError,
    ConfigurationError,
    InsufficientDataWarning,
)
from .constants import (
    PITCH_NAMES,
    PITCH_NAMES_FLAT,
    DEFAULT_SR,
    DEFAULT_HOP_LENGTH,
    DEFAULT_N_FFT,
    DEFAULT_TEMPO,
    DEFAULT_BEATS_PER_MEASURE,
)

__all__ = [
    "NoteEvent",
    "PitchFrame",
    "PitchContour",
    "VelocityInfo",
    "freq_to_midi",
    "midi_to_freq",
    "midi_to_note_name",
    "cents_deviation",
    "is_valid_midi",
    "sort_notes",
    "FLAT_KEYS",
    "MelodyScribeError",
    "InputError",
    "ConfigurationError",
    "InsufficientDataWarning",
    "PITCH_NAMES",
    "PITCH_NAMES_FLAT",
    "DEFAULT_SR",
    "DEFAULT_HOP_LENGTH",
    "DEFAULT_N_FFT",
    "DEFAULT_TEMPO",
    "DEFAULT_BEATS_PER_MEASURE",
]
