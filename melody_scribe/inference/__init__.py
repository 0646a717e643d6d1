"""Inference layer - Musical context built on top of notes.

- Keys and scales (tables, key detection)
- Chords (model, symbols, suggestion from a melody)
- Harmony (rule-based extra voices)

Pipeline: Notes → [Key, Chords] → Harmony voices
"""

from .key import (
    KeyDetector,
    KeyInfo,
    KEY_ROOTS,
    parse_key,
    get_scale_notes,
    scale_degree,
)
from .chords import (
    ChordEvent,
    TriadQuality,
    SeventhType,
    ChordExtension,
    ChordAlteration,
    get_chord_intervals,
    chord_to_midi,
    chord_to_note_events,
    chord_symbol,
    parse_chord,
    chord_fits_key,
    chord_at_beat,
    suggest_chords,
    recalculate_durations,
)
from .harmony import (
    Harmonizer,
    HarmonyStyle,
    HarmonyVoice,
    generate_harmony,
    combine_voices_for_playback,
    has_parallel_perfect,
)

__all__ = [
    # Keys
    "KeyDetector",
    "KeyInfo",
    "KEY_ROOTS",
    "parse_key",
    "get_scale_notes",
    "scale_degree",
    # Chords
    "ChordEvent",
    "TriadQuality",
    "SeventhType",
    "ChordExtension",
    "ChordAlteration",
    "get_chord_intervals",
    "chord_to_midi",
    "chord_to_note_events",
    "chord_symbol",
    "parse_chord",
    "chord_fits_key",
    "chord_at_beat",
    "suggest_chords",
    "recalculate_durations",
    # Harmony
    "Harmonizer",
    "HarmonyStyle",
    "HarmonyVoice",
    "generate_harmony",
    "combine_voices_for_playback",
    "has_parallel_perfect",
]
