"""Melody Scribe - melody transcription, harmonization and chord suggestion.

Architecture Layers:
    1. input/         - Audio decoding and MIDI import
    2. analysis/      - Low-level signal analysis (onsets, pitch, tempo, dynamics)
    3. transcription/ - Note segmentation and the monophonic pipeline
    4. processing/    - Note post-processing (cleanup, quantize, measures)
    5. inference/     - Musical context (keys, chords, harmony voices)
    6. output/        - Export (multi-track MIDI)
"""

__version__ = "0.3.0"

# Core types
from .core import (
    NoteEvent,
    PitchFrame,
    PitchContour,
    VelocityInfo,
    MelodyScribeError,
    InputError,
    ConfigurationError,
    InsufficientDataWarning,
)

# Input layer
from .input import AudioLoader, DecodedAudio, MIDIImporter

# Analysis layer
from .analysis import OnsetDetector, PitchTracker, TempoAnalyzer, DynamicsAnalyzer

# Transcription layer
from .transcription import (
    MonophonicTranscriber,
    NoteSegmenter,
    AnalysisConfig,
    TranscriptionResult,
)

# Processing layer
from .processing import Quantizer, QuantizedNote, NoteDuration, group_into_measures

# Inference layer
from .inference import (
    KeyDetector,
    ChordEvent,
    Harmonizer,
    HarmonyStyle,
    HarmonyVoice,
    suggest_chords,
    recalculate_durations,
    combine_voices_for_playback,
)

# Output layer
from .output import MIDIExporter

__all__ = [
    # Core
    "NoteEvent",
    "PitchFrame",
    "PitchContour",
    "VelocityInfo",
    "MelodyScribeError",
    "InputError",
    "ConfigurationError",
    "InsufficientDataWarning",
    # Input
    "AudioLoader",
    "DecodedAudio",
    "MIDIImporter",
    # Analysis
    "OnsetDetector",
    "PitchTracker",
    "TempoAnalyzer",
    "DynamicsAnalyzer",
    # Transcription
    "MonophonicTranscriber",
    "NoteSegmenter",
    "AnalysisConfig",
    "TranscriptionResult",
    # Processing
    "Quantizer",
    "QuantizedNote",
    "NoteDuration",
    "group_into_measures",
    # Inference
    "KeyDetector",
    "ChordEvent",
    "Harmonizer",
    "HarmonyStyle",
    "HarmonyVoice",
    "suggest_chords",
    "recalculate_durations",
    "combine_voices_for_playback",
    # Output
    "MIDIExporter",
]
