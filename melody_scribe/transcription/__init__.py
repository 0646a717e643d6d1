"""Transcription layer - Note-level detection from audio.

This layer converts a mono recording into discrete note events:
- Onset-bounded note segmentation
- The monophonic analysis pipeline
"""

from .base import Transcriber
from .segmenter import NoteSegmenter
from .monophonic import (
    MonophonicTranscriber,
    AnalysisConfig,
    TranscriptionResult,
    ProgressCallback,
)

__all__ = [
    "Transcriber",
    "NoteSegmenter",
    "MonophonicTranscriber",
    "AnalysisConfig",
    "TranscriptionResult",
    "ProgressCallback",
]
