"""Analysis layer - Low-level signal analysis.

This layer extracts timing, pitch and loudness from raw audio:
- Onsets (spectral flux)
- Pitch contour (pYIN with clarity)
- Tempo (inter-onset intervals)
- Dynamics (attack loudness)
"""

from .onset import OnsetDetector, OnsetResult, detect_onsets
from .pitch import (
    PitchTracker,
    SegmentPitch,
    VibratoInfo,
    smooth_contour,
    detect_vibrato,
    get_segment_pitch,
)
from .tempo import TempoAnalyzer, TempoInfo
from .dynamics import (
    DynamicsAnalyzer,
    DynamicsResult,
    DynamicContour,
    detect_dynamic_contours,
)

__all__ = [
    "OnsetDetector",
    "OnsetResult",
    "detect_onsets",
    "PitchTracker",
    "SegmentPitch",
    "VibratoInfo",
    "smooth_contour",
    "detect_vibrato",
    "get_segment_pitch",
    "TempoAnalyzer",
    "TempoInfo",
    "DynamicsAnalyzer",
    "DynamicsResult",
    "DynamicContour",
    "detect_dynamic_contours",
]
