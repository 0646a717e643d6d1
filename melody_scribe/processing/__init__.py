"""Processing layer - Note-level post-processing.

This layer refines transcribed notes:
- Note cleanup (merge, filter, re-anchor)
- Quantization (note values and beat grid)
- Measure grouping
- Melody edits (snap to key, transpose)
"""

from .quantize import (
    Quantizer,
    QuantizedNote,
    NoteDuration,
    DURATION_VALUES,
    parse_duration,
    group_into_measures,
)
from .cleanup import merge_consecutive_notes, filter_short_notes, normalize_start_times
from .edit import snap_midi_to_key, snap_to_key, transpose

__all__ = [
    "Quantizer",
    "QuantizedNote",
    "NoteDuration",
    "DURATION_VALUES",
    "parse_duration",
    "group_into_measures",
    "merge_consecutive_notes",
    "filter_short_notes",
    "normalize_start_times",
    "snap_midi_to_key",
    "snap_to_key",
    "transpose",
]
