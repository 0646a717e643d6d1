"""Pitch contour data types produced by the pitch tracker."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class PitchFrame:
    """One analysis frame of the pitch contour.

    Invalid frames carry ``frequency=None`` and ``midi=None``; their clarity
    is kept for diagnostics.
    """

    time: float
    frequency: Optional[float]
    clarity: float
    midi: Optional[int] = None
    cents_deviation: float = 0.0

    @property
    def is_valid(self) -> bool:
        return self.frequency is not None and self.midi is not None


@dataclass
class PitchContour:
    """Frames at fixed hop spacing."""

    frames: List[PitchFrame] = field(default_factory=list)
    sample_rate: int = 22050
    hop_size: int = 512

    @property
    def hop_duration(self) -> float:
        """Seconds between consecutive frames."""
        return self.hop_size / self.sample_rate

    def __len__(self) -> int:
        return len(self.frames)

    @property
    def valid_count(self) -> int:
        return sum(1 for f in self.frames if f.is_valid)


@dataclass(frozen=True)
class VelocityInfo:
    """Loudness of one onset-bounded segment."""

    velocity: int  # 1-127
    rms: float
    peak: float
