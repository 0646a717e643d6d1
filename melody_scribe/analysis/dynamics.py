"""Dynamics analysis - velocity per onset-bounded segment.

Velocity is measured on the attack (first 50ms) of each segment, relative to
the 75th-percentile attack loudness of the whole recording, and mapped
logarithmically so that the reference level lands on velocity 100.
"""

import warnings
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from ..core import VelocityInfo
from ..core.errors import InsufficientDataWarning


@dataclass
class DynamicsResult:
    """Container for dynamics analysis results."""

    velocities: List[VelocityInfo] = field(default_factory=list)  # aligned with onsets
    global_dynamic_range_db: float = 0.0
    average_velocity: int = 80


@dataclass(frozen=True)
class DynamicContour:
    """A crescendo or decrescendo over a run of segments."""

    kind: str  # "crescendo" or "decrescendo"
    start_index: int
    end_index: int
    change: int


class DynamicsAnalyzer:
    """Map attack loudness to MIDI velocity."""

    def __init__(
        self,
        min_velocity: int = 30,
        max_velocity: int = 120,
        attack_duration: float = 0.05,
        reference_percentile: float = 0.75,
    ):
        self.min_velocity = min_velocity
        self.max_velocity = max_velocity
        self.attack_duration = attack_duration
        self.reference_percentile = reference_percentile

    def analyze(
        self,
        samples: np.ndarray,
        onsets: Sequence[float],
        total_duration: float,
        sr: int,
    ) -> DynamicsResult:
        """
        Compute one VelocityInfo per onset.

        Args:
            samples: Mono audio array
            onsets: Onset times in seconds
            total_duration: End of the last segment in seconds
            sr: Sample rate

        Returns:
            DynamicsResult with velocities aligned by index to ``onsets``
        """
        if len(onsets) == 0:
            warnings.warn("No onsets to measure dynamics on", InsufficientDataWarning)
            return DynamicsResult()

        samples = np.asarray(samples, dtype=np.float32)
        attack_samples = int(self.attack_duration * sr)
        energies: List[Tuple[float, float]] = []

        for i, start_time in enumerate(onsets):
            end_time = onsets[i + 1] if i < len(onsets) - 1 else total_duration
            start = int(start_time * sr)
            end = min(int(end_time * sr), len(samples))
            attack_end = min(start + attack_samples, end)
            energies.append(segment_energy(samples, start, attack_end))

        rms_values = np.array([rms for rms, _ in energies])
        reference = self.reference_rms(rms_values)

        velocities = [
            VelocityInfo(
                velocity=self.rms_to_velocity(rms, reference),
                rms=float(rms),
                peak=float(peak),
            )
            for rms, peak in energies
        ]

        audible = rms_values[rms_values > 0]
        if len(audible) > 0:
            dynamic_range = float(20 * np.log10(rms_values.max() / audible.min()))
        else:
            dynamic_range = 0.0

        return DynamicsResult(
            velocities=velocities,
            global_dynamic_range_db=dynamic_range,
            average_velocity=int(round(np.mean([v.velocity for v in velocities]))),
        )

    def reference_rms(self, rms_values: np.ndarray) -> float:
        """Upper-quartile RMS, robust to a few very loud or quiet segments."""
        ordered = np.sort(rms_values)
        index = min(len(ordered) - 1, int(len(ordered) * self.reference_percentile))
        reference = float(ordered[index])
        return reference if reference > 0 else 0.1

    def rms_to_velocity(self, rms: float, reference: float) -> int:
        """velocity = clamp(100 + 40 * log10(rms / reference))."""
        if rms <= 0 or reference <= 0:
            return self.min_velocity
        velocity = 100 + 40 * np.log10(rms / reference)
        return int(round(np.clip(velocity, self.min_velocity, self.max_velocity)))


def segment_energy(samples: np.ndarray, start: int, end: int) -> Tuple[float, float]:
    """RMS and peak amplitude of ``samples[start:end]``."""
    if start >= end or start >= len(samples):
        return 0.0, 0.0
    segment = samples[start:end].astype(np.float64)
    return float(np.sqrt(np.mean(segment ** 2))), float(np.max(np.abs(segment)))


def detect_dynamic_contours(
    velocities: Sequence[VelocityInfo],
    min_length: int = 3,
    min_change: int = 20,
    step: int = 5,
) -> List[DynamicContour]:
    """
    Find crescendos and decrescendos.

    A run qualifies when it spans at least ``min_length`` segments moving in
    one direction (steps larger than ``step`` velocity units) with a total
    swing of at least ``min_change``.
    """
    contours: List[DynamicContour] = []
    if len(velocities) < min_length:
        return contours

    values = [v.velocity for v in velocities]
    trend_start = 0
    trend = None

    def close(end_index: int) -> None:
        change = values[end_index] - values[trend_start]
        if end_index - trend_start + 1 >= min_length and abs(change) >= min_change:
            contours.append(DynamicContour(
                kind="crescendo" if trend == "up" else "decrescendo",
                start_index=trend_start,
                end_index=end_index,
                change=change,
            ))

    for i in range(1, len(values)):
        diff = values[i] - values[i - 1]
        direction = "up" if diff > step else "down" if diff < -step else None
        if direction is None:
            continue
        if trend is None:
            trend, trend_start = direction, i - 1
        elif direction != trend:
            close(i - 1)
            trend, trend_start = direction, i - 1

    if trend is not None:
        close(len(values) - 1)

    return contours
