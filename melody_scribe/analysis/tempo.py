"""Tempo analysis from inter-onset intervals (IOI)."""

import warnings
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from ..core.constants import DEFAULT_TEMPO
from ..core.errors import InsufficientDataWarning


@dataclass
class TempoInfo:
    """Container for tempo analysis results."""

    bpm: float
    confidence: float = 0.0  # 0-1
    alternative_bpms: List[float] = field(default_factory=list)  # half/double time


# Tempo range that reads naturally in notation
PLAUSIBLE_BPM = (60.0, 140.0)


class TempoAnalyzer:
    """Detect tempo from the distribution of onset intervals."""

    def __init__(
        self,
        min_bpm: float = 60.0,
        max_bpm: float = 180.0,
        bin_size: float = 0.01,
        min_onsets: int = 4,
    ):
        """
        Initialize TempoAnalyzer.

        Args:
            min_bpm: Slowest tempo considered
            max_bpm: Fastest tempo considered
            bin_size: IOI histogram bin width in seconds
            min_onsets: Onsets needed before a tempo is estimated
        """
        self.min_bpm = min_bpm
        self.max_bpm = max_bpm
        self.bin_size = bin_size
        self.min_onsets = min_onsets

    def analyze(self, onsets: Sequence[float]) -> TempoInfo:
        """
        Estimate BPM and confidence from onset times.

        With fewer than ``min_onsets`` onsets the fallback 120 BPM with
        confidence 0 is returned.
        """
        if len(onsets) < self.min_onsets:
            warnings.warn(
                f"Tempo needs at least {self.min_onsets} onsets, got {len(onsets)}; "
                f"using {DEFAULT_TEMPO:.0f} BPM",
                InsufficientDataWarning,
            )
            return TempoInfo(bpm=DEFAULT_TEMPO, confidence=0.0, alternative_bpms=[60.0, 240.0])

        iois = self.inter_onset_intervals(onsets)
        histogram = self.build_histogram(iois)
        dominant_ioi, confidence = self.find_dominant_ioi(histogram)

        bpm = 60.0 / dominant_ioi
        alternatives = [
            float(round(b)) for b in (bpm / 2, bpm * 2)
            if self.min_bpm <= b <= self.max_bpm * 2
        ]
        return TempoInfo(bpm=float(round(bpm)), confidence=confidence, alternative_bpms=alternatives)

    def inter_onset_intervals(self, onsets: Sequence[float]) -> List[float]:
        """
        Consecutive IOIs plus half of every two-apart interval.

        The halved skip intervals recover the beat when single onsets were
        missed. Only intervals within [0.1s, 2.0s] are kept.
        """
        times = np.asarray(onsets, dtype=float)
        consecutive = np.diff(times)
        skipped = (times[2:] - times[:-2]) / 2.0
        iois = np.concatenate([consecutive, skipped])
        return [float(i) for i in iois if 0.1 <= i <= 2.0]

    def build_histogram(self, iois: Sequence[float]) -> Counter:
        """Histogram of IOIs keyed by bin index, limited to the BPM range."""
        min_ioi = 60.0 / self.max_bpm
        max_ioi = 60.0 / self.min_bpm
        histogram: Counter = Counter()
        for ioi in iois:
            if ioi < min_ioi or ioi > max_ioi:
                continue
            histogram[int(round(ioi / self.bin_size))] += 1
        return histogram

    def find_dominant_ioi(self, histogram: Counter) -> Tuple[float, float]:
        """
        Pick the dominant IOI with half/double-time disambiguation.

        Returns:
            Tuple of (IOI in seconds, confidence)
        """
        if not histogram:
            return 60.0 / DEFAULT_TEMPO, 0.0

        # 3-bin smoothing: each bin counts its immediate neighbours too
        peaks = [
            (bin_index, count + histogram.get(bin_index - 1, 0) + histogram.get(bin_index + 1, 0))
            for bin_index, count in histogram.items()
        ]
        peaks.sort(key=lambda p: (-p[1], p[0]))

        top_bin, top_count = peaks[0]
        total = sum(count for _, count in peaks)
        confidence = min(1.0, top_count / (total * 0.3))
        top_ioi = top_bin * self.bin_size

        if len(peaks) >= 2:
            second_bin, second_count = peaks[1]
            second_ioi = second_bin * self.bin_size
            ratio = second_ioi / top_ioi
            top_plausible = self._is_plausible(60.0 / top_ioi)
            second_plausible = self._is_plausible(60.0 / second_ioi)

            double_time = abs(ratio - 2.0) < 0.1 and second_count >= top_count * 0.5
            half_time = abs(ratio - 0.5) < 0.05 and second_count >= top_count * 0.7
            if (double_time or half_time) and second_plausible and not top_plausible:
                return second_ioi, confidence * 0.9

        return top_ioi, confidence

    def refine(
        self,
        onsets: Sequence[float],
        initial_bpm: float,
        tolerance_bpm: float = 5.0,
    ) -> float:
        """
        Grid-search the BPM that best phase-locks the onsets.

        Candidates are ``initial_bpm +/- tolerance_bpm`` in 0.5 BPM steps; each
        scores the sum of cos(2*pi*phase) of every onset against its beat period.
        The beat grid is anchored at the first onset.
        """
        if len(onsets) < self.min_onsets:
            return initial_bpm

        times = np.asarray(onsets, dtype=float)
        times = times - times[0]
        steps = int(round(tolerance_bpm / 0.5))
        candidates = initial_bpm + 0.5 * np.arange(-steps, steps + 1)
        candidates = candidates[candidates > 0]
        if len(candidates) == 0:
            return initial_bpm

        periods = 60.0 / candidates
        phases = np.mod(times[None, :], periods[:, None]) / periods[:, None]
        scores = np.cos(2 * np.pi * phases).sum(axis=1)
        return float(candidates[int(np.argmax(scores))])

    @staticmethod
    def _is_plausible(bpm: float) -> bool:
        return PLAUSIBLE_BPM[0] <= bpm <= PLAUSIBLE_BPM[1]
