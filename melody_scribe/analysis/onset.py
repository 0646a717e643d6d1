"""Onset detection using half-wave rectified spectral flux.

Note attacks are found as peaks of the frame-to-frame *increase* in the
magnitude spectrum. Peaks must clear a locally adaptive threshold
(mean + k * std over neighbouring frames) so that quiet passages and loud
passages are judged against their own surroundings.
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np
import librosa

from ..core.constants import DEFAULT_HOP_LENGTH, DEFAULT_N_FFT


@dataclass
class OnsetResult:
    """Container for onset detection results."""

    onsets: List[float] = field(default_factory=list)  # seconds, increasing
    spectral_flux: np.ndarray = field(default_factory=lambda: np.zeros(0))


class OnsetDetector:
    """Detect note attack times from spectral-flux peaks."""

    def __init__(
        self,
        window_size: int = DEFAULT_N_FFT,
        hop_size: int = DEFAULT_HOP_LENGTH,
        threshold: float = 1.5,
        min_onset_gap: float = 0.05,
        max_bins: int = 256,
        local_window: int = 10,
        refine_window: float = 0.02,
    ):
        """
        Initialize OnsetDetector.

        Args:
            window_size: STFT window size in samples
            hop_size: Samples between analysis frames
            threshold: k in the adaptive threshold mean + k * std
            min_onset_gap: Minimum gap between onsets in seconds
            max_bins: Number of low-frequency bins used for the flux
            local_window: Half-width (frames) of the adaptive threshold window
            refine_window: Search window (seconds) for attack refinement
        """
        self.window_size = window_size
        self.hop_size = hop_size
        self.threshold = threshold
        self.min_onset_gap = min_onset_gap
        self.max_bins = max_bins
        self.local_window = local_window
        self.refine_window = refine_window

    def detect(self, samples: np.ndarray, sr: int, refine: bool = True) -> List[float]:
        """
        Detect onset times.

        Args:
            samples: Mono audio array
            sr: Sample rate
            refine: Snap each onset to the pre-attack energy trough

        Returns:
            Strictly increasing onset times in seconds
        """
        result = self.detect_with_flux(samples, sr)
        if not refine:
            return result.onsets
        return self.refine(samples, result.onsets, sr)

    def detect_with_flux(self, samples: np.ndarray, sr: int) -> OnsetResult:
        """Detect raw (unrefined) onsets and return the flux curve with them."""
        flux = self.spectral_flux(samples)
        if len(flux) < 2:
            return OnsetResult(onsets=[], spectral_flux=flux)

        frames = self.pick_peaks(flux, sr)
        times = librosa.frames_to_time(np.asarray(frames, dtype=int), sr=sr, hop_length=self.hop_size)
        return OnsetResult(onsets=[float(t) for t in times], spectral_flux=flux)

    def spectral_flux(self, samples: np.ndarray) -> np.ndarray:
        """
        Sum of positive bin-wise magnitude increases per frame.

        Frames are centred (frame ``i`` is centred on ``i * hop_size``) and the
        first frame is compared against silence.
        """
        samples = np.asarray(samples, dtype=np.float32)
        n_frames = 1 + len(samples) // self.hop_size
        if len(samples) == 0 or n_frames < 2:
            return np.zeros(0)

        stft = librosa.stft(
            samples,
            n_fft=self.window_size,
            hop_length=self.hop_size,
            window="hann",
            center=True,
            pad_mode="constant",
        )
        n_bins = min(self.max_bins, self.window_size // 4)
        magnitudes = np.abs(stft[:n_bins])

        previous = np.concatenate(
            [np.zeros((n_bins, 1), dtype=magnitudes.dtype), magnitudes[:, :-1]],
            axis=1,
        )
        # Half-wave rectification: only energy increases count
        return np.maximum(magnitudes - previous, 0.0).sum(axis=0).astype(np.float64)

    def pick_peaks(self, flux: np.ndarray, sr: int) -> List[int]:
        """
        Pick local maxima that clear the adaptive threshold.

        Returns:
            Frame indices of accepted peaks
        """
        n = len(flux)
        if n == 0:
            return []

        min_gap_frames = int(np.floor(self.min_onset_gap * sr / self.hop_size))
        padded = np.concatenate([[0.0], flux, [0.0]])
        peaks: List[int] = []

        for i in range(n):
            value = flux[i]
            if value <= padded[i] or value <= padded[i + 2]:
                continue

            start = max(0, i - self.local_window)
            end = min(n, i + self.local_window + 1)
            local = flux[start:end]
            adaptive_threshold = local.mean() + self.threshold * local.std()
            if value <= adaptive_threshold:
                continue

            if not peaks or i - peaks[-1] >= min_gap_frames:
                peaks.append(i)
            elif value > flux[peaks[-1]]:
                # Stronger peak inside the gap replaces the previous one
                peaks[-1] = i

        return peaks

    def refine(
        self,
        samples: np.ndarray,
        onsets: List[float],
        sr: int,
        energy_window: int = 64,
        step: int = 16,
    ) -> List[float]:
        """
        Snap onsets to the end of the pre-attack energy trough.

        For each onset, short-term energy is measured in a window starting
        ``refine_window`` before it and ending half that after it. The onset
        moves to the latest position of minimum energy.
        """
        samples = np.asarray(samples, dtype=np.float32)
        search = int(self.refine_window * sr)
        refined: List[float] = []

        for onset in onsets:
            index = int(onset * sr)
            start = max(0, index - search)
            end = min(len(samples), index + search // 2)

            if end - start <= energy_window:
                refined.append(onset)
                continue

            windows = np.lib.stride_tricks.sliding_window_view(
                samples[start:end - 1], energy_window
            )[::step]
            energies = np.sum(windows.astype(np.float64) ** 2, axis=1)
            last_min = len(energies) - 1 - int(np.argmin(energies[::-1]))
            refined.append((start + last_min * step) / sr)

        return self._enforce_spacing(refined)

    def _enforce_spacing(self, onsets: List[float]) -> List[float]:
        """Keep onsets strictly increasing and at least ``min_onset_gap`` apart."""
        result: List[float] = []
        for onset in sorted(onsets):
            if result and onset - result[-1] < self.min_onset_gap:
                continue
            result.append(onset)
        return result


def detect_onsets(
    samples: np.ndarray,
    sr: int,
    window_size: int = DEFAULT_N_FFT,
    hop_size: int = DEFAULT_HOP_LENGTH,
    threshold: float = 1.5,
    min_onset_gap: float = 0.05,
) -> List[float]:
    """Functional shortcut for :meth:`OnsetDetector.detect`."""
    detector = OnsetDetector(
        window_size=window_size,
        hop_size=hop_size,
        threshold=threshold,
        min_onset_gap=min_onset_gap,
    )
    return detector.detect(samples, sr)
