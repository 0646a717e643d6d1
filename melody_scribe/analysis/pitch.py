"""Pitch tracking - time-indexed fundamental frequency with clarity.

Frames are estimated with probabilistic YIN. Each frame keeps the voicing
probability as its *clarity*; frames that are too quiet, out of range or not
clear enough are marked invalid instead of being guessed. Two cleanup passes
then run in order: isolated-frame removal and octave-error correction.
"""

from collections import Counter
from dataclasses import dataclass, replace
from typing import List, Optional

import numpy as np
import librosa

from ..core import PitchContour, PitchFrame
from ..core.constants import DEFAULT_HOP_LENGTH, DEFAULT_N_FFT
from ..core.note import cents_deviation, freq_to_midi, is_valid_midi, midi_to_freq


@dataclass(frozen=True)
class SegmentPitch:
    """Dominant pitch of a time range."""

    midi: int
    frequency: float  # mean over frames matching the dominant MIDI value
    cents_deviation: float
    confidence: float  # mode fraction * mean clarity


@dataclass(frozen=True)
class VibratoInfo:
    rate: float  # Hz
    depth: float  # cents


class PitchTracker:
    """Monophonic pitch contour estimation."""

    def __init__(
        self,
        window_size: int = DEFAULT_N_FFT,
        hop_size: int = DEFAULT_HOP_LENGTH,
        min_freq: float = 80.0,
        max_freq: float = 1100.0,
        clarity_threshold: float = 0.5,
        energy_floor: float = 1e-4,
        snap_to_semitone: bool = False,
    ):
        """
        Initialize PitchTracker.

        Args:
            window_size: Analysis window in samples
            hop_size: Samples between frames
            min_freq: Lowest accepted fundamental (Hz)
            max_freq: Highest accepted fundamental (Hz)
            clarity_threshold: Minimum voicing probability for a valid frame
            energy_floor: Minimum mean-square frame energy for a valid frame
            snap_to_semitone: Auto-tune mode, frequencies snap to the nearest
                equal-tempered pitch and cents deviation is dropped
        """
        self.window_size = window_size
        self.hop_size = hop_size
        self.min_freq = min_freq
        self.max_freq = max_freq
        self.clarity_threshold = clarity_threshold
        self.energy_floor = energy_floor
        self.snap_to_semitone = snap_to_semitone

    def detect_contour(self, samples: np.ndarray, sr: int) -> PitchContour:
        """
        Detect the pitch contour of a mono recording.

        Args:
            samples: Mono audio array
            sr: Sample rate

        Returns:
            PitchContour with one frame per hop
        """
        samples = np.asarray(samples, dtype=np.float32)
        if len(samples) == 0:
            return PitchContour(frames=[], sample_rate=sr, hop_size=self.hop_size)

        f0, _, voiced_prob = librosa.pyin(
            samples,
            fmin=self.min_freq,
            fmax=self.max_freq,
            sr=sr,
            frame_length=self.window_size,
            hop_length=self.hop_size,
            center=True,
        )
        energy = librosa.feature.rms(
            y=samples,
            frame_length=self.window_size,
            hop_length=self.hop_size,
            center=True,
            pad_mode="constant",
        )[0] ** 2
        times = librosa.times_like(f0, sr=sr, hop_length=self.hop_size)

        frames = []
        for i, freq in enumerate(f0):
            clarity = float(np.clip(np.nan_to_num(voiced_prob[i]), 0.0, 1.0))
            frame_energy = energy[i] if i < len(energy) else 0.0
            valid = (
                np.isfinite(freq)
                and self.min_freq <= freq <= self.max_freq
                and clarity >= self.clarity_threshold
                and frame_energy >= self.energy_floor
            )
            frames.append(self._make_frame(float(times[i]), float(freq) if valid else None, clarity))

        frames = remove_isolated_frames(frames)
        frames = correct_octave_errors(frames)
        return PitchContour(frames=frames, sample_rate=sr, hop_size=self.hop_size)

    def _make_frame(self, time: float, frequency: Optional[float], clarity: float) -> PitchFrame:
        return make_frame(time, frequency, clarity, snap=self.snap_to_semitone)


def make_frame(
    time: float,
    frequency: Optional[float],
    clarity: float,
    snap: bool = False,
) -> PitchFrame:
    """Build a frame, deriving rounded MIDI and cents from ``frequency``."""
    if frequency is None or frequency <= 0:
        return PitchFrame(time=time, frequency=None, clarity=clarity)

    midi = freq_to_midi(frequency)
    if not is_valid_midi(midi):
        return PitchFrame(time=time, frequency=None, clarity=clarity)

    if snap:
        return PitchFrame(time=time, frequency=midi_to_freq(midi), clarity=clarity, midi=midi)

    return PitchFrame(
        time=time,
        frequency=frequency,
        clarity=clarity,
        midi=midi,
        cents_deviation=cents_deviation(frequency, midi),
    )


def remove_isolated_frames(
    frames: List[PitchFrame],
    radius: int = 3,
    min_neighbors: int = 2,
    tolerance: int = 2,
) -> List[PitchFrame]:
    """
    Invalidate frames without enough nearby agreeing frames.

    A valid frame survives if at least ``min_neighbors`` valid frames within
    ``radius`` frames are within ``tolerance`` semitones of it.
    """
    result = list(frames)
    for i, frame in enumerate(frames):
        if not frame.is_valid:
            continue

        neighbors = 0
        for j in range(max(0, i - radius), min(len(frames), i + radius + 1)):
            other = frames[j]
            if j != i and other.is_valid and abs(other.midi - frame.midi) <= tolerance:
                neighbors += 1

        if neighbors < min_neighbors:
            result[i] = PitchFrame(time=frame.time, frequency=None, clarity=frame.clarity)

    return result


def correct_octave_errors(
    frames: List[PitchFrame],
    radius: int = 5,
    tolerance: int = 2,
) -> List[PitchFrame]:
    """
    Fold frames that sit an octave away from their neighbourhood.

    Each valid frame is compared to the median MIDI of the valid frames within
    ``radius``; a difference of 12 +/- ``tolerance`` semitones halves or
    doubles its frequency.
    """
    result = list(frames)
    for i, frame in enumerate(frames):
        if not frame.is_valid:
            continue

        neighbours = [
            frames[j].midi
            for j in range(max(0, i - radius), min(len(frames), i + radius + 1))
            if j != i and frames[j].is_valid
        ]
        if not neighbours:
            continue

        diff = frame.midi - float(np.median(neighbours))
        if abs(abs(diff) - 12) > tolerance:
            continue

        factor = 0.5 if diff > 0 else 2.0
        shift = -12 if diff > 0 else 12
        if not is_valid_midi(frame.midi + shift):
            continue
        result[i] = replace(frame, frequency=frame.frequency * factor, midi=frame.midi + shift)

    return result


def smooth_contour(contour: PitchContour, window_size: int = 5) -> PitchContour:
    """
    Median-filter frequency and cents deviation of valid frames.

    Only neighbours within 2 semitones of the centre frame are pooled, so a
    real pitch change is never averaged into an in-between value.
    """
    frames = contour.frames
    half = window_size // 2
    smoothed: List[PitchFrame] = []

    for i, frame in enumerate(frames):
        if not frame.is_valid:
            smoothed.append(frame)
            continue

        pool = [
            frames[j].frequency
            for j in range(max(0, i - half), min(len(frames), i + half + 1))
            if frames[j].is_valid and abs(frames[j].midi - frame.midi) <= 2
        ]
        frequency = float(np.median(pool))
        midi = freq_to_midi(frequency)
        cents = float(np.median([cents_deviation(f, midi) for f in pool]))
        smoothed.append(replace(frame, frequency=frequency, midi=midi, cents_deviation=cents))

    return PitchContour(
        frames=smoothed,
        sample_rate=contour.sample_rate,
        hop_size=contour.hop_size,
    )


def detect_vibrato(
    contour: PitchContour,
    start_frame: int,
    end_frame: int,
    min_frames: int = 10,
    min_rate: float = 3.0,
    max_rate: float = 12.0,
    min_depth: float = 10.0,
) -> Optional[VibratoInfo]:
    """
    Estimate vibrato in frames ``[start_frame, end_frame)``.

    Rate comes from zero crossings of the mean-centred pitch (in cents),
    depth is half the peak-to-peak excursion.

    Returns:
        VibratoInfo, or None when there is too little data or the
        oscillation is outside the vibrato rate/depth range
    """
    start_frame = max(0, start_frame)
    frames = [f for f in contour.frames[start_frame:end_frame] if f.is_valid]
    if len(frames) < min_frames:
        return None

    cents = np.array([1200 * np.log2(f.frequency / 440.0) for f in frames])
    centred = cents - cents.mean()

    signs = np.signbit(centred)
    crossings = int(np.count_nonzero(signs[1:] != signs[:-1]))
    duration = len(frames) * contour.hop_duration
    rate = crossings / 2.0 / duration
    depth = float(centred.max() - centred.min()) / 2.0

    if rate < min_rate or rate > max_rate or depth < min_depth:
        return None
    return VibratoInfo(rate=float(rate), depth=depth)


def get_segment_pitch(
    contour: PitchContour,
    start_time: float,
    end_time: float,
) -> Optional[SegmentPitch]:
    """
    Dominant pitch of ``[start_time, end_time)``.

    The most frequent rounded MIDI value wins; frequency and cents are averaged
    over the frames that carry it only.
    """
    valid = [
        f for f in contour.frames
        if f.is_valid and start_time <= f.time < end_time
    ]
    if not valid:
        return None

    midi, count = Counter(f.midi for f in valid).most_common(1)[0]
    matching = [f for f in valid if f.midi == midi]
    mean_clarity = float(np.mean([f.clarity for f in matching]))

    return SegmentPitch(
        midi=int(midi),
        frequency=float(np.mean([f.frequency for f in matching])),
        cents_deviation=float(np.mean([f.cents_deviation for f in matching])),
        confidence=(count / len(valid)) * mean_clarity,
    )
