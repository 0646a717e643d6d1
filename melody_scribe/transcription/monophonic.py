"""Monophonic transcription - the full audio-to-notes pipeline.

Stages run in a fixed order, each consuming the previous stages' output:

    onsets -> refine onsets -> tempo -> refine tempo -> pitch contour ->
    smooth contour -> dynamics -> segment -> cleanup -> normalize

Every stage degrades to a documented fallback on thin input (120 BPM with
confidence 0, an empty note list) instead of raising.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from .base import Transcriber
from .segmenter import NoteSegmenter
from ..analysis import (
    DynamicsAnalyzer,
    DynamicsResult,
    OnsetDetector,
    PitchTracker,
    TempoAnalyzer,
    TempoInfo,
    smooth_contour,
)
from ..core import NoteEvent, PitchContour
from ..core.constants import DEFAULT_HOP_LENGTH, DEFAULT_N_FFT
from ..processing.cleanup import (
    filter_short_notes,
    merge_consecutive_notes,
    normalize_start_times,
)


ProgressCallback = Callable[[str, float], None]


@dataclass
class AnalysisConfig:
    """Settings for one pipeline run.

    Attributes:
        window_size: Analysis window in samples (onsets and pitch)
        hop_size: Samples between frames
        onset_threshold: k in the adaptive onset threshold mean + k * std
        min_onset_gap: Minimum spacing between onsets in seconds
        min_bpm: Slowest tempo considered
        max_bpm: Fastest tempo considered
        tempo_tolerance: BPM search radius for tempo refinement
        min_freq: Lowest fundamental tracked (Hz)
        max_freq: Highest fundamental tracked (Hz)
        clarity_threshold: Minimum pitch clarity for a valid frame
        smoothing_window: Median window (frames) for contour smoothing, 0 disables
        snap_to_semitone: Auto-tune pitch mode
        min_velocity: Quietest velocity assigned
        max_velocity: Loudest velocity assigned
        min_note_duration: Shortest note kept (seconds)
        use_pitch_changes: Split notes at slurred pitch changes
        merge_gap: Merge same-pitch neighbours closer than this (seconds);
            None keeps repeated notes apart
        trim_leading_silence: Shift notes so the first starts at 0
    """

    window_size: int = DEFAULT_N_FFT
    hop_size: int = DEFAULT_HOP_LENGTH
    onset_threshold: float = 1.5
    min_onset_gap: float = 0.05
    min_bpm: float = 60.0
    max_bpm: float = 180.0
    tempo_tolerance: float = 5.0
    min_freq: float = 80.0
    max_freq: float = 1100.0
    clarity_threshold: float = 0.5
    smoothing_window: int = 5
    snap_to_semitone: bool = False
    min_velocity: int = 30
    max_velocity: int = 120
    min_note_duration: float = 0.05
    use_pitch_changes: bool = True
    merge_gap: Optional[float] = None
    trim_leading_silence: bool = True


@dataclass
class TranscriptionResult:
    """Everything one analysis run produced."""

    notes: List[NoteEvent] = field(default_factory=list)
    onsets: List[float] = field(default_factory=list)
    tempo: TempoInfo = field(default_factory=lambda: TempoInfo(bpm=120.0))
    dynamics: DynamicsResult = field(default_factory=DynamicsResult)
    contour: Optional[PitchContour] = None
    duration: float = 0.0  # seconds of audio analysed


class MonophonicTranscriber(Transcriber):
    """Transcribes a single melody line from mono audio."""

    STAGES = (
        "onsets",
        "tempo",
        "pitch",
        "dynamics",
        "segmentation",
        "cleanup",
    )

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        progress: Optional[ProgressCallback] = None,
    ):
        """
        Initialize MonophonicTranscriber.

        Args:
            config: Pipeline settings (defaults to AnalysisConfig())
            progress: Called as ``progress(stage, fraction)`` after each stage
        """
        self.config = config or AnalysisConfig()
        self.progress = progress

        cfg = self.config
        self.onset_detector = OnsetDetector(
            window_size=cfg.window_size,
            hop_size=cfg.hop_size,
            threshold=cfg.onset_threshold,
            min_onset_gap=cfg.min_onset_gap,
        )
        self.tempo_analyzer = TempoAnalyzer(min_bpm=cfg.min_bpm, max_bpm=cfg.max_bpm)
        self.pitch_tracker = PitchTracker(
            window_size=cfg.window_size,
            hop_size=cfg.hop_size,
            min_freq=cfg.min_freq,
            max_freq=cfg.max_freq,
            clarity_threshold=cfg.clarity_threshold,
            snap_to_semitone=cfg.snap_to_semitone,
        )
        self.dynamics_analyzer = DynamicsAnalyzer(
            min_velocity=cfg.min_velocity,
            max_velocity=cfg.max_velocity,
        )
        self.segmenter = NoteSegmenter(
            min_note_duration=cfg.min_note_duration,
            use_pitch_changes=cfg.use_pitch_changes,
        )

    def transcribe(self, audio: np.ndarray, sr: int) -> List[NoteEvent]:
        """
        Transcribe monophonic audio to notes.

        Args:
            audio: Audio array (mono)
            sr: Sample rate

        Returns:
            List of detected notes
        """
        return self.analyze(audio, sr).notes

    def analyze(self, audio: np.ndarray, sr: int) -> TranscriptionResult:
        """
        Run the whole pipeline and keep every intermediate result.

        Args:
            audio: Audio array (mono)
            sr: Sample rate

        Returns:
            TranscriptionResult with notes, onsets, tempo, dynamics and contour
        """
        cfg = self.config
        samples = np.asarray(audio, dtype=np.float32)
        duration = len(samples) / sr

        onsets = self.onset_detector.detect(samples, sr, refine=True)
        self._report("onsets", 1)

        tempo = self.tempo_analyzer.analyze(onsets)
        if tempo.confidence > 0:
            tempo.bpm = self.tempo_analyzer.refine(onsets, tempo.bpm, cfg.tempo_tolerance)
        self._report("tempo", 2)

        contour = self.pitch_tracker.detect_contour(samples, sr)
        if cfg.smoothing_window > 1:
            contour = smooth_contour(contour, cfg.smoothing_window)
        self._report("pitch", 3)

        dynamics = self.dynamics_analyzer.analyze(samples, onsets, duration, sr)
        self._report("dynamics", 4)

        notes = self.segmenter.segment(onsets, contour, dynamics.velocities, duration)
        self._report("segmentation", 5)

        if cfg.merge_gap is not None:
            notes = merge_consecutive_notes(notes, cfg.merge_gap)
        notes = filter_short_notes(notes, cfg.min_note_duration)
        if cfg.trim_leading_silence:
            notes = normalize_start_times(notes)
        self._report("cleanup", 6)

        return TranscriptionResult(
            notes=notes,
            onsets=onsets,
            tempo=tempo,
            dynamics=dynamics,
            contour=contour,
            duration=duration,
        )

    def _report(self, stage: str, step: int) -> None:
        if self.progress is not None:
            self.progress(stage, step / len(self.STAGES))
