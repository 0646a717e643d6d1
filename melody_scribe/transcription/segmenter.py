"""Note segmentation - turn onsets, pitch contour and velocities into notes."""

import math
import warnings
from dataclasses import replace
from typing import List, Optional, Sequence

from ..core import NoteEvent, PitchContour, VelocityInfo
from ..core.constants import DEFAULT_VELOCITY
from ..core.errors import InsufficientDataWarning
from ..analysis.pitch import detect_vibrato, get_segment_pitch


class NoteSegmenter:
    """Build notes from onset-bounded segments of the pitch contour."""

    # Shortest piece kept when a note is split at a pitch change
    MIN_SUB_NOTE_DURATION = 0.05

    def __init__(
        self,
        min_note_duration: float = 0.05,
        use_pitch_changes: bool = True,
        min_stable_frames: int = 3,
        split_threshold: int = 1,
    ):
        """
        Initialize NoteSegmenter.

        Args:
            min_note_duration: Shortest onset-bounded note (seconds) kept
            use_pitch_changes: Split notes at slurred pitch changes
            min_stable_frames: Frames a pitch must hold before a change counts
            split_threshold: Pitch changes larger than this (semitones) split a note
        """
        self.min_note_duration = min_note_duration
        self.use_pitch_changes = use_pitch_changes
        self.min_stable_frames = min_stable_frames
        self.split_threshold = split_threshold

    def segment(
        self,
        onsets: Sequence[float],
        contour: PitchContour,
        velocities: Sequence[VelocityInfo],
        total_duration: float,
    ) -> List[NoteEvent]:
        """
        Segment a recording into notes.

        Each onset opens a segment that runs to the next onset (the last one to
        ``total_duration``). Segments that are too short or have no dominant
        pitch are dropped.

        Args:
            onsets: Onset times in seconds, increasing
            contour: Pitch contour of the recording
            velocities: Per-onset velocities from the dynamics analyzer
            total_duration: Recording length in seconds

        Returns:
            Notes ordered by start time
        """
        if len(onsets) == 0:
            warnings.warn("No onsets to segment", InsufficientDataWarning)
            return []

        hop_duration = contour.hop_duration
        notes = []

        for i, start_time in enumerate(onsets):
            end_time = onsets[i + 1] if i < len(onsets) - 1 else total_duration
            duration = end_time - start_time
            if duration < self.min_note_duration:
                continue

            pitch = get_segment_pitch(contour, start_time, end_time)
            if pitch is None or pitch.midi <= 0:
                continue

            velocity = velocities[i].velocity if i < len(velocities) else DEFAULT_VELOCITY
            note = NoteEvent(
                midi=pitch.midi,
                frequency=pitch.frequency,
                start_time=float(start_time),
                duration=float(duration),
                velocity=velocity,
                cents_deviation=pitch.cents_deviation,
            )

            vibrato = detect_vibrato(
                contour,
                int(math.floor(start_time / hop_duration)),
                int(math.ceil(end_time / hop_duration)),
            )
            if vibrato is not None:
                note = replace(note, vibrato_rate=vibrato.rate, vibrato_depth=vibrato.depth)

            notes.append(note)

        if self.use_pitch_changes:
            return self.split_at_pitch_changes(notes, contour)
        return notes

    def split_at_pitch_changes(
        self,
        notes: Sequence[NoteEvent],
        contour: PitchContour,
    ) -> List[NoteEvent]:
        """
        Split notes where the pitch moves by more than a semitone mid-note.

        Catches slurred notes the onset detector missed. Sub-segments shorter
        than ``MIN_SUB_NOTE_DURATION`` or without a dominant pitch are dropped.
        """
        hop_duration = contour.hop_duration
        result = []

        for note in notes:
            start_frame = int(math.floor(note.start_time / hop_duration))
            end_frame = int(math.ceil(note.end_time / hop_duration))
            changes = self.find_pitch_changes(contour, start_frame, end_frame)

            if not changes:
                result.append(note)
                continue

            boundaries = [note.start_time] + [f * hop_duration for f in changes] + [note.end_time]
            for start, end in zip(boundaries[:-1], boundaries[1:]):
                piece = self._sub_note(contour, note, start, end)
                if piece is not None:
                    result.append(piece)

        return result

    def find_pitch_changes(self, contour: PitchContour, start_frame: int, end_frame: int) -> List[int]:
        """Frame indices where a stable pitch jumps by more than the split threshold."""
        changes = []
        previous: Optional[int] = None
        stable = 0

        for i in range(max(0, start_frame), min(end_frame, len(contour.frames))):
            frame = contour.frames[i]
            if not frame.is_valid or frame.midi <= 0:
                continue

            if previous is None:
                previous, stable = frame.midi, 1
            elif abs(frame.midi - previous) > self.split_threshold:
                if stable >= self.min_stable_frames:
                    changes.append(i)
                previous, stable = frame.midi, 1
            else:
                stable += 1

        return changes

    def _sub_note(
        self,
        contour: PitchContour,
        note: NoteEvent,
        start: float,
        end: float,
    ) -> Optional[NoteEvent]:
        if end - start < self.MIN_SUB_NOTE_DURATION:
            return None

        pitch = get_segment_pitch(contour, start, end)
        if pitch is None or pitch.midi <= 0:
            return None

        return NoteEvent(
            midi=pitch.midi,
            frequency=pitch.frequency,
            start_time=start,
            duration=end - start,
            velocity=note.velocity,
            cents_deviation=pitch.cents_deviation,
        )
