"""Tests for pitch tracking and contour post-processing."""

import numpy as np
import pytest

from melody_scribe.analysis import PitchTracker, detect_vibrato, get_segment_pitch, smooth_contour
from melody_scribe.analysis.pitch import correct_octave_errors, make_frame, remove_isolated_frames
from melody_scribe.core import PitchContour, PitchFrame, midi_to_freq

SR = 22050
HOP = 512
HOP_DURATION = HOP / SR


def frame_at(i, frequency, clarity=0.9):
    return make_frame(i * HOP_DURATION, frequency, clarity)


def contour_of(frequencies):
    """Contour with one frame per frequency (None = unvoiced)."""
    return PitchContour(
        frames=[frame_at(i, f) for i, f in enumerate(frequencies)],
        sample_rate=SR,
        hop_size=HOP,
    )


@pytest.fixture
def sine_440():
    """One second of A4."""
    t = np.linspace(0, 1.0, SR, endpoint=False)
    return (0.5 * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32)


class TestPitchTracker:
    """Tests for PitchTracker on synthetic audio."""

    def test_sine_is_a4(self, sine_440):
        contour = PitchTracker().detect_contour(sine_440, SR)
        pitch = get_segment_pitch(contour, 0.0, 1.0)

        assert pitch is not None
        assert pitch.midi == 69
        assert abs(pitch.cents_deviation) < 20
        assert 0 < pitch.confidence <= 1

    def test_silence_is_unvoiced(self):
        contour = PitchTracker().detect_contour(np.zeros(SR, dtype=np.float32), SR)
        assert contour.valid_count == 0

    def test_empty_input(self):
        contour = PitchTracker().detect_contour(np.zeros(0, dtype=np.float32), SR)
        assert len(contour) == 0

    def test_snap_to_semitone(self):
        """Auto-tune mode pulls a detuned tone onto the equal-tempered pitch."""
        t = np.linspace(0, 1.0, SR, endpoint=False)
        detuned = (0.5 * np.sin(2 * np.pi * 446.0 * t)).astype(np.float32)

        contour = PitchTracker(snap_to_semitone=True).detect_contour(detuned, SR)
        valid = [f for f in contour.frames if f.is_valid]

        assert valid
        assert all(f.frequency == pytest.approx(440.0) for f in valid if f.midi == 69)
        assert all(f.cents_deviation == 0.0 for f in valid)


class TestMakeFrame:
    """Tests for frame construction."""

    def test_cents_deviation(self):
        frame = make_frame(0.0, midi_to_freq(69.25), 0.9)
        assert frame.midi == 69
        assert frame.cents_deviation == pytest.approx(25.0, abs=0.01)

    def test_unvoiced(self):
        frame = make_frame(0.0, None, 0.1)
        assert not frame.is_valid
        assert frame.clarity == 0.1

    def test_snap(self):
        frame = make_frame(0.0, 450.0, 0.9, snap=True)
        assert frame.midi == 69
        assert frame.frequency == pytest.approx(440.0)


class TestContourCleanup:
    """Tests for isolated-frame removal and octave correction."""

    def test_isolated_frame_removed(self):
        contour = contour_of([None, None, None, 440.0, None, None, None])
        cleaned = remove_isolated_frames(contour.frames)
        assert not any(f.is_valid for f in cleaned)

    def test_supported_frames_kept(self):
        contour = contour_of([440.0] * 5)
        cleaned = remove_isolated_frames(contour.frames)
        assert all(f.is_valid for f in cleaned)

    def test_octave_jump_folded(self):
        frequencies = [440.0] * 5 + [880.0] + [440.0] * 5
        corrected = correct_octave_errors(contour_of(frequencies).frames)

        assert corrected[5].midi == 69
        assert corrected[5].frequency == pytest.approx(440.0)

    def test_real_leap_kept(self):
        """A fifth is not an octave error."""
        frequencies = [440.0] * 5 + [midi_to_freq(76)] * 5
        corrected = correct_octave_errors(contour_of(frequencies).frames)
        assert [f.midi for f in corrected] == [69] * 5 + [76] * 5


class TestSmoothContour:
    """Tests for median smoothing."""

    def test_step_is_preserved(self):
        """A pitch step is not smeared into in-between values."""
        c4, g4 = midi_to_freq(60), midi_to_freq(67)
        smoothed = smooth_contour(contour_of([c4] * 5 + [g4] * 5), window_size=5)
        assert [f.midi for f in smoothed.frames] == [60] * 5 + [67] * 5

    def test_outlier_is_smoothed(self):
        frequencies = [440.0, 440.0, 452.0, 440.0, 440.0]
        smoothed = smooth_contour(contour_of(frequencies), window_size=5)
        assert smoothed.frames[2].frequency == pytest.approx(440.0)

    def test_invalid_frames_untouched(self):
        smoothed = smooth_contour(contour_of([440.0, None, 440.0]), window_size=3)
        assert not smoothed.frames[1].is_valid


class TestVibrato:
    """Tests for vibrato detection."""

    def test_vibrato_detected(self):
        n = int(1.0 / HOP_DURATION)
        times = np.arange(n) * HOP_DURATION
        cents = 50.0 * np.sin(2 * np.pi * 5.0 * times + 0.3)
        contour = contour_of(list(440.0 * 2 ** (cents / 1200)))

        vibrato = detect_vibrato(contour, 0, n)

        assert vibrato is not None
        assert 4.0 <= vibrato.rate <= 6.0
        assert 40.0 <= vibrato.depth <= 55.0

    def test_steady_pitch_has_no_vibrato(self):
        contour = contour_of([440.0] * 40)
        assert detect_vibrato(contour, 0, 40) is None

    def test_too_few_frames(self):
        contour = contour_of([440.0, 450.0, 440.0])
        assert detect_vibrato(contour, 0, 3) is None


class TestSegmentPitch:
    """Tests for dominant pitch of a time range."""

    def test_mode_wins(self):
        frequencies = [440.0] * 6 + [midi_to_freq(71)] * 3
        pitch = get_segment_pitch(contour_of(frequencies), 0.0, 1.0)
        assert pitch.midi == 69
        assert pitch.frequency == pytest.approx(440.0)

    def test_no_valid_frames(self):
        assert get_segment_pitch(contour_of([None] * 5), 0.0, 1.0) is None

    def test_range_is_half_open(self):
        contour = contour_of([440.0] * 5 + [midi_to_freq(71)] * 5)
        pitch = get_segment_pitch(contour, 0.0, 5 * HOP_DURATION)

        # The frame at exactly end_time belongs to the next segment
        assert pitch.midi == 69
        assert pitch.confidence == pytest.approx(0.9)
