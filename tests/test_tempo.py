"""Tests for IOI-histogram tempo analysis."""

import warnings

import pytest

from melody_scribe.analysis import TempoAnalyzer, TempoInfo
from melody_scribe.core import InsufficientDataWarning


@pytest.fixture
def metronome_120():
    """16 onsets of an exact 120 BPM metronome."""
    return [i * 0.5 for i in range(16)]


class TestTempoAnalyzer:
    """Tests for TempoAnalyzer.analyze."""

    def test_metronome_120(self, metronome_120):
        tempo = TempoAnalyzer().analyze(metronome_120)

        assert 118 <= tempo.bpm <= 122
        assert tempo.confidence > 0.5

    def test_alternatives_are_half_and_double(self, metronome_120):
        tempo = TempoAnalyzer().analyze(metronome_120)
        assert tempo.alternative_bpms == [60.0, 240.0]

    def test_bpm_is_rounded(self):
        onsets = [i * 0.6 for i in range(10)]  # 100 BPM
        tempo = TempoAnalyzer().analyze(onsets)
        assert tempo.bpm == 100.0

    def test_missed_onsets_recovered(self):
        """Halved two-apart intervals keep the beat when some onsets are missing."""
        onsets = [i * 0.5 for i in range(16) if i not in (3, 7, 11)]
        tempo = TempoAnalyzer().analyze(onsets)
        assert 118 <= tempo.bpm <= 122

    def test_fast_tempo_folds_to_plausible_range(self):
        """Onsets at 170 BPM with strong half-time support prefer 85 BPM."""
        analyzer = TempoAnalyzer()
        histogram = analyzer.build_histogram([0.353] * 10 + [0.706] * 8)
        ioi, confidence = analyzer.find_dominant_ioi(histogram)

        assert 60.0 / ioi == pytest.approx(85.0, abs=1.0)
        assert confidence <= 0.9

    def test_fallback_with_few_onsets(self):
        with pytest.warns(InsufficientDataWarning):
            tempo = TempoAnalyzer().analyze([0.0, 0.5, 1.0])

        assert tempo.bpm == 120.0
        assert tempo.confidence == 0.0

    def test_no_plausible_intervals(self):
        """Intervals outside the BPM range give the default with zero confidence."""
        onsets = [i * 3.0 for i in range(6)]
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            tempo = TempoAnalyzer().analyze(onsets)

        assert tempo.bpm == 120.0
        assert tempo.confidence == 0.0

    def test_confidence_in_unit_range(self):
        onsets = [0.0, 0.4, 1.1, 1.3, 2.0, 2.9, 3.1, 3.8]
        tempo = TempoAnalyzer().analyze(onsets)
        assert 0.0 <= tempo.confidence <= 1.0


class TestIntervals:
    """Tests for IOI extraction and histogram."""

    def test_inter_onset_intervals(self):
        iois = TempoAnalyzer().inter_onset_intervals([0.0, 0.5, 1.0, 1.5])
        assert sorted(iois) == pytest.approx([0.5] * 5)

    def test_intervals_filtered(self):
        iois = TempoAnalyzer().inter_onset_intervals([0.0, 0.05, 3.0, 3.5])
        assert all(0.1 <= i <= 2.0 for i in iois)

    def test_histogram_bins(self):
        histogram = TempoAnalyzer().build_histogram([0.5, 0.5, 0.51, 1.5])
        assert histogram[50] == 2
        assert histogram[51] == 1
        assert 150 not in histogram  # 40 BPM is below min_bpm


class TestTempoRefine:
    """Tests for phase-locking tempo refinement."""

    def test_refine_locks_to_grid(self):
        onsets = [i * 60.0 / 122.0 for i in range(12)]
        refined = TempoAnalyzer().refine(onsets, 120.0)
        assert refined == pytest.approx(122.0)

    def test_refine_ignores_offset_start(self):
        onsets = [0.25 + i * 0.5 for i in range(8)]
        assert TempoAnalyzer().refine(onsets, 120.0) == pytest.approx(120.0)

    def test_refine_needs_enough_onsets(self):
        assert TempoAnalyzer().refine([0.0, 0.5], 117.0) == 117.0

    def test_tempo_info_defaults(self):
        info = TempoInfo(bpm=90.0)
        assert info.confidence == 0.0
        assert info.alternative_bpms == []
