"""Tests for quantization and difficulty rating."""

import pytest

from ludwig.core import DifficultyThresholds, Note
from ludwig.processing import DifficultyRater, Quantizer


class TestQuantizer:
    """Tests for Quantizer."""

    @pytest.fixture
    def quantizer(self):
        return Quantizer(tempo=120.0, quantize_resolution=16)

    def test_grid_duration(self, quantizer):
        # At 120 BPM, 16th note = 0.125s
        assert quantizer.beat_duration == 0.5
        assert quantizer.grid_duration == 0.125
        assert Quantizer(tempo=120.0, quantize_resolution=8).grid_duration == 0.25

    def test_quantize(self, quantizer):
        notes = [Note(pitch=60, start=0.48, duration=0.5)]
        quantized = quantizer.quantize(notes)

        # 0.48 should snap to 0.5
        assert quantized[0].start == 0.5
        assert quantized[0].duration == 0.5

    def test_minimum_one_grid_unit(self, quantizer):
        quantized = quantizer.quantize([Note(pitch=60, start=0.0, duration=0.01)])
        assert quantized[0].duration == 0.125

    def test_starts_on_grid(self):
        quantizer = Quantizer(tempo=97.0)
        grid = quantizer.grid_duration
        notes = [
            Note(pitch=60 + i % 5, start=i * 0.173, duration=0.05 + (i % 4) * 0.11)
            for i in range(30)
        ]
        for note in quantizer.quantize(notes):
            units = note.start / grid
            assert units == pytest.approx(round(units), abs=1e-9)
            assert note.duration > 0

    def test_output_sorted(self, quantizer):
        notes = [
            Note(pitch=64, start=1.0, duration=0.5),
            Note(pitch=60, start=0.0, duration=0.5),
            Note(pitch=62, start=0.5, duration=0.5),
        ]
        starts = [n.start for n in quantizer.quantize(notes)]
        assert starts == [0.0, 0.5, 1.0]

    def test_keeps_pitch_and_velocity(self, quantizer):
        quantized = quantizer.quantize([Note(pitch=67, start=0.26, duration=0.24, velocity=99)])
        assert quantized[0].pitch == 67
        assert quantized[0].velocity == 99

    def test_merges_contained_same_pitch(self, quantizer):
        notes = [
            Note(pitch=60, start=0.0, duration=1.0, velocity=70),
            Note(pitch=60, start=0.25, duration=0.5, velocity=90),
        ]
        quantized = quantizer.quantize(notes)

        assert len(quantized) == 1
        assert quantized[0].start == 0.0
        assert quantized[0].duration == 1.0
        assert quantized[0].velocity == 90

    def test_merges_same_start_same_pitch(self, quantizer):
        notes = [
            Note(pitch=60, start=0.0, duration=0.5),
            Note(pitch=60, start=0.01, duration=1.0),
        ]
        quantized = quantizer.quantize(notes)

        assert len(quantized) == 1
        assert quantized[0].duration == 1.0

    def test_partial_overlap_keeps_reattack(self, quantizer):
        # Snaps to [0.125, 0.625) and [0.5, 1.0)
        notes = [
            Note(pitch=60, start=0.07, duration=0.44),
            Note(pitch=60, start=0.5, duration=0.5),
        ]
        quantized = quantizer.quantize(notes)

        assert len(quantized) == 2
        assert quantized[0].start == 0.125
        assert quantized[0].end == 0.5
        assert quantized[1].start == 0.5
        assert quantized[1].end == 1.0

    def test_partial_overlap_keeps_one_grid_unit(self, quantizer):
        notes = [
            Note(pitch=60, start=0.0, duration=0.5),
            Note(pitch=60, start=0.125, duration=0.5),
        ]
        quantized = quantizer.quantize(notes)

        assert [(n.start, n.duration) for n in quantized] == [(0.0, 0.125), (0.125, 0.5)]

    def test_merge_across_other_pitches(self, quantizer):
        notes = [
            Note(pitch=60, start=0.0, duration=1.0),
            Note(pitch=64, start=0.0, duration=1.0),
            Note(pitch=60, start=0.25, duration=0.25),
        ]
        quantized = quantizer.quantize(notes)

        assert [(n.pitch, n.start, n.duration) for n in quantized] == [
            (60, 0.0, 1.0),
            (64, 0.0, 1.0),
        ]

    def test_adjacent_same_pitch_not_merged(self, quantizer):
        notes = [
            Note(pitch=60, start=0.0, duration=0.5),
            Note(pitch=60, start=0.5, duration=0.5),
        ]
        assert len(quantizer.quantize(notes)) == 2

    def test_overlapping_different_pitch_not_merged(self, quantizer):
        notes = [
            Note(pitch=60, start=0.0, duration=0.5),
            Note(pitch=64, start=0.25, duration=0.5),
        ]
        assert len(quantizer.quantize(notes)) == 2

    def test_clamped_to_total_duration(self, quantizer):
        quantized = quantizer.quantize([Note(pitch=60, start=0.9, duration=0.5)], total_duration=1.0)

        assert quantized[0].start == 0.875
        assert quantized[0].end == pytest.approx(1.0)

    def test_start_at_end_moves_back(self, quantizer):
        quantized = quantizer.quantize([Note(pitch=60, start=0.99, duration=0.1)], total_duration=1.0)

        assert quantized[0].start == 0.875
        assert quantized[0].duration == 0.125

    def test_empty(self, quantizer):
        assert quantizer.quantize([]) == []


class TestDifficultyRater:
    """Tests for DifficultyRater."""

    @pytest.fixture
    def rater(self):
        return DifficultyRater()

    def notes(self, count, duration, pitches=(60,)):
        step = duration / count
        return [
            Note(pitch=pitches[i % len(pitches)], start=i * step, duration=step)
            for i in range(count)
        ]

    def test_no_notes_is_beginner(self, rater):
        report = rater.rate([], 10.0)
        assert report.label == "Beginner"
        assert report.notes_per_second == 0.0
        assert report.pitch_range == 0

    def test_sparse_narrow_is_beginner(self, rater):
        assert rater.label(self.notes(10, 10.0, pitches=(60, 65)), 10.0) == "Beginner"

    def test_density_tiers(self, rater):
        assert rater.label(self.notes(20, 10.0), 10.0) == "Intermediate"
        assert rater.label(self.notes(39, 10.0), 10.0) == "Intermediate"
        assert rater.label(self.notes(40, 10.0), 10.0) == "Advanced"

    def test_range_tiers(self, rater):
        assert rater.label(self.notes(2, 10.0, pitches=(60, 72)), 10.0) == "Intermediate"
        assert rater.label(self.notes(2, 10.0, pitches=(48, 72)), 10.0) == "Advanced"

    def test_label_is_higher_of_measures(self, rater):
        # Beginner density, Advanced range
        report = rater.rate(self.notes(3, 10.0, pitches=(40, 60, 70)), 10.0)
        assert report.notes_per_second == pytest.approx(0.3)
        assert report.pitch_range == 30
        assert report.label == "Advanced"

    def test_custom_thresholds(self):
        rater = DifficultyRater(
            DifficultyThresholds(
                intermediate_density=0.5,
                advanced_density=1.0,
                intermediate_range=30,
                advanced_range=40,
            )
        )
        assert rater.label(self.notes(5, 10.0), 10.0) == "Intermediate"
        assert rater.label(self.notes(10, 10.0), 10.0) == "Advanced"

    def test_zero_duration(self, rater):
        assert rater.label(self.notes(3, 1.0), 0.0) == "Beginner"
