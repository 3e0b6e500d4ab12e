"""Tests for nearest-rank and binned percentile estimation."""

import random

import pytest

from speedstats.analysis.bins import SPEED_BINS_8, SpeedBin
from speedstats.analysis.percentiles import (
    mean,
    p50_from_bins,
    p85_from_bins,
    percentile_from_bins,
    percentile_from_samples,
)


# ── Nearest rank ─────────────────────────────────────────────────────────────


class TestPercentileFromSamples:
    def test_known_sequence(self) -> None:
        assert percentile_from_samples(range(1, 101), 0.85) == 85

    def test_empty_is_zero(self) -> None:
        assert percentile_from_samples([], 0.85) == 0

    def test_order_does_not_matter(self) -> None:
        values = [31.2, 44.0, 27.5, 38.9, 35.1, 52.3, 29.9, 41.7, 33.3]
        expected = percentile_from_samples(values, 0.85)
        rng = random.Random(7)
        for _ in range(20):
            shuffled = values[:]
            rng.shuffle(shuffled)
            assert percentile_from_samples(shuffled, 0.85) == expected

    def test_picks_an_existing_sample(self) -> None:
        # 0.85 * 3 = 2.55 -> rank 3 -> index 2; no interpolation
        assert percentile_from_samples([30.0, 40.0, 50.0], 0.85) == 50.0

    def test_single_value(self) -> None:
        assert percentile_from_samples([42.0], 0.85) == 42.0

    def test_index_is_clamped(self) -> None:
        values = [10.0, 20.0, 30.0]
        assert percentile_from_samples(values, 0.0) == 10.0
        assert percentile_from_samples(values, 1.0) == 30.0


# ── Binned interpolation ─────────────────────────────────────────────────────

_TWO_BINS = (SpeedBin(0, 10, "0-10"), SpeedBin(10, 20, "10-20"))


class TestPercentileFromBins:
    def test_target_on_bin_boundary(self) -> None:
        assert percentile_from_bins([10, 10], _TWO_BINS, 0.5) == 10

    def test_empty_histogram_is_zero(self) -> None:
        assert percentile_from_bins([0, 0], _TWO_BINS, 0.85) == 0

    def test_interpolates_inside_bin(self) -> None:
        # target 2 of 4 in 10-20 -> halfway
        assert percentile_from_bins([0, 4], _TWO_BINS, 0.5) == 15

    def test_rounds_half_up(self) -> None:
        counts = [0, 0, 0, 10, 0, 0, 0, 0]
        # 30 + 0.85 * 10 = 38.5
        assert p85_from_bins(counts, SPEED_BINS_8) == 39

    def test_open_bin_is_five_wide(self) -> None:
        counts = [0] * 7 + [10]
        # 70 + 0.85 * 5 = 74.25
        assert p85_from_bins(counts, SPEED_BINS_8) == 74

    def test_p50(self) -> None:
        counts = [0, 0, 0, 10, 10, 0, 0, 0]
        assert p50_from_bins(counts, SPEED_BINS_8) == 40

    def test_falls_back_when_target_unreachable(self) -> None:
        # target 3 of 2 vehicles is never reached -> last.min + 2
        assert percentile_from_bins([1, 1], SPEED_BINS_8[:2], 1.5) == 12

    def test_returns_int(self) -> None:
        assert isinstance(p85_from_bins([3, 7, 1], _TWO_BINS + (SpeedBin(20, 30, "20-30"),)), int)


class TestMean:
    def test_empty_is_zero(self) -> None:
        assert mean([]) == 0.0

    def test_mean(self) -> None:
        assert mean([30.0, 40.0]) == pytest.approx(35.0)
