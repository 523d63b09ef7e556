"""Tests for the win probability estimator."""

from __future__ import annotations

import math

import pytest

from data_processor.win_probability import (
    MAX_PROBABILITY,
    MIN_PROBABILITY,
    WinProbabilityEstimator,
    normal_cdf,
    win_percentage,
)


def test_large_lead_is_clamped_to_ceiling() -> None:
    assert WinProbabilityEstimator.compute(100, 0, 40) == pytest.approx(0.95)


def test_large_deficit_is_clamped_to_floor() -> None:
    assert WinProbabilityEstimator.compute(0, 100, 40) == pytest.approx(0.05)


def test_zero_total_is_exactly_one_half() -> None:
    assert WinProbabilityEstimator.compute(0, 0, 40) == 0.5


def test_tied_scores_are_exactly_one_half() -> None:
    assert WinProbabilityEstimator.compute(50, 50, 40) == 0.5


def test_moderate_lead_matches_normal_distribution() -> None:
    # lead 20 with sd 40 -> z = 20 / (40 * sqrt(2))
    z = 20 / (40 * math.sqrt(2))
    expected = 0.5 * (1 + math.erf(z / math.sqrt(2)))

    assert WinProbabilityEstimator.compute(110, 90, 40) == pytest.approx(expected, abs=1e-6)


def test_probability_is_symmetric() -> None:
    lead = WinProbabilityEstimator.compute(98.4, 91.2, 40)
    trail = WinProbabilityEstimator.compute(91.2, 98.4, 40)

    assert lead + trail == pytest.approx(1.0, abs=1e-6)


def test_lower_std_dev_is_more_aggressive() -> None:
    cautious = WinProbabilityEstimator.compute(105, 100, 60)
    aggressive = WinProbabilityEstimator.compute(105, 100, 10)

    assert aggressive > cautious > 0.5


@pytest.mark.parametrize("my_score, opponent_score", [(0, 250), (12.5, 3.1), (140, 139.9), (300, 0)])
def test_probability_always_within_bounds(my_score: float, opponent_score: float) -> None:
    probability = WinProbabilityEstimator.compute(my_score, opponent_score, 25)

    assert MIN_PROBABILITY <= probability <= MAX_PROBABILITY


def test_non_positive_std_dev_raises() -> None:
    with pytest.raises(ValueError):
        WinProbabilityEstimator.compute(10, 5, 0)
    with pytest.raises(ValueError):
        WinProbabilityEstimator(-1)


def test_estimator_instance_uses_configured_std_dev() -> None:
    estimator = WinProbabilityEstimator(10)

    assert estimator(105, 100) == WinProbabilityEstimator.compute(105, 100, 10)


def test_normal_cdf_accuracy() -> None:
    for z in (-2.5, -1.0, -0.1, 0.3, 1.0, 1.96):
        assert normal_cdf(z) == pytest.approx(0.5 * (1 + math.erf(z / math.sqrt(2))), abs=1e-6)


def test_win_percentage_truncates() -> None:
    assert win_percentage(100, 0) == 95
    assert win_percentage(50, 50) == 50
