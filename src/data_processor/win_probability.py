"""Normal-approximation win probability from a score differential."""

from __future__ import annotations

import math

DEFAULT_STD_DEV = 40.0
MIN_PROBABILITY = 0.05
MAX_PROBABILITY = 0.95

# Abramowitz & Stegun 7.1.26 coefficients for erf.
_P = 0.3275911
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429


def _erf(x: float) -> float:
    sign = -1.0 if x < 0 else 1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    poly = ((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t
    return sign * (1.0 - poly * math.exp(-x * x))


def normal_cdf(z: float) -> float:
    """Standard normal CDF via the rational erf approximation."""
    return 0.5 * (1.0 + _erf(z / math.sqrt(2.0)))


class WinProbabilityEstimator:
    """Estimate the chance that ``my_score`` holds up against ``opponent_score``.

    Both teams' remaining output is treated as independent normal noise with
    the same standard deviation, so the differential has ``std_dev * sqrt(2)``.
    Lower deviations make small leads look safer.
    """

    def __init__(self, std_dev: float = DEFAULT_STD_DEV) -> None:
        if std_dev <= 0:
            raise ValueError("std_dev must be positive.")
        self.std_dev = std_dev

    @staticmethod
    def compute(my_score: float, opponent_score: float, std_dev: float = DEFAULT_STD_DEV) -> float:
        if std_dev <= 0:
            raise ValueError("std_dev must be positive.")
        if my_score + opponent_score == 0:
            return 0.5
        lead = my_score - opponent_score
        if lead == 0:
            return 0.5
        z = lead / (std_dev * math.sqrt(2.0))
        return min(MAX_PROBABILITY, max(MIN_PROBABILITY, normal_cdf(z)))

    def __call__(self, my_score: float, opponent_score: float) -> float:
        return self.compute(my_score, opponent_score, self.std_dev)


def win_percentage(my_score: float, opponent_score: float, std_dev: float = DEFAULT_STD_DEV) -> int:
    """Whole-number percentage (truncated) for display."""
    probability = WinProbabilityEstimator.compute(my_score, opponent_score, std_dev)
    # Absorb float error so 0.95 truncates to 95, not 94.
    return int(probability * 100 + 1e-9)
