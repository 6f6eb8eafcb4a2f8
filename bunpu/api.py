"""Flat-array boundary operations.

Each function takes distributions in the flat encoding of
:mod:`bunpu.codec`, decodes them, runs one operation and returns either a
scalar or a freshly encoded array. No state survives between calls.
"""

from typing import Optional, Sequence

import numpy as np

from . import algebra, statistics
from .alias_sampler import AliasSampler
from .codec import decode, encode
from .random_source import NumpyRandomSource, RandomSource
from .ruin_probability import count_ruined_trials


def run_monte_carlo(
    components: Sequence[float],
    init_wealth: float,
    steps: int,
    num_trials: int,
    rng: Optional[RandomSource] = None,
) -> int:
    """Count ruined trials for an encoded step distribution.

    Args:
        components: Encoded per-step increment distribution.
        init_wealth: Initial wealth of every trial.
        steps: Steps per trial.
        num_trials: Number of trials.
        rng: Random source; a fresh unseeded one when omitted.

    Returns:
        Number of ruined trials.
    """
    sampler = AliasSampler.from_encoded(components)
    return count_ruined_trials(
        sampler, init_wealth, steps, num_trials, rng or NumpyRandomSource()
    )


def convolve_distributions(dist1: Sequence[float], dist2: Sequence[float]) -> np.ndarray:
    """Encoded approximate distribution of the sum of two independent variables."""
    return encode(algebra.convolve(decode(dist1), decode(dist2)))


def dist_mean(components: Sequence[float]) -> float:
    return statistics.mean(decode(components))


def dist_variance(components: Sequence[float]) -> float:
    return statistics.variance(decode(components))


def dist_std(components: Sequence[float]) -> float:
    return statistics.std(decode(components))


def dist_prob_gt(components: Sequence[float], x: float) -> float:
    """``P(X > x)`` for an encoded distribution."""
    return statistics.prob_gt(decode(components), x)


def dist_mix(dist1: Sequence[float], dist2: Sequence[float], p: float) -> np.ndarray:
    """Encoded mixture ``(1 - p) * dist1 + p * dist2``."""
    return encode(algebra.mix(decode(dist1), decode(dist2), p))


def dist_scale(components: Sequence[float], k: float) -> np.ndarray:
    """Encoded distribution of ``k * X``.

    Raises:
        DegenerateScaleError: If ``k == 0`` and the distribution has a tail.
    """
    return encode(algebra.scale(decode(components), k))
