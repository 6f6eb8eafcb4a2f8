"""Closed-form statistics of mixed-shape distributions.

Every statistic aggregates per-shape quantities weighted by component
weight and normalized by the total weight. A distribution whose total weight
is zero (including the empty distribution) yields ``0.0`` for every
statistic instead of raising.

Per-shape moments:

========  ==================  ===================
Shape     Mean                Internal variance
========  ==================  ===================
Atom      ``x``               ``0``
Bin       ``(a + b) / 2``     ``(b - a)**2 / 12``
Tail      ``x0 +/- 1/lam``    ``1 / lam**2``
========  ==================  ===================
"""

import math
from typing import List, Tuple

import pandas as pd

from .components import Atom, Bin, Component, Distribution, Tail


def _component_mean(c: Component) -> float:
    if isinstance(c, Atom):
        return c.x
    if isinstance(c, Bin):
        return c.center
    return c.x0 + 1.0 / c.lam if c.is_right else c.x0 - 1.0 / c.lam


def _component_variance(c: Component) -> float:
    if isinstance(c, Atom):
        return 0.0
    if isinstance(c, Bin):
        return c.width**2 / 12.0
    return 1.0 / (c.lam * c.lam)


def _component_prob_gt(c: Component, x: float) -> float:
    """Unnormalized mass of ``c`` strictly above ``x``."""
    if isinstance(c, Atom):
        return c.p if c.x > x else 0.0
    if isinstance(c, Bin):
        if c.a > x:
            return c.p
        if c.b > x:
            return c.p * (c.b - x) / (c.b - c.a)
        return 0.0
    if c.is_right:
        if x < c.x0:
            return c.mass
        return c.mass * math.exp(-c.lam * (x - c.x0))
    if x < c.x0:
        return c.mass * (1.0 - math.exp(-c.lam * (c.x0 - x)))
    return 0.0


def mean(d: Distribution) -> float:
    """Weighted mean of the component means."""
    total = d.total_weight
    if total == 0:
        return 0.0
    return sum(_component_mean(c) * c.weight for c in d) / total


def variance(d: Distribution) -> float:
    """Variance by the law of total variance.

    Each component contributes its squared distance from the overall mean
    plus its own internal variance, weighted by its share of the mass.
    """
    total = d.total_weight
    if total == 0:
        return 0.0
    m = mean(d)
    return (
        sum(((_component_mean(c) - m) ** 2 + _component_variance(c)) * c.weight for c in d)
        / total
    )


def std(d: Distribution) -> float:
    """Standard deviation, ``sqrt(variance(d))``.

    Negative weights can push the variance below zero, in which case the
    result is ``nan``.
    """
    v = variance(d)
    return math.sqrt(v) if v >= 0 else math.nan


def prob_gt(d: Distribution, x: float) -> float:
    """Exceedance probability ``P(X > x)``.

    Args:
        d: Distribution of ``X``.
        x: Threshold.

    Returns:
        Normalized probability mass strictly above ``x``.
    """
    total = d.total_weight
    if total == 0:
        return 0.0
    return sum(_component_prob_gt(c, x) for c in d) / total


def cdf(d: Distribution, x: float) -> float:
    """Cumulative probability ``P(X <= x)``; ``0.0`` for zero total weight."""
    if d.total_weight == 0:
        return 0.0
    return 1.0 - prob_gt(d, x)


def _axis_key(c: Component) -> float:
    if isinstance(c, Atom):
        return c.x
    if isinstance(c, Bin):
        return c.a
    return c.x0 if c.is_right else -math.inf


def median(d: Distribution) -> float:
    """Approximate median.

    Components are visited in axis order (left tails first, then by Atom
    location, Bin start or right-tail anchor) accumulating normalized weight;
    the median is found by inverting the CDF of the component where the
    running total reaches one half. Overlapping Bins make the result an
    approximation.

    Returns:
        The median, or ``0.0`` for an empty or zero-weight distribution.
    """
    total = d.total_weight
    if total == 0:
        return 0.0

    ordered: List[Tuple[float, Component]] = sorted(
        ((_axis_key(c), c) for c in d), key=lambda pair: pair[0]
    )
    cumulative = 0.0
    for _, c in ordered:
        share = c.weight / total
        if share > 0 and cumulative + share >= 0.5:
            ratio = (0.5 - cumulative) / share
            if isinstance(c, Atom):
                return c.x
            if isinstance(c, Bin):
                return c.a + ratio * (c.b - c.a)
            if c.is_right:
                if ratio >= 1.0:
                    return math.inf
                return c.x0 - math.log(1.0 - ratio) / c.lam
            return c.x0 + math.log(ratio) / c.lam
        cumulative += share
    return 0.0


def describe(d: Distribution) -> pd.Series:
    """Summary statistics of a distribution as a ``pandas.Series``."""
    return pd.Series(
        {
            "n_components": len(d),
            "total_weight": d.total_weight,
            "mean": mean(d),
            "variance": variance(d),
            "std": std(d),
            "median": median(d),
        }
    )
