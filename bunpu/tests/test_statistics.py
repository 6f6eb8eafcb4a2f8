"""Tests for closed-form distribution statistics."""

import math

import numpy as np
import pandas as pd
import pytest

from bunpu.alias_sampler import AliasSampler
from bunpu.components import Atom, Bin, Distribution, Tail
from bunpu.random_source import NumpyRandomSource
from bunpu.statistics import cdf, describe, mean, median, prob_gt, std, variance


class TestMoments:
    """Test mean, variance and standard deviation."""

    def test_single_bin_exact(self):
        """A unit-weight bin has the textbook uniform moments."""
        d = Distribution.of(Bin(2.0, 5.0, 1.0))
        assert mean(d) == (2.0 + 5.0) / 2
        assert variance(d) == (5.0 - 2.0) ** 2 / 12
        assert std(d) == math.sqrt((5.0 - 2.0) ** 2 / 12)

    def test_atoms(self):
        """Two equal atoms at 0 and 2 have mean 1 and variance 1."""
        d = Distribution.of(Atom(0.0, 0.5), Atom(2.0, 0.5))
        assert mean(d) == pytest.approx(1.0)
        assert variance(d) == pytest.approx(1.0)

    def test_tails(self):
        """Exponential tails contribute mean offset 1/lambda and variance 1/lambda^2."""
        right = Distribution.of(Tail(1.0, 1.0, 2.0, True))
        left = Distribution.of(Tail(1.0, 1.0, 2.0, False))
        assert mean(right) == pytest.approx(1.5)
        assert mean(left) == pytest.approx(0.5)
        assert variance(right) == pytest.approx(0.25)
        assert variance(left) == pytest.approx(0.25)

    def test_unnormalized_weights(self):
        """Statistics divide by the total weight."""
        d = Distribution.of(Atom(0.0, 2.0), Atom(4.0, 2.0))
        assert mean(d) == pytest.approx(2.0)
        assert variance(d) == pytest.approx(4.0)

    def test_law_of_total_variance(self, mixed_distribution):
        """Closed-form variance agrees with a large sample."""
        samples = AliasSampler(mixed_distribution).sample_many(50_000, NumpyRandomSource(11))
        assert mean(mixed_distribution) == pytest.approx(samples.mean(), abs=0.03)
        assert variance(mixed_distribution) == pytest.approx(samples.var(), rel=0.05)

    @pytest.mark.parametrize("func", [mean, variance, std])
    def test_zero_weight(self, func):
        """Zero total weight yields zero rather than an error."""
        assert func(Distribution()) == 0.0
        assert func(Distribution.of(Atom(3.0, 0.0))) == 0.0


class TestProbGt:
    """Test exceedance probabilities."""

    def test_right_tail(self):
        """Unit right tail at zero: P(X > 0) = 1, P(X > ln 2) = 1/2."""
        d = Distribution.of(Tail(0.0, 1.0, 1.0, True))
        assert prob_gt(d, 0.0) == 1.0
        assert prob_gt(d, -3.0) == 1.0
        assert prob_gt(d, math.log(2.0)) == pytest.approx(0.5)

    def test_left_tail(self):
        """Left tails only have mass above x when x is below the anchor."""
        d = Distribution.of(Tail(0.0, 1.0, 1.0, False))
        assert prob_gt(d, 0.0) == 0.0
        assert prob_gt(d, 1.0) == 0.0
        assert prob_gt(d, -math.log(2.0)) == pytest.approx(0.5)

    def test_atom_strict(self):
        """An atom at x does not exceed x."""
        d = Distribution.of(Atom(1.0, 1.0))
        assert prob_gt(d, 1.0) == 0.0
        assert prob_gt(d, 0.999) == 1.0

    def test_bin(self):
        """Bins contribute fully, linearly, or not at all."""
        d = Distribution.of(Bin(0.0, 4.0, 1.0))
        assert prob_gt(d, -1.0) == 1.0
        assert prob_gt(d, 0.0) == 1.0
        assert prob_gt(d, 1.0) == pytest.approx(0.75)
        assert prob_gt(d, 4.0) == 0.0
        assert prob_gt(d, 9.0) == 0.0

    def test_normalized_by_total(self):
        """Exceedance is a share of the total weight."""
        d = Distribution.of(Atom(0.0, 3.0), Atom(2.0, 1.0))
        assert prob_gt(d, 1.0) == pytest.approx(0.25)

    def test_zero_weight(self):
        """Zero total weight yields zero."""
        assert prob_gt(Distribution(), 0.0) == 0.0

    def test_monotone(self, mixed_distribution):
        """Exceedance never increases with the threshold."""
        xs = np.linspace(-5.0, 8.0, 200)
        values = [prob_gt(mixed_distribution, x) for x in xs]
        assert all(a >= b - 1e-15 for a, b in zip(values, values[1:]))

    def test_cdf_complements(self, mixed_distribution):
        """The CDF is one minus the exceedance."""
        assert cdf(mixed_distribution, 0.5) == pytest.approx(
            1.0 - prob_gt(mixed_distribution, 0.5)
        )
        assert cdf(Distribution(), 0.5) == 0.0


class TestMedian:
    """Test the approximate median."""

    def test_atoms(self):
        """The median of atoms is the atom where half the mass is reached."""
        d = Distribution.of(Atom(10.0, 0.3), Atom(0.0, 0.3), Atom(5.0, 0.4))
        assert median(d) == 5.0

    def test_bin(self):
        """The median of a bin is its midpoint."""
        assert median(Distribution.of(Bin(2.0, 6.0, 1.0))) == pytest.approx(4.0)

    def test_right_tail(self):
        """The median of an exponential is ln 2 / lambda past the anchor."""
        d = Distribution.of(Tail(1.0, 1.0, 2.0, True))
        assert median(d) == pytest.approx(1.0 + math.log(2.0) / 2.0)

    def test_left_tail_first(self):
        """Left tails sort ahead of everything else."""
        d = Distribution.of(Atom(-100.0, 0.5), Tail(0.0, 0.5, 1.0, False))
        # Tail holds the first half of the mass, ending at its anchor
        assert median(d) == pytest.approx(0.0)

    def test_empty(self):
        """Empty distributions have median zero."""
        assert median(Distribution()) == 0.0


class TestDescribe:
    """Test the summary series."""

    def test_describe(self, mixed_distribution):
        """Summary carries every statistic."""
        summary = describe(mixed_distribution)
        assert isinstance(summary, pd.Series)
        assert summary["n_components"] == 3
        assert summary["total_weight"] == pytest.approx(1.0)
        assert summary["mean"] == pytest.approx(mean(mixed_distribution))
        assert summary["std"] == pytest.approx(std(mixed_distribution))
        assert summary["median"] == pytest.approx(median(mixed_distribution))
