"""Tests for the distribution component model."""

import numpy as np
import pandas as pd
import pytest

from bunpu.components import Atom, Bin, Distribution, Tail


class TestComponents:
    """Test the primitive shapes."""

    def test_weights(self):
        """Each shape reports its own weight field."""
        assert Atom(1.0, 0.25).weight == 0.25
        assert Bin(0.0, 1.0, 0.5).weight == 0.5
        assert Tail(0.0, 0.125, 2.0).weight == 0.125

    def test_bin_geometry(self):
        """Bin center and width follow the endpoints."""
        b = Bin(2.0, 6.0, 1.0)
        assert b.center == 4.0
        assert b.width == 4.0

    def test_tail_side(self):
        """Tail direction maps to a side label."""
        assert Tail(0.0, 1.0, 1.0, True).side == "right"
        assert Tail(0.0, 1.0, 1.0, False).side == "left"

    def test_with_weight_keeps_location(self):
        """Reweighting leaves every other field alone."""
        assert Atom(3.0, 1.0).with_weight(0.5) == Atom(3.0, 0.5)
        assert Bin(1.0, 2.0, 1.0).with_weight(0.5) == Bin(1.0, 2.0, 0.5)
        assert Tail(1.0, 1.0, 3.0, False).with_weight(0.5) == Tail(1.0, 0.5, 3.0, False)

    def test_frozen(self):
        """Shapes are immutable values."""
        atom = Atom(1.0, 1.0)
        with pytest.raises(AttributeError):
            atom.x = 2.0  # type: ignore[misc]


class TestDistribution:
    """Test the Distribution container."""

    def test_sequence_behaviour(self, mixed_distribution):
        """Distributions behave like read-only sequences."""
        assert len(mixed_distribution) == 3
        assert isinstance(mixed_distribution[0], Atom)
        assert [type(c) for c in mixed_distribution] == [Atom, Bin, Tail]
        assert bool(Distribution()) is False

    def test_list_input_is_stored_as_tuple(self):
        """Any iterable of components is accepted."""
        d = Distribution([Atom(0.0, 1.0)])
        assert isinstance(d.components, tuple)
        assert d == Distribution.of(Atom(0.0, 1.0))
        assert hash(d) == hash(Distribution.of(Atom(0.0, 1.0)))

    def test_total_weight(self, mixed_distribution):
        """Total weight sums all shapes, tails included."""
        assert mixed_distribution.total_weight == pytest.approx(1.0)
        assert Distribution().total_weight == 0.0

    def test_normalized(self):
        """Normalization rescales weights to sum to one."""
        d = Distribution.of(Atom(1.0, 0.2), Atom(2.0, 0.6))
        n = d.normalized()
        assert n[0].weight == pytest.approx(0.25)
        assert n[1].weight == pytest.approx(0.75)
        # Original untouched
        assert d[0].weight == 0.2

    def test_normalized_degenerate(self):
        """Zero-weight and already normalized inputs come back unchanged."""
        zero = Distribution.of(Atom(1.0, 0.0))
        assert zero.normalized() is zero
        unit = Distribution.of(Atom(1.0, 1.0))
        assert unit.normalized() is unit

    def test_to_dataframe(self, mixed_distribution):
        """Tabulation has one row per component."""
        df = mixed_distribution.to_dataframe()
        assert isinstance(df, pd.DataFrame)
        assert list(df["kind"]) == ["atom", "bin", "tail"]
        assert df.loc[0, "x"] == 1.0
        assert df.loc[1, "a"] == -2.0
        assert df.loc[2, "side"] == "right"
        assert df.loc[2, "lam"] == 1.5
        assert np.isnan(df.loc[0, "a"])
        np.testing.assert_allclose(df["weight"], [0.5, 0.3, 0.2])

    def test_str(self):
        """String form lists one component per line."""
        d = Distribution.of(Atom(2.0, 0.5), Bin(0.0, 1.0, 0.5))
        assert str(d) == "Atom(2.00, p=0.500)\nBin([0.00,1.00], p=0.500)"
