"""Tests for component-count reduction."""

import pytest

from bunpu.components import Atom, Bin, Distribution, Tail
from bunpu.reducer import reduce


@pytest.fixture
def ladder():
    """Ten equally weighted atoms at 0..9."""
    return Distribution.from_components(Atom(float(i), 0.1) for i in range(10))


class TestReduce:
    """Test reduction to a target component count."""

    def test_small_input_only_normalized(self):
        """Distributions within the target are normalized and ordered, not merged."""
        d = Distribution.of(Atom(2.0, 2.0), Atom(0.0, 1.0), Atom(1.0, 1.0))
        assert reduce(d, 5) == Distribution.of(Atom(0.0, 0.25), Atom(1.0, 0.25), Atom(2.0, 0.5))

    def test_reaches_target(self, ladder):
        """Merging stops at the requested size."""
        result = reduce(ladder, 3)
        assert len(result) == 3
        assert result.total_weight == pytest.approx(1.0)

    def test_mass_preserved_with_tails(self, mixed_distribution):
        """Reduction never loses mass."""
        d = Distribution.from_components(
            list(mixed_distribution) + [Atom(float(i), 0.05) for i in range(20)]
        )
        assert reduce(d, 4).total_weight == pytest.approx(1.0)

    def test_coincident_atoms_stay_atoms(self):
        """Merging point masses at one location gives a point mass."""
        d = Distribution.of(Atom(1.0, 0.5), Atom(1.0, 0.5))
        assert reduce(d, 1) == Distribution.of(Atom(1.0, 1.0))

    def test_low_importance_merges_first(self):
        """Light shapes near the impact center are merged before heavy distant ones."""
        d = Distribution.of(Atom(0.0, 0.1), Atom(0.5, 0.1), Atom(10.0, 0.4), Atom(11.0, 0.4))
        result = reduce(d, 3)
        assert result == Distribution.of(Bin(0.0, 0.5, 0.2), Atom(10.0, 0.4), Atom(11.0, 0.4))

    def test_boundary_blocks_merge(self):
        """No merged shape straddles a boundary, even below the target."""
        d = Distribution.of(Atom(-2.0, 0.25), Atom(-1.0, 0.25), Atom(1.0, 0.25), Atom(2.0, 0.25))
        result = reduce(d, 1, boundaries=(0.0,))
        assert result == Distribution.of(Bin(-2.0, -1.0, 0.5), Bin(1.0, 2.0, 0.5))

    def test_atom_on_boundary_not_merged_across(self):
        """Mass exactly at a boundary stays separate from mass above it."""
        d = Distribution.of(Atom(0.0, 0.5), Bin(0.0, 1.0, 0.5))
        assert len(reduce(d, 1, boundaries=(0.0,))) == 2

    def test_straddling_bin_split(self):
        """Bins crossing a boundary are cut there in proportion to length."""
        result = reduce(Distribution.of(Bin(-1.0, 3.0, 1.0)), 5, boundaries=(0.0,))
        assert result == Distribution.of(Bin(-1.0, 0.0, 0.25), Bin(0.0, 3.0, 0.75))

    def test_tails_never_merged(self):
        """Tails survive reduction untouched."""
        left = Tail(-5.0, 0.1, 1.0, is_right=False)
        right = Tail(5.0, 0.1, 1.0, is_right=True)
        d = Distribution.of(right, Atom(0.0, 0.4), left, Atom(1.0, 0.4))
        result = reduce(d, 1)
        assert result == Distribution.of(left, Bin(0.0, 1.0, 0.8), right)

    def test_valley_compression(self):
        """Runs of shapes below the importance threshold are merged."""
        d = Distribution.of(Atom(0.0, 0.1), Atom(1.0, 0.1), Atom(2.0, 0.1), Atom(10.0, 0.7))
        result = reduce(d, 10, tau=0.15)
        assert result == Distribution.of(Bin(0.0, 1.0, 0.2), Atom(2.0, 0.1), Atom(10.0, 0.7))

    def test_large_input(self):
        """Very large inputs are bucketed before the greedy pass."""
        d = Distribution.from_components(Atom(i / 1500.0, 1.0) for i in range(1500))
        result = reduce(d, 10)
        assert len(result) <= 10
        assert result.total_weight == pytest.approx(1.0)
        assert all(isinstance(c, Bin) for c in result)

    def test_empty(self):
        """Empty input reduces to empty output."""
        assert len(reduce(Distribution(), 3)) == 0

    def test_invalid_target(self, ladder):
        """A target below one is rejected."""
        with pytest.raises(ValueError, match="target_n"):
            reduce(ladder, 0)

    def test_input_not_mutated(self, ladder):
        """The input distribution is left alone."""
        before = Distribution(tuple(ladder))
        reduce(ladder, 2)
        assert ladder == before
