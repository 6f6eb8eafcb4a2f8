"""Pytest configuration and shared fixtures."""

from itertools import cycle

import pytest

from bunpu.components import Atom, Bin, Distribution, Tail
from bunpu.random_source import NumpyRandomSource


class FixedSource:
    """Random source that replays a fixed cycle of uniforms."""

    def __init__(self, *values):
        self.values = values
        self._it = cycle(values)
        self.calls = 0

    def uniform(self):
        self.calls += 1
        return next(self._it)


@pytest.fixture
def rng():
    """Seeded random source."""
    return NumpyRandomSource(42)


@pytest.fixture
def fixed_source():
    """Factory for deterministic random sources."""
    return FixedSource


@pytest.fixture
def mixed_distribution():
    """One of each shape, weights summing to one."""
    return Distribution.of(
        Atom(1.0, 0.5),
        Bin(-2.0, 0.0, 0.3),
        Tail(2.0, 0.2, 1.5, is_right=True),
    )


@pytest.fixture
def coin_walk():
    """Fair +/-1 increments."""
    return Distribution.of(Atom(-1.0, 0.5), Atom(1.0, 0.5))
