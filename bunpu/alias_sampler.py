"""Constant-time sampling from mixed-shape distributions.

Component selection uses Vose's alias method: an O(n) table build after
which every draw costs one uniform variate and one comparison. The
fractional part of the selection draw serves as the second variate of the
two-point test. A value is then generated from the chosen shape by direct
inversion.

Examples:
    Draw from a three-shape distribution::

        from bunpu.alias_sampler import AliasSampler
        from bunpu.components import Atom, Bin, Distribution, Tail
        from bunpu.random_source import NumpyRandomSource

        dist = Distribution.of(Atom(1.0, 0.5), Bin(0.0, 2.0, 0.3), Tail(2.0, 0.2, 1.5))
        sampler = AliasSampler(dist)
        values = sampler.sample_many(10_000, NumpyRandomSource(42))
"""

import logging
import math
from typing import List, Sequence, Tuple

import numpy as np

from .codec import decode
from .components import Atom, Bin, Component, Distribution
from .random_source import RandomSource

logger = logging.getLogger(__name__)


def draw_value(component: Component, rng: RandomSource) -> float:
    """Generate one value from a single shape.

    Args:
        component: Shape to draw from.
        rng: Source of uniform variates.

    Returns:
        Atom location; uniform point of a Bin; or an exponential offset
        from a Tail anchor in the tail's direction.
    """
    if isinstance(component, Atom):
        return component.x
    if isinstance(component, Bin):
        return component.a + rng.uniform() * (component.b - component.a)
    # 1 - U keeps the argument of the log in (0, 1]
    offset = -math.log(1.0 - rng.uniform()) / component.lam
    return component.x0 + offset if component.is_right else component.x0 - offset


def _build_alias_table(weights: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """Vose's alias table for the given (unnormalized) weights."""
    n = len(weights)
    total = float(sum(weights))
    if total == 0:
        logger.debug(f"Zero total weight over {n} components, sampling uniformly")
        return np.ones(n, dtype=float), np.arange(n, dtype=np.int64)

    prob = np.array([w / total * n for w in weights], dtype=float)
    alias = np.zeros(n, dtype=np.int64)

    small: List[int] = []
    large: List[int] = []
    for i in range(n):
        if prob[i] < 1.0:
            small.append(i)
        else:
            large.append(i)

    while small and large:
        less = small.pop()
        more = large.pop()
        alias[less] = more
        prob[more] = prob[more] + prob[less] - 1.0
        if prob[more] < 1.0:
            small.append(more)
        else:
            large.append(more)

    # Leftovers are floating-point drift around 1
    for i in large:
        prob[i] = 1.0
    for i in small:
        prob[i] = 1.0

    return prob, alias


class AliasSampler:
    """O(1) sampler over the components of a distribution.

    Attributes:
        components: Shapes, index-aligned with ``prob`` and ``alias``.
        prob: Probability of keeping column ``i`` rather than its alias.
        alias: Index of the alternative component for column ``i``.
    """

    def __init__(self, distribution: Distribution):
        self.components: Tuple[Component, ...] = tuple(distribution)
        if self.components:
            self.prob, self.alias = _build_alias_table([c.weight for c in self.components])
        else:
            self.prob = np.zeros(0, dtype=float)
            self.alias = np.zeros(0, dtype=np.int64)

    @classmethod
    def from_encoded(cls, values: Sequence[float]) -> "AliasSampler":
        """Build a sampler straight from a flat encoded distribution."""
        return cls(decode(values))

    def __len__(self) -> int:
        return len(self.components)

    def select(self, rng: RandomSource) -> int:
        """Pick a component index with one uniform draw.

        Returns:
            Selected index, or ``-1`` for an empty table.
        """
        n = len(self.components)
        if n == 0:
            return -1
        u = rng.uniform() * n
        i = min(int(u), n - 1)
        y = u - i
        return i if y < self.prob[i] else int(self.alias[i])

    def sample(self, rng: RandomSource) -> float:
        """Draw one value; an empty table yields ``0.0``."""
        idx = self.select(rng)
        if idx < 0:
            return 0.0
        return draw_value(self.components[idx], rng)

    def sample_many(self, n: int, rng: RandomSource) -> np.ndarray:
        """Draw ``n`` values.

        Args:
            n: Number of values; non-positive counts give an empty array.
            rng: Source of uniform variates.

        Returns:
            Array of sampled values.
        """
        if n <= 0:
            return np.array([])
        return np.array([self.sample(rng) for _ in range(n)], dtype=float)

    def selection_probabilities(self) -> np.ndarray:
        """Exact probability of selecting each component under this table."""
        n = len(self.components)
        if n == 0:
            return np.zeros(0, dtype=float)
        result = self.prob / n
        np.add.at(result, self.alias, (1.0 - self.prob) / n)
        return result
