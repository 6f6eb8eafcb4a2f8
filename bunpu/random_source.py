"""Injected sources of uniform random numbers.

Samplers and simulators never touch global random state; they receive a
:class:`RandomSource` from the caller. This keeps tests deterministic
(seeded sources) and lets parallel workers draw from independent streams.
"""

from typing import List, Optional, Protocol, Union, runtime_checkable

import numpy as np


@runtime_checkable
class RandomSource(Protocol):
    """Anything that can draw a uniform variate in ``[0, 1)``."""

    def uniform(self) -> float:
        """Return a uniform draw in ``[0, 1)``."""
        ...


class NumpyRandomSource:
    """:class:`RandomSource` backed by a numpy ``Generator``.

    Args:
        seed: Integer seed or ``SeedSequence``. ``None`` draws fresh entropy.
    """

    def __init__(self, seed: Optional[Union[int, np.random.SeedSequence]] = None):
        self.rng = np.random.default_rng(seed)

    def uniform(self) -> float:
        return float(self.rng.random())

    def uniforms(self, n: int) -> np.ndarray:
        """Draw ``n`` uniforms at once."""
        return self.rng.random(n)

    def reset_seed(self, seed: Optional[Union[int, np.random.SeedSequence]]) -> None:
        """Restart the stream from a new seed."""
        self.rng = np.random.default_rng(seed)


def spawn_sources(
    seed: Optional[Union[int, np.random.SeedSequence]], n: int
) -> List[NumpyRandomSource]:
    """Create ``n`` statistically independent random sources.

    Args:
        seed: Root seed (int or ``SeedSequence``); ``None`` for fresh entropy.
        n: Number of child streams.

    Returns:
        One :class:`NumpyRandomSource` per child of the root ``SeedSequence``.
    """
    ss = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    return [NumpyRandomSource(child) for child in ss.spawn(n)]
