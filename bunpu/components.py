"""Mixed-shape distribution model.

A distribution is an ordered collection of weighted primitive shapes:

- :class:`Atom` - a point mass at ``x``.
- :class:`Bin` - uniform density over ``[a, b)``.
- :class:`Tail` - a one-sided exponential tail anchored at ``x0``.

Weights are relative masses. They need not sum to one; every consumer that
needs a probability divides by :attr:`Distribution.total_weight` at use time.

Examples:
    Build a step increment with a small left tail::

        from bunpu.components import Atom, Bin, Distribution, Tail

        step = Distribution.of(
            Atom(1.0, 0.6),
            Bin(-2.0, 0.0, 0.35),
            Tail(-2.0, 0.05, 0.5, is_right=False),
        )
        step.total_weight  # 1.0
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple, Union

import pandas as pd

_NORMALIZATION_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Atom:
    """Point mass at ``x`` with weight ``p``."""

    x: float
    p: float

    @property
    def weight(self) -> float:
        return self.p

    def with_weight(self, weight: float) -> "Atom":
        return Atom(self.x, weight)

    def __str__(self) -> str:
        return f"Atom({self.x:.2f}, p={self.p:.3f})"


@dataclass(frozen=True)
class Bin:
    """Uniform density over ``[a, b)`` with total weight ``p``.

    The caller is responsible for ``a <= b``.
    """

    a: float
    b: float
    p: float

    @property
    def weight(self) -> float:
        return self.p

    @property
    def center(self) -> float:
        return (self.a + self.b) / 2.0

    @property
    def width(self) -> float:
        return self.b - self.a

    def with_weight(self, weight: float) -> "Bin":
        return Bin(self.a, self.b, weight)

    def __str__(self) -> str:
        return f"Bin([{self.a:.2f},{self.b:.2f}], p={self.p:.3f})"


@dataclass(frozen=True)
class Tail:
    """One-sided exponential tail.

    Attributes:
        x0: Anchor of the tail (boundary with the body of the distribution).
        mass: Weight carried by the tail.
        lam: Exponential rate; assumed strictly positive.
        is_right: ``True`` for support ``[x0, inf)``, ``False`` for ``(-inf, x0]``.
    """

    x0: float
    mass: float
    lam: float
    is_right: bool = True

    @property
    def weight(self) -> float:
        return self.mass

    @property
    def side(self) -> str:
        return "right" if self.is_right else "left"

    def with_weight(self, weight: float) -> "Tail":
        return Tail(self.x0, weight, self.lam, self.is_right)

    def __str__(self) -> str:
        return f"Tail({self.side}, x0={self.x0}, m={self.mass:.3f})"


Component = Union[Atom, Bin, Tail]


@dataclass(frozen=True)
class Distribution:
    """Immutable ordered sequence of weighted components.

    Component order carries no mathematical meaning but is preserved so
    that encoding and decoding round-trip exactly.
    """

    components: Tuple[Component, ...] = ()

    def __post_init__(self):
        # Accept any iterable; stored as a tuple
        if not isinstance(self.components, tuple):
            object.__setattr__(self, "components", tuple(self.components))

    @classmethod
    def of(cls, *components: Component) -> "Distribution":
        """Create a distribution from positional components."""
        return cls(tuple(components))

    @classmethod
    def from_components(cls, components: Iterable[Component]) -> "Distribution":
        return cls(tuple(components))

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[Component]:
        return iter(self.components)

    def __getitem__(self, index: int) -> Component:
        return self.components[index]

    def __bool__(self) -> bool:
        return bool(self.components)

    @property
    def total_weight(self) -> float:
        """Sum of all component weights (unnormalized mass)."""
        return float(sum(c.weight for c in self.components))

    @property
    def weights(self) -> Tuple[float, ...]:
        return tuple(c.weight for c in self.components)

    def normalized(self) -> "Distribution":
        """Return a copy whose weights sum to one.

        Distributions with zero total weight, or already normalized to
        within ``1e-9``, are returned unchanged.
        """
        total = self.total_weight
        if total == 0 or abs(total - 1.0) < _NORMALIZATION_TOLERANCE:
            return self
        factor = 1.0 / total
        return Distribution(tuple(c.with_weight(c.weight * factor) for c in self.components))

    def to_dataframe(self) -> pd.DataFrame:
        """Tabulate the components, one row each.

        Returns:
            DataFrame with columns ``kind``, ``x``, ``a``, ``b``, ``lam``,
            ``side`` and ``weight``. Columns that do not apply to a
            component's shape are ``NaN`` (or ``None`` for ``side``).
        """
        rows = []
        for c in self.components:
            row = {
                "kind": type(c).__name__.lower(),
                "x": float("nan"),
                "a": float("nan"),
                "b": float("nan"),
                "lam": float("nan"),
                "side": None,
                "weight": c.weight,
            }
            if isinstance(c, Atom):
                row["x"] = c.x
            elif isinstance(c, Bin):
                row["a"] = c.a
                row["b"] = c.b
            else:
                row["x"] = c.x0
                row["lam"] = c.lam
                row["side"] = c.side
            rows.append(row)
        return pd.DataFrame(rows, columns=["kind", "x", "a", "b", "lam", "side", "weight"])

    def __str__(self) -> str:
        return "\n".join(str(c) for c in self.components)
