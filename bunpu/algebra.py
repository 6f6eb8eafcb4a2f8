"""Algebra on mixed-shape distributions.

Operations:

- :func:`convolve` - distribution of the sum of two independent variables.
- :func:`mix` - two-way mixture with weight ``p`` on the second argument.
- :func:`scale` - multiply the underlying variable by a real factor.
- :func:`subtract`, :func:`split_at` - built from the above.
- :func:`reciprocal` - distribution of ``1 / X``.
- :func:`max_of` - maximum of ``n`` independent copies.

Convolution is closed-form and approximate. Atom and Bin pairs combine
exactly, except that the sum of two uniforms (a trapezoid) is replaced by the
single uniform interval with the same mean and variance. Any pair involving
a :class:`~bunpu.components.Tail` is dropped, so the result carries less mass
than ``total(d1) * total(d2)``; use :func:`dropped_tail_mass` to account for
the loss.
"""

import logging
import math
from typing import List, Optional, Tuple

from .components import Atom, Bin, Component, Distribution, Tail
from .statistics import cdf

logger = logging.getLogger(__name__)

_MAX_OF_MIN_MASS = 1e-9


class DegenerateScaleError(ValueError):
    """Raised when scaling by zero would give an exponential tail infinite rate."""

    pass


def _moment_matched_bin(b1: Bin, b2: Bin, weight: float) -> Bin:
    new_var = b1.width**2 / 12.0 + b2.width**2 / 12.0
    new_width = math.sqrt(12.0 * new_var)
    new_center = b1.center + b2.center
    return Bin(new_center - new_width / 2.0, new_center + new_width / 2.0, weight)


def convolve_pair(c1: Component, c2: Component) -> Optional[Component]:
    """Combine one shape from each operand of a convolution.

    Args:
        c1: Shape from the first distribution.
        c2: Shape from the second distribution.

    Returns:
        The combined shape weighted by ``weight(c1) * weight(c2)``, or
        ``None`` when either shape is a tail.
    """
    if isinstance(c1, Tail) or isinstance(c2, Tail):
        return None

    weight = c1.weight * c2.weight
    if isinstance(c1, Atom) and isinstance(c2, Atom):
        return Atom(c1.x + c2.x, weight)
    if isinstance(c1, Atom):
        return Bin(c2.a + c1.x, c2.b + c1.x, weight)
    if isinstance(c2, Atom):
        return Bin(c1.a + c2.x, c1.b + c2.x, weight)
    return _moment_matched_bin(c1, c2, weight)


def convolve(d1: Distribution, d2: Distribution) -> Distribution:
    """Approximate the distribution of ``X1 + X2`` for independent operands.

    Every pair of shapes is combined with :func:`convolve_pair`, ``d1`` in the
    outer loop. Like shapes are not merged and the result is not
    renormalized.

    Args:
        d1: Distribution of ``X1``.
        d2: Distribution of ``X2``.

    Returns:
        Distribution with up to ``len(d1) * len(d2)`` components.
    """
    result: List[Component] = []
    dropped = 0
    for c1 in d1:
        for c2 in d2:
            combined = convolve_pair(c1, c2)
            if combined is None:
                dropped += 1
            else:
                result.append(combined)

    if dropped:
        logger.debug(f"Convolution dropped {dropped} tail pairs of {len(d1) * len(d2)}")

    return Distribution(tuple(result))


def dropped_tail_mass(d1: Distribution, d2: Distribution) -> float:
    """Weight that :func:`convolve` discards for the same operands.

    ``convolve(d1, d2).total_weight + dropped_tail_mass(d1, d2)`` equals
    ``d1.total_weight * d2.total_weight`` up to rounding.
    """
    tail1 = sum(c.weight for c in d1 if isinstance(c, Tail))
    tail2 = sum(c.weight for c in d2 if isinstance(c, Tail))
    body1 = d1.total_weight - tail1
    return float(tail1 * d2.total_weight + body1 * tail2)


def mix(d1: Distribution, d2: Distribution, p: float) -> Distribution:
    """Mixture ``(1 - p) * d1 + p * d2``.

    ``p`` is not checked against ``[0, 1]``.
    """
    first = [c.with_weight(c.weight * (1.0 - p)) for c in d1]
    second = [c.with_weight(c.weight * p) for c in d2]
    return Distribution(tuple(first + second))


def _scale_component(c: Component, k: float) -> Component:
    if isinstance(c, Atom):
        return Atom(c.x * k, c.p)
    if isinstance(c, Bin):
        if k >= 0:
            return Bin(c.a * k, c.b * k, c.p)
        return Bin(c.b * k, c.a * k, c.p)
    if k == 0:
        raise DegenerateScaleError(
            f"Cannot scale a tail anchored at {c.x0} by zero: its rate would be infinite"
        )
    is_right = c.is_right if k > 0 else not c.is_right
    return Tail(c.x0 * k, c.mass, c.lam / abs(k), is_right)


def scale(d: Distribution, k: float) -> Distribution:
    """Distribution of ``k * X``.

    Args:
        d: Distribution of ``X``.
        k: Real factor. Negative factors reverse Bin endpoints and flip tail
            direction. Weights are unchanged.

    Returns:
        Scaled distribution.

    Raises:
        DegenerateScaleError: If ``k == 0`` and ``d`` contains a tail.
    """
    return Distribution(tuple(_scale_component(c, k) for c in d))


def subtract(d1: Distribution, d2: Distribution) -> Distribution:
    """Approximate the distribution of ``X1 - X2``."""
    return convolve(d1, scale(d2, -1.0))


def _split_component(c: Component, x: float) -> Tuple[List[Component], List[Component]]:
    if isinstance(c, Atom):
        return ([c], []) if c.x <= x else ([], [c])

    if isinstance(c, Bin):
        if c.b <= x:
            return [c], []
        if c.a >= x:
            return [], [c]
        lower_p = c.p * (x - c.a) / c.width
        upper_p = c.p * (c.b - x) / c.width
        return [Bin(c.a, x, lower_p)], [Bin(x, c.b, upper_p)]

    if c.is_right:
        if x <= c.x0:
            return [], [c]
        upper_mass = c.mass * math.exp(-c.lam * (x - c.x0))
        # The bounded segment [x0, x] has no tail shape; an atom at its midpoint stands in
        lower = Atom((c.x0 + x) / 2.0, c.mass - upper_mass)
        return [lower], [Tail(x, upper_mass, c.lam, True)]

    if x >= c.x0:
        return [c], []
    lower_mass = c.mass * math.exp(-c.lam * (c.x0 - x))
    upper = Atom((x + c.x0) / 2.0, c.mass - lower_mass)
    return [Tail(x, lower_mass, c.lam, False)], [upper]


def split_at(d: Distribution, x: float) -> Tuple[Distribution, Distribution]:
    """Partition the mass of ``d`` at ``x``.

    Args:
        d: Distribution to split.
        x: Split point; mass at exactly ``x`` goes to the lower part.

    Returns:
        ``(lower, upper)`` with ``lower`` holding ``X <= x`` and ``upper``
        holding ``X > x``. Neither part is renormalized.
    """
    lower: List[Component] = []
    upper: List[Component] = []
    for c in d:
        lo, hi = _split_component(c, x)
        lower.extend(lo)
        upper.extend(hi)
    return Distribution(tuple(lower)), Distribution(tuple(upper))


def _reciprocal_component(c: Component) -> Optional[Component]:
    if isinstance(c, Atom):
        return None if c.x == 0 else Atom(1.0 / c.x, c.p)

    if isinstance(c, Tail):
        tail_mean = c.x0 + 1.0 / c.lam if c.is_right else c.x0 - 1.0 / c.lam
        return None if tail_mean == 0 else Atom(1.0 / tail_mean, c.mass)

    if c.a > 0 or c.b < 0:
        return Bin(min(1.0 / c.a, 1.0 / c.b), max(1.0 / c.a, 1.0 / c.b), c.p)
    if c.a == 0 and c.b > 0:
        return Atom(2.0 / c.b, c.p)
    if c.b == 0 and c.a < 0:
        return Atom(2.0 / c.a, c.p)
    # Zero-width bin at the origin
    return None


def reciprocal(d: Distribution) -> Distribution:
    """Approximate the distribution of ``1 / X``.

    Bins on one side of zero map to the Bin ``[1/b, 1/a]``. Shapes whose
    reciprocal is unbounded collapse to Atoms: a Bin touching zero becomes
    an Atom at the reciprocal of its midpoint, and a Bin straddling zero is
    split there first, each part becoming an Atom at the reciprocal of
    three quarters of its outer endpoint. A Tail becomes an Atom at the
    reciprocal of its mean.

    Mass at exactly zero (an Atom at ``0``, or a Tail whose mean is ``0``)
    has no reciprocal and is dropped.
    """
    result: List[Component] = []
    dropped = 0.0
    for c in d:
        if isinstance(c, Bin) and c.a < 0 < c.b:
            result.append(Atom(1.0 / (0.75 * c.a), c.p * -c.a / c.width))
            result.append(Atom(1.0 / (0.75 * c.b), c.p * c.b / c.width))
            continue
        inverted = _reciprocal_component(c)
        if inverted is None:
            dropped += c.weight
        else:
            result.append(inverted)

    if dropped:
        logger.debug(f"Reciprocal dropped mass {dropped} at zero")

    return Distribution(tuple(result))


def max_of(d: Distribution, n: int, resolution: int = 200) -> Distribution:
    """Approximate the distribution of the maximum of ``n`` i.i.d. copies.

    The CDF of the maximum is ``F(x) ** n``. It is evaluated on a grid of
    ``resolution`` equal steps across the body of ``d`` (Atom locations, Bin
    ends, and Tail anchors), giving an Atom at the lower end for the mass at
    or below it and one Bin per step. Grid cells carrying ``1e-9`` or less
    are omitted and the result is normalized. Mass a right tail places
    beyond the grid is not represented.

    Args:
        d: Distribution of one copy.
        n: Number of copies, at least one.
        resolution: Number of grid steps.

    Returns:
        ``d`` itself when ``n == 1`` or the body is a single point; an empty
        distribution for empty input; otherwise the gridded maximum.

    Raises:
        ValueError: If ``n`` or ``resolution`` is less than one.
    """
    if n < 1:
        raise ValueError(f"n must be at least 1, got {n}")
    if resolution < 1:
        raise ValueError(f"resolution must be at least 1, got {resolution}")
    if not d:
        return Distribution()
    if n == 1:
        return d

    lo, hi = math.inf, -math.inf
    for c in d:
        if isinstance(c, Atom):
            lo, hi = min(lo, c.x), max(hi, c.x)
        elif isinstance(c, Bin):
            lo, hi = min(lo, c.a), max(hi, c.b)
        elif c.is_right:
            lo = min(lo, c.x0)
        else:
            hi = max(hi, c.x0)

    if lo >= hi:
        return d

    step = (hi - lo) / resolution
    result: List[Component] = []
    previous = 0.0
    for i in range(resolution + 1):
        x = lo + i * step
        current = cdf(d, x) ** n
        p = current - previous
        if p > _MAX_OF_MIN_MASS:
            result.append(Atom(x, p) if i == 0 else Bin(x - step, x, p))
        previous = current

    return Distribution(tuple(result)).normalized()
