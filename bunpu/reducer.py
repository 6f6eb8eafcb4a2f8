"""Component-count reduction.

Repeated convolution multiplies component counts (``|d1| * |d2|`` per call),
so long chains of sums need a way to collapse a distribution back to a
bounded number of shapes. :func:`reduce` does this in stages:

1. Normalize to unit mass.
2. Split Bins that straddle a boundary, so no merged shape can mix mass
   from both sides of it (e.g. ruined and solvent wealth at ``0``).
3. Valley compression: runs of adjacent low-importance shapes are merged
   (only when ``tau`` is given).
4. Bucket pre-pass: very large inputs are first binned into ``2 * target_n``
   buckets over their range.
5. Greedy merging of the adjacent pair with the lowest combined importance
   until at most ``target_n`` shapes remain.

The importance of a shape is ``p * (|repr - c| + w * width)``, where ``repr``
is an Atom's location or a Bin's center. Tails are never merged.

Merging keeps total mass exactly; the merged shape is the Bin spanning the
merged supports, so mean and variance are only approximately preserved.
"""

import logging
import math
from typing import Callable, List, Optional, Sequence

from .components import Atom, Bin, Component, Distribution, Tail

logger = logging.getLogger(__name__)

# Inputs above this size (or four times the target) get the bucket pre-pass
_BUCKET_THRESHOLD = 1000


def _start(c: Component) -> float:
    if isinstance(c, Atom):
        return c.x
    if isinstance(c, Bin):
        return c.a
    return c.x0 if c.is_right else -math.inf


def _end(c: Component) -> float:
    if isinstance(c, Atom):
        return c.x
    if isinstance(c, Bin):
        return c.b
    return math.inf if c.is_right else c.x0


def _importance(c: Component, center: float, width_weight: float) -> float:
    if isinstance(c, Tail):
        return math.inf
    if isinstance(c, Atom):
        return c.p * abs(c.x - center)
    return c.p * (abs(c.center - center) + width_weight * c.width)


def _merge(components: Sequence[Component]) -> Component:
    """Merge Atoms and Bins into the Bin spanning their supports."""
    if len(components) == 1:
        return components[0]
    lo = min(_start(c) for c in components)
    hi = max(_end(c) for c in components)
    weight = sum(c.weight for c in components)
    if lo == hi:
        return Atom(lo, weight)
    return Bin(lo, hi, weight)


def _split_at_boundaries(
    components: List[Component], boundaries: Sequence[float]
) -> List[Component]:
    result = components
    for x in boundaries:
        split: List[Component] = []
        for c in result:
            if isinstance(c, Bin) and c.a < x < c.b:
                split.append(Bin(c.a, x, c.p * (x - c.a) / c.width))
                split.append(Bin(x, c.b, c.p * (c.b - x) / c.width))
            else:
                split.append(c)
        result = split
    return result


def _blocked(c1: Component, c2: Component, boundaries: Sequence[float]) -> bool:
    """Whether merging two neighbours would put a boundary inside one shape."""
    lo = min(_start(c1), _start(c2))
    hi = max(_end(c1), _end(c2))
    end1, start2 = _end(c1), _start(c2)
    return any(lo < x < hi or end1 <= x <= start2 for x in boundaries)


def _merge_valleys(
    components: List[Component],
    tau: float,
    boundaries: Sequence[float],
    importance: Callable[[Component], float],
) -> List[Component]:
    result: List[Component] = []
    run: List[Component] = []

    for c in components:
        if importance(c) < tau:
            if run and _blocked(run[-1], c, boundaries):
                result.append(_merge(run))
                run = []
            run.append(c)
        else:
            if run:
                result.append(_merge(run))
                run = []
            result.append(c)
    if run:
        result.append(_merge(run))
    return result


def _bucket_reduce(
    components: List[Component], n_buckets: int, boundaries: Sequence[float]
) -> List[Component]:
    tails = [c for c in components if isinstance(c, Tail)]
    body = [c for c in components if not isinstance(c, Tail)]
    if not body:
        return components

    lo = min(_start(c) for c in body)
    hi = max(_end(c) for c in body)
    if lo >= hi:
        return components

    size = (hi - lo) / n_buckets
    buckets: List[List[Component]] = [[] for _ in range(n_buckets)]
    for c in body:
        index = int(((_start(c) + _end(c)) / 2.0 - lo) / size)
        buckets[min(max(index, 0), n_buckets - 1)].append(c)

    merged = [_merge(bucket) for bucket in buckets if bucket]
    if boundaries:
        merged = _split_at_boundaries(merged, boundaries)
    return sorted(merged + tails, key=lambda c: (_start(c), _end(c)))


def _greedy_reduce(
    components: List[Component],
    target_n: int,
    boundaries: Sequence[float],
    importance: Callable[[Component], float],
) -> List[Component]:
    current = list(components)
    while len(current) > target_n:
        best = -1
        best_cost = math.inf
        for i in range(len(current) - 1):
            c1, c2 = current[i], current[i + 1]
            if isinstance(c1, Tail) or isinstance(c2, Tail):
                continue
            if _blocked(c1, c2, boundaries):
                continue
            cost = importance(c1) + importance(c2)
            if cost < best_cost:
                best_cost = cost
                best = i

        if best < 0:
            # Only tails or boundary-separated neighbours left
            break
        current[best : best + 2] = [_merge(current[best : best + 2])]
    return current


def reduce(
    d: Distribution,
    target_n: int,
    impact_center: float = 0.0,
    impact_width_weight: float = 0.0,
    tau: Optional[float] = None,
    boundaries: Sequence[float] = (),
) -> Distribution:
    """Collapse ``d`` to at most ``target_n`` components where possible.

    Args:
        d: Distribution to reduce.
        target_n: Desired maximum number of components. Tails and
            boundaries can leave more.
        impact_center: Point ``c`` of the importance measure. Shapes with
            little mass close to ``c`` have low importance and merge first.
        impact_width_weight: Extra importance per unit of Bin width.
        tau: Importance threshold for valley compression; ``None`` skips it.
        boundaries: Points no merged shape may straddle.

    Returns:
        Normalized distribution ordered along the axis.

    Raises:
        ValueError: If ``target_n`` is less than one.
    """
    if target_n < 1:
        raise ValueError(f"target_n must be at least 1, got {target_n}")

    n_in = len(d)
    components = sorted(d.normalized(), key=lambda c: (_start(c), _end(c)))
    if boundaries:
        components = _split_at_boundaries(components, boundaries)

    def importance(c: Component) -> float:
        return _importance(c, impact_center, impact_width_weight)

    if tau is not None:
        components = _merge_valleys(components, tau, boundaries, importance)

    if len(components) > max(_BUCKET_THRESHOLD, 4 * target_n):
        components = _bucket_reduce(components, 2 * target_n, boundaries)

    if len(components) > target_n:
        components = _greedy_reduce(components, target_n, boundaries, importance)

    logger.debug(f"Reduced {n_in} components to {len(components)} (target {target_n})")
    return Distribution(tuple(components))
