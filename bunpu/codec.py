"""Flat numeric encoding of distributions.

The flat encoding is the only interchange format between callers and the
core. A distribution is a concatenation of tag-prefixed records::

    [0, x, p]                          Atom
    [1, a, b, p]                       Bin
    [2, x0, mass, lambda, is_right]    Tail (is_right when value > 0.5)

Decoding is forgiving: a trailing record that is too short is dropped and an
unrecognized tag skips a single element, so decoding always terminates and
never raises on malformed input.
"""

import logging
import math
from typing import List, Sequence

import numpy as np

from .components import Atom, Bin, Component, Distribution, Tail

logger = logging.getLogger(__name__)

TAG_ATOM = 0
TAG_BIN = 1
TAG_TAIL = 2

# Values following the tag in each record
RECORD_FIELDS = {TAG_ATOM: 2, TAG_BIN: 3, TAG_TAIL: 4}


def _read_tag(value: float) -> int:
    """Interpret a tag value, truncating toward zero.

    NaN reads as ``0`` (an Atom). Infinities map to ``-1``, which no record
    uses.
    """
    if math.isnan(value):
        return TAG_ATOM
    if math.isinf(value):
        return -1
    return int(value)


def decode(values: Sequence[float]) -> Distribution:
    """Decode a flat numeric sequence into a :class:`Distribution`.

    Args:
        values: Concatenated tag-prefixed records (list, tuple or array).

    Returns:
        Distribution holding every complete record, in encounter order.
    """
    data = np.asarray(values, dtype=float).ravel()
    n = len(data)
    components: List[Component] = []
    skipped = 0
    i = 0

    while i < n:
        tag = _read_tag(float(data[i]))
        width = RECORD_FIELDS.get(tag)
        if width is None:
            skipped += 1
            i += 1
            continue

        if i + width >= n:
            # Partial trailing record
            skipped += n - i
            break

        fields = [float(v) for v in data[i + 1 : i + 1 + width]]
        if tag == TAG_ATOM:
            components.append(Atom(fields[0], fields[1]))
        elif tag == TAG_BIN:
            components.append(Bin(fields[0], fields[1], fields[2]))
        else:
            components.append(Tail(fields[0], fields[1], fields[2], fields[3] > 0.5))
        i += width + 1

    if skipped:
        logger.debug(f"Skipped {skipped} of {n} elements while decoding")

    return Distribution(tuple(components))


def encode(distribution: Distribution) -> np.ndarray:
    """Encode a distribution as a flat ``float64`` array.

    Args:
        distribution: Distribution to encode.

    Returns:
        Tag-prefixed records in component order.
    """
    out: List[float] = []
    for c in distribution:
        if isinstance(c, Atom):
            out.extend((TAG_ATOM, c.x, c.p))
        elif isinstance(c, Bin):
            out.extend((TAG_BIN, c.a, c.b, c.p))
        elif isinstance(c, Tail):
            out.extend((TAG_TAIL, c.x0, c.mass, c.lam, 1.0 if c.is_right else 0.0))
        else:
            raise TypeError(f"Cannot encode component of type {type(c).__name__}")
    return np.asarray(out, dtype=np.float64)
