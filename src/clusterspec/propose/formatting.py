from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""

    return int(math.floor(value + 0.5))


def format_fixed(value: float, places: int) -> str:
    """Fixed-point text of ``value`` with ties rounded away from zero.

    Uses the exact binary value of the float, so ``0.125`` renders as
    ``"0.13"`` where the ``format`` builtin would give ``"0.12"``. A result
    that rounds to zero is always unsigned: ``-0.0001`` renders as ``"0.00"``,
    never ``"-0.00"``.
    """

    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    if rounded.is_zero():
        rounded = abs(rounded)
    return f"{rounded:.{places}f}"
