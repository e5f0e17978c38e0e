"""Rounding policy applied to redistributed shares."""

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, ROUND_HALF_UP, Decimal
from enum import Enum


class RoundingMode(str, Enum):
    """How ties are broken when a share is rounded."""

    HALF_UP = "half-up"  # Half away from zero
    HALF_EVEN = "half-even"  # Banker's rounding


_DECIMAL_MODES = {
    RoundingMode.HALF_UP: ROUND_HALF_UP,
    RoundingMode.HALF_EVEN: ROUND_HALF_EVEN,
}


@dataclass(frozen=True)
class RoundingPolicy:
    """Fixed-precision rounding for distributed values.

    Rounds the shortest decimal representation of the float, so 2.675
    becomes 2.68 under HALF_UP even though its binary value is slightly
    below 2.675.
    """

    places: int = 2
    mode: RoundingMode = RoundingMode.HALF_UP

    def apply(self, value: float) -> float:
        quantum = Decimal(1).scaleb(-self.places)
        rounded = Decimal(repr(float(value))).quantize(
            quantum, rounding=_DECIMAL_MODES[self.mode]
        )
        return float(rounded)


DEFAULT_ROUNDING = RoundingPolicy()
