"""Validation of requested percentages and values."""

from __future__ import annotations

import math
from numbers import Real

from budget_tree.errors import InputError


def validate_amount(value: object, what: str = "value") -> float:
    """Return ``value`` as a float or raise InputError.

    Accepts any real number that is finite and non-negative. Booleans are
    rejected even though they are ints.
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise InputError(f"Please enter a valid non-negative {what}.")
    amount = float(value)
    if not math.isfinite(amount) or amount < 0:
        raise InputError(f"Please enter a valid non-negative {what}.")
    return amount


def parse_amount(raw: str | float | int, what: str = "value") -> float:
    """Parse raw user input (text or number) into a non-negative float."""
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise InputError(f"Please enter a valid non-negative {what}.")
        try:
            raw = float(text)
        except ValueError:
            raise InputError(
                f"Please enter a valid non-negative {what}, got '{text}'."
            ) from None
    return validate_amount(raw, what)
