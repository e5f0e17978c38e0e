"""Allocation distributor, rounding policy and variance tracking."""

from budget_tree.allocation.distributor import (
    distribute,
    set_by_absolute_value,
    set_by_percentage,
)
from budget_tree.allocation.rounding import (
    DEFAULT_ROUNDING,
    RoundingMode,
    RoundingPolicy,
)
from budget_tree.allocation.validation import parse_amount, validate_amount
from budget_tree.allocation.variance import (
    build_baseline,
    format_variance,
    variance,
    variance_of,
)

__all__ = [
    "DEFAULT_ROUNDING",
    "RoundingMode",
    "RoundingPolicy",
    "build_baseline",
    "distribute",
    "format_variance",
    "parse_amount",
    "set_by_absolute_value",
    "set_by_percentage",
    "validate_amount",
    "variance",
    "variance_of",
]
