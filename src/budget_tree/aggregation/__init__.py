"""Aggregation engine for rolling up subtotals in the tree."""

from budget_tree.aggregation.aggregator import (
    SubtotalAggregator,
    SubtotalMismatch,
    aggregate_tree,
    find_subtotal_mismatches,
    grand_total,
)

__all__ = [
    "SubtotalAggregator",
    "SubtotalMismatch",
    "aggregate_tree",
    "find_subtotal_mismatches",
    "grand_total",
]
