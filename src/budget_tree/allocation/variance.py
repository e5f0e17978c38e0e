"""Baseline capture and variance against it."""

from collections.abc import Mapping
from types import MappingProxyType

from budget_tree.errors import UnknownNodeError
from budget_tree.tree.model import BudgetTree


def build_baseline(tree: BudgetTree) -> Mapping[str, float]:
    """Snapshot every node's original value, keyed by id.

    Called once when the tree is loaded. The returned mapping is read-only.
    """
    return MappingProxyType(
        {nid: node.original_value for nid, node in tree.nodes.items()}
    )


def variance(current: float, baseline: float) -> float:
    """Percentage change from baseline; 0 when the baseline is 0."""
    if baseline == 0:
        return 0.0
    return ((current - baseline) / baseline) * 100


def variance_of(
    node_id: str,
    current_value: float,
    baseline: Mapping[str, float],
) -> float:
    """Variance of a node's current value against its baseline entry."""
    try:
        original = baseline[node_id]
    except KeyError:
        raise UnknownNodeError(node_id) from None
    return variance(current_value, original)


def format_variance(value: float, places: int = 2) -> str:
    return f"{value:.{places}f}%"
