"""Aggregation engine for rolling up subtotals in the budget tree."""

import logging
from dataclasses import dataclass

from budget_tree.tree.model import BudgetNode, BudgetTree

logger = logging.getLogger(__name__)


@dataclass
class SubtotalMismatch:
    """An internal node whose stored value disagrees with its children."""

    node_id: str
    label: str
    stored_value: float
    children_sum: float

    @property
    def difference(self) -> float:
        return self.stored_value - self.children_sum


class SubtotalAggregator:
    """Aggregator that sets every internal node to the sum of its children."""

    def aggregate(self, tree: BudgetTree) -> BudgetTree:
        """Recompute every subtotal bottom-up.

        Args:
            tree: The snapshot to aggregate (not modified)

        Returns:
            A new snapshot where each internal node's value equals the sum
            of its children. Leaves and unchanged nodes are shared with the
            input snapshot.
        """
        updates: dict[str, float] = {}

        def resolve(node: BudgetNode) -> float:
            if node.is_leaf:
                return node.value
            # Children are fully resolved before the parent sums them
            total = sum(resolve(tree.nodes[cid]) for cid in node.children)
            if total != node.value:
                updates[node.id] = total
            return total

        for root_id in tree.root_ids:
            resolve(tree.nodes[root_id])

        if updates:
            logger.debug("Aggregation updated %d subtotal(s)", len(updates))
        return tree.with_values(updates)


def aggregate_tree(tree: BudgetTree) -> BudgetTree:
    """Aggregate subtotals throughout the entire tree.

    Args:
        tree: The budget tree to aggregate

    Returns:
        A new, fully reconciled snapshot
    """
    return SubtotalAggregator().aggregate(tree)


def grand_total(tree: BudgetTree) -> float:
    """Sum of all leaf values.

    Accumulates only at nodes without children, so the result is correct
    even when subtotals above the leaves are stale.
    """
    total = 0.0
    for node, _ in tree.iter_depth_first():
        if node.is_leaf:
            total += node.value
    return total


def find_subtotal_mismatches(
    tree: BudgetTree,
    tolerance: float | None = None,
) -> list[SubtotalMismatch]:
    """Find internal nodes whose value is not the sum of their children.

    Args:
        tree: The tree to check
        tolerance: Allowed absolute difference. Defaults to 0.01 per child,
            the residue two-decimal rounding can leave behind.

    Returns:
        Mismatches in display order (empty when the tree is consistent)
    """
    mismatches: list[SubtotalMismatch] = []
    for node, _ in tree.iter_depth_first():
        if node.is_leaf:
            continue
        children_sum = sum(tree.nodes[cid].value for cid in node.children)
        allowed = tolerance if tolerance is not None else 0.01 * len(node.children)
        if abs(node.value - children_sum) > allowed:
            mismatches.append(
                SubtotalMismatch(
                    node_id=node.id,
                    label=node.label,
                    stored_value=node.value,
                    children_sum=children_sum,
                )
            )
    return mismatches
