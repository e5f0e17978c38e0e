"""Budget tree model and input loading."""

from budget_tree.tree.model import BudgetNode, BudgetTree

__all__ = [
    "BudgetNode",
    "BudgetTree",
]
