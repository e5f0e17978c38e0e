"""budget-tree - hierarchical budget allocation.

Public API:
    - load_tree / build_tree: input data → BudgetTree
    - set_by_percentage / set_by_absolute_value: push a value onto a node
    - aggregate_tree: BudgetTree → BudgetTree (subtotals re-derived)
    - build_baseline / variance_of: variance against the loaded values
    - grand_total: sum over leaves

Example:
    from budget_tree import load_tree, set_by_percentage, grand_total

    tree = load_tree(Path("budget.json"))
    tree = set_by_percentage(tree, "2", 50)
    print(grand_total(tree))
"""

__version__ = "0.1.0"

from budget_tree.aggregation import aggregate_tree, find_subtotal_mismatches, grand_total
from budget_tree.allocation import (
    RoundingMode,
    RoundingPolicy,
    build_baseline,
    distribute,
    set_by_absolute_value,
    set_by_percentage,
    variance_of,
)
from budget_tree.errors import InputError, UnknownNodeError
from budget_tree.session import AllocationResult, AllocationSession, AllocationStatus
from budget_tree.tree.loader import TreeLoadError, build_tree, dump_tree, load_tree
from budget_tree.tree.model import BudgetNode, BudgetTree

__all__ = [
    # Models
    "BudgetNode",
    "BudgetTree",
    # Loading
    "TreeLoadError",
    "build_tree",
    "dump_tree",
    "load_tree",
    # Core functions
    "aggregate_tree",
    "build_baseline",
    "distribute",
    "find_subtotal_mismatches",
    "grand_total",
    "set_by_absolute_value",
    "set_by_percentage",
    "variance_of",
    # Rounding
    "RoundingMode",
    "RoundingPolicy",
    # Session
    "AllocationResult",
    "AllocationSession",
    "AllocationStatus",
    # Errors
    "InputError",
    "UnknownNodeError",
]
