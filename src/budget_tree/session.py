"""Allocation session - the caller-side holder of the live tree.

The session captures the baseline once, swaps in a new snapshot after each
accepted mutation and reports the outcome of every request as an
``AllocationResult`` rather than raising for bad user input.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from budget_tree.aggregation.aggregator import grand_total
from budget_tree.allocation.distributor import (
    set_by_absolute_value,
    set_by_percentage,
)
from budget_tree.allocation.rounding import DEFAULT_ROUNDING, RoundingPolicy
from budget_tree.allocation.validation import parse_amount
from budget_tree.allocation.variance import build_baseline, variance_of
from budget_tree.errors import InputError
from budget_tree.tree.model import BudgetTree

logger = logging.getLogger(__name__)


class AllocationStatus(str, Enum):
    """Outcome of an allocation request."""

    APPLIED = "applied"
    REJECTED = "rejected"  # Invalid input or unknown node
    NO_CHANGE = "no_change"  # 0% increase, value already correct
    CONFIRMATION_REQUIRED = "confirmation_required"  # Setting a value to 0


@dataclass
class AllocationResult:
    """Result of a percentage or value request against a session."""

    status: AllocationStatus
    node_id: str
    requested: float | None = None
    previous_value: float | None = None
    new_value: float | None = None
    message: str = ""
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def success(self) -> bool:
        return self.status == AllocationStatus.APPLIED

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["status"] = self.status.value
        result["success"] = self.success
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


@dataclass
class RowView:
    """One display row: a node with its variance against the baseline."""

    id: str
    label: str
    depth: int
    value: float
    original_value: float
    variance: float
    is_leaf: bool


class AllocationSession:
    """Owns the current snapshot and the baseline captured at load."""

    def __init__(self, tree: BudgetTree, rounding: RoundingPolicy = DEFAULT_ROUNDING):
        self._tree = tree
        self._baseline = build_baseline(tree)
        self.rounding = rounding

    @property
    def tree(self) -> BudgetTree:
        return self._tree

    @property
    def baseline(self) -> Mapping[str, float]:
        return self._baseline

    @property
    def grand_total(self) -> float:
        return grand_total(self._tree)

    def variance_for(self, node_id: str) -> float:
        return variance_of(node_id, self._tree.get(node_id).value, self._baseline)

    def rows(self) -> list[RowView]:
        return [
            RowView(
                id=node.id,
                label=node.label,
                depth=depth,
                value=node.value,
                original_value=self._baseline[node.id],
                variance=variance_of(node.id, node.value, self._baseline),
                is_leaf=node.is_leaf,
            )
            for node, depth in self._tree.iter_depth_first()
        ]

    def apply_percentage(self, node_id: str, raw: str | float) -> AllocationResult:
        """Increase a node by a percentage given as a number or raw text."""
        try:
            percentage = parse_amount(raw, "percentage")
            previous = self._tree.get(node_id).value
        except InputError as e:
            return self._rejected(node_id, e)

        if percentage == 0:
            return AllocationResult(
                status=AllocationStatus.NO_CHANGE,
                node_id=node_id,
                requested=percentage,
                previous_value=previous,
                new_value=previous,
                message="A 0% increase leaves the value unchanged.",
            )

        try:
            self._tree = set_by_percentage(self._tree, node_id, percentage, self.rounding)
        except InputError as e:
            return self._rejected(node_id, e)
        return self._applied(node_id, percentage, previous)

    def apply_value(
        self,
        node_id: str,
        raw: str | float,
        confirmed: bool = False,
    ) -> AllocationResult:
        """Set a node to a value given as a number or raw text.

        Setting a value of 0 is only applied when ``confirmed`` is True.
        """
        try:
            value = parse_amount(raw, "value")
            previous = self._tree.get(node_id).value
        except InputError as e:
            return self._rejected(node_id, e)

        if value == 0 and not confirmed:
            return AllocationResult(
                status=AllocationStatus.CONFIRMATION_REQUIRED,
                node_id=node_id,
                requested=value,
                previous_value=previous,
                new_value=previous,
                message="Setting the value to 0 clears the node and its children. Confirm to proceed.",
            )

        self._tree = set_by_absolute_value(self._tree, node_id, value, self.rounding)
        return self._applied(node_id, value, previous)

    def _applied(self, node_id: str, requested: float, previous: float) -> AllocationResult:
        new_value = self._tree.get(node_id).value
        logger.info("Applied %s to %s: %s -> %s", requested, node_id, previous, new_value)
        return AllocationResult(
            status=AllocationStatus.APPLIED,
            node_id=node_id,
            requested=requested,
            previous_value=previous,
            new_value=new_value,
        )

    def _rejected(self, node_id: str, error: InputError) -> AllocationResult:
        logger.warning("Rejected request for %s: %s", node_id, error)
        return AllocationResult(
            status=AllocationStatus.REJECTED,
            node_id=node_id,
            message=str(error),
        )
