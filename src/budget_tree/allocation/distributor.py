# Copyright 2026 Pennyworth Technologies, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Allocation distributor - pushes a new value onto a node.

A node's new value is written to the node itself and split across its
direct children, either in proportion to their current values or equally
when they are all zero. Deeper descendants are left as they are; the
aggregation pass that follows re-derives every subtotal from the leaves up.
"""

from __future__ import annotations

import logging
import math

from budget_tree.aggregation.aggregator import aggregate_tree
from budget_tree.allocation.rounding import DEFAULT_ROUNDING, RoundingPolicy
from budget_tree.allocation.validation import validate_amount
from budget_tree.errors import InputError
from budget_tree.tree.model import BudgetTree

logger = logging.getLogger(__name__)


def distribute(
    tree: BudgetTree,
    node_id: str,
    new_value: float,
    rounding: RoundingPolicy = DEFAULT_ROUNDING,
) -> BudgetTree:
    """Write ``new_value`` onto a node and split it over its direct children.

    Returns a new snapshot. Subtotals are not reconciled; callers normally
    go through ``set_by_percentage`` / ``set_by_absolute_value`` which
    aggregate afterwards.

    Raises:
        UnknownNodeError: If node_id is not in the tree
    """
    node = tree.get(node_id)
    updates: dict[str, float] = {node_id: new_value}

    if not node.is_leaf:
        children = tree.children_of(node_id)
        total_child_value = sum(child.value for child in children)

        if total_child_value == 0:
            equal_share = rounding.apply(new_value / len(children))
            logger.debug(
                "Splitting %s equally over %d children of %s",
                new_value, len(children), node_id,
            )
            for child in children:
                updates[child.id] = equal_share
        else:
            logger.debug(
                "Splitting %s proportionally over %d children of %s",
                new_value, len(children), node_id,
            )
            for child in children:
                share = (child.value / total_child_value) * new_value
                updates[child.id] = rounding.apply(share)

    return tree.with_values(updates)


def set_by_percentage(
    tree: BudgetTree,
    node_id: str,
    percentage: float,
    rounding: RoundingPolicy = DEFAULT_ROUNDING,
) -> BudgetTree:
    """Increase a node's value by ``percentage`` percent.

    Raises:
        InputError: If percentage is not a non-negative finite number, or
            the increased value overflows
        UnknownNodeError: If node_id is not in the tree
    """
    percentage = validate_amount(percentage, "percentage")
    old_value = tree.get(node_id).value
    new_value = old_value * (1 + percentage / 100)
    if not math.isfinite(new_value):
        raise InputError(
            f"A {percentage}% increase of node '{node_id}' is too large to represent."
        )

    logger.info(
        "Setting %s by %s%%: %s -> %s", node_id, percentage, old_value, new_value
    )
    return aggregate_tree(distribute(tree, node_id, new_value, rounding))


def set_by_absolute_value(
    tree: BudgetTree,
    node_id: str,
    value: float,
    rounding: RoundingPolicy = DEFAULT_ROUNDING,
) -> BudgetTree:
    """Set a node's value directly.

    Raises:
        InputError: If value is not a non-negative finite number
        UnknownNodeError: If node_id is not in the tree
    """
    new_value = validate_amount(value, "value")
    old_value = tree.get(node_id).value

    logger.info("Setting %s to %s (was %s)", node_id, new_value, old_value)
    return aggregate_tree(distribute(tree, node_id, new_value, rounding))
