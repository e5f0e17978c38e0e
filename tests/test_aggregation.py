"""Tests for subtotal aggregation and grand total."""

import pytest

from budget_tree.aggregation.aggregator import (
    SubtotalAggregator,
    aggregate_tree,
    find_subtotal_mismatches,
    grand_total,
)
from budget_tree.tree.model import BudgetNode, BudgetTree


def _stale_tree():
    """Root(999){Mid(0){X 1.25, Y 2.5}, Z 4} - every subtotal is wrong."""
    return BudgetTree(
        nodes={
            "root": BudgetNode(id="root", label="Root", value=999, children=("mid", "z")),
            "mid": BudgetNode(id="mid", label="Mid", value=0, parent="root", children=("x", "y")),
            "x": BudgetNode(id="x", label="X", value=1.25, parent="mid"),
            "y": BudgetNode(id="y", label="Y", value=2.5, parent="mid"),
            "z": BudgetNode(id="z", label="Z", value=4, parent="root"),
        },
        root_ids=("root",),
    )


class TestAggregateTree:
    """Tests for aggregate_tree."""

    def test_sums_bottom_up(self):
        tree = aggregate_tree(_stale_tree())
        assert tree.nodes["mid"].value == 3.75
        assert tree.nodes["root"].value == 7.75

    def test_leaves_unchanged(self):
        stale = _stale_tree()
        tree = aggregate_tree(stale)
        for leaf_id in ("x", "y", "z"):
            assert tree.nodes[leaf_id] is stale.nodes[leaf_id]

    def test_input_not_modified(self):
        stale = _stale_tree()
        aggregate_tree(stale)
        assert stale.nodes["root"].value == 999

    def test_every_internal_node_equals_children_sum(self, budget_tree):
        tree = aggregate_tree(budget_tree.with_values({"6": 12.34, "8": 5.55, "3": 0.01}))
        for node, _ in tree.iter_depth_first():
            if not node.is_leaf:
                children_sum = sum(tree.nodes[c].value for c in node.children)
                assert node.value == pytest.approx(children_sum)
        assert find_subtotal_mismatches(tree) == []

    def test_idempotent(self):
        once = aggregate_tree(_stale_tree())
        twice = aggregate_tree(once)
        assert twice == once

    def test_consistent_tree_is_returned_as_is(self, budget_tree):
        assert aggregate_tree(budget_tree) is budget_tree

    def test_forest_roots_aggregated_independently(self, budget_tree):
        tree = aggregate_tree(budget_tree.with_values({"2": 1, "3": 2}))
        assert tree.nodes["1"].value == 3
        assert tree.nodes["4"].value == 100

    def test_original_value_not_recomputed(self, budget_tree):
        tree = aggregate_tree(budget_tree.with_values({"2": 1}))
        assert tree.nodes["1"].value == 201
        assert tree.nodes["1"].original_value == 300

    def test_aggregator_class(self):
        tree = SubtotalAggregator().aggregate(_stale_tree())
        assert tree.nodes["root"].value == 7.75

    def test_empty_tree(self):
        assert aggregate_tree(BudgetTree()) == BudgetTree()


class TestGrandTotal:
    """Tests for grand_total."""

    def test_sums_leaves(self, budget_tree):
        assert grand_total(budget_tree) == 450

    def test_ignores_stale_subtotals(self):
        # Root says 999 but the leaves add up to 7.75
        assert grand_total(_stale_tree()) == 7.75

    def test_equals_sum_of_leaf_values(self, budget_tree):
        tree = budget_tree.with_values({"6": 10.1, "9": 0.2})
        assert grand_total(tree) == pytest.approx(sum(n.value for n in tree.leaves()))

    def test_empty_tree(self):
        assert grand_total(BudgetTree()) == 0


class TestFindSubtotalMismatches:
    """Tests for find_subtotal_mismatches."""

    def test_reports_stale_nodes(self):
        mismatches = find_subtotal_mismatches(_stale_tree())
        assert [m.node_id for m in mismatches] == ["root", "mid"]
        root = mismatches[0]
        assert root.stored_value == 999
        assert root.children_sum == 4
        assert root.difference == 995

    def test_default_tolerance_allows_rounding_residue(self, simple_tree):
        tree = simple_tree.with_values({"root": 300.01})
        assert find_subtotal_mismatches(tree) == []

    def test_explicit_tolerance(self, simple_tree):
        tree = simple_tree.with_values({"root": 300.01})
        assert [m.node_id for m in find_subtotal_mismatches(tree, tolerance=0.001)] == ["root"]
