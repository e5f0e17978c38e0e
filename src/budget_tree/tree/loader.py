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

"""Tree loader - builds a BudgetTree from JSON or YAML input data."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from budget_tree.aggregation.aggregator import aggregate_tree
from budget_tree.tree.model import BudgetNode, BudgetTree

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class TreeLoadError(Exception):
    """Raised when tree input data cannot be read or is malformed."""

    pass


def _number(raw: Any, field_name: str, node_id: str) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise TreeLoadError(
            f"Node '{node_id}': {field_name} must be a number, got {raw!r}"
        )
    value = float(raw)
    if not math.isfinite(value) or value < 0:
        raise TreeLoadError(
            f"Node '{node_id}': {field_name} must be a non-negative number, got {raw!r}"
        )
    return value


def build_tree(rows: list[dict[str, Any]]) -> BudgetTree:
    """Build a tree from nested rows.

    Each row has a ``label``, an optional ``id`` (assigned from the row's
    position when missing), an optional ``value`` and an optional
    ``children`` list. Internal values are re-derived from the leaves, then
    every node without an explicit ``originalValue`` takes its aggregated
    value as its baseline.

    Raises:
        TreeLoadError: On duplicate ids or invalid values
    """
    nodes: dict[str, BudgetNode] = {}
    explicit_originals: set[str] = set()

    def _add(row: dict[str, Any], position: str, parent: str | None) -> str:
        if not isinstance(row, dict):
            raise TreeLoadError(f"Row {position} must be a mapping, got {row!r}")

        node_id = str(row["id"]) if row.get("id") is not None else position
        if node_id in nodes:
            raise TreeLoadError(f"Duplicate node id '{node_id}'")

        value = _number(row.get("value", 0), "value", node_id)
        original_raw = row.get("originalValue", row.get("original_value"))
        if original_raw is not None:
            original = _number(original_raw, "originalValue", node_id)
            explicit_originals.add(node_id)
        else:
            original = value

        # Reserve the id before recursing so children see duplicates
        nodes[node_id] = BudgetNode(id=node_id, label="", parent=parent)

        child_ids = tuple(
            _add(child, f"{position}.{i}", node_id)
            for i, child in enumerate(row.get("children") or [], start=1)
        )

        label = row.get("label", row.get("name", node_id))
        nodes[node_id] = BudgetNode(
            id=node_id,
            label=str(label),
            value=value,
            original_value=original,
            parent=parent,
            children=child_ids,
        )
        logger.debug("Node %s: %s (parent=%s)", node_id, label, parent)
        return node_id

    root_ids = tuple(_add(row, str(i), None) for i, row in enumerate(rows, start=1))
    tree = aggregate_tree(BudgetTree(nodes=nodes, root_ids=root_ids))

    # Baseline is the consistent, aggregated value unless given explicitly
    stamped = {
        nid: node if nid in explicit_originals else replace(node, original_value=node.value)
        for nid, node in tree.nodes.items()
    }
    return BudgetTree(nodes=stamped, root_ids=tree.root_ids)


def _read_data(path: Path) -> Any:
    try:
        content = path.read_text()
    except FileNotFoundError:
        raise TreeLoadError(f"Tree file not found: {path}")
    except OSError as e:
        raise TreeLoadError(f"Error reading {path}: {e}")

    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            return yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise TreeLoadError(f"Invalid YAML in {path}: {e}")

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise TreeLoadError(f"Invalid JSON in {path}: {e}")


def _arena_tree(data: dict[str, Any], path: Path) -> BudgetTree:
    """Build a tree from the arena form written by ``BudgetTree.to_dict``.

    Stored values are kept as they are; subtotals are not re-derived so a
    stale file can still be inspected with ``check``.
    """
    raw_nodes = data["nodes"]
    if not isinstance(raw_nodes, dict):
        raise TreeLoadError(f"'nodes' in {path} must be a mapping of id to node")

    for key, raw in raw_nodes.items():
        if not isinstance(raw, dict):
            raise TreeLoadError(f"Node '{key}' in {path} must be a mapping, got {raw!r}")
        if str(raw.get("id", key)) != str(key):
            raise TreeLoadError(f"Node key '{key}' does not match its id '{raw['id']}'")
        if not isinstance(raw.get("children") or [], list):
            raise TreeLoadError(f"Node '{key}': children must be a list")
        value = _number(raw.get("value", 0), "value", str(key))
        _number(raw.get("original_value", value), "original_value", str(key))

    root_ids = data.get("root_ids")
    if root_ids is not None and not isinstance(root_ids, list):
        raise TreeLoadError(f"'root_ids' in {path} must be a list")

    tree = BudgetTree.from_dict(data)
    _check_structure(tree)
    return tree


def _check_structure(tree: BudgetTree) -> None:
    """Check that parent and child links agree and form a forest."""
    for node in tree.nodes.values():
        for child_id in node.children:
            child = tree.nodes.get(child_id)
            if child is None:
                raise TreeLoadError(f"Node '{node.id}' lists unknown child '{child_id}'")
            if child.parent != node.id:
                raise TreeLoadError(
                    f"Node '{child_id}' is listed under '{node.id}' "
                    f"but names parent {child.parent!r}"
                )
        if node.parent is not None:
            parent = tree.nodes.get(node.parent)
            if parent is None or node.id not in parent.children:
                raise TreeLoadError(
                    f"Node '{node.id}' names parent '{node.parent}', "
                    f"which does not list it as a child"
                )

    for root_id in tree.root_ids:
        if root_id not in tree.nodes:
            raise TreeLoadError(f"Unknown root id '{root_id}'")
        if tree.nodes[root_id].parent is not None:
            raise TreeLoadError(f"Root '{root_id}' has a parent")

    seen: set[str] = set()
    stack = list(tree.root_ids)
    while stack:
        node_id = stack.pop()
        if node_id in seen:
            raise TreeLoadError(f"Node '{node_id}' is reachable more than once")
        seen.add(node_id)
        stack.extend(tree.nodes[node_id].children)

    unreachable = sorted(set(tree.nodes) - seen)
    if unreachable:
        raise TreeLoadError(
            f"Nodes not reachable from any root (cycle or missing root): "
            f"{', '.join(unreachable)}"
        )


def load_tree(path: Path) -> BudgetTree:
    """Load a tree from a JSON or YAML file.

    Accepts nested rows (``{"rows": [...]}`` or a bare list) or the arena
    form written by ``BudgetTree.to_dict`` (``{"nodes": {...}}``).
    """
    path = Path(path)
    data = _read_data(path)

    if isinstance(data, dict) and "nodes" in data:
        tree = _arena_tree(data, path)
    elif isinstance(data, dict) and "rows" in data:
        tree = build_tree(data["rows"] or [])
    elif isinstance(data, list):
        tree = build_tree(data)
    else:
        raise TreeLoadError(
            f"Unrecognised tree format in {path}: expected 'rows', 'nodes' or a list"
        )

    logger.info("Loaded tree: %d nodes from %s", len(tree), path.name)
    logger.debug("Root IDs: %s", tree.root_ids)
    return tree


def dump_tree(tree: BudgetTree, path: Path) -> None:
    """Write a snapshot as nested rows, keeping each node's baseline."""
    path = Path(path)
    data = {"rows": tree.to_rows()}
    if path.suffix.lower() in YAML_SUFFIXES:
        path.write_text(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    else:
        path.write_text(json.dumps(data, indent=2))
    logger.info("Wrote tree: %d nodes to %s", len(tree), path.name)
