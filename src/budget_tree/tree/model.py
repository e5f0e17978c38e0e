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

"""Budget tree model - immutable dataclasses for the allocation hierarchy.

The tree is an arena: nodes live in a dict keyed by id and reference their
children by id. Snapshots are never mutated; ``with_values`` returns a new
tree that shares every untouched node object with the old one.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace

from budget_tree.errors import UnknownNodeError


@dataclass(frozen=True)
class BudgetNode:
    id: str
    label: str
    value: float = 0.0
    original_value: float = 0.0
    parent: str | None = None
    children: tuple[str, ...] = ()

    @property
    def is_leaf(self) -> bool:
        return len(self.children) == 0


@dataclass(frozen=True)
class BudgetTree:
    nodes: dict[str, BudgetNode] = field(default_factory=dict)
    root_ids: tuple[str, ...] = ()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, node_id: str) -> BudgetNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    def children_of(self, node_id: str) -> list[BudgetNode]:
        return [self.nodes[cid] for cid in self.get(node_id).children]

    def leaves(self) -> list[BudgetNode]:
        return [n for n, _ in self.iter_depth_first() if n.is_leaf]

    def iter_depth_first(self) -> Iterator[tuple[BudgetNode, int]]:
        """Yield (node, depth) pairs in display order."""

        def _walk(node_id: str, depth: int) -> Iterator[tuple[BudgetNode, int]]:
            node = self.nodes[node_id]
            yield node, depth
            for child_id in node.children:
                yield from _walk(child_id, depth + 1)

        for root_id in self.root_ids:
            yield from _walk(root_id, 0)

    def with_values(self, updates: Mapping[str, float]) -> BudgetTree:
        """Return a new snapshot with the given node values replaced.

        Nodes not named in ``updates`` (and nodes whose value is unchanged)
        are shared with this snapshot.
        """
        for node_id in updates:
            if node_id not in self.nodes:
                raise UnknownNodeError(node_id)
        if not updates:
            return self

        nodes = dict(self.nodes)
        for node_id, value in updates.items():
            node = nodes[node_id]
            if node.value != value:
                nodes[node_id] = replace(node, value=value)
        return BudgetTree(nodes=nodes, root_ids=self.root_ids)

    def to_dict(self) -> dict:
        return {
            "nodes": {
                nid: {
                    "id": n.id,
                    "label": n.label,
                    "value": n.value,
                    "original_value": n.original_value,
                    "parent": n.parent,
                    "children": list(n.children),
                    "is_leaf": n.is_leaf,
                }
                for nid, n in self.nodes.items()
            },
            "root_ids": list(self.root_ids),
        }

    def to_rows(self) -> list[dict]:
        """Nested row form: one dict per root, children inlined."""

        def _row(node_id: str) -> dict:
            node = self.nodes[node_id]
            row = {
                "id": node.id,
                "label": node.label,
                "value": node.value,
                "originalValue": node.original_value,
            }
            if node.children:
                row["children"] = [_row(cid) for cid in node.children]
            return row

        return [_row(rid) for rid in self.root_ids]

    @classmethod
    def from_dict(cls, data: dict) -> BudgetTree:
        nodes: dict[str, BudgetNode] = {}
        for key, nd in data.get("nodes", {}).items():
            nid = str(key)
            value = float(nd.get("value", 0.0))
            parent = nd.get("parent")
            nodes[nid] = BudgetNode(
                id=str(nd.get("id", nid)),
                label=str(nd.get("label", nid)),
                value=value,
                original_value=float(nd.get("original_value", value)),
                parent=None if parent is None else str(parent),
                children=tuple(str(c) for c in nd.get("children") or []),
            )
        root_ids = data.get("root_ids")
        if root_ids is None:
            root_ids = [nid for nid, n in nodes.items() if n.parent is None]
        return cls(nodes=nodes, root_ids=tuple(str(r) for r in root_ids))
