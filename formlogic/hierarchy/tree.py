"""
Module Tree - immutable, arena-backed hierarchy of a module's fields.

Nodes refer to their parent and children by id, never by live reference, so
a tree can be shared across threads, serialized for diffing, and compared in
tests as plain data.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel

from formlogic.core.ontology import ConditionalRule, FieldDefinition, FieldOption


class HierarchyMetrics(BaseModel):
    """Size and shape statistics of a built tree."""

    total_fields: int = 0
    root_fields: int = 0
    max_depth: int = 0
    rule_count: int = 0
    code_set_fields: int = 0
    complexity_score: float = 0.0


@dataclass(frozen=True)
class FieldNode:
    """Runtime wrapper around one field definition."""

    definition: FieldDefinition
    parent_id: str | None = None
    child_ids: tuple[str, ...] = ()
    depth: int = 0
    path: tuple[str, ...] = ()
    options: tuple[FieldOption, ...] = ()

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def field_type(self) -> str:
        return self.definition.field_type

    @property
    def order(self) -> int:
        return self.definition.order

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_leaf(self) -> bool:
        return not self.child_ids

    @property
    def path_string(self) -> str:
        """Dotted ancestor chain, e.g. 'org_section.org_name'."""
        return ".".join(self.path)

    def __str__(self) -> str:
        return f"{self.field_type} [{self.id}] at depth {self.depth}"


@dataclass(frozen=True)
class ModuleTree:
    """Immutable tree of one module's fields.

    ``nodes`` is the arena (id -> node); ``order`` is the pre-order id
    sequence: parents before children, siblings by ascending ``order`` with
    ties kept in declaration order.
    """

    nodes: Mapping[str, FieldNode]
    root_ids: tuple[str, ...]
    order: tuple[str, ...]
    metrics: HierarchyMetrics = field(default_factory=HierarchyMetrics)
    module_key: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.nodes, MappingProxyType):
            object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self.nodes

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_field(self, field_id: str) -> FieldNode | None:
        """O(1) lookup by id."""
        return self.nodes.get(field_id)

    def fields_in_order(self) -> Iterator[FieldNode]:
        """Lazy pre-order sequence of all nodes; each call starts over."""
        nodes = self.nodes
        return (nodes[field_id] for field_id in self.order)

    def field_ids(self) -> tuple[str, ...]:
        return self.order

    def roots(self) -> list[FieldNode]:
        return [self.nodes[root_id] for root_id in self.root_ids]

    def parent(self, field_id: str) -> FieldNode | None:
        node = self.nodes.get(field_id)
        if node is None or node.parent_id is None:
            return None
        return self.nodes[node.parent_id]

    def children(self, field_id: str) -> list[FieldNode]:
        node = self.nodes.get(field_id)
        if node is None:
            return []
        return [self.nodes[child_id] for child_id in node.child_ids]

    def ancestors(self, field_id: str) -> list[FieldNode]:
        """Ancestors from the nearest parent up to the root."""
        node = self.nodes.get(field_id)
        if node is None:
            return []
        return [self.nodes[ancestor_id] for ancestor_id in reversed(node.path[:-1])]

    def descendants(self, field_id: str) -> list[FieldNode]:
        """All descendants in pre-order, excluding the node itself."""
        node = self.nodes.get(field_id)
        if node is None:
            return []
        result: list[FieldNode] = []
        stack = list(reversed(node.child_ids))
        while stack:
            current = self.nodes[stack.pop()]
            result.append(current)
            stack.extend(reversed(current.child_ids))
        return result

    def rules(self) -> list[tuple[FieldNode, ConditionalRule]]:
        """Every conditional rule with the node that declares it, in pre-order."""
        return [
            (node, rule)
            for node in self.fields_in_order()
            for rule in node.definition.conditional_rules
        ]

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for serialization and diffing."""
        return {
            "moduleKey": self.module_key,
            "rootIds": list(self.root_ids),
            "order": list(self.order),
            "metrics": self.metrics.model_dump(),
            "nodes": {
                node.id: {
                    "parentId": node.parent_id,
                    "childIds": list(node.child_ids),
                    "depth": node.depth,
                    "path": list(node.path),
                    "options": [option.to_wire() for option in node.options],
                    "definition": node.definition.to_wire(),
                }
                for node in self.fields_in_order()
            },
        }
