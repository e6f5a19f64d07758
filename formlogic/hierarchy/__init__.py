"""Hierarchy Builder and the immutable module tree it produces."""

from .builder import (
    HierarchyBuilder,
    HierarchyMode,
    auto_fix_fields,
    build_hierarchy,
    build_hierarchy_sync,
    find_cyclic_fields,
    find_dangling_fields,
)
from .tree import FieldNode, HierarchyMetrics, ModuleTree

__all__ = [
    "HierarchyBuilder",
    "HierarchyMode",
    "auto_fix_fields",
    "build_hierarchy",
    "build_hierarchy_sync",
    "find_cyclic_fields",
    "find_dangling_fields",
    "FieldNode",
    "HierarchyMetrics",
    "ModuleTree",
]
