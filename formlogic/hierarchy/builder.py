"""
Hierarchy Builder - turns a module's flat field array into a ModuleTree.

Steps:
1. Coerce raw mappings into FieldDefinition (schema errors abort)
2. Reject duplicate ids
3. Detect cycles and dangling parents (STRICT: cycles abort; AUTO_FIX:
   offending fields are re-parented to root)
4. Resolve code-set options
5. Build the arena and the pre-order sequence, compute metrics
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import ValidationError

from formlogic.codesets import CodeSetProvider, CodeSetResolver, raise_if_cancelled
from formlogic.core.config import Settings, get_settings
from formlogic.core.errors import (
    IssueCategory,
    IssueCode,
    ValidationIssue,
    ValidationResult,
)
from formlogic.core.ontology import FieldDefinition, FieldOption, ModuleDefinition

from .tree import FieldNode, HierarchyMetrics, ModuleTree

logger = logging.getLogger(__name__)


class HierarchyMode(str, Enum):
    """How structural problems are handled."""

    STRICT = "strict"
    AUTO_FIX = "autoFix"


FieldInput = FieldDefinition | Mapping[str, Any]


# =============================================================================
# Structural analysis
# =============================================================================


def find_cyclic_fields(fields: Sequence[FieldDefinition]) -> list[str]:
    """Ids of fields that sit on a parent cycle, in declaration order.

    Each field's parent chain is walked with a visited set, so a cycle
    elsewhere in the chain stops the walk instead of looping.
    """
    parents = {field.id: field.parent_id for field in fields}
    cyclic: list[str] = []

    for field in fields:
        visited = {field.id}
        current = field.parent_id
        while current is not None and current in parents:
            if current == field.id:
                cyclic.append(field.id)
                break
            if current in visited:
                break
            visited.add(current)
            current = parents[current]

    return cyclic


def find_dangling_fields(fields: Sequence[FieldDefinition]) -> list[str]:
    """Ids of fields whose parent id names no field of the module."""
    ids = {field.id for field in fields}
    return [
        field.id
        for field in fields
        if field.parent_id is not None and field.parent_id not in ids
    ]


def auto_fix_fields(
    fields: Sequence[FieldDefinition],
) -> tuple[list[FieldDefinition], list[ValidationIssue]]:
    """Return a corrected copy with cyclic and orphaned fields moved to root.

    The input sequence and its definitions are left untouched.
    """
    issues: list[ValidationIssue] = []
    cyclic = set(find_cyclic_fields(fields))
    dangling = set(find_dangling_fields(fields))

    fixed: list[FieldDefinition] = []
    for field in fields:
        if field.id in cyclic:
            issues.append(ValidationIssue(
                code=IssueCode.CYCLE,
                category=IssueCategory.STRUCTURAL,
                message=f"Circular parent reference via '{field.parent_id}'; moved to root",
                field_id=field.id,
            ))
            fixed.append(field.model_copy(update={"parent_id": None}))
        elif field.id in dangling:
            issues.append(_dangling_issue(field))
            fixed.append(field.model_copy(update={"parent_id": None}))
        else:
            fixed.append(field)

    return fixed, issues


def _dangling_issue(field: FieldDefinition) -> ValidationIssue:
    return ValidationIssue(
        code=IssueCode.DANGLING_PARENT,
        category=IssueCategory.STRUCTURAL,
        message=f"Parent '{field.parent_id}' not found; treated as root",
        field_id=field.id,
    )


# =============================================================================
# Builder
# =============================================================================


class HierarchyBuilder:
    """Builds immutable ModuleTrees from flat field arrays.

    Usage:
        builder = HierarchyBuilder(code_set_provider=InMemoryCodeSetProvider.with_samples())
        tree, result = await builder.build(fields)
        if tree is None:
            print(result.errors)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        code_set_provider: CodeSetProvider | None = None,
    ):
        self.settings = settings or get_settings()
        self.resolver = CodeSetResolver(code_set_provider, self.settings)

    async def build(
        self,
        fields: Sequence[FieldInput],
        *,
        mode: HierarchyMode = HierarchyMode.STRICT,
        cancel_event: asyncio.Event | None = None,
        module_key: str | None = None,
    ) -> tuple[ModuleTree | None, ValidationResult]:
        """Build a tree.

        Args:
            fields: Field definitions or their wire mappings
            mode: STRICT aborts on cycles; AUTO_FIX re-parents them to root
            cancel_event: When set, the build stops with BuildCancelledError
            module_key: Recorded on the tree

        Returns:
            (tree, result); tree is None when the result has errors

        Raises:
            BuildCancelledError: If ``cancel_event`` was set
        """
        result = ValidationResult()
        raise_if_cancelled(cancel_event)

        definitions = self._coerce(fields, result)
        if definitions is None or not self._check_unique(definitions, result):
            logger.warning("Build aborted with %d schema error(s)", len(result.errors))
            return None, result

        if mode is HierarchyMode.AUTO_FIX:
            definitions, fixes = auto_fix_fields(definitions)
            result.warnings.extend(fixes)
        else:
            for field_id in find_cyclic_fields(definitions):
                result.add_error(
                    IssueCode.CYCLE,
                    IssueCategory.STRUCTURAL,
                    "Field is part of a circular parent reference",
                    field_id=field_id,
                )
            by_id = {field.id: field for field in definitions}
            for field_id in find_dangling_fields(definitions):
                result.warnings.append(_dangling_issue(by_id[field_id]))

        self._check_rule_targets(definitions, result)

        if not result.is_valid:
            logger.warning(
                "Build aborted: %d structural error(s) in %d fields",
                len(result.errors),
                len(definitions),
            )
            return None, result

        options, resolution_warnings = await self.resolver.resolve(definitions, cancel_event)
        result.warnings.extend(resolution_warnings)
        raise_if_cancelled(cancel_event)

        tree = self._assemble(definitions, options, module_key)
        for warning in result.warnings:
            logger.warning("%s", warning)
        logger.info(
            "Built module tree %s: %d fields, %d roots, depth %d, %d warning(s)",
            module_key or "",
            tree.metrics.total_fields,
            tree.metrics.root_fields,
            tree.metrics.max_depth,
            len(result.warnings),
        )
        return tree, result

    async def build_module(
        self,
        module: ModuleDefinition,
        *,
        mode: HierarchyMode = HierarchyMode.STRICT,
        cancel_event: asyncio.Event | None = None,
    ) -> tuple[ModuleTree | None, ValidationResult]:
        """Build the tree of a loaded ModuleDefinition."""
        return await self.build(
            module.fields, mode=mode, cancel_event=cancel_event, module_key=module.key
        )

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    @staticmethod
    def _coerce(
        fields: Sequence[FieldInput], result: ValidationResult
    ) -> list[FieldDefinition] | None:
        definitions: list[FieldDefinition] = []
        for index, raw in enumerate(fields):
            if isinstance(raw, FieldDefinition):
                definitions.append(raw)
                continue
            try:
                definitions.append(FieldDefinition.model_validate(raw))
            except ValidationError as e:
                field_id = raw.get("id") if isinstance(raw, Mapping) else None
                result.add_error(
                    IssueCode.INVALID_FIELD,
                    IssueCategory.SCHEMA,
                    f"Field #{index} is invalid: {e.error_count()} error(s): "
                    + "; ".join(str(err.get("msg")) for err in e.errors()),
                    field_id=str(field_id) if field_id is not None else None,
                )
        return definitions if result.is_valid else None

    @staticmethod
    def _check_unique(definitions: list[FieldDefinition], result: ValidationResult) -> bool:
        seen: set[str] = set()
        reported: set[str] = set()
        for field in definitions:
            if field.id in seen and field.id not in reported:
                result.add_error(
                    IssueCode.DUPLICATE_FIELD_ID,
                    IssueCategory.SCHEMA,
                    f"Duplicate field id '{field.id}'",
                    field_id=field.id,
                )
                reported.add(field.id)
            seen.add(field.id)
        return not reported

    @staticmethod
    def _check_rule_targets(
        definitions: list[FieldDefinition], result: ValidationResult
    ) -> None:
        ids = {field.id for field in definitions}
        for field in definitions:
            for rule in field.conditional_rules:
                if rule.is_field_rule and rule.target_field_id not in ids:
                    result.add_warning(
                        IssueCode.UNKNOWN_RULE_TARGET,
                        IssueCategory.STRUCTURAL,
                        f"Rule '{rule.id}' targets unknown field '{rule.target_field_id}'",
                        field_id=field.id,
                    )

    def _assemble(
        self,
        definitions: list[FieldDefinition],
        options: Mapping[str, tuple[FieldOption, ...]],
        module_key: str | None,
    ) -> ModuleTree:
        by_id = {field.id: field for field in definitions}
        position = {field.id: index for index, field in enumerate(definitions)}

        def sort_key(field_id: str) -> tuple[int, int]:
            return by_id[field_id].order, position[field_id]

        # Dangling parents at this point only occur in STRICT mode
        children: dict[str, list[str]] = {field.id: [] for field in definitions}
        root_ids: list[str] = []
        for field in definitions:
            if field.parent_id is None or field.parent_id not in by_id:
                root_ids.append(field.id)
            else:
                children[field.parent_id].append(field.id)

        root_ids.sort(key=sort_key)
        for child_ids in children.values():
            child_ids.sort(key=sort_key)

        nodes: dict[str, FieldNode] = {}
        order: list[str] = []
        stack: list[tuple[str, str | None, tuple[str, ...]]] = [
            (root_id, None, ()) for root_id in reversed(root_ids)
        ]
        while stack:
            field_id, parent_id, parent_path = stack.pop()
            path = (*parent_path, field_id)
            nodes[field_id] = FieldNode(
                definition=by_id[field_id],
                parent_id=parent_id,
                child_ids=tuple(children[field_id]),
                depth=len(path) - 1,
                path=path,
                options=options.get(field_id, ()),
            )
            order.append(field_id)
            stack.extend(
                (child_id, field_id, path) for child_id in reversed(children[field_id])
            )

        return ModuleTree(
            nodes=nodes,
            root_ids=tuple(root_ids),
            order=tuple(order),
            metrics=self._metrics(nodes, root_ids),
            module_key=module_key,
        )

    def _metrics(self, nodes: Mapping[str, FieldNode], root_ids: list[str]) -> HierarchyMetrics:
        total = len(nodes)
        rule_count = sum(len(node.definition.conditional_rules) for node in nodes.values())
        max_depth = max((node.depth for node in nodes.values()), default=0)
        score = (
            total * self.settings.complexity_field_weight
            + rule_count * self.settings.complexity_rule_weight
            + max_depth * self.settings.complexity_depth_weight
        )
        return HierarchyMetrics(
            total_fields=total,
            root_fields=len(root_ids),
            max_depth=max_depth,
            rule_count=rule_count,
            code_set_fields=sum(
                1 for node in nodes.values() if node.definition.code_set_id is not None
            ),
            complexity_score=score,
        )


# =============================================================================
# Function forms
# =============================================================================


async def build_hierarchy(
    fields: Sequence[FieldInput],
    *,
    mode: HierarchyMode = HierarchyMode.STRICT,
    code_set_provider: CodeSetProvider | None = None,
    settings: Settings | None = None,
    cancel_event: asyncio.Event | None = None,
) -> tuple[ModuleTree | None, ValidationResult]:
    """Build a tree with a one-off builder."""
    builder = HierarchyBuilder(settings=settings, code_set_provider=code_set_provider)
    return await builder.build(fields, mode=mode, cancel_event=cancel_event)


def build_hierarchy_sync(
    fields: Sequence[FieldInput],
    *,
    mode: HierarchyMode = HierarchyMode.STRICT,
    code_set_provider: CodeSetProvider | None = None,
    settings: Settings | None = None,
) -> tuple[ModuleTree | None, ValidationResult]:
    """Synchronous wrapper for callers without an event loop."""
    return asyncio.run(
        build_hierarchy(
            fields, mode=mode, code_set_provider=code_set_provider, settings=settings
        )
    )
