"""YAML/JSON schema document loader and wire-shape parsing helpers."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import TypeAdapter, ValidationError

from .config import Settings, get_settings
from .errors import IssueCategory, IssueCode, SchemaError, ValidationIssue
from .ontology import (
    ComplexCondition,
    Condition,
    ConditionalRule,
    FieldDefinition,
    ModuleDefinition,
    SimpleCondition,
    WorkflowDefinition,
)

logger = logging.getLogger(__name__)

_condition_adapter: TypeAdapter = TypeAdapter(Condition)


def _describe(error: ValidationError) -> str:
    """Flatten a pydantic error into one line."""
    parts = []
    for detail in error.errors():
        location = ".".join(str(p) for p in detail.get("loc", ()))
        parts.append(f"{location}: {detail.get('msg')}" if location else str(detail.get("msg")))
    return "; ".join(parts)


# =============================================================================
# Wire-shape parsing
# =============================================================================


def parse_condition(data: Any) -> SimpleCondition | ComplexCondition:
    """Parse a condition document.

    Raises:
        SchemaError: If the document is neither a simple nor a complex
            condition, carries both shapes, or breaks the Not arity.
    """
    try:
        return _condition_adapter.validate_python(data)
    except ValidationError as e:
        issue = ValidationIssue(
            code=IssueCode.INVALID_CONDITION,
            category=IssueCategory.SCHEMA,
            message=_describe(e),
        )
        raise SchemaError(f"Invalid condition: {issue.message}", [issue]) from e


def parse_rule(data: Any) -> ConditionalRule:
    """Parse a conditional rule document.

    Raises:
        SchemaError: If the condition is malformed or the rule does not have
            exactly one target.
    """
    if isinstance(data, ConditionalRule):
        return data
    try:
        return ConditionalRule.model_validate(data)
    except ValidationError as e:
        rule_id = data.get("id") if isinstance(data, Mapping) else None
        issue = ValidationIssue(
            code=IssueCode.INVALID_RULE,
            category=IssueCategory.SCHEMA,
            message=_describe(e),
            field_id=None,
        )
        raise SchemaError(f"Invalid rule '{rule_id}': {issue.message}", [issue]) from e


def parse_field(data: Any) -> FieldDefinition:
    """Parse one field definition document."""
    if isinstance(data, FieldDefinition):
        return data
    try:
        return FieldDefinition.model_validate(data)
    except ValidationError as e:
        field_id = data.get("id") if isinstance(data, Mapping) else None
        issue = ValidationIssue(
            code=IssueCode.INVALID_FIELD,
            category=IssueCategory.SCHEMA,
            message=_describe(e),
            field_id=field_id if isinstance(field_id, str) else None,
        )
        raise SchemaError(f"Invalid field '{field_id}': {issue.message}", [issue]) from e


def parse_fields(raw: Sequence[Any]) -> list[FieldDefinition]:
    """Parse a flat field array, reporting every invalid entry at once.

    Raises:
        SchemaError: If any entry is invalid; ``issues`` lists all of them.
    """
    fields: list[FieldDefinition] = []
    issues: list[ValidationIssue] = []
    for item in raw:
        try:
            fields.append(parse_field(item))
        except SchemaError as e:
            issues.extend(e.issues)
    if issues:
        raise SchemaError(f"{len(issues)} invalid field definition(s)", issues)
    return fields


# =============================================================================
# Document loader
# =============================================================================


def _read_document(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


class SchemaLoader:
    """Loads module and workflow definitions from YAML or JSON files.

    A document is a workflow when it carries a ``modules`` list, otherwise
    it is a single module.
    """

    PATTERNS = ("*.yaml", "*.yml", "*.json")

    def __init__(self, schema_dir: str | Path | None = None):
        self.schema_dir = Path(schema_dir) if schema_dir else None
        self._modules: dict[str, ModuleDefinition] = {}
        self._workflows: dict[str, WorkflowDefinition] = {}

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> SchemaLoader:
        """Loader over the configured ``schema_dir``."""
        settings = settings or get_settings()
        return cls(settings.schema_dir)

    def load_file(self, path: str | Path) -> ModuleDefinition | WorkflowDefinition:
        """Load one module or workflow document."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Schema file not found: {path}")

        content = _read_document(path)
        return self.load_document(content, source=str(path))

    def load_document(
        self, content: Any, source: str = "<document>"
    ) -> ModuleDefinition | WorkflowDefinition:
        """Validate an already-parsed document and register it."""
        if not isinstance(content, Mapping):
            raise SchemaError(f"{source}: expected a mapping at the top level")

        try:
            if "modules" in content:
                workflow = WorkflowDefinition.model_validate(content)
            else:
                module = ModuleDefinition.model_validate(content)
        except ValidationError as e:
            issue = ValidationIssue(
                code=IssueCode.INVALID_FIELD,
                category=IssueCategory.SCHEMA,
                message=_describe(e),
            )
            raise SchemaError(f"{source}: {issue.message}", [issue]) from e

        if "modules" in content:
            self._workflows[workflow.key] = workflow
            for member in workflow.modules:
                self._modules[member.key] = member
            logger.debug("Loaded workflow '%s' from %s", workflow.key, source)
            return workflow

        self._modules[module.key] = module
        logger.debug("Loaded module '%s' from %s", module.key, source)
        return module

    def load_directory(
        self, path: str | Path | None = None
    ) -> list[ModuleDefinition | WorkflowDefinition]:
        """Load every schema document in a directory.

        Invalid documents are logged and skipped so one broken draft does not
        hide the rest.
        """
        path = Path(path) if path else self.schema_dir
        if not path:
            raise ValueError("No schema directory specified")
        if not path.exists():
            raise FileNotFoundError(f"Schema directory not found: {path}")

        loaded: list[ModuleDefinition | WorkflowDefinition] = []
        files = sorted({f for pattern in self.PATTERNS for f in path.glob(pattern)})
        for schema_file in files:
            try:
                loaded.append(self.load_file(schema_file))
            except (SchemaError, yaml.YAMLError, json.JSONDecodeError) as e:
                logger.warning("Failed to load %s: %s", schema_file, e)
        return loaded

    def get_module(self, key: str) -> ModuleDefinition | None:
        return self._modules.get(key)

    def get_workflow(self, key: str) -> WorkflowDefinition | None:
        return self._workflows.get(key)

    def get_all_modules(self) -> list[ModuleDefinition]:
        return list(self._modules.values())
