"""Module and workflow definitions."""

from __future__ import annotations

from pydantic import Field

from .base import WireModel
from .condition import ConditionalRule
from .field import FieldDefinition


class ModuleDefinition(WireModel):
    """One form (a set of fields) within a workflow."""

    id: int
    key: str = Field(..., min_length=1, description="Module name used in field references")
    title_en: str | None = None
    title_fr: str | None = None
    fields: tuple[FieldDefinition, ...] = ()


class WorkflowDefinition(WireModel):
    """An ordered sequence of modules plus workflow-scoped branch rules."""

    id: int
    key: str = Field(..., min_length=1)
    title_en: str | None = None
    title_fr: str | None = None
    modules: tuple[ModuleDefinition, ...] = ()
    rules: tuple[ConditionalRule, ...] = ()

    def get_module(self, key: str) -> ModuleDefinition | None:
        for module in self.modules:
            if module.key == key:
                return module
        return None

    def module_ids(self) -> dict[int, str]:
        """Numeric module id -> module key, for numeric field references."""
        return {module.id: module.key for module in self.modules}
