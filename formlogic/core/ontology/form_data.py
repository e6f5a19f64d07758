"""Workflow-wide form data snapshot read by the condition evaluator."""

from __future__ import annotations

import copy
import json
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any


class _Missing:
    """Sentinel for a module or field absent from the snapshot."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict) -> _Missing:
        return self


MISSING: Any = _Missing()


class WorkflowFormData(Mapping):
    """Read-only mapping of module key -> {field id -> value}.

    The evaluator never mutates a snapshot. ``with_value`` returns a new
    snapshot; ``snapshot`` returns an independent deep copy that can be
    handed to an evaluator running on another thread.

    Example:
        WorkflowFormData(
            {"PersonalInfo": {"age": 34}, "Budget": {"total": 7500}},
            module_ids={1: "PersonalInfo", 2: "Budget"},
        )
    """

    __slots__ = ("_modules", "_module_ids")

    def __init__(
        self,
        modules: Mapping[str, Mapping[str, Any]] | None = None,
        module_ids: Mapping[int, str] | None = None,
    ):
        self._modules: Mapping[str, Mapping[str, Any]] = modules if modules is not None else {}
        self._module_ids: Mapping[int, str] = module_ids if module_ids is not None else {}

    @classmethod
    def coerce(cls, data: WorkflowFormData | Mapping[str, Mapping[str, Any]] | None) -> WorkflowFormData:
        """Wrap a plain mapping without copying it."""
        if isinstance(data, WorkflowFormData):
            return data
        if data is None:
            return cls()
        return cls(data)

    @classmethod
    def for_workflow(
        cls,
        workflow: Any,
        modules: Mapping[str, Mapping[str, Any]],
    ) -> WorkflowFormData:
        """Snapshot whose numeric module ids come from a WorkflowDefinition."""
        return cls(modules, module_ids=workflow.module_ids())

    # -------------------------------------------------------------------------
    # Mapping protocol
    # -------------------------------------------------------------------------

    def __getitem__(self, key: str) -> Mapping[str, Any]:
        return MappingProxyType(self._modules[key])

    def __iter__(self) -> Iterator[str]:
        return iter(self._modules)

    def __len__(self) -> int:
        return len(self._modules)

    def __repr__(self) -> str:
        return f"WorkflowFormData({dict(self._modules)!r})"

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    @property
    def module_ids(self) -> Mapping[int, str]:
        return MappingProxyType(dict(self._module_ids))

    def resolve_module(self, segment: str) -> str | None:
        """Module key named by a reference prefix, or None if none matches.

        A segment matches when it is an existing module key, or when it is
        numeric and maps to an existing module through ``module_ids``.
        """
        if segment in self._modules:
            return segment
        if segment.isdigit():
            key = self._module_ids.get(int(segment))
            if key is not None and key in self._modules:
                return key
        return None

    def get_value(self, module_key: str, field_id: str) -> Any:
        """Field value, or MISSING when the module or field is absent."""
        module = self._modules.get(module_key)
        if module is None:
            return MISSING
        return module.get(field_id, MISSING)

    # -------------------------------------------------------------------------
    # Copies and serialization
    # -------------------------------------------------------------------------

    def with_value(self, module_key: str, field_id: str, value: Any) -> WorkflowFormData:
        """New snapshot with one field set; this snapshot is left untouched."""
        modules = {key: dict(values) for key, values in self._modules.items()}
        modules.setdefault(module_key, {})[field_id] = value
        return WorkflowFormData(modules, module_ids=dict(self._module_ids))

    def snapshot(self) -> WorkflowFormData:
        """Independent deep copy."""
        return WorkflowFormData(
            copy.deepcopy({key: dict(values) for key, values in self._modules.items()}),
            module_ids=dict(self._module_ids),
        )

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {key: dict(values) for key, values in self._modules.items()}

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, text: str, module_ids: Mapping[int, str] | None = None) -> WorkflowFormData:
        if not text or not text.strip():
            return cls(module_ids=module_ids)
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Form data JSON must be an object of modules")
        return cls(data, module_ids=module_ids)
