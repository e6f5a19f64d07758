"""
Field reference parsing and lookup.

A reference is either ``field`` (current module) or ``module.field`` where the
module segment is a module key or a numeric module id.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from formlogic.core.ontology import MISSING, WorkflowFormData


FIELD_REFERENCE_PATTERN = re.compile(
    r"^((?P<module>[A-Za-z_]\w*|\d+)\.)?(?P<field>[A-Za-z_]\w*)$"
)


@dataclass(frozen=True)
class FieldReference:
    """A parsed field reference."""

    raw: str
    module: str | None
    field: str

    @property
    def is_qualified(self) -> bool:
        return self.module is not None


@lru_cache(maxsize=4096)
def parse_field_reference(raw: str) -> FieldReference | None:
    """Parse a reference string, or return None if it does not match the grammar."""
    match = FIELD_REFERENCE_PATTERN.match(raw)
    if match is None:
        return None
    return FieldReference(raw=raw, module=match.group("module"), field=match.group("field"))


@dataclass(frozen=True)
class ResolvedValue:
    """Result of looking a reference up in a data snapshot."""

    module_key: str
    field: str
    value: Any
    cross_module: bool

    @property
    def is_missing(self) -> bool:
        return self.value is MISSING


def resolve_reference(
    reference: FieldReference,
    data: WorkflowFormData,
    current_module_key: str,
) -> ResolvedValue:
    """Look up a reference's value.

    A qualified reference whose module segment does not name a module of the
    snapshot is read as a field of the current module named by the whole
    reference text (e.g. ``address.city`` stored flat).
    """
    if reference.module is not None:
        module_key = data.resolve_module(reference.module)
        if module_key is not None:
            return ResolvedValue(
                module_key=module_key,
                field=reference.field,
                value=data.get_value(module_key, reference.field),
                cross_module=True,
            )
        return ResolvedValue(
            module_key=current_module_key,
            field=reference.raw,
            value=data.get_value(current_module_key, reference.raw),
            cross_module=False,
        )

    return ResolvedValue(
        module_key=current_module_key,
        field=reference.field,
        value=data.get_value(current_module_key, reference.field),
        cross_module=False,
    )
