"""Shared base model for wire-shaped (JSON round-trippable) types."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Immutable model serialized with camelCase keys.

    Input accepts both the camelCase alias and the Python attribute name.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-compatible dict using wire (camelCase) keys, nulls omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
