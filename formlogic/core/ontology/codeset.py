"""Code sets: externally sourced, reusable option lists."""

from __future__ import annotations

from .base import WireModel
from .field import FieldOption


class CodeSetItem(WireModel):
    """One entry of a code set."""

    value: str
    text_en: str
    text_fr: str | None = None
    order: int = 0
    is_default: bool = False
    is_active: bool = True


class CodeSetSchema(WireModel):
    """A named, ordered list of items shared by many fields."""

    id: int
    code: str
    name_en: str
    name_fr: str | None = None
    category: str | None = None
    is_system_managed: bool = False
    tags: tuple[str, ...] = ()
    items: tuple[CodeSetItem, ...] = ()

    def to_options(self) -> list[FieldOption]:
        """Active items as field options, ordered by declared order."""
        active = [item for item in self.items if item.is_active]
        active.sort(key=lambda item: item.order)
        return [
            FieldOption(
                value=item.value,
                label_en=item.text_en,
                label_fr=item.text_fr,
                is_default=item.is_default,
                order=item.order,
            )
            for item in active
        ]
