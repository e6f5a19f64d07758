"""Field definition models: the flat, JSON-serializable form schema."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Literal, Union

from pydantic import Field, field_serializer, field_validator

from .base import WireModel
from .condition import ConditionalRule


# =============================================================================
# Field Types
# =============================================================================


class FieldType:
    """Known field type tags. The set is open; unknown tags are kept as-is."""

    SECTION = "Section"
    TEXT_BOX = "TextBox"
    TEXT_AREA = "TextArea"
    NUMBER = "Number"
    EMAIL = "Email"
    CHECK_BOX = "CheckBox"
    DROP_DOWN = "DropDown"
    RADIO_BUTTON_LIST = "RadioButtonList"
    CHECK_BOX_LIST = "CheckBoxList"
    DATE_PICKER = "DatePicker"
    DATE_RANGE = "DateRange"
    FILE_UPLOAD = "FileUpload"
    MODAL_TABLE = "ModalTable"


OPTION_FIELD_TYPES = frozenset(
    {FieldType.DROP_DOWN, FieldType.RADIO_BUTTON_LIST, FieldType.CHECK_BOX_LIST}
)

CONTAINER_FIELD_TYPES = frozenset({FieldType.SECTION})


class RelationshipType(str, Enum):
    """How a child field relates to its parent."""

    CONTAINER = "container"
    CONDITIONAL = "conditional"
    CASCADE = "cascade"


class FieldOption(WireModel):
    """A selectable option, inline or resolved from a code set."""

    value: str
    label_en: str
    label_fr: str | None = None
    is_default: bool = False
    order: int = 0


# =============================================================================
# Type-Specific Configuration
# =============================================================================


class TextAreaConfig(WireModel):
    kind: Literal["textArea"] = "textArea"
    rows: int = 4


class FileUploadConfig(WireModel):
    kind: Literal["fileUpload"] = "fileUpload"
    allowed_extensions: tuple[str, ...] = ()
    max_file_size_bytes: int = 10_485_760
    max_files: int = 1
    require_virus_scan: bool = True


class DateRangeConfig(WireModel):
    kind: Literal["dateRange"] = "dateRange"
    min_date: datetime | None = None
    max_date: datetime | None = None
    allow_future_dates: bool = True
    date_format: str = "yyyy-MM-dd"


class ModalTableConfig(WireModel):
    """Repeating-record table whose rows are edited in a modal sub-form."""

    kind: Literal["modalTable"] = "modalTable"
    modal_fields: tuple[FieldDefinition, ...] = ()
    max_records: int | None = None
    allow_duplicates: bool = False


FieldTypeConfig = Annotated[
    Union[TextAreaConfig, FileUploadConfig, DateRangeConfig, ModalTableConfig],
    Field(discriminator="kind"),
]


# =============================================================================
# Field Definition
# =============================================================================


class FieldDefinition(WireModel):
    """One element of a module's flat field array.

    Hierarchy is expressed only through ``parent_id``; the builder turns the
    flat array into a ``ModuleTree``.
    """

    # Identity
    id: str = Field(..., min_length=1, description="Unique within a module")
    field_type: str = Field(..., min_length=1, description="Type tag, e.g. 'DropDown'")
    order: int = 1
    version: float = 1.0

    # Hierarchy
    parent_id: str | None = None
    relationship: RelationshipType = RelationshipType.CONTAINER

    # Multilingual text
    label_en: str | None = None
    label_fr: str | None = None
    description_en: str | None = None
    description_fr: str | None = None
    help_en: str | None = None
    help_fr: str | None = None
    placeholder_en: str | None = None
    placeholder_fr: str | None = None

    # Validation
    is_required: bool = False
    min_length: int | None = Field(None, ge=0)
    max_length: int | None = Field(None, ge=0)
    pattern: str | None = None
    validation_rules: tuple[str, ...] = ()

    # Conditional logic
    conditional_rules: tuple[ConditionalRule, ...] = ()

    # Data source
    code_set_id: int | None = None
    options: tuple[FieldOption, ...] | None = None

    # Baseline state
    is_visible: bool = True
    is_read_only: bool = False

    # Database mapping
    column_name: str | None = None
    column_type: str | None = None

    # Type-specific configuration
    type_config: FieldTypeConfig | None = None

    # Extensibility
    extended_properties: Mapping[str, Any] | None = None

    @field_validator("parent_id", mode="before")
    @classmethod
    def _blank_parent_is_root(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("extended_properties")
    @classmethod
    def _freeze_extended_properties(cls, value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        if value is None:
            return None
        return MappingProxyType(dict(value))

    @field_serializer("extended_properties")
    def _serialize_extended_properties(self, value: Mapping[str, Any] | None) -> dict[str, Any] | None:
        return None if value is None else dict(value)

    @property
    def requires_code_set_resolution(self) -> bool:
        """A code set is referenced and no inline options are present."""
        return self.code_set_id is not None and not self.options

    @property
    def supports_options(self) -> bool:
        return self.field_type in OPTION_FIELD_TYPES

    @property
    def is_container(self) -> bool:
        return self.field_type in CONTAINER_FIELD_TYPES

    # -------------------------------------------------------------------------
    # Factory helpers
    # -------------------------------------------------------------------------

    @classmethod
    def text_field(
        cls,
        id: str,
        label_en: str,
        label_fr: str | None = None,
        is_required: bool = False,
        order: int = 1,
        **kwargs: Any,
    ) -> FieldDefinition:
        return cls(
            id=id,
            field_type=FieldType.TEXT_BOX,
            label_en=label_en,
            label_fr=label_fr,
            is_required=is_required,
            order=order,
            **kwargs,
        )

    @classmethod
    def section(
        cls,
        id: str,
        title_en: str,
        title_fr: str | None = None,
        order: int = 1,
        **kwargs: Any,
    ) -> FieldDefinition:
        return cls(
            id=id,
            field_type=FieldType.SECTION,
            label_en=title_en,
            label_fr=title_fr,
            order=order,
            **kwargs,
        )

    @classmethod
    def drop_down(
        cls,
        id: str,
        label_en: str,
        options: list[FieldOption] | None = None,
        code_set_id: int | None = None,
        is_required: bool = False,
        order: int = 1,
        **kwargs: Any,
    ) -> FieldDefinition:
        return cls(
            id=id,
            field_type=FieldType.DROP_DOWN,
            label_en=label_en,
            options=options,
            code_set_id=code_set_id,
            is_required=is_required,
            order=order,
            **kwargs,
        )


ModalTableConfig.model_rebuild()
FieldDefinition.model_rebuild()
