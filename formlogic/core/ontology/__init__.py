"""Wire-shaped types for fields, conditions, rules, code sets and form data."""

from .base import WireModel
from .condition import (
    Condition,
    SimpleCondition,
    ComplexCondition,
    ConditionOperator,
    LogicalOperator,
    OPERATOR_ALIASES,
    normalize_operator,
    iter_simple_conditions,
    ConditionalRule,
    FieldAction,
    WorkflowAction,
)
from .field import (
    FieldType,
    OPTION_FIELD_TYPES,
    CONTAINER_FIELD_TYPES,
    RelationshipType,
    FieldOption,
    TextAreaConfig,
    FileUploadConfig,
    DateRangeConfig,
    ModalTableConfig,
    FieldTypeConfig,
    FieldDefinition,
)
from .codeset import CodeSetItem, CodeSetSchema
from .module import ModuleDefinition, WorkflowDefinition
from .form_data import MISSING, WorkflowFormData

__all__ = [
    "WireModel",
    # Conditions
    "Condition",
    "SimpleCondition",
    "ComplexCondition",
    "ConditionOperator",
    "LogicalOperator",
    "OPERATOR_ALIASES",
    "normalize_operator",
    "iter_simple_conditions",
    # Rules
    "ConditionalRule",
    "FieldAction",
    "WorkflowAction",
    # Fields
    "FieldType",
    "OPTION_FIELD_TYPES",
    "CONTAINER_FIELD_TYPES",
    "RelationshipType",
    "FieldOption",
    "TextAreaConfig",
    "FileUploadConfig",
    "DateRangeConfig",
    "ModalTableConfig",
    "FieldTypeConfig",
    "FieldDefinition",
    # Code sets
    "CodeSetItem",
    "CodeSetSchema",
    # Modules
    "ModuleDefinition",
    "WorkflowDefinition",
    # Form data
    "MISSING",
    "WorkflowFormData",
]
