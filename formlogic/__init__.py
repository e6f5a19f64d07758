"""formlogic - Dynamic Forms core.

Builds immutable field hierarchies from flat form schemas, resolves option
lists from code sets, evaluates conditional logic across workflow modules,
and turns conditional rules into field state and workflow branch decisions.

Environment Variables:
    FORMLOGIC_DEFAULT_MODULE_KEY: Module unqualified references read from.
    FORMLOGIC_MAX_CONCURRENT_CODE_SET_FETCHES: Fan-out bound for code sets.
    FORMLOGIC_CODE_SET_FETCH_TIMEOUT_SECONDS: Per-fetch timeout.
    FORMLOGIC_CODE_SETS_DIR / FORMLOGIC_SCHEMA_DIR: Document directories.
"""

__version__ = "0.1.0"

# Core types
from .core.ontology import (
    Condition,
    SimpleCondition,
    ComplexCondition,
    ConditionOperator,
    LogicalOperator,
    ConditionalRule,
    FieldAction,
    WorkflowAction,
    FieldType,
    FieldOption,
    FieldDefinition,
    CodeSetItem,
    CodeSetSchema,
    ModuleDefinition,
    WorkflowDefinition,
    MISSING,
    WorkflowFormData,
)
from .core.config import Settings, get_settings
from .core.errors import (
    IssueCategory,
    IssueCode,
    ValidationIssue,
    ValidationResult,
    FormLogicError,
    SchemaError,
    BuildCancelledError,
)
from .core.loader import SchemaLoader, parse_condition, parse_rule, parse_fields

# Components
from .codesets import (
    CodeSetProvider,
    CodeSetResolver,
    InMemoryCodeSetProvider,
    FileCodeSetProvider,
)
from .hierarchy import (
    FieldNode,
    ModuleTree,
    HierarchyMetrics,
    HierarchyMode,
    HierarchyBuilder,
    auto_fix_fields,
    build_hierarchy,
    build_hierarchy_sync,
)
from .conditions import ConditionEvaluator, EvaluationDiagnostics, evaluate
from .rules import (
    FieldState,
    ModuleState,
    WorkflowActionCandidate,
    resolve_field_state,
    resolve_module_state,
    resolve_workflow_actions,
)
from .validation import FormValidationService, check_publish_readiness

__all__ = [
    "__version__",
    # Core types
    "Condition",
    "SimpleCondition",
    "ComplexCondition",
    "ConditionOperator",
    "LogicalOperator",
    "ConditionalRule",
    "FieldAction",
    "WorkflowAction",
    "FieldType",
    "FieldOption",
    "FieldDefinition",
    "CodeSetItem",
    "CodeSetSchema",
    "ModuleDefinition",
    "WorkflowDefinition",
    "MISSING",
    "WorkflowFormData",
    # Config and errors
    "Settings",
    "get_settings",
    "IssueCategory",
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "FormLogicError",
    "SchemaError",
    "BuildCancelledError",
    # Loading
    "SchemaLoader",
    "parse_condition",
    "parse_rule",
    "parse_fields",
    # Code sets
    "CodeSetProvider",
    "CodeSetResolver",
    "InMemoryCodeSetProvider",
    "FileCodeSetProvider",
    # Hierarchy
    "FieldNode",
    "ModuleTree",
    "HierarchyMetrics",
    "HierarchyMode",
    "HierarchyBuilder",
    "auto_fix_fields",
    "build_hierarchy",
    "build_hierarchy_sync",
    # Conditions
    "ConditionEvaluator",
    "EvaluationDiagnostics",
    "evaluate",
    # Rules
    "FieldState",
    "ModuleState",
    "WorkflowActionCandidate",
    "resolve_field_state",
    "resolve_module_state",
    "resolve_workflow_actions",
    # Validation
    "FormValidationService",
    "check_publish_readiness",
]
