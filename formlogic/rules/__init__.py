"""Rule Action Resolver: field state and workflow branch candidates."""

from .resolver import (
    FieldState,
    ModuleState,
    WorkflowActionCandidate,
    resolve_field_state,
    resolve_module_state,
    resolve_workflow_actions,
)

__all__ = [
    "FieldState",
    "ModuleState",
    "WorkflowActionCandidate",
    "resolve_field_state",
    "resolve_module_state",
    "resolve_workflow_actions",
]
