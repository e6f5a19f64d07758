"""Pytest fixtures for test suite."""

import pytest
from pathlib import Path

from formlogic.core.config import Settings
from formlogic.core.ontology import (
    ConditionalRule,
    FieldDefinition,
    FieldOption,
    WorkflowFormData,
)
from formlogic.codesets import InMemoryCodeSetProvider, PROVINCES_CODE_SET_ID


# =============================================================================
# Core Fixtures
# =============================================================================


@pytest.fixture
def data_dir() -> Path:
    """Path to the test data directory."""
    return Path(__file__).parent / "data"


@pytest.fixture
def schemas_dir(data_dir: Path) -> Path:
    return data_dir / "schemas"


@pytest.fixture
def code_sets_dir(data_dir: Path) -> Path:
    return data_dir / "code_sets"


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def sample_provider() -> InMemoryCodeSetProvider:
    """Code-set provider seeded with the bundled samples."""
    return InMemoryCodeSetProvider.with_samples()


# =============================================================================
# Schema Fixtures
# =============================================================================


@pytest.fixture
def applicant_fields() -> list[FieldDefinition]:
    """A small applicant module: two sections, nested fields, one code set."""
    return [
        FieldDefinition.section("applicant", "Applicant", "Demandeur", order=1),
        FieldDefinition.text_field(
            "full_name", "Full name", "Nom complet",
            is_required=True, order=1, parent_id="applicant", max_length=50,
        ),
        FieldDefinition.text_field(
            "email", "Email", "Courriel",
            order=2, parent_id="applicant", validation_rules=["email"],
        ),
        FieldDefinition.drop_down(
            "province", "Province", code_set_id=PROVINCES_CODE_SET_ID,
            order=3, parent_id="applicant",
        ),
        FieldDefinition.section("organization", "Organization", order=2),
        FieldDefinition.drop_down(
            "has_org", "Representing an organization?",
            options=[
                FieldOption(value="no", label_en="No", order=2),
                FieldOption(value="yes", label_en="Yes", order=1),
            ],
            order=1, parent_id="organization",
            conditional_rules=[
                ConditionalRule(
                    id="show_org_name",
                    condition={"field": "has_org", "operator": "eq", "value": "yes"},
                    target_field_id="org_name",
                    action="show",
                ),
            ],
        ),
        FieldDefinition.text_field(
            "org_name", "Organization name",
            order=2, parent_id="organization", is_visible=False,
        ),
    ]


@pytest.fixture
def form_data() -> WorkflowFormData:
    """Two-module workflow snapshot with numeric module ids."""
    return WorkflowFormData(
        {
            "current": {"age": 25, "name": "Alice", "notes": "  ", "tags": ["a", "b"]},
            "Step1": {"amount": 7500, "total": 9000, "start": "2024-03-01"},
        },
        module_ids={1: "Step1", 2: "current"},
    )
