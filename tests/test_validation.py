"""Tests for field value validation and publish readiness checks."""

import pytest

from formlogic.core.config import Settings
from formlogic.core.errors import IssueCode
from formlogic.core.ontology import (
    ConditionalRule,
    FieldDefinition,
    FieldOption,
    ModuleDefinition,
)
from formlogic.hierarchy import build_hierarchy_sync
from formlogic.rules import resolve_module_state
from formlogic.validation import (
    FieldErrorCode,
    FieldValidationError,
    FormValidationService,
    check_publish_readiness,
)


@pytest.fixture
def service(settings) -> FormValidationService:
    return FormValidationService(settings)


class TestFieldValidation:
    def test_required_missing(self, service):
        field = FieldDefinition.text_field("name", "Name", "Nom", is_required=True)
        result = service.validate_field(field, "   ")

        assert not result.is_valid
        [error] = result.errors
        assert error.code == FieldErrorCode.REQUIRED
        assert error.message_en == "Name is required"
        assert error.message_fr == "Nom est requis"

    def test_required_failure_short_circuits(self, service):
        """No length or pattern errors are reported for a missing required value."""
        field = FieldDefinition.text_field(
            "code", "Code", is_required=True, min_length=3, pattern=r"^\d+$"
        )
        result = service.validate_field(field, None)
        assert [e.code for e in result.errors] == [FieldErrorCode.REQUIRED]

    def test_empty_optional_skips_other_rules(self, service):
        field = FieldDefinition.text_field("code", "Code", min_length=3, validation_rules=["email"])
        assert service.validate_field(field, "").is_valid

    def test_length(self, service):
        field = FieldDefinition.text_field("code", "Code", min_length=3, max_length=5)

        assert [e.code for e in service.validate_field(field, "ab").errors] == [FieldErrorCode.MIN_LENGTH]
        assert [e.code for e in service.validate_field(field, "abcdef").errors] == [FieldErrorCode.MAX_LENGTH]
        assert service.validate_field(field, "abcd").is_valid

    def test_french_label_falls_back_to_english(self, service):
        field = FieldDefinition.text_field("code", "Code", min_length=3)
        [error] = service.validate_field(field, "ab").errors
        assert error.message_fr == "Code doit contenir au moins 3 caractères"

    def test_pattern(self, service):
        field = FieldDefinition.text_field("postal", "Postal code", pattern=r"^[A-Z]\d[A-Z] ?\d[A-Z]\d$")

        assert service.validate_field(field, "K1A 0B1").is_valid
        [error] = service.validate_field(field, "12345").errors
        assert error.code == FieldErrorCode.PATTERN_MISMATCH

    def test_invalid_regex_never_fails(self, service):
        field = FieldDefinition.text_field("x", "X", pattern="[unclosed")
        assert service.validate_field(field, "anything").is_valid

    def test_email_rule(self, service):
        field = FieldDefinition.text_field("email", "Email", validation_rules=["email"])

        assert service.validate_field(field, "a@example.org").is_valid
        [error] = service.validate_field(field, "not-an-email").errors
        assert error.code == FieldErrorCode.INVALID_EMAIL

    def test_unknown_rule_is_skipped(self, service, caplog):
        field = FieldDefinition.text_field("x", "X", validation_rules=["luhn"])
        with caplog.at_level("WARNING", logger="formlogic.validation.service"):
            assert service.validate_field(field, "123").is_valid
        assert "luhn" in caplog.text

    def test_required_override(self, service):
        field = FieldDefinition.text_field("x", "X", is_required=True)
        assert service.validate_field(field, None, required=False).is_valid
        assert not service.validate_field(FieldDefinition.text_field("y", "Y"), None, required=True).is_valid

    def test_register_custom_rule(self, service):
        class NoSpacesRule:
            rule_id = "noSpaces"

            def validate(self, field, value, values):
                if " " not in str(value):
                    return []
                return [FieldValidationError(
                    field_id=field.id, code="NO_SPACES", message_en="No spaces allowed"
                )]

        service.register_rule(NoSpacesRule())
        field = FieldDefinition.text_field("user", "User", validation_rules=["noSpaces"])

        assert "noSpaces" in service.rule_ids
        assert service.validate_field(field, "a b").errors[0].code == "NO_SPACES"


class TestModuleValidation:
    @pytest.fixture
    def tree(self, applicant_fields, settings):
        tree, _ = build_hierarchy_sync(applicant_fields, settings=settings)
        return tree

    def test_validate_module_collects_errors_in_order(self, service, tree):
        result = service.validate_module(tree, {"email": "bad"})
        assert [(e.field_id, e.code) for e in result.errors] == [
            ("full_name", FieldErrorCode.REQUIRED),
            ("email", FieldErrorCode.INVALID_EMAIL),
        ]

    def test_hidden_fields_skipped(self, service, settings):
        fields = [
            FieldDefinition.text_field("trigger", "Trigger"),
            FieldDefinition.text_field(
                "secret", "Secret", is_required=True,
                conditional_rules=[ConditionalRule(
                    id="hide_secret",
                    condition={"field": "trigger", "operator": "isEmpty"},
                    target_field_id="secret",
                    action="hide",
                )],
            ),
        ]
        tree, _ = build_hierarchy_sync(fields, settings=settings)
        values = {"trigger": ""}
        state = resolve_module_state(tree, {"current": values}, settings=settings)

        assert service.validate_module(tree, values, state).is_valid
        assert not service.validate_module(tree, values).is_valid

    def test_rule_driven_required(self, service, schemas_dir, settings):
        from formlogic.core.loader import SchemaLoader

        module = SchemaLoader().load_file(schemas_dir / "grant_application.yaml")
        tree, _ = build_hierarchy_sync(module.fields, settings=settings)
        values = {"project_title": "Solar", "budget": 25000}
        state = resolve_module_state(tree, {"GrantApplication": values}, "GrantApplication", settings=settings)

        result = service.validate_module(tree, values, state)
        assert [e.field_id for e in result.errors] == ["justification"]


class TestPublishReadiness:
    def test_ready_module(self, applicant_fields):
        result = check_publish_readiness(applicant_fields)
        assert result.is_valid
        assert result.warnings == []

    def test_no_fields(self):
        result = check_publish_readiness(ModuleDefinition(id=1, key="empty"))
        assert [e.code for e in result.errors] == [IssueCode.NO_FIELDS]

    def test_structural_problems_are_errors(self):
        fields = [
            FieldDefinition(id="a", field_type="TextBox", parent_id="b"),
            FieldDefinition(id="b", field_type="TextBox", parent_id="a"),
            FieldDefinition(id="c", field_type="TextBox", parent_id="ghost"),
            FieldDefinition(id="c", field_type="TextBox"),
        ]
        codes = [e.code for e in check_publish_readiness(fields).errors]

        assert codes.count(IssueCode.CYCLE) == 2
        assert IssueCode.DUPLICATE_FIELD_ID in codes
        assert IssueCode.DANGLING_PARENT in codes

    def test_rule_references(self):
        fields = [
            FieldDefinition(
                id="a", field_type="TextBox",
                conditional_rules=[
                    ConditionalRule(
                        id="r1",
                        condition={"field": "missing_field", "operator": "isEmpty"},
                        target_field_id="nowhere",
                        action="hide",
                    ),
                    ConditionalRule(
                        id="r2",
                        condition={"field": "OtherModule.x", "operator": "isEmpty"},
                        target_field_id="a",
                        action="show",
                    ),
                ],
            ),
        ]
        result = check_publish_readiness(fields)
        assert sorted(e.code.value for e in result.errors) == [
            IssueCode.UNKNOWN_CONDITION_FIELD.value,
            IssueCode.UNKNOWN_RULE_TARGET.value,
        ]

    def test_option_fields_need_a_source(self):
        result = check_publish_readiness([FieldDefinition.drop_down("d", "D")])
        assert [e.code for e in result.errors] == [IssueCode.MISSING_OPTIONS]

        with_options = FieldDefinition.drop_down("d", "D", options=[FieldOption(value="a", label_en="A")])
        assert check_publish_readiness([with_options]).is_valid

    def test_file_upload_config(self):
        bare = FieldDefinition(id="f", field_type="FileUpload")
        no_extensions = FieldDefinition.model_validate(
            {"id": "f", "fieldType": "FileUpload", "typeConfig": {"kind": "fileUpload"}}
        )
        assert [e.code for e in check_publish_readiness([bare]).errors] == [IssueCode.MISSING_TYPE_CONFIG]
        assert [e.code for e in check_publish_readiness([no_extensions]).errors] == [
            IssueCode.MISSING_ALLOWED_EXTENSIONS
        ]

    def test_modal_table_config(self):
        empty = FieldDefinition.model_validate(
            {"id": "t", "fieldType": "ModalTable", "typeConfig": {"kind": "modalTable"}}
        )
        assert [e.code for e in check_publish_readiness([empty]).errors] == [IssueCode.MISSING_MODAL_FIELDS]

    def test_required_without_label_warns(self):
        field = FieldDefinition(id="x", field_type="TextBox", is_required=True)
        result = check_publish_readiness([field])

        assert result.is_valid
        assert [w.code for w in result.warnings] == [IssueCode.MISSING_LABEL]
