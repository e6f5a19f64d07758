"""Tests for settings and the issue/exception types."""

import pytest

from formlogic.core.config import Settings, get_settings
from formlogic.core.errors import (
    BuildCancelledError,
    FormLogicError,
    IssueCategory,
    IssueCode,
    SchemaError,
    ValidationResult,
)


class TestSettings:
    def test_defaults(self, settings: Settings):
        assert settings.default_module_key == "current"
        assert settings.max_concurrent_code_set_fetches == 8
        assert settings.cascade_container_visibility is True

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("FORMLOGIC_DEFAULT_MODULE_KEY", "Budget")
        monkeypatch.setenv("FORMLOGIC_CODE_SET_FETCH_TIMEOUT_SECONDS", "2.5")
        settings = Settings(_env_file=None)
        assert settings.default_module_key == "Budget"
        assert settings.code_set_fetch_timeout_seconds == 2.5

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestValidationResult:
    def test_warnings_keep_result_valid(self):
        result = ValidationResult()
        result.add_warning(IssueCode.DANGLING_PARENT, IssueCategory.STRUCTURAL, "gone", "a")
        assert result.is_valid

        result.add_error(IssueCode.CYCLE, IssueCategory.STRUCTURAL, "loop", "a")
        assert not result.is_valid
        assert len(result.issues_for("a")) == 2

    def test_merge(self):
        first = ValidationResult()
        second = ValidationResult()
        second.add_error(IssueCode.NO_FIELDS, IssueCategory.PUBLISH, "empty")
        assert first.merge(second) is first
        assert len(first.errors) == 1

    def test_issue_str(self):
        result = ValidationResult()
        issue = result.add_error(IssueCode.CYCLE, IssueCategory.STRUCTURAL, "loop", "a")
        assert str(issue) == "[cycle] a: loop"

    def test_serializes_with_camel_case(self):
        result = ValidationResult()
        result.add_warning(IssueCode.CYCLE, IssueCategory.STRUCTURAL, "loop", "a")
        dumped = result.model_dump(mode="json", by_alias=True)
        assert dumped["warnings"][0]["fieldId"] == "a"
        assert dumped["warnings"][0]["code"] == "cycle"


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(SchemaError, FormLogicError)
        assert issubclass(SchemaError, ValueError)
        assert issubclass(BuildCancelledError, FormLogicError)

    def test_schema_error_carries_issues(self):
        error = SchemaError("bad")
        assert error.issues == []
        with pytest.raises(FormLogicError):
            raise error
