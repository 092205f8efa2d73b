"""Tests for ProviderConfig and the normalized artifact models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from fortify_report.integrations.config import DEFAULT_MAX_ISSUES, ProviderConfig
from fortify_report.integrations.normalized import ReportData, SecurityIssue, ValidationResult
from fortify_report.models.enums import Confidence, Likelihood, ProviderKind


def _issue(**overrides) -> SecurityIssue:
    fields = {
        "id": "1",
        "instance_id": "INST1",
        "name": "SQL Injection",
        "category": "SQL Injection",
        "severity": "High",
        "priority": "High",
        "likelihood": Likelihood.LIKELY,
        "confidence": Confidence.HIGH,
        "provider": ProviderKind.SSC,
    }
    fields.update(overrides)
    return SecurityIssue(**fields)


class TestProviderConfig:
    def test_base_url_normalized(self):
        config = ProviderConfig(base_url="  https://ssc.example.com/ssc/  ")
        assert config.base_url == "https://ssc.example.com/ssc"

    def test_defaults(self):
        config = ProviderConfig()
        assert config.max_issues == DEFAULT_MAX_ISSUES == 10000
        assert config.provider_kind is None

    def test_max_issues_positive(self):
        with pytest.raises(ValidationError):
            ProviderConfig(max_issues=0)

    def test_credentials_hidden_from_repr(self):
        config = ProviderConfig(ci_token="super-secret", api_secret="also-secret")
        assert "super-secret" not in repr(config)
        assert "also-secret" not in repr(config)

    def test_frozen(self):
        config = ProviderConfig(app_name="MyApp")
        with pytest.raises(ValidationError):
            config.app_name = "Other"


class TestValidationResult:
    def test_failure_requires_error(self):
        with pytest.raises(ValidationError):
            ValidationResult(success=False, provider=ProviderKind.SSC)

    def test_success_rejects_error(self):
        with pytest.raises(ValidationError):
            ValidationResult(success=True, provider=ProviderKind.SSC, error="nope")


class TestReportData:
    def test_total_count_must_match(self):
        with pytest.raises(ValidationError, match="does not match"):
            ReportData(
                issues=(_issue(),),
                app_name="MyApp",
                app_version="1.0",
                scan_date=datetime.now(timezone.utc),
                total_count=2,
                provider=ProviderKind.SSC,
            )

    def test_camel_case_aliases(self):
        issue = _issue(primary_location="a.java:3", priority_score=7)
        dumped = issue.model_dump(by_alias=True)
        assert dumped["instanceId"] == "INST1"
        assert dumped["primaryLocation"] == "a.java:3"
        assert dumped["priority_score"] == 7
        assert "rawData" in dumped

    def test_accepts_aliases_on_input(self):
        issue = SecurityIssue.model_validate({
            **_issue().model_dump(by_alias=True),
            "instanceId": "INST9",
        })
        assert issue.instance_id == "INST9"

    def test_issues_immutable(self):
        report = ReportData(
            issues=[_issue()],
            app_name="MyApp",
            app_version="1.0",
            scan_date=datetime.now(timezone.utc),
            total_count=1,
            provider=ProviderKind.SSC,
        )
        assert isinstance(report.issues, tuple)
        assert report.degraded is False
        with pytest.raises(ValidationError):
            report.total_count = 5


class TestSettings:
    def test_env_prefix(self, monkeypatch):
        from fortify_report.config import Settings

        monkeypatch.setenv("FORTIFY_HTTP_TIMEOUT", "5")
        monkeypatch.setenv("FORTIFY_SKIP_VALIDATION", "true")
        monkeypatch.setenv("FORTIFY_CI_TOKEN", "tok")

        settings = Settings()
        assert settings.http_timeout == 5.0
        assert settings.skip_validation is True
        assert settings.ci_token == "tok"
        assert settings.page_delay == 0.1
