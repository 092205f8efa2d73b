"""Normalized data models: the single schema both providers map into."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from fortify_report.models.enums import Confidence, ErrorKind, Likelihood, ProviderKind

_ARTIFACT_CONFIG = ConfigDict(
    extra="forbid",
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class ValidationResult(BaseModel):
    """Outcome of a connectivity or identity check."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    success: bool
    provider: ProviderKind
    application_id: str | None = None
    version_id: str | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> "ValidationResult":
        if self.success and self.error is not None:
            raise ValueError("a successful result cannot carry an error")
        if not self.success and not self.error:
            raise ValueError("a failed result must carry an error message")
        return self


class SecurityIssue(BaseModel):
    """One normalized finding.

    ``severity`` and ``priority`` both hold the resolved bucket name; the
    duplication is kept for consumers that read either field.
    """

    model_config = _ARTIFACT_CONFIG

    id: str
    instance_id: str = ""
    name: str
    category: str
    kingdom: str = ""
    severity: str
    priority: str
    likelihood: Likelihood
    confidence: Confidence
    primary_location: str = ""
    line_number: int = 0
    folder_guid: str = ""
    folder_id: int = 0
    folder_name: str = ""
    folder_color: str = ""
    priority_score: float | str = Field(0, alias="priority_score")
    provider: ProviderKind
    raw_data: dict[str, Any] | None = None


class ReportData(BaseModel):
    """Aggregate result of one fetch. Immutable once built."""

    model_config = _ARTIFACT_CONFIG

    issues: tuple[SecurityIssue, ...] = ()
    app_name: str
    app_version: str
    scan_date: datetime
    total_count: int = Field(..., ge=0)
    project_version_id: str | None = None
    provider: ProviderKind
    provider_url: str | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _check_total(self) -> "ReportData":
        if self.total_count != len(self.issues):
            raise ValueError(
                f"total_count {self.total_count} does not match {len(self.issues)} issues"
            )
        return self

    @property
    def degraded(self) -> bool:
        return self.error is not None
