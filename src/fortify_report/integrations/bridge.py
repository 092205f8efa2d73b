"""Bridge between ``ReportData`` and its consumers.

Pure functions with no I/O: summary statistics, the filters and tags the
build-summary table offers, and the JSON-ready attachment form.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from fortify_report.integrations.adapters.base import Provider
from fortify_report.integrations.normalized import ReportData, SecurityIssue
from fortify_report.integrations.severity import CRITICAL, HIGH, LOW, MEDIUM
from fortify_report.models.enums import Confidence, Likelihood, ProviderKind

EXPLOITABLE_TAG = "Exploitable"
SUSPICIOUS_TAG = "Suspicious"


class SeverityCounts(BaseModel):
    """Issue totals per priority bucket."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    total: int = 0
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


def severity_counts(issues: Iterable[SecurityIssue]) -> SeverityCounts:
    """Count issues per bucket. Unknown buckets only add to ``total``."""
    counts = {"total": 0, "critical": 0, "high": 0, "medium": 0, "low": 0}
    buckets = {
        CRITICAL.name: "critical",
        HIGH.name: "high",
        MEDIUM.name: "medium",
        LOW.name: "low",
    }
    for issue in issues:
        counts["total"] += 1
        key = buckets.get(issue.priority)
        if key:
            counts[key] += 1
    return SeverityCounts(**counts)


def filter_issues(
    issues: Iterable[SecurityIssue],
    severity: str | None = None,
    priority: str | None = None,
) -> list[SecurityIssue]:
    """Keep issues matching every given value exactly; ``None`` means no filter."""
    return [
        issue
        for issue in issues
        if (not severity or issue.severity == severity)
        and (not priority or issue.priority == priority)
    ]


def issue_tags(issue: SecurityIssue) -> list[str]:
    tags: list[str] = []
    if issue.likelihood == Likelihood.LIKELY or issue.confidence == Confidence.HIGH:
        tags.append(EXPLOITABLE_TAG)
    if issue.confidence == Confidence.LOW:
        tags.append(SUSPICIOUS_TAG)
    return tags


def build_issue_links(provider: Provider, report: ReportData, application_id: str = "") -> dict[str, str]:
    """Map each issue id to its deep link in the provider's web UI.

    SSC audit pages are addressed by instance id; FoD issue pages by the
    numeric id.
    """
    version_id = report.project_version_id or ""
    links: dict[str, str] = {}
    for issue in report.issues:
        target = issue.instance_id if provider.provider_kind == ProviderKind.SSC else issue.id
        links[issue.id] = provider.generate_issue_url(application_id, version_id, target)
    return links


# ---------------------------------------------------------------------------
# Attachment form
# ---------------------------------------------------------------------------


def report_to_attachment(report: ReportData, include_raw: bool = False) -> dict[str, Any]:
    """JSON-ready dict with the camelCase keys the report tab reads.

    ``rawData`` is diagnostic only and dropped unless *include_raw* is set.
    """
    exclude = None if include_raw else {"issues": {"__all__": {"raw_data"}}}
    payload = report.model_dump(mode="json", by_alias=True, exclude=exclude)
    payload["summary"] = severity_counts(report.issues).model_dump()
    return payload


def report_from_attachment(payload: Mapping[str, Any]) -> ReportData:
    """Rebuild ``ReportData`` from an attachment produced by ``report_to_attachment``."""
    data = {key: value for key, value in payload.items() if key != "summary"}
    return ReportData.model_validate(data)
