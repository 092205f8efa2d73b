"""Fortify SSC source adapter — pulls issues from an on-premise SSC server."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from fortify_report.errors.exceptions import ResolutionError
from fortify_report.integrations.adapters.base import (
    Provider,
    build_location,
    select_exact,
    to_int,
)
from fortify_report.integrations.auth import TokenAuthStrategy
from fortify_report.integrations.http_client import HttpRequester
from fortify_report.integrations.normalized import SecurityIssue
from fortify_report.integrations.severity import (
    classify_confidence,
    classify_folder_guid,
    classify_likelihood,
)
from fortify_report.models.enums import ProviderKind

logger = logging.getLogger(__name__)

SECURITY_AUDITOR_TITLE = "Security Auditor"


class SSCProvider(Provider):
    """Reads projects, versions and issues from the SSC ``/api/v1`` REST API.

    Severity comes from the issue's ``folderGuid`` in the "Security Auditor
    View" filter set, which is why the filter set is resolved before paging.
    """

    provider_kind = ProviderKind.SSC
    service_name = "Fortify SSC"
    page_size = 100
    auth_failure_hint = "please verify the CI token has proper permissions"

    def __init__(
        self,
        base_url: str,
        ci_token: str | None,
        requester: HttpRequester | None = None,
        page_size: int | None = None,
        page_delay: float | None = None,
    ) -> None:
        super().__init__(
            base_url,
            TokenAuthStrategy(ci_token),
            requester=requester,
            page_size=page_size,
            page_delay=page_delay,
        )

    @property
    def connection_probe_path(self) -> str:
        return "/api/v1/projects"

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    async def resolve_ids(self, app_name: str, app_version: str) -> tuple[str, str]:
        projects = await self.get_list(
            "/api/v1/projects",
            {"q": f'name:"{app_name}"', "fields": "id,name"},
            "data",
        )
        project_id = await select_exact(
            label="application",
            name=app_name,
            service_name=self.service_name,
            provider=self.provider_kind,
            candidates=projects,
            name_field="name",
            id_field="id",
            list_all=lambda: self.get_list("/api/v1/projects", {"fields": "id,name"}, "data"),
        )
        logger.info("Resolved SSC application %r to project %s", app_name, project_id)

        versions_path = f"/api/v1/projects/{project_id}/versions"
        versions = await self.get_list(
            versions_path,
            {"q": f'name:"{app_version}"', "fields": "id,name"},
            "data",
        )
        version_id = await select_exact(
            label="version",
            name=app_version,
            service_name=self.service_name,
            provider=self.provider_kind,
            candidates=versions,
            name_field="name",
            id_field="id",
            list_all=lambda: self.get_list(versions_path, {"fields": "id,name"}, "data"),
        )
        logger.info("Resolved SSC version %r to project version %s", app_version, version_id)
        return project_id, version_id

    async def find_filter_set(self, version_id: str) -> str:
        """Return the GUID of the filter set used to bucket issues.

        Preference: title containing "Security Auditor", then the version's
        default filter set, then the first one listed.
        """
        filter_sets = await self.get_list(
            f"/api/v1/projectVersions/{version_id}/filterSets", None, "data",
        )
        if not filter_sets:
            raise ResolutionError(
                f"No filter sets found for project version {version_id}",
                provider=self.provider_kind,
            )

        chosen = next(
            (fs for fs in filter_sets if SECURITY_AUDITOR_TITLE in (fs.get("title") or "")),
            None,
        )
        if chosen is None:
            chosen = next((fs for fs in filter_sets if fs.get("defaultFilterSet") is True), None)
        if chosen is None:
            chosen = filter_sets[0]

        logger.info("Using SSC filter set %r (%s)", chosen.get("title"), chosen.get("guid"))
        return str(chosen.get("guid") or "")

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def fetch_issues(
        self, application_id: str, version_id: str, max_issues: int,
    ) -> list[SecurityIssue]:
        filter_set_guid = await self.find_filter_set(version_id)
        path = f"/api/v1/projectVersions/{version_id}/issues"
        issues: list[SecurityIssue] = []
        start = 0

        while len(issues) < max_issues:
            params = {
                "filterset": filter_set_guid,
                "start": str(start),
                "limit": str(self.page_size),
                "orderby": "friority",
                "showhidden": "false",
                "showremoved": "false",
                "showsuppressed": "false",
            }
            page = await self.get_list(path, params, "data")
            logger.debug("SSC issues page at start=%d returned %d rows", start, len(page))
            if not page:
                break

            issues.extend(self.normalize_page(path, page, self.normalize_issue))
            start += self.page_size

            if len(issues) >= max_issues or len(page) < self.page_size:
                break
            await self.pause_between_pages()

        return issues[:max_issues]

    def normalize_issue(self, raw: dict[str, Any]) -> SecurityIssue:
        """Convert a single SSC issue dict to a ``SecurityIssue``."""
        folder_guid = raw.get("folderGuid") or ""
        bucket = classify_folder_guid(folder_guid)
        line_number = to_int(raw.get("lineNumber"))

        return SecurityIssue(
            id=str(raw.get("id") or ""),
            instance_id=raw.get("issueInstanceId") or "",
            name=raw.get("issueName") or raw.get("category") or "Unknown Issue",
            category=raw.get("category") or raw.get("issueName") or "Uncategorized",
            kingdom=raw.get("kingdom") or "",
            severity=bucket.name,
            priority=bucket.name,
            likelihood=classify_likelihood(raw.get("likelihood")),
            confidence=classify_confidence(raw.get("confidence")),
            primary_location=build_location(
                raw.get("primaryLocation") or raw.get("fileName"), line_number,
            ),
            line_number=line_number,
            folder_guid=folder_guid,
            folder_id=bucket.ordinal,
            folder_name=bucket.name,
            folder_color=bucket.color,
            priority_score=raw.get("friority") or 0,
            provider=self.provider_kind,
            raw_data=raw,
        )

    # ------------------------------------------------------------------
    # Deep links
    # ------------------------------------------------------------------

    def generate_project_url(self, application_id: str, version_id: str) -> str:
        return f"{self.base_url}/html/ssc/index.jsp#!/version/{version_id}/fix"

    def generate_issue_url(self, application_id: str, version_id: str, issue_id: str) -> str:
        """Link to the audit page filtered on the issue *instance* id."""
        query = quote(f"[instance id]:{issue_id}", safe="")
        return f"{self.base_url}/html/ssc/version/{version_id}/audit?q={query}"
