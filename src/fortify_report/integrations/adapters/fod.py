"""Fortify on Demand source adapter — pulls vulnerabilities from the FoD v3 API."""

from __future__ import annotations

import logging
from typing import Any

from fortify_report.errors.exceptions import FortifyError
from fortify_report.integrations.adapters.base import (
    Provider,
    build_location,
    select_exact,
    to_int,
)
from fortify_report.integrations.auth import KeyExchangeAuthStrategy
from fortify_report.integrations.http_client import HttpRequester
from fortify_report.integrations.normalized import SecurityIssue
from fortify_report.integrations.severity import (
    UNKNOWN,
    classify_confidence,
    classify_likelihood,
    classify_severity_string,
)
from fortify_report.models.enums import ProviderKind

logger = logging.getLogger(__name__)


def build_fod_location(vuln: dict[str, Any]) -> str:
    """File path from the most specific field available, plus ``:line`` if positive.

    A finding with a line but no path yields ``":<line>"``; neither yields ``""``.
    """
    path = vuln.get("primaryLocationFull") or vuln.get("fileName") or vuln.get("shortFileName")
    return build_location(path, to_int(vuln.get("lineNumber")))


def web_base_url(api_base_url: str) -> str:
    """Derive the FoD web portal URL from its API URL.

    ``https://api.ams.fortify.com`` becomes ``https://ams.fortify.com``.
    """
    web = api_base_url.replace("api.", "", 1).replace("/api", "", 1).replace("/v3", "", 1)
    return web.rstrip("/")


class FoDProvider(Provider):
    """Reads applications, releases and vulnerabilities from FoD.

    FoD's ``filters=`` query matches partially, so both lookups re-check the
    returned names for an exact match.
    """

    provider_kind = ProviderKind.FOD
    service_name = "Fortify on Demand"
    page_size = 50
    auth_failure_hint = "please verify the API key and secret have proper permissions"

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        api_secret: str | None,
        requester: HttpRequester | None = None,
        page_size: int | None = None,
        page_delay: float | None = None,
        auth: KeyExchangeAuthStrategy | None = None,
    ) -> None:
        requester = requester or HttpRequester(self.service_name, provider=self.provider_kind)
        super().__init__(
            base_url,
            auth or KeyExchangeAuthStrategy(api_key, api_secret, base_url, requester=requester),
            requester=requester,
            page_size=page_size,
            page_delay=page_delay,
        )

    @property
    def connection_probe_path(self) -> str:
        return "/api/v3/applications"

    # ------------------------------------------------------------------
    # Name resolution
    # ------------------------------------------------------------------

    async def resolve_ids(self, app_name: str, app_version: str) -> tuple[str, str]:
        applications = await self.get_list(
            "/api/v3/applications",
            {"filters": f"applicationName:{app_name}"},
            "items",
        )
        application_id = await select_exact(
            label="application",
            name=app_name,
            service_name=self.service_name,
            provider=self.provider_kind,
            candidates=applications,
            name_field="applicationName",
            id_field="applicationId",
            list_all=lambda: self.get_list("/api/v3/applications", None, "items"),
        )
        logger.info("Resolved FoD application %r to %s", app_name, application_id)

        releases_path = f"/api/v3/applications/{application_id}/releases"
        releases = await self.get_list(
            releases_path, {"filters": f"releaseName:{app_version}"}, "items",
        )
        release_id = await select_exact(
            label="release",
            name=app_version,
            service_name=self.service_name,
            provider=self.provider_kind,
            candidates=releases,
            name_field="releaseName",
            id_field="releaseId",
            list_all=lambda: self.get_list(releases_path, None, "items"),
        )
        logger.info("Resolved FoD release %r to %s", app_version, release_id)
        return application_id, release_id

    # ------------------------------------------------------------------
    # Vulnerabilities
    # ------------------------------------------------------------------

    async def fetch_issues(
        self, application_id: str, version_id: str, max_issues: int,
    ) -> list[SecurityIssue]:
        """Page through a release's open vulnerabilities.

        A failure on any page aborts the whole fetch; callers never receive a
        truncated list.
        """
        path = f"/api/v3/releases/{version_id}/vulnerabilities"
        issues: list[SecurityIssue] = []
        offset = 0

        while len(issues) < max_issues:
            params = {
                "offset": str(offset),
                "limit": str(self.page_size),
                "orderBy": "severity",
                "orderByDirection": "ASC",
                "includeFixed": "false",
                "includeSuppressed": "false",
            }
            try:
                page = await self.get_list(path, params, "items")
                page_issues = self.normalize_page(path, page, self.normalize_vulnerability)
            except FortifyError as exc:
                logger.error(
                    "FoD vulnerability page at offset %d failed: %s", offset, exc.message,
                )
                raise type(exc)(
                    f"Failed to fetch vulnerabilities at offset {offset}: {exc.message}",
                    provider=self.provider_kind,
                    status_code=exc.status_code,
                    details={"offset": offset},
                ) from exc

            logger.debug("FoD vulnerabilities page at offset=%d returned %d items", offset, len(page))
            if not page:
                break

            issues.extend(page_issues)
            offset += self.page_size

            if len(issues) >= max_issues or len(page) < self.page_size:
                break
            await self.pause_between_pages()

        return issues[:max_issues]

    def normalize_vulnerability(self, vuln: dict[str, Any]) -> SecurityIssue:
        """Convert a single FoD vulnerability dict to a ``SecurityIssue``.

        ``id`` carries FoD's numeric id, not the ``vulnId`` UUID: the portal
        resolves issue pages by numeric id only. A recognized severity string
        is replaced by its bucket name; anything else is kept as sent.
        """
        raw_severity = vuln.get("severityString") or "Unknown"
        bucket = classify_severity_string(raw_severity)
        severity = raw_severity if bucket is UNKNOWN else bucket.name

        return SecurityIssue(
            id=str(vuln.get("id") if vuln.get("id") is not None else ""),
            instance_id=vuln.get("vulnInstanceId") or vuln.get("vulnId") or "",
            name=vuln.get("category") or vuln.get("subCategory") or "Unknown Issue",
            category=vuln.get("category") or "Uncategorized",
            kingdom=vuln.get("kingdom") or "",
            severity=severity,
            priority=severity,
            likelihood=classify_likelihood(vuln.get("likelihood")),
            confidence=classify_confidence(vuln.get("confidence")),
            primary_location=build_fod_location(vuln),
            line_number=to_int(vuln.get("lineNumber")),
            folder_guid="",
            folder_id=bucket.ordinal,
            folder_name=severity,
            folder_color=bucket.color,
            priority_score=vuln.get("priorityOrder") or 0,
            provider=self.provider_kind,
            raw_data=vuln,
        )

    # ------------------------------------------------------------------
    # Deep links
    # ------------------------------------------------------------------

    def generate_project_url(self, application_id: str, version_id: str) -> str:
        return f"{web_base_url(self.base_url)}/Releases/{version_id}"

    def generate_issue_url(self, application_id: str, version_id: str, issue_id: str) -> str:
        """*issue_id* must be the numeric FoD id (``SecurityIssue.id``)."""
        return f"{web_base_url(self.base_url)}/Releases/{version_id}/Issues/{issue_id}"
