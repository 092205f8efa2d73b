"""Provider contract and helpers shared by the SSC and FoD adapters."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from fortify_report.config import settings
from fortify_report.errors.exceptions import (
    AuthError,
    FortifyError,
    ProtocolError,
    ResolutionError,
)
from fortify_report.integrations.auth import AuthenticationStrategy
from fortify_report.integrations.config import DEFAULT_MAX_ISSUES
from fortify_report.integrations.http_client import HttpRequester
from fortify_report.integrations.normalized import ReportData, SecurityIssue, ValidationResult
from fortify_report.models.enums import ProviderKind

logger = logging.getLogger(__name__)


class Provider(ABC):
    """Common capability contract for one Fortify backend.

    Subclasses supply the API dialect: name resolution, pagination, issue
    mapping and deep-link formats. Authentication and the HTTP calling
    convention live here.
    """

    provider_kind: ProviderKind
    service_name: str = "Fortify"
    page_size: int = 100
    # Shown when the connection probe is rejected
    auth_failure_hint: str = "please verify the credentials"

    def __init__(
        self,
        base_url: str,
        auth: AuthenticationStrategy,
        requester: HttpRequester | None = None,
        page_size: int | None = None,
        page_delay: float | None = None,
    ) -> None:
        self.base_url = base_url.strip().rstrip("/")
        self.auth = auth
        self.requester = requester or HttpRequester(self.service_name, provider=self.provider_kind)
        if page_size is not None:
            self.page_size = page_size
        self.page_delay = settings.page_delay if page_delay is None else page_delay

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def connection_probe_path(self) -> str:
        """Cheap authenticated listing used by ``validate_connection``."""
        ...

    @abstractmethod
    async def resolve_ids(self, app_name: str, app_version: str) -> tuple[str, str]:
        """Resolve names to ``(application_id, version_id)``.

        Raises:
            ResolutionError: no exact match for the application or version.
        """
        ...

    @abstractmethod
    async def fetch_issues(
        self, application_id: str, version_id: str, max_issues: int,
    ) -> list[SecurityIssue]:
        """Paginate and normalize all findings for a resolved version."""
        ...

    @abstractmethod
    def generate_project_url(self, application_id: str, version_id: str) -> str:
        ...

    @abstractmethod
    def generate_issue_url(self, application_id: str, version_id: str, issue_id: str) -> str:
        ...

    # ------------------------------------------------------------------
    # Shared operations
    # ------------------------------------------------------------------

    async def validate_connection(self) -> ValidationResult:
        """Authenticate and issue one cheap listing request."""
        logger.info("Validating connection to %s at %s", self.service_name, self.base_url)
        try:
            await self.auth.authenticate()
            await self.get(self.connection_probe_path, {"limit": "1"})
        except AuthError as exc:
            logger.warning("%s rejected credentials: %s", self.service_name, exc.message)
            return self._failure(
                f"Authentication failed - {self.auth_failure_hint} ({exc.message})",
                exc,
            )
        except FortifyError as exc:
            logger.warning("%s connection failed: %s", self.service_name, exc.message)
            return self._failure(f"Connection failed: {exc.message}", exc)

        logger.info("Connection to %s validated", self.service_name)
        return ValidationResult(success=True, provider=self.provider_kind)

    async def validate_application_and_version(
        self, app_name: str, app_version: str,
    ) -> ValidationResult:
        """Resolve names to identifiers without raising."""
        try:
            application_id, version_id = await self.resolve_ids(app_name, app_version)
        except ResolutionError as exc:
            return self._failure(exc.message, exc)
        except FortifyError as exc:
            return self._failure(f"Validation failed: {exc.message}", exc)

        return ValidationResult(
            success=True,
            provider=self.provider_kind,
            application_id=application_id,
            version_id=version_id,
        )

    async def fetch_report_data(
        self,
        app_name: str,
        app_version: str,
        max_issues: int = DEFAULT_MAX_ISSUES,
    ) -> ReportData:
        """Resolve, paginate, normalize and assemble a ``ReportData``."""
        if max_issues <= 0:
            raise ValueError("max_issues must be positive")

        logger.info(
            "Fetching report data for %r version %r (max %d issues)",
            app_name,
            app_version,
            max_issues,
        )
        application_id, version_id = await self.resolve_ids(app_name, app_version)
        issues = await self.fetch_issues(application_id, version_id, max_issues)
        issues = issues[:max_issues]
        logger.info("Fetched %d issues from %s", len(issues), self.service_name)

        return ReportData(
            issues=tuple(issues),
            app_name=app_name,
            app_version=app_version,
            scan_date=datetime.now(timezone.utc),
            total_count=len(issues),
            project_version_id=version_id,
            provider=self.provider_kind,
            provider_url=self.base_url,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def get(self, path: str, params: dict[str, str] | None = None) -> Any:
        """Authenticated GET of an API path relative to ``base_url``."""
        await self.auth.ensure_authenticated()
        return await self.requester.get_json(
            f"{self.base_url}{path}",
            headers=self.auth.get_auth_headers(),
            params=params,
        )

    async def get_list(
        self, path: str, params: dict[str, str] | None, key: str,
    ) -> list[dict[str, Any]]:
        """GET a collection and return the array of objects stored under *key*."""
        payload = await self.get(path, params)
        items = payload.get(key) if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise ProtocolError(
                f"Unexpected response from {self.service_name} {path}: "
                f"missing '{key}' array",
                provider=self.provider_kind,
            )
        if not all(isinstance(item, dict) for item in items):
            raise ProtocolError(
                f"Unexpected response from {self.service_name} {path}: "
                f"'{key}' array holds a non-object item",
                provider=self.provider_kind,
            )
        return items

    def normalize_page(
        self,
        path: str,
        page: Iterable[dict[str, Any]],
        normalize: Callable[[dict[str, Any]], SecurityIssue],
    ) -> list[SecurityIssue]:
        """Normalize one page of raw records.

        Raises:
            ProtocolError: a record has a field of the wrong type.
        """
        try:
            return [normalize(raw) for raw in page]
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            logger.error("Malformed record from %s %s: %s", self.service_name, path, exc)
            raise ProtocolError(
                f"Unexpected record from {self.service_name} {path}: "
                f"invalid '{field}' ({first['msg']})",
                provider=self.provider_kind,
            ) from exc

    async def pause_between_pages(self) -> None:
        if self.page_delay > 0:
            await asyncio.sleep(self.page_delay)

    def _failure(self, message: str, exc: FortifyError) -> ValidationResult:
        return ValidationResult(
            success=False,
            provider=self.provider_kind,
            error=message,
            error_kind=exc.kind,
        )


async def select_exact(
    *,
    label: str,
    name: str,
    service_name: str,
    provider: ProviderKind,
    candidates: list[dict[str, Any]],
    name_field: str,
    id_field: str,
    list_all: Callable[[], Awaitable[list[dict[str, Any]]]] | None = None,
) -> str:
    """Pick the candidate whose *name_field* equals *name* exactly.

    Search endpoints match partially, so near-misses are rejected and reported.
    When the search found nothing, *list_all* is consulted for the diagnostic;
    failures while listing fall back to a generic message.
    """
    for item in candidates:
        if item.get(name_field) == name:
            return str(item[id_field])

    if candidates:
        names = _join_names(candidates, name_field)
        logger.warning("No exact match for %s %r; search returned: %s", label, name, names)
        raise ResolutionError(
            f'Exact {label} name "{name}" not found. Did you mean: {names}?',
            provider=provider,
        )

    if list_all is not None:
        try:
            available = await list_all()
        except FortifyError as exc:
            logger.warning("Could not list available %ss: %s", label, exc.message)
        else:
            raise ResolutionError(
                f'{label.capitalize()} "{name}" not found. '
                f"Available {label}s: {_join_names(available, name_field) or 'none'}",
                provider=provider,
            )

    raise ResolutionError(
        f'{label.capitalize()} "{name}" not found in {service_name}',
        provider=provider,
    )


def build_location(path: str | None, line_number: int | None) -> str:
    """``path:line`` when the line is positive; ``:line`` when only the line is known."""
    path = path or ""
    if line_number and line_number > 0:
        return f"{path}:{line_number}"
    return path


def _join_names(items: Iterable[dict[str, Any]], name_field: str) -> str:
    return ", ".join(str(item.get(name_field)) for item in items if item.get(name_field))


def to_int(value: Any) -> int:
    """Coerce a raw numeric field; missing or malformed values become 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
