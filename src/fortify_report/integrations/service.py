"""ReportAssembler: runs factory → provider → fetch into one result."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict

from fortify_report.errors.exceptions import ConfigurationError, FortifyError
from fortify_report.integrations.adapters.base import Provider
from fortify_report.integrations.config import ProviderConfig
from fortify_report.integrations.factory import (
    create_provider,
    detect_provider_kind,
    validate_provider_config,
)
from fortify_report.integrations.normalized import ReportData
from fortify_report.logging_config import bind_run_context, clear_run_context
from fortify_report.models.enums import AssemblyStatus, ErrorKind

logger = logging.getLogger(__name__)


class AssemblyResult(BaseModel):
    """Outcome of one assembly run.

    ``report`` is always present. On failure it is a degraded, issue-less
    report whose ``error`` holds the failing step's diagnostic text.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: AssemblyStatus
    report: ReportData
    config: ProviderConfig
    error: str | None = None
    error_kind: ErrorKind | None = None
    failed_step: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == AssemblyStatus.SUCCEEDED


class ReportAssembler:
    """Runs the validate → resolve → fetch pipeline for one configuration.

    This is the only place a ``FortifyError`` is downgraded into a degraded
    report; any other exception propagates.
    """

    def __init__(self, config: ProviderConfig, **provider_kwargs: Any):
        self.config = config
        self._provider_kwargs = provider_kwargs
        self.provider: Provider | None = None

    async def assemble(self, skip_validation: bool = False) -> AssemblyResult:
        """Build the report, short-circuiting at the first failed step.

        With *skip_validation* the pre-flight checks are bypassed and a fetch
        failure is reported as a warning rather than a failure.
        """
        config = self.config
        kind = detect_provider_kind(config)
        if config.provider_kind is None:
            config = config.model_copy(update={"provider_kind": kind})

        bind_run_context(kind.value, config.app_name, config.app_version)
        try:
            return await self._run(config, skip_validation)
        finally:
            clear_run_context()

    async def _run(self, config: ProviderConfig, skip_validation: bool) -> AssemblyResult:
        errors = validate_provider_config(config)
        if errors:
            message = "Invalid configuration: " + "; ".join(errors)
            logger.error(message)
            return self._degraded(
                config, AssemblyStatus.FAILED, "configuration",
                ConfigurationError(message, provider=config.provider_kind),
            )

        try:
            self.provider = create_provider(config, **self._provider_kwargs)
        except ConfigurationError as exc:
            return self._degraded(config, AssemblyStatus.FAILED, "configuration", exc)

        if skip_validation:
            logger.info("Skipping connection and application validation")
        else:
            connection = await self.provider.validate_connection()
            if not connection.success:
                logger.error("Connection validation failed: %s", connection.error)
                return self._failed_validation(config, "connection", connection)

            resolution = await self.provider.validate_application_and_version(
                config.app_name, config.app_version,
            )
            if not resolution.success:
                logger.error("Application/version validation failed: %s", resolution.error)
                return self._failed_validation(config, "resolution", resolution)

            config = config.model_copy(update={"project_version_id": resolution.version_id})
            logger.info(
                "Validated application %s version %s",
                resolution.application_id,
                resolution.version_id,
            )

        try:
            report = await self.provider.fetch_report_data(
                config.app_name, config.app_version, config.max_issues,
            )
        except FortifyError as exc:
            status = AssemblyStatus.WARNING if skip_validation else AssemblyStatus.FAILED
            log = logger.warning if skip_validation else logger.error
            log("Fetching report data failed: %s", exc.message)
            return self._degraded(config, status, "fetch", exc)

        if config.project_version_id is None:
            config = config.model_copy(update={"project_version_id": report.project_version_id})

        logger.info("Assembled report with %d issues", report.total_count)
        return AssemblyResult(status=AssemblyStatus.SUCCEEDED, report=report, config=config)

    def _failed_validation(self, config: ProviderConfig, step: str, result) -> AssemblyResult:
        return AssemblyResult(
            status=AssemblyStatus.FAILED,
            report=degraded_report(config, result.error),
            config=config,
            error=result.error,
            error_kind=result.error_kind,
            failed_step=step,
        )

    @staticmethod
    def _degraded(
        config: ProviderConfig, status: AssemblyStatus, step: str, exc: FortifyError,
    ) -> AssemblyResult:
        return AssemblyResult(
            status=status,
            report=degraded_report(config, exc.message),
            config=config,
            error=exc.message,
            error_kind=exc.kind,
            failed_step=step,
        )


def degraded_report(config: ProviderConfig, error: str) -> ReportData:
    """Placeholder report that carries a diagnostic instead of issues."""
    return ReportData(
        issues=(),
        app_name=config.app_name,
        app_version=config.app_version,
        scan_date=datetime.now(timezone.utc),
        total_count=0,
        project_version_id=config.project_version_id,
        provider=detect_provider_kind(config),
        provider_url=config.base_url or None,
        error=error,
    )
