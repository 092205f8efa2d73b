"""fortify-report CLI: fetch a Fortify report or validate a configuration.

Credentials are read from ``FORTIFY_CI_TOKEN`` / ``FORTIFY_API_KEY`` /
``FORTIFY_API_SECRET`` rather than flags so they never show up in a process
listing or pipeline log.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from fortify_report.config import Settings
from fortify_report.integrations.bridge import report_to_attachment, severity_counts
from fortify_report.integrations.config import ProviderConfig
from fortify_report.integrations.factory import create_provider, validate_provider_config
from fortify_report.integrations.service import ReportAssembler
from fortify_report.logging_config import configure_logging
from fortify_report.models.enums import AssemblyStatus

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fortify-report",
        description="Fetch Fortify SSC / FoD findings into a build report artifact",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--provider", choices=["ssc", "fod"], help="Backend kind (default: detected)")
    common.add_argument("--base-url", required=True, help="SSC server or FoD API URL")
    common.add_argument("--app-name", required=True, help="Application name")
    common.add_argument("--app-version", required=True, help="Application version / release name")

    fetch = sub.add_parser("fetch", parents=[common], help="Fetch findings and write the report")
    fetch.add_argument("--max-issues", type=_positive_int, default=None, help="Cap on findings fetched")
    fetch.add_argument("--output", default="-", help="Output file (default: stdout)")
    fetch.add_argument("--include-raw", action="store_true", help="Keep raw provider records")
    fetch.add_argument(
        "--skip-validation",
        action="store_true",
        help="Skip pre-flight checks; fetch failures become warnings",
    )

    sub.add_parser("validate", parents=[common], help="Check configuration, connection and names")
    return parser


def _config_from_args(args: argparse.Namespace, settings: Settings) -> ProviderConfig:
    max_issues = getattr(args, "max_issues", None)
    return ProviderConfig(
        provider_kind=args.provider,
        base_url=args.base_url,
        app_name=args.app_name,
        app_version=args.app_version,
        ci_token=settings.ci_token,
        api_key=settings.api_key,
        api_secret=settings.api_secret,
        max_issues=settings.max_issues if max_issues is None else max_issues,
    )


async def _fetch(args: argparse.Namespace, settings: Settings) -> int:
    config = _config_from_args(args, settings)
    skip = args.skip_validation or settings.skip_validation
    result = await ReportAssembler(config).assemble(skip_validation=skip)

    payload = report_to_attachment(result.report, include_raw=args.include_raw)
    text = json.dumps(payload, indent=2)
    if args.output == "-":
        sys.stdout.write(text + "\n")
    else:
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        print(f"Report written to {path}", file=sys.stderr)

    if result.status == AssemblyStatus.FAILED:
        print(f"Error ({result.failed_step}): {result.error}", file=sys.stderr)
        return EXIT_FAILED
    if result.status == AssemblyStatus.WARNING:
        print(f"Warning: {result.error}", file=sys.stderr)
        print("The report was written without findings.", file=sys.stderr)
        return EXIT_OK

    counts = severity_counts(result.report.issues)
    print(
        f"{counts.total} issues (critical {counts.critical}, high {counts.high}, "
        f"medium {counts.medium}, low {counts.low})",
        file=sys.stderr,
    )
    return EXIT_OK


async def _validate(args: argparse.Namespace, settings: Settings) -> int:
    config = _config_from_args(args, settings)
    errors = validate_provider_config(config)
    if errors:
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return EXIT_FAILED

    provider = create_provider(config)
    connection = await provider.validate_connection()
    if not connection.success:
        print(f"Connection: {connection.error}", file=sys.stderr)
        return EXIT_FAILED
    print("Connection: OK", file=sys.stderr)

    resolution = await provider.validate_application_and_version(config.app_name, config.app_version)
    if not resolution.success:
        print(f"Application/version: {resolution.error}", file=sys.stderr)
        return EXIT_FAILED
    print(
        f"Application/version: OK (application {resolution.application_id}, "
        f"version {resolution.version_id})",
        file=sys.stderr,
    )
    print(provider.generate_project_url(resolution.application_id, resolution.version_id))
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level, json_output=settings.json_logs)

    if args.command == "fetch":
        return asyncio.run(_fetch(args, settings))
    return asyncio.run(_validate(args, settings))


if __name__ == "__main__":
    sys.exit(main())
