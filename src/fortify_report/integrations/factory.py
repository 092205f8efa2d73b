"""Builds the right provider for a configuration."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fortify_report.errors.exceptions import ConfigurationError
from fortify_report.integrations.adapters import AVAILABLE_ADAPTERS, import_adapter
from fortify_report.integrations.adapters.base import Provider
from fortify_report.integrations.config import ProviderConfig
from fortify_report.models.enums import ProviderKind

logger = logging.getLogger(__name__)


def detect_provider_kind(config: ProviderConfig | Mapping[str, Any]) -> ProviderKind:
    """Infer the provider kind from whichever credentials are present.

    An explicit kind wins. Configurations with no usable credentials default to
    SSC, the only provider older configurations knew about.
    """
    fields = config.model_dump() if isinstance(config, ProviderConfig) else dict(config)

    explicit = fields.get("provider_kind")
    if explicit:
        return ProviderKind(explicit)
    if fields.get("ci_token"):
        return ProviderKind.SSC
    if fields.get("api_key") and fields.get("api_secret"):
        return ProviderKind.FOD
    return ProviderKind.SSC


def validate_provider_config(config: ProviderConfig) -> list[str]:
    """Return every problem with *config*, not just the first."""
    errors: list[str] = []
    kind = detect_provider_kind(config)

    if not config.base_url:
        errors.append("Base URL is required")
    if not config.app_name:
        errors.append("Application name is required")
    if not config.app_version:
        errors.append("Application version is required")

    if kind == ProviderKind.SSC:
        if not config.ci_token:
            errors.append("CI Token is required for SSC provider")
        if config.api_key or config.api_secret:
            errors.append("API Key/Secret must not be set for SSC provider")
    elif kind == ProviderKind.FOD:
        if not config.api_key:
            errors.append("API Key is required for FoD provider")
        if not config.api_secret:
            errors.append("API Secret is required for FoD provider")
        if config.ci_token:
            errors.append("CI Token must not be set for FoD provider")

    return errors


def create_provider(config: ProviderConfig, **provider_kwargs: Any) -> Provider:
    """Build the provider for *config* without touching the network.

    Extra keyword arguments (``requester``, ``page_size``, ``page_delay``) are
    passed through to the provider constructor.

    Raises:
        ConfigurationError: the kind is unsupported or its credentials are absent.
    """
    kind = detect_provider_kind(config)
    dotted = AVAILABLE_ADAPTERS.get(kind.value)
    if not dotted:
        raise ConfigurationError(f"Unsupported provider type: {kind}")

    cls = import_adapter(dotted)
    if kind == ProviderKind.SSC:
        if not config.ci_token:
            raise ConfigurationError("CI Token is required for Fortify SSC provider", provider=kind)
        provider = cls(config.base_url, config.ci_token, **provider_kwargs)
    else:
        if not config.api_key or not config.api_secret:
            raise ConfigurationError(
                "API Key and Secret are required for Fortify on Demand provider",
                provider=kind,
            )
        provider = cls(config.base_url, config.api_key, config.api_secret, **provider_kwargs)

    logger.info("Created %s provider for %s", kind.value, config.base_url)
    return provider
