"""Adapter registry — maps provider kind → lazy-import class path."""

import importlib

from fortify_report.errors.exceptions import ConfigurationError

AVAILABLE_ADAPTERS: dict[str, str] = {
    "ssc": "fortify_report.integrations.adapters.ssc.SSCProvider",
    "fod": "fortify_report.integrations.adapters.fod.FoDProvider",
}


def import_adapter(dotted_path: str):
    """Import a provider class from its dotted module path.

    Raises:
        ConfigurationError: the path does not name an importable class.
    """
    module_path, _, class_name = dotted_path.rpartition(".")
    try:
        module = importlib.import_module(module_path)
        return getattr(module, class_name)
    except (ImportError, AttributeError, ValueError) as exc:
        raise ConfigurationError(f"Cannot load provider class {dotted_path!r}: {exc}") from exc
