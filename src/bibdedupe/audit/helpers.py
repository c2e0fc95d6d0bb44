"""Run identifiers and version lookup for the audit log."""

import importlib.metadata
import secrets

from bibdedupe.utils import utc_timestamp

__all__ = [
    "generate_run_id",
    "get_package_version",
]


def generate_run_id() -> str:
    """Return ``<utc timestamp>__<8 hex chars>``, unique per call."""
    return f"{utc_timestamp()}__{secrets.token_hex(4)}"


def get_package_version() -> str:
    """Installed bibdedupe version, or ``"unknown"`` from a source checkout."""
    try:
        return importlib.metadata.version("bibdedupe")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"
