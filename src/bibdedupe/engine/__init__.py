"""Deduplication engine.

This package provides the main entry point for deduplicating a record
table, including its configuration type.
"""

from bibdedupe.engine.config import CONFIG_SCHEMA, MISSING_POLICIES, DedupConfig, load_config
from bibdedupe.engine.runner import compare_pairs, deduplicate

__all__ = [
    "CONFIG_SCHEMA",
    "MISSING_POLICIES",
    "DedupConfig",
    "compare_pairs",
    "deduplicate",
    "load_config",
]
