"""Deduplication of bibliographic records.

This package provides:
- Data models (bibdedupe.models): record table and result types
- Parsing (bibdedupe.parse): RIS and delimited-text import
- Normalization (bibdedupe.normalize): comparison-time field normalization
- Similarity (bibdedupe.similarity): exact and fuzzy pairwise matching
- Candidates (bibdedupe.candidates): blocking and candidate generation
- Clustering (bibdedupe.clustering): transitive clustering via Union-Find
- Engine (bibdedupe.engine): configuration and the deduplicate() entry point
- Merge (bibdedupe.merge): survivor extraction, overrides, review, writers
- Audit (bibdedupe.audit): structured JSONL event logging
- CLI (bibdedupe.cli): command-line interface
- Public API (bibdedupe.api): high-level convenience functions
"""

__version__ = "0.4.0"

from bibdedupe.api import DedupeRun, dedupe_files, read_records
from bibdedupe.engine import DedupConfig, deduplicate, load_config
from bibdedupe.errors import BibdedupeError, ConfigurationError, ParseError
from bibdedupe.merge import extract_unique_records, override_duplicates, review_duplicates
from bibdedupe.models import (
    Cluster,
    DataQualityWarning,
    DeduplicationResult,
    Record,
    RecordTable,
    SimilarityScore,
)
from bibdedupe.normalize import NormalizerOptions

__all__ = [
    "__version__",
    "BibdedupeError",
    "Cluster",
    "ConfigurationError",
    "DataQualityWarning",
    "DedupConfig",
    "DedupeRun",
    "DeduplicationResult",
    "NormalizerOptions",
    "ParseError",
    "Record",
    "RecordTable",
    "SimilarityScore",
    "dedupe_files",
    "deduplicate",
    "extract_unique_records",
    "load_config",
    "override_duplicates",
    "read_records",
    "review_duplicates",
]
