"""Data models for bibdedupe.

Records are read-only inputs; results are produced fresh by each
deduplication call.
"""

from bibdedupe.models.records import Record, RecordTable
from bibdedupe.models.results import (
    Cluster,
    DataQualityWarning,
    DeduplicationResult,
    SimilarityScore,
)

__all__ = [
    "Record",
    "RecordTable",
    "Cluster",
    "DataQualityWarning",
    "DeduplicationResult",
    "SimilarityScore",
]
