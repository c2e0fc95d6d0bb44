"""Post-processing of deduplication results.

Main Components
---------------
- extract_unique_records: one surviving record per cluster (select or merge)
- override_duplicates: manually split records out of their clusters
- review_duplicates: list duplicate clusters for inspection
- write_ris / write_delimited / write_jsonl: output writers
"""

from bibdedupe.merge.review import ClusterReview, review_duplicates
from bibdedupe.merge.unique import (
    MERGE_STRATEGIES,
    extract_unique_records,
    merge_cluster_fields,
    override_duplicates,
)
from bibdedupe.merge.writers import format_ris_record, write_delimited, write_jsonl, write_ris

__all__ = [
    "MERGE_STRATEGIES",
    "ClusterReview",
    "extract_unique_records",
    "format_ris_record",
    "merge_cluster_fields",
    "override_duplicates",
    "review_duplicates",
    "write_delimited",
    "write_jsonl",
    "write_ris",
]
