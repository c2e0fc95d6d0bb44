"""Survivor extraction and manual overrides on a deduplication result."""

from collections.abc import Iterable
from dataclasses import replace

from bibdedupe.clustering.cluster_builder import assign_cluster_ids, build_clusters
from bibdedupe.errors import ConfigurationError
from bibdedupe.models.records import RecordTable
from bibdedupe.models.results import Cluster, DeduplicationResult

__all__ = [
    "MERGE_STRATEGIES",
    "extract_unique_records",
    "merge_cluster_fields",
    "override_duplicates",
]

MERGE_STRATEGIES = ("select", "merge")


def merge_cluster_fields(table: RecordTable, cluster: Cluster) -> dict[str, str | None]:
    """Fill gaps in a cluster's representative from its duplicates.

    Every field missing in the representative takes the first non-missing
    value among the other members, in ascending index order. Values the
    representative already has are never replaced.

    Parameters
    ----------
    table : RecordTable
        Table the cluster indexes into.
    cluster : Cluster
        Cluster to merge.

    Returns
    -------
    dict[str, str | None]
        Merged field values.
    """
    merged = table[cluster.representative].to_dict()
    for name in table.fields:
        if merged.get(name) is not None:
            continue
        for member in cluster.members:
            value = table.get(member, name)
            if value is not None:
                merged[name] = value
                break
    return merged


def extract_unique_records(
    result: DeduplicationResult,
    strategy: str = "select",
) -> RecordTable:
    """Return one record per cluster, in original record order.

    Parameters
    ----------
    result : DeduplicationResult
        Deduplication output.
    strategy : str, optional
        ``select`` keeps representatives unchanged; ``merge`` fills their
        missing fields from the other cluster members. By default "select".

    Returns
    -------
    RecordTable
        Surviving records, re-indexed from 0.

    Raises
    ------
    ConfigurationError
        If *strategy* is unknown.
    """
    if strategy not in MERGE_STRATEGIES:
        raise ConfigurationError(
            f"Unknown strategy: {strategy!r}. Use one of: {', '.join(MERGE_STRATEGIES)}"
        )

    if strategy == "select":
        return result.unique_records()

    table = result.table
    clusters = sorted(result.clusters, key=lambda c: c.representative)
    rows = [merge_cluster_fields(table, c) for c in clusters]
    sources = [table[c.representative].source for c in clusters]
    return RecordTable.from_dicts(rows, fields=table.fields, sources=sources)


def override_duplicates(
    result: DeduplicationResult,
    indices: Iterable[int],
) -> DeduplicationResult:
    """Split records out of their clusters.

    Each listed record becomes a singleton cluster. The remaining members of
    its former cluster stay together, with the lowest remaining index as
    representative. Cluster ids are recomputed; scores involving a split
    record are dropped.

    Parameters
    ----------
    result : DeduplicationResult
        Deduplication output.
    indices : Iterable[int]
        Record indices to mark as not duplicates.

    Returns
    -------
    DeduplicationResult
        New result; *result* is unchanged.

    Raises
    ------
    IndexError
        If an index is outside the table.
    """
    n_records = len(result.table)
    split = set(indices)
    for index in split:
        if not 0 <= index < n_records:
            raise IndexError(f"Record index out of range: {index}")

    pairs: list[tuple[int, int]] = []
    for cluster in result.clusters:
        kept = [m for m in cluster.members if m not in split]
        pairs.extend(zip(kept, kept[1:], strict=False))

    clusters = build_clusters(n_records, pairs)
    scores = tuple(
        s for s in result.scores if s.index_a not in split and s.index_b not in split
    )
    return replace(
        result,
        cluster_ids=assign_cluster_ids(clusters, n_records),
        clusters=tuple(clusters),
        scores=scores,
    )
