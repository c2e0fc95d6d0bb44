"""Build duplicate clusters from pairwise match decisions."""

from collections.abc import Iterable

from bibdedupe.clustering.union_find import UnionFind
from bibdedupe.models.results import Cluster

__all__ = ["build_clusters", "assign_cluster_ids"]


def build_clusters(n_records: int, pairs: Iterable[tuple[int, int]]) -> list[Cluster]:
    """Partition ``0..n_records-1`` into clusters of matching records.

    Every record starts as its own singleton; each matching pair merges two
    clusters (transitive closure). The representative of a cluster is its
    lowest index and cluster ids follow representative order, so the output
    does not depend on the order of *pairs*.

    Parameters
    ----------
    n_records : int
        Number of records in the table.
    pairs : Iterable[tuple[int, int]]
        Matching record pairs.

    Returns
    -------
    list[Cluster]
        Clusters sorted by cluster id. Every index appears exactly once.

    Raises
    ------
    IndexError
        If a pair references an index outside the table.
    """
    uf = UnionFind(n_records)
    for a, b in pairs:
        if not (0 <= a < n_records and 0 <= b < n_records):
            raise IndexError(f"Pair ({a}, {b}) outside table of {n_records} records")
        uf.union(a, b)

    return [
        Cluster(cluster_id=cid, members=tuple(members), representative=members[0])
        for cid, members in enumerate(uf.get_components())
    ]


def assign_cluster_ids(clusters: Iterable[Cluster], n_records: int) -> tuple[int, ...]:
    """Return the cluster id of every record, in record order.

    Raises
    ------
    ValueError
        If the clusters do not partition ``0..n_records-1``.
    """
    ids: list[int | None] = [None] * n_records
    for cluster in clusters:
        for member in cluster.members:
            if ids[member] is not None:
                raise ValueError(f"Record {member} belongs to more than one cluster")
            ids[member] = cluster.cluster_id

    missing = [i for i, cid in enumerate(ids) if cid is None]
    if missing:
        raise ValueError(f"Records without a cluster: {missing[:10]}")
    return tuple(cid for cid in ids if cid is not None)
