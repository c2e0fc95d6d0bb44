"""Clustering of pairwise matches into duplicate groups.

This module turns pairwise match decisions into a partition of the record
set using Union-Find (DSU).
"""

from bibdedupe.clustering.cluster_builder import assign_cluster_ids, build_clusters
from bibdedupe.clustering.union_find import UnionFind

__all__ = [
    "UnionFind",
    "assign_cluster_ids",
    "build_clusters",
]
