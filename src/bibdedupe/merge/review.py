"""Listing of duplicate clusters for manual review."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from bibdedupe.models.results import DeduplicationResult

__all__ = ["ClusterReview", "review_duplicates"]


@dataclass(frozen=True)
class ClusterReview:
    """One duplicate cluster prepared for display.

    Attributes
    ----------
    cluster_id : int
        Cluster identifier.
    representative : int
        Index of the surviving record.
    members : tuple[int, ...]
        Member indices, ascending.
    fields : tuple[str, ...]
        Fields shown for each member.
    values : tuple[tuple[str | None, ...], ...]
        One row of field values per member, aligned with *members*.
    """

    cluster_id: int
    representative: int
    members: tuple[int, ...]
    fields: tuple[str, ...]
    values: tuple[tuple[str | None, ...], ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster_id": self.cluster_id,
            "representative": self.representative,
            "members": [
                {"index": index, **dict(zip(self.fields, row, strict=True))}
                for index, row in zip(self.members, self.values, strict=True)
            ],
        }


def review_duplicates(
    result: DeduplicationResult,
    fields: Sequence[str] | None = None,
) -> list[ClusterReview]:
    """List clusters holding more than one record.

    Parameters
    ----------
    result : DeduplicationResult
        Deduplication output.
    fields : Sequence[str] | None, optional
        Fields to display. Defaults to the run's match fields, or the whole
        schema when the result carries no configuration.

    Returns
    -------
    list[ClusterReview]
        Duplicate clusters in cluster id order.
    """
    if fields is None:
        fields = result.config.match_by if result.config else result.table.fields
    shown = tuple(fields)

    reviews: list[ClusterReview] = []
    for cluster in result.duplicate_clusters():
        values = tuple(
            tuple(result.table.get(member, name) for name in shown)
            for member in cluster.members
        )
        reviews.append(
            ClusterReview(
                cluster_id=cluster.cluster_id,
                representative=cluster.representative,
                members=cluster.members,
                fields=shown,
                values=values,
            )
        )
    return reviews
