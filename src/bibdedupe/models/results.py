"""Result types produced by a deduplication run."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from bibdedupe.models.records import RecordTable

if TYPE_CHECKING:
    from bibdedupe.engine.config import DedupConfig

__all__ = [
    "SimilarityScore",
    "Cluster",
    "DataQualityWarning",
    "DeduplicationResult",
]


@dataclass(frozen=True, slots=True)
class SimilarityScore:
    """Similarity of an unordered record pair on one field.

    Attributes
    ----------
    index_a : int
        Smaller record index.
    index_b : int
        Larger record index.
    field : str
        Field the decision was taken on.
    similarity : float
        Similarity ratio in [0, 1] (1 = identical).
    distance : int | None
        Raw edit distance for distance-based algorithms, else None.
    matched : bool
        Whether the pair passed the match policy.
    """

    index_a: int
    index_b: int
    field: str
    similarity: float
    distance: int | None
    matched: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "index_a": self.index_a,
            "index_b": self.index_b,
            "field": self.field,
            "similarity": self.similarity,
            "distance": self.distance,
            "matched": self.matched,
        }


@dataclass(frozen=True, slots=True)
class Cluster:
    """A set of records considered duplicates of one another.

    Attributes
    ----------
    cluster_id : int
        Position of the cluster in representative order.
    members : tuple[int, ...]
        Record indices, sorted ascending.
    representative : int
        Designated surviving record (lowest index).
    """

    cluster_id: int
    members: tuple[int, ...]
    representative: int

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_duplicate(self) -> bool:
        return len(self.members) > 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster_id": self.cluster_id,
            "members": list(self.members),
            "representative": self.representative,
        }


@dataclass(frozen=True, slots=True)
class DataQualityWarning:
    """Non-fatal data problem found while deduplicating.

    Attributes
    ----------
    index : int
        Record the warning refers to.
    code : str
        ``match_fields_missing`` (record cannot be matched, kept as a
        singleton) or ``primary_field_missing`` (matched on a fallback field).
    fields : tuple[str, ...]
        Match fields that were missing for this record.
    message : str
        Human-readable description.
    """

    index: int
    code: str
    fields: tuple[str, ...]
    message: str


@dataclass(frozen=True)
class DeduplicationResult:
    """Original records annotated with duplicate clusters.

    Attributes
    ----------
    table : RecordTable
        Input records, untouched.
    cluster_ids : tuple[int, ...]
        Cluster id per record, in record order.
    clusters : tuple[Cluster, ...]
        Partition of the record indices, ordered by cluster id.
    scores : tuple[SimilarityScore, ...]
        Matching pairs, sorted by (index_a, index_b).
    warnings : tuple[DataQualityWarning, ...]
        Data quality warnings, sorted by record index.
    config : DedupConfig | None
        Configuration the result was produced with.
    comparisons : int
        Number of record pairs compared.
    """

    table: RecordTable
    cluster_ids: tuple[int, ...]
    clusters: tuple[Cluster, ...]
    scores: tuple[SimilarityScore, ...] = ()
    warnings: tuple[DataQualityWarning, ...] = ()
    config: "DedupConfig | None" = None
    comparisons: int = 0
    _by_id: dict[int, Cluster] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_id", {c.cluster_id: c for c in self.clusters})

    @property
    def n_records(self) -> int:
        return len(self.table)

    @property
    def n_clusters(self) -> int:
        return len(self.clusters)

    @property
    def n_removed(self) -> int:
        """Records dropped when keeping one representative per cluster."""
        return len(self.table) - len(self.clusters)

    def cluster_of(self, index: int) -> Cluster:
        return self._by_id[self.cluster_ids[index]]

    def representatives(self) -> list[int]:
        """Return representative indices in original record order."""
        return sorted(c.representative for c in self.clusters)

    def duplicate_clusters(self) -> list[Cluster]:
        return [c for c in self.clusters if c.is_duplicate]

    def unique_records(self) -> RecordTable:
        """Return the surviving records (one per cluster) as a new table."""
        return self.table.subset(self.representatives())

    def to_dicts(self) -> list[dict[str, Any]]:
        """Flatten to one annotated dict per record (for JSONL export)."""
        rows: list[dict[str, Any]] = []
        for record in self.table:
            cluster = self.cluster_of(record.index)
            row: dict[str, Any] = {
                "index": record.index,
                "cluster_id": cluster.cluster_id,
                "representative": cluster.representative,
                "is_representative": cluster.representative == record.index,
                "source": record.source,
            }
            row["fields"] = record.to_dict()
            rows.append(row)
        return rows
