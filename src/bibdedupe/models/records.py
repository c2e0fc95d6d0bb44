"""Record table data model for bibdedupe.

A ``RecordTable`` is a fixed-width table of bibliographic records: an ordered
schema of field names plus records kept in input order. Records are immutable;
every derived value (normalized fields, cluster ids) lives outside them.
"""

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

__all__ = ["Record", "RecordTable"]


def _coerce_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        parts = [str(v) for v in value if v is not None]
        return "; ".join(parts) if parts else None
    return str(value)


@dataclass(frozen=True, slots=True)
class Record:
    """One bibliographic entry.

    Attributes
    ----------
    index : int
        0-based position in the owning table.
    fields : Mapping[str, str | None]
        Read-only mapping from field name to raw text value.
    source : str | None
        File or database the record was imported from.
    """

    index: int
    fields: Mapping[str, str | None]
    source: str | None = None

    def get(self, name: str) -> str | None:
        """Return the raw value of *name*, or None when absent."""
        return self.fields.get(name)

    def to_dict(self) -> dict[str, str | None]:
        """Return a plain ``dict`` copy of the fields."""
        return dict(self.fields)


class RecordTable:
    """Ordered, immutable collection of records sharing one schema.

    Attributes
    ----------
    fields : tuple[str, ...]
        Schema: field names in first-seen order.
    """

    __slots__ = ("_fields", "_records")

    def __init__(self, fields: Sequence[str], records: Sequence[Record]) -> None:
        self._fields = tuple(fields)
        self._records = tuple(records)
        for position, record in enumerate(self._records):
            if record.index != position:
                raise ValueError(
                    f"Record at position {position} has index {record.index}; "
                    "indices must match table positions"
                )

    @classmethod
    def from_dicts(
        cls,
        rows: Iterable[Mapping[str, Any]],
        fields: Sequence[str] | None = None,
        sources: Sequence[str | None] | None = None,
    ) -> "RecordTable":
        """Build a table from plain mappings.

        Parameters
        ----------
        rows : Iterable[Mapping[str, Any]]
            One mapping per record. Non-string values are coerced to ``str``
            (lists are joined with ``"; "``); ``None`` means absent.
        fields : Sequence[str] | None, optional
            Explicit schema. If None, the union of row keys in first-seen
            order is used. Keys outside an explicit schema are dropped.
        sources : Sequence[str | None] | None, optional
            Per-row source labels.

        Returns
        -------
        RecordTable
            New table in the same order as *rows*.
        """
        materialized = [dict(row) for row in rows]

        if fields is None:
            schema: list[str] = []
            seen: set[str] = set()
            for row in materialized:
                for key in row:
                    if key not in seen:
                        seen.add(key)
                        schema.append(key)
        else:
            schema = list(fields)

        if sources is not None and len(sources) != len(materialized):
            raise ValueError(
                f"Got {len(sources)} sources for {len(materialized)} rows"
            )

        records = []
        for i, row in enumerate(materialized):
            values = {name: _coerce_value(row.get(name)) for name in schema}
            records.append(
                Record(
                    index=i,
                    fields=MappingProxyType(values),
                    source=sources[i] if sources is not None else None,
                )
            )
        return cls(schema, records)

    @classmethod
    def concat(cls, tables: Iterable["RecordTable"]) -> "RecordTable":
        """Stack several tables; the schema is the ordered union."""
        tables = list(tables)
        schema: list[str] = []
        for table in tables:
            for name in table.fields:
                if name not in schema:
                    schema.append(name)

        rows: list[dict[str, str | None]] = []
        sources: list[str | None] = []
        for table in tables:
            for record in table:
                rows.append(record.to_dict())
                sources.append(record.source)
        return cls.from_dicts(rows, fields=schema, sources=sources)

    @property
    def fields(self) -> tuple[str, ...]:
        return self._fields

    def has_field(self, name: str) -> bool:
        return name in self._fields

    def get(self, index: int, field: str) -> str | None:
        """Return the value of *field* for record *index* (None if absent).

        Raises
        ------
        IndexError
            If *index* is outside the table.
        """
        if not 0 <= index < len(self._records):
            raise IndexError(f"Record index out of range: {index}")
        return self._records[index].get(field)

    def column(self, field: str) -> list[str | None]:
        return [record.get(field) for record in self._records]

    def subset(self, indices: Iterable[int]) -> "RecordTable":
        """Return a new table holding the records at *indices*, re-indexed."""
        picked = [self._records[i] for i in indices]
        records = [
            Record(index=position, fields=record.fields, source=record.source)
            for position, record in enumerate(picked)
        ]
        return RecordTable(self._fields, records)

    def to_dicts(self) -> list[dict[str, str | None]]:
        return [record.to_dict() for record in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]

    def __repr__(self) -> str:
        return f"RecordTable(fields={self._fields!r}, records={len(self._records)})"
