"""Blocker plug-ins for candidate generation.

Each blocker maps records to block keys. Records sharing a key become
candidate pairs; only candidate pairs are compared by the similarity engine.
Blocking trades recall for speed on large corpora, except for the ``none``
blocker (full pairwise comparison) and the ``exact`` blocker (lossless for
the exact match method).

Architecture
------------
* ``Blocker``: structural protocol (one attribute + one method).
* ``BlockingInput``: read-only view of the normalized match values.
* Stateful blockers (e.g. ``FieldBlocker``) expose an explicit
  ``initialize()`` hook called by the generator before keying.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Protocol, runtime_checkable

from datasketch import MinHash

from bibdedupe.errors import ConfigurationError
from bibdedupe.models.records import RecordTable
from bibdedupe.normalize import NormalizerOptions, normalize_text

# ============================================================================
# Constants
# ============================================================================

PREFIX_LEN = 4

MINHASH_NUM_PERM = 64
MINHASH_BANDS = 16
MINHASH_QGRAM = 3
MINHASH_SEED = 42


# ============================================================================
# Inputs & statistics
# ============================================================================


@dataclass(frozen=True)
class BlockingInput:
    """Everything a blocker may look at.

    Attributes
    ----------
    match_fields : tuple[str, ...]
        Match fields in priority order.
    values : Mapping[str, Sequence[str | None]]
        Normalized values per match field, indexed by record.
    table : RecordTable
        Original records (for blockers keyed on other fields).
    options : NormalizerOptions
        Normalizer options used for the match values.
    """

    match_fields: tuple[str, ...]
    values: Mapping[str, Sequence[str | None]]
    table: RecordTable
    options: NormalizerOptions

    def present(self, index: int) -> list[tuple[str, str]]:
        """Return ``(field, value)`` for every match field *index* has."""
        out = []
        for name in self.match_fields:
            value = self.values[name][index]
            if value is not None:
                out.append((name, value))
        return out


@dataclass
class BlockerStats:
    """Counters collected while running a single blocker.

    Attributes
    ----------
    records_seen : int
        Total records processed.
    records_keyed : int
        Records that produced at least one blocking key.
    unique_keys : int
        Distinct blocking keys generated.
    blocks_gt1 : int
        Blocks containing two or more records.
    pairs_raw : int
        Total candidate pairs before cross-blocker dedup.
    pairs_unique : int
        Unique pairs emitted by this blocker.
    max_block : int
        Largest block size encountered.
    """

    records_seen: int = 0
    records_keyed: int = 0
    unique_keys: int = 0
    blocks_gt1: int = 0
    pairs_raw: int = 0
    pairs_unique: int = 0
    max_block: int = 0

    def to_dict(self) -> dict[str, int]:
        """Serialise to a plain dict."""
        return asdict(self)


# ============================================================================
# Protocol
# ============================================================================


@runtime_checkable
class Blocker(Protocol):
    """Structural protocol every blocker must satisfy.

    Attributes
    ----------
    name : str
        Stable identifier used in audit logs and statistics.
    """

    name: str

    def block_keys(self, index: int, data: BlockingInput) -> Iterable[str]:
        """Yield zero or more blocking keys for record *index*.

        Returns an empty iterable when the record lacks the data this
        blocker needs.
        """
        ...


@runtime_checkable
class StatefulBlocker(Protocol):
    """Extension for blockers requiring a corpus-level pre-pass.

    Blockers implementing this protocol will have ``initialize``
    called once **before** any ``block_keys`` call.
    """

    def initialize(self, data: BlockingInput) -> None:
        """Pre-compute corpus-level state."""
        ...


# ============================================================================
# Pure helpers
# ============================================================================


def _short_hash(value: str) -> str:
    """SHA-256 based key fragment immune to ``PYTHONHASHSEED``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]


def _qgrams(text: str, q: int) -> set[str]:
    if len(text) <= q:
        return {text}
    return {text[i : i + q] for i in range(len(text) - q + 1)}


# ============================================================================
# Blockers
# ============================================================================


class NoBlocker:
    """Single shared block: every keyed record is compared with every other."""

    name: str = "none"

    def block_keys(self, index: int, data: BlockingInput) -> Iterable[str]:
        """Yield one constant key if the record has any match value."""
        if data.present(index):
            yield "*"


class ExactValueBlocker:
    """Block by the full normalized value of each match field."""

    name: str = "exact"

    def block_keys(self, index: int, data: BlockingInput) -> Iterable[str]:
        """Yield one key per present match field."""
        for name, value in data.present(index):
            yield f"{name}:{_short_hash(value)}"


class PrefixBlocker:
    """Block by the first ``prefix_len`` characters of each match value.

    Attributes
    ----------
    prefix_len : int
        Number of leading characters forming the key.
    """

    name: str = "prefix"

    def __init__(self, prefix_len: int = PREFIX_LEN) -> None:
        if prefix_len < 1:
            raise ConfigurationError(f"prefix_len must be >= 1, got {prefix_len}")
        self.prefix_len = prefix_len

    def block_keys(self, index: int, data: BlockingInput) -> Iterable[str]:
        """Yield one prefix key per present match field."""
        for name, value in data.present(index):
            yield f"{name}:p:{value[: self.prefix_len]}"


class FieldBlocker:
    """Block by the normalized value of another field (requires ``initialize``).

    Only records agreeing on *field* (e.g. publication year) are compared.
    Records where *field* is missing are not keyed.

    Attributes
    ----------
    field : str
        Grouping field.
    """

    name: str = "field"

    def __init__(self, field: str) -> None:
        self.field = field
        self.name = f"field:{field}"
        self._column: list[str | None] | None = None

    def initialize(self, data: BlockingInput) -> None:
        """Normalize the grouping column once.

        Raises
        ------
        ConfigurationError
            If *field* is not in the record schema.
        """
        if len(data.table) and not data.table.has_field(self.field):
            raise ConfigurationError(
                f"Blocking field {self.field!r} not in record schema: "
                f"{', '.join(data.table.fields)}"
            )
        self._column = [normalize_text(r.get(self.field), data.options) for r in data.table]

    def block_keys(self, index: int, data: BlockingInput) -> Iterable[str]:
        """Yield the grouping value if present.

        Raises
        ------
        RuntimeError
            If ``initialize()`` has not been called.
        """
        if self._column is None:
            raise RuntimeError("initialize() must be called before block_keys()")
        value = self._column[index]
        if value is not None and data.present(index):
            yield f"{self.field}={value}"


class MinHashBlocker:
    """LSH banding over MinHash signatures of character q-grams.

    Attributes
    ----------
    num_perm : int
        Number of MinHash permutations.
    bands : int
        Number of LSH bands.
    qgram : int
        Character q-gram size.
    """

    name: str = "minhash"

    def __init__(
        self,
        num_perm: int = MINHASH_NUM_PERM,
        bands: int = MINHASH_BANDS,
        qgram: int = MINHASH_QGRAM,
    ) -> None:
        if bands < 1 or num_perm % bands != 0:
            raise ConfigurationError(
                f"num_perm ({num_perm}) must be a positive multiple of bands ({bands})"
            )
        self.num_perm = num_perm
        self.bands = bands
        self.rows_per_band = num_perm // bands
        self.qgram = qgram

    def block_keys(self, index: int, data: BlockingInput) -> Iterable[str]:
        """Yield one band-hash key per LSH band and match field."""
        for name, value in data.present(index):
            mh = MinHash(num_perm=self.num_perm, seed=MINHASH_SEED)
            for gram in sorted(_qgrams(value, self.qgram)):
                mh.update(gram.encode("utf-8"))

            hv = mh.hashvalues
            for band in range(self.bands):
                start = band * self.rows_per_band
                band_bytes = ",".join(map(str, hv[start : start + self.rows_per_band]))
                yield f"mh:{name}:b{band}:{_short_hash(band_bytes)}"
