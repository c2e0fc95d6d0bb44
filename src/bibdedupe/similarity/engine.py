"""Pairwise match decisions on normalized field values."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum

from bibdedupe.errors import ConfigurationError
from bibdedupe.models.results import SimilarityScore
from bibdedupe.similarity.distances import ALGORITHMS, DistanceAlgorithm, get_algorithm

__all__ = [
    "DEFAULT_ALGORITHM",
    "DEFAULT_THRESHOLD",
    "MatchKind",
    "MatchMethod",
    "SimilarityEngine",
    "parse_method",
]

DEFAULT_ALGORITHM = "osa"
DEFAULT_THRESHOLD = 0.9

_LEGACY_PREFIX = "string_"


class MatchKind(StrEnum):
    """Match policy family."""

    EXACT = "exact"
    FUZZY = "fuzzy"


@dataclass(frozen=True)
class MatchMethod:
    """Parsed ``method`` option.

    Attributes
    ----------
    kind : MatchKind
        Exact or fuzzy matching.
    algorithm : str | None
        Registry key of the string distance (fuzzy only).
    """

    kind: MatchKind
    algorithm: str | None = None

    def __str__(self) -> str:
        if self.kind is MatchKind.EXACT:
            return "exact"
        return f"fuzzy:{self.algorithm}"


def parse_method(method: "str | MatchMethod") -> MatchMethod:
    """Parse a method string.

    Accepted spellings are ``exact``, ``fuzzy`` (default algorithm),
    ``fuzzy:<algorithm>`` and ``string_<algorithm>``.

    Parameters
    ----------
    method : str | MatchMethod
        Method specification.

    Returns
    -------
    MatchMethod
        Parsed method.

    Raises
    ------
    ConfigurationError
        If the method or algorithm is unknown.
    """
    if isinstance(method, MatchMethod):
        return method
    if not isinstance(method, str):
        raise ConfigurationError(f"method must be a string, got {type(method).__name__}")

    spec = method.strip().lower()
    if spec == "exact":
        return MatchMethod(MatchKind.EXACT)

    if spec == "fuzzy":
        name = DEFAULT_ALGORITHM
    elif spec.startswith("fuzzy:"):
        name = spec.removeprefix("fuzzy:")
    elif spec.startswith(_LEGACY_PREFIX):
        name = spec.removeprefix(_LEGACY_PREFIX)
    else:
        raise ConfigurationError(
            f"Unknown method: {method!r}. Use 'exact' or 'fuzzy:<algorithm>'"
        )

    algorithm = get_algorithm(name)
    if algorithm is None:
        valid = ", ".join(sorted(ALGORITHMS))
        raise ConfigurationError(
            f"Unknown fuzzy algorithm: {name!r}. Valid algorithms: {valid}"
        )
    return MatchMethod(MatchKind.FUZZY, algorithm.name)


class SimilarityEngine:
    """Applies one match policy to pairs of normalized values.

    Missing values never match: they are treated as absent data, not as
    equal empty strings.

    Attributes
    ----------
    method : MatchMethod
        Exact or fuzzy policy.
    threshold : float
        Minimum similarity ratio for a fuzzy match.
    """

    def __init__(self, method: "str | MatchMethod", threshold: float = DEFAULT_THRESHOLD) -> None:
        self.method = parse_method(method)
        if not 0.0 <= threshold <= 1.0:
            raise ConfigurationError(f"threshold must be in [0, 1], got {threshold}")
        self.threshold = threshold
        self._algorithm: DistanceAlgorithm | None = (
            ALGORITHMS[self.method.algorithm] if self.method.algorithm else None
        )

    def similarity(self, a: str | None, b: str | None) -> float | None:
        """Return the similarity ratio, or None when either side is missing."""
        scored = self._score(a, b)
        return None if scored is None else scored[0]

    def is_match(self, a: str | None, b: str | None) -> bool:
        scored = self._score(a, b)
        return scored is not None and self._passes(scored[0])

    def compare(
        self,
        index_a: int,
        index_b: int,
        field: str,
        a: str | None,
        b: str | None,
    ) -> SimilarityScore | None:
        """Score one record pair on *field*.

        Returns
        -------
        SimilarityScore | None
            Score with indices ordered ascending, or None if a value is
            missing or both indices are the same record.
        """
        if index_a == index_b:
            return None
        scored = self._score(a, b)
        if scored is None:
            return None

        sim, dist = scored
        lo, hi = (index_a, index_b) if index_a < index_b else (index_b, index_a)
        return SimilarityScore(
            index_a=lo,
            index_b=hi,
            field=field,
            similarity=sim,
            distance=dist,
            matched=self._passes(sim),
        )

    def compare_fields(
        self,
        index_a: int,
        index_b: int,
        fields: Sequence[str],
        values: Mapping[str, Sequence[str | None]],
    ) -> SimilarityScore | None:
        """Score a pair on the first field both records have.

        Fields are tried in order; the first one where both normalized
        values are present decides the outcome and later fields are not
        consulted.
        """
        for name in fields:
            column = values[name]
            a = column[index_a]
            b = column[index_b]
            if a is not None and b is not None:
                return self.compare(index_a, index_b, name, a, b)
        return None

    def _score(self, a: str | None, b: str | None) -> tuple[float, int | None] | None:
        if not a or not b:
            return None

        # Exact methods have no algorithm
        if self._algorithm is None:
            return (1.0, None) if a == b else (0.0, None)
        return self._algorithm.score(a, b)

    def _passes(self, sim: float) -> bool:
        if self.method.kind is MatchKind.EXACT:
            return sim == 1.0
        return sim >= self.threshold
