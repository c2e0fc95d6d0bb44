"""Similarity engine: exact and fuzzy pairwise matching.

The fuzzy string distance is a pluggable registry entry (see
``bibdedupe.similarity.distances.ALGORITHMS``).
"""

from bibdedupe.similarity.distances import (
    ALGORITHMS,
    DistanceAlgorithm,
    damerau_levenshtein_distance,
    get_algorithm,
    hamming_distance,
    jaro_winkler_similarity,
    lcs_distance,
    levenshtein_distance,
    osa_distance,
)
from bibdedupe.similarity.engine import (
    DEFAULT_ALGORITHM,
    DEFAULT_THRESHOLD,
    MatchKind,
    MatchMethod,
    SimilarityEngine,
    parse_method,
)

__all__ = [
    "ALGORITHMS",
    "DEFAULT_ALGORITHM",
    "DEFAULT_THRESHOLD",
    "DistanceAlgorithm",
    "MatchKind",
    "MatchMethod",
    "SimilarityEngine",
    "damerau_levenshtein_distance",
    "get_algorithm",
    "hamming_distance",
    "jaro_winkler_similarity",
    "lcs_distance",
    "levenshtein_distance",
    "osa_distance",
    "parse_method",
]
