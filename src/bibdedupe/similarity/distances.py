"""String distance algorithms for fuzzy matching.

Pure, deterministic implementations over Python strings (code points). Each
algorithm is registered in ``ALGORITHMS`` together with the rule that turns
its raw output into a similarity ratio in [0, 1].
"""

from collections.abc import Callable
from dataclasses import dataclass

__all__ = [
    "DistanceAlgorithm",
    "ALGORITHMS",
    "osa_distance",
    "levenshtein_distance",
    "damerau_levenshtein_distance",
    "lcs_distance",
    "hamming_distance",
    "jaro_winkler_similarity",
    "get_algorithm",
]

JW_PREFIX_SCALE = 0.1
JW_MAX_PREFIX = 4


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of insertions, deletions and substitutions."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            cost = 0 if ca == cb else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def osa_distance(a: str, b: str) -> int:
    """Optimal String Alignment distance.

    Levenshtein plus transposition of adjacent characters, with the
    restriction that no substring is edited more than once.
    """
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    rows = len(a) + 1
    cols = len(b) + 1
    d = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        d[i][0] = i
    for j in range(cols):
        d[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            d[i][j] = min(
                d[i - 1][j] + 1,
                d[i][j - 1] + 1,
                d[i - 1][j - 1] + cost,
            )
            if i > 1 and j > 1 and a[i - 1] == b[j - 2] and a[i - 2] == b[j - 1]:
                d[i][j] = min(d[i][j], d[i - 2][j - 2] + 1)
    return d[-1][-1]


def damerau_levenshtein_distance(a: str, b: str) -> int:
    """Unrestricted Damerau-Levenshtein distance (Lowrance-Wagner)."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    max_dist = len(a) + len(b)
    last_row: dict[str, int] = {}
    d = [[0] * (len(b) + 2) for _ in range(len(a) + 2)]
    d[0][0] = max_dist
    for i in range(len(a) + 1):
        d[i + 1][0] = max_dist
        d[i + 1][1] = i
    for j in range(len(b) + 1):
        d[0][j + 1] = max_dist
        d[1][j + 1] = j

    for i in range(1, len(a) + 1):
        last_match_col = 0
        for j in range(1, len(b) + 1):
            k = last_row.get(b[j - 1], 0)
            col = last_match_col
            if a[i - 1] == b[j - 1]:
                cost = 0
                last_match_col = j
            else:
                cost = 1
            d[i + 1][j + 1] = min(
                d[i][j] + cost,
                d[i + 1][j] + 1,
                d[i][j + 1] + 1,
                d[k][col] + (i - k - 1) + 1 + (j - col - 1),
            )
        last_row[a[i - 1]] = i
    return d[len(a) + 1][len(b) + 1]


def lcs_distance(a: str, b: str) -> int:
    """Insertions and deletions needed: ``len(a) + len(b) - 2 * lcs``."""
    if a == b:
        return 0
    previous = [0] * (len(b) + 1)
    for ca in a:
        current = [0]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1] + 1)
            else:
                current.append(max(previous[j], current[j - 1]))
        previous = current
    return len(a) + len(b) - 2 * previous[-1]


def hamming_distance(a: str, b: str) -> int | None:
    """Differing positions; None when the lengths differ."""
    if len(a) != len(b):
        return None
    return sum(1 for ca, cb in zip(a, b) if ca != cb)


def _jaro_similarity(a: str, b: str) -> float:
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    window = max(max(len(a), len(b)) // 2 - 1, 0)
    a_matched = [False] * len(a)
    b_matched = [False] * len(b)

    matches = 0
    for i, ca in enumerate(a):
        lo = max(0, i - window)
        hi = min(i + window + 1, len(b))
        for j in range(lo, hi):
            if not b_matched[j] and b[j] == ca:
                a_matched[i] = True
                b_matched[j] = True
                matches += 1
                break

    if matches == 0:
        return 0.0

    transpositions = 0
    j = 0
    for i, ca in enumerate(a):
        if not a_matched[i]:
            continue
        while not b_matched[j]:
            j += 1
        if ca != b[j]:
            transpositions += 1
        j += 1

    m = float(matches)
    return (m / len(a) + m / len(b) + (m - transpositions / 2) / m) / 3


def jaro_winkler_similarity(
    a: str,
    b: str,
    prefix_scale: float = JW_PREFIX_SCALE,
) -> float:
    """Jaro-Winkler similarity in [0, 1].

    Parameters
    ----------
    a : str
        First string.
    b : str
        Second string.
    prefix_scale : float, optional
        Weight given to a shared prefix of up to four characters,
        by default 0.1.

    Returns
    -------
    float
        Similarity (1.0 = identical).
    """
    jaro = _jaro_similarity(a, b)
    prefix = 0
    for ca, cb in zip(a[:JW_MAX_PREFIX], b[:JW_MAX_PREFIX]):
        if ca != cb:
            break
        prefix += 1
    return jaro + prefix * prefix_scale * (1.0 - jaro)


# ---------------------------------------------------------------------------
# Ratio rules
# ---------------------------------------------------------------------------


def _edit_ratio(distance: int, a: str, b: str) -> float:
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - distance) / longest


def _lcs_ratio(distance: int, a: str, b: str) -> float:
    total = len(a) + len(b)
    if total == 0:
        return 1.0
    return (total - distance) / total


@dataclass(frozen=True)
class DistanceAlgorithm:
    """A registered string comparison algorithm.

    Attributes
    ----------
    name : str
        Registry key (e.g. ``osa``).
    distance : Callable[[str, str], int | None] | None
        Raw distance function, or None for similarity-only algorithms.
    similarity_fn : Callable[[str, str], float] | None
        Direct similarity function for similarity-only algorithms.
    ratio : Callable[[int, str, str], float] | None
        Converts a raw distance into a similarity ratio.
    """

    name: str
    distance: Callable[[str, str], int | None] | None = None
    similarity_fn: Callable[[str, str], float] | None = None
    ratio: Callable[[int, str, str], float] | None = None

    def __post_init__(self) -> None:
        if self.similarity_fn is None and (self.distance is None or self.ratio is None):
            raise ValueError(
                f"Algorithm {self.name!r} needs similarity_fn, or both distance and ratio"
            )

    def score(self, a: str, b: str) -> tuple[float, int | None]:
        """Return ``(similarity, raw_distance)`` for two non-empty strings."""
        if self.similarity_fn is not None:
            return self.similarity_fn(a, b), None

        if self.distance is None or self.ratio is None:
            raise RuntimeError(f"Algorithm {self.name!r} has no distance function")
        dist = self.distance(a, b)
        if dist is None:
            return 0.0, None
        return self.ratio(dist, a, b), dist


ALGORITHMS: dict[str, DistanceAlgorithm] = {
    "osa": DistanceAlgorithm("osa", distance=osa_distance, ratio=_edit_ratio),
    "lv": DistanceAlgorithm("lv", distance=levenshtein_distance, ratio=_edit_ratio),
    "dl": DistanceAlgorithm("dl", distance=damerau_levenshtein_distance, ratio=_edit_ratio),
    "lcs": DistanceAlgorithm("lcs", distance=lcs_distance, ratio=_lcs_ratio),
    "hamming": DistanceAlgorithm("hamming", distance=hamming_distance, ratio=_edit_ratio),
    "jw": DistanceAlgorithm("jw", similarity_fn=jaro_winkler_similarity),
}

ALIASES: dict[str, str] = {
    "levenshtein": "lv",
    "damerau_levenshtein": "dl",
    "jaro_winkler": "jw",
}


def get_algorithm(name: str) -> DistanceAlgorithm | None:
    """Look up an algorithm by registry key or alias."""
    key = name.strip().lower()
    return ALGORITHMS.get(ALIASES.get(key, key))
