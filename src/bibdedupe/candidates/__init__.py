"""Candidate generation via blocking.

Blocking restricts pairwise comparison to records sharing a cheap key.
"""

from bibdedupe.candidates.blockers import (
    Blocker,
    BlockerStats,
    BlockingInput,
    ExactValueBlocker,
    FieldBlocker,
    MinHashBlocker,
    NoBlocker,
    PrefixBlocker,
    StatefulBlocker,
)
from bibdedupe.candidates.factory import (
    BLOCKER_REGISTRY,
    BlockerConfig,
    create_blocker,
    create_blockers,
)
from bibdedupe.candidates.generator import generate_candidate_pairs

__all__ = [
    "BLOCKER_REGISTRY",
    "Blocker",
    "BlockerConfig",
    "BlockerStats",
    "BlockingInput",
    "ExactValueBlocker",
    "FieldBlocker",
    "MinHashBlocker",
    "NoBlocker",
    "PrefixBlocker",
    "StatefulBlocker",
    "create_blocker",
    "create_blockers",
    "generate_candidate_pairs",
]
