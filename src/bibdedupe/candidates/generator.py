"""Candidate pair generation.

Coordinates one or more blockers to produce a single, sorted,
deduplicated list of record pairs to compare.
"""

from __future__ import annotations

import time
from collections import defaultdict
from itertools import combinations
from typing import Any

from bibdedupe.audit.logger import AuditLogger
from bibdedupe.candidates.blockers import (
    Blocker,
    BlockerStats,
    BlockingInput,
    StatefulBlocker,
)

DEFAULT_MAX_BLOCK_SIZE = 1000
STAGE_NAME = "candidates"

Pair = tuple[int, int]


def generate_candidate_pairs(
    blockers: list[Blocker],
    data: BlockingInput,
    *,
    logger: AuditLogger | None = None,
    max_block_size: int = DEFAULT_MAX_BLOCK_SIZE,
) -> tuple[list[Pair], dict[str, Any]]:
    """Generate candidate pairs for every record in *data*.

    Parameters
    ----------
    blockers : list[Blocker]
        Blocker plug-ins to apply (order-independent).
    data : BlockingInput
        Normalized match values and the source table.
    logger : AuditLogger | None, optional
        Audit logger for observability events.
    max_block_size : int, optional
        Log a warning when a block exceeds this size.

    Returns
    -------
    tuple[list[Pair], dict[str, Any]]
        Sorted ``(i, j)`` pairs with ``i < j``, and
        ``{"blockers": {name: stats}, "global": {...}}``.
    """
    start = time.perf_counter()

    if logger:
        logger.stage_started(STAGE_NAME, expected_records=len(data.table))

    sorted_blockers = sorted(blockers, key=lambda b: b.name)

    for blocker in sorted_blockers:
        if isinstance(blocker, StatefulBlocker):
            blocker.initialize(data)

    stats: dict[str, BlockerStats] = {}
    all_pairs: set[Pair] = set()

    for blocker in sorted_blockers:
        blocker_stats, blocker_pairs = _run_blocker(blocker, data, max_block_size, logger)
        stats[blocker.name] = blocker_stats
        all_pairs.update(blocker_pairs)

    pairs = sorted(all_pairs)
    global_stats = {"pairs_total_unique": len(pairs)}

    if logger:
        flat: dict[str, int] = {}
        for bname, bstats in stats.items():
            for key, value in bstats.to_dict().items():
                flat[f"{bname}_{key}"] = value
        flat.update(global_stats)
        logger.stage_finished(
            stage=STAGE_NAME,
            duration_seconds=time.perf_counter() - start,
            counters=flat,
        )

    return pairs, {
        "blockers": {name: s.to_dict() for name, s in stats.items()},
        "global": global_stats,
    }


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _run_blocker(
    blocker: Blocker,
    data: BlockingInput,
    max_block_size: int,
    logger: AuditLogger | None,
) -> tuple[BlockerStats, set[Pair]]:
    """Index records by blocker keys, then emit pairs from each block."""
    stats = BlockerStats()

    # Phase 1: inverted index, key → [index, …]
    index: dict[str, list[int]] = defaultdict(list)

    for record in data.table:
        stats.records_seen += 1
        keys = list(blocker.block_keys(record.index, data))
        if not keys:
            continue
        stats.records_keyed += 1
        for key in keys:
            index[key].append(record.index)

    stats.unique_keys = len(index)

    # Phase 2: emit candidate pairs from blocks with ≥ 2 records
    unique_pairs: set[Pair] = set()

    for block_key in sorted(index):
        members = sorted(set(index[block_key]))
        block_size = len(members)

        if block_size < 2:
            continue

        stats.blocks_gt1 += 1
        stats.max_block = max(stats.max_block, block_size)

        if block_size > max_block_size and logger:
            logger.event(
                "oversized_block",
                data={
                    "blocker": blocker.name,
                    "block_key": block_key[:100],
                    "block_size": block_size,
                    "max_block_size": max_block_size,
                },
                level="WARN",
                stage=STAGE_NAME,
            )

        for pair in combinations(members, 2):
            stats.pairs_raw += 1
            unique_pairs.add(pair)

    stats.pairs_unique = len(unique_pairs)
    return stats, unique_pairs
