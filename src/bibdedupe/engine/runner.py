"""Deduplication pipeline runner.

Chains the stages of a deduplication run into one stateless pass:

    Validate → Normalize → Candidates → Compare → Cluster → Annotate

A malformed configuration fails before any comparison work begins. Input
records are never mutated; scores and clusters are computed fresh for each
call.
"""

import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from bibdedupe.audit.logger import AuditLogger
from bibdedupe.candidates.blockers import BlockingInput
from bibdedupe.candidates.factory import create_blockers
from bibdedupe.candidates.generator import generate_candidate_pairs
from bibdedupe.clustering.cluster_builder import assign_cluster_ids, build_clusters
from bibdedupe.engine.config import DedupConfig
from bibdedupe.models.records import RecordTable
from bibdedupe.models.results import (
    DataQualityWarning,
    DeduplicationResult,
    SimilarityScore,
)
from bibdedupe.normalize import NormalizerOptions, normalize_fields
from bibdedupe.similarity.engine import DEFAULT_THRESHOLD, SimilarityEngine

__all__ = ["deduplicate", "compare_pairs"]

# Pairs per work unit when comparisons are spread over threads
CHUNK_SIZE = 2048

Pair = tuple[int, int]


# ---------------------------------------------------------------------------
# Stage helpers
# ---------------------------------------------------------------------------


def _as_table(records: RecordTable | Iterable[Mapping[str, Any]]) -> RecordTable:
    if isinstance(records, RecordTable):
        return records
    return RecordTable.from_dicts(records)


def _collect_warnings(
    n_records: int,
    fields: Sequence[str],
    values: Mapping[str, Sequence[str | None]],
) -> list[DataQualityWarning]:
    """Flag records that cannot be matched on their primary field."""
    warnings: list[DataQualityWarning] = []
    primary = fields[0]

    for index in range(n_records):
        missing = tuple(name for name in fields if values[name][index] is None)
        if len(missing) == len(fields):
            warnings.append(
                DataQualityWarning(
                    index=index,
                    code="match_fields_missing",
                    fields=missing,
                    message=(
                        f"Record {index} has no value for {', '.join(fields)}; "
                        "kept as an unmatched singleton"
                    ),
                )
            )
        elif primary in missing:
            warnings.append(
                DataQualityWarning(
                    index=index,
                    code="primary_field_missing",
                    fields=missing,
                    message=f"Record {index} has no {primary}; matched on fallback fields",
                )
            )
    return warnings


def _compare_chunk(
    engine: SimilarityEngine,
    pairs: Sequence[Pair],
    fields: Sequence[str],
    values: Mapping[str, Sequence[str | None]],
) -> tuple[list[SimilarityScore], int]:
    """Compare a run of pairs; returns local matches and comparisons made."""
    matches: list[SimilarityScore] = []
    compared = 0
    for a, b in pairs:
        score = engine.compare_fields(a, b, fields, values)
        if score is None:
            continue
        compared += 1
        if score.matched:
            matches.append(score)
    return matches, compared


def compare_pairs(
    engine: SimilarityEngine,
    pairs: Sequence[Pair],
    fields: Sequence[str],
    values: Mapping[str, Sequence[str | None]],
    workers: int = 1,
) -> tuple[list[SimilarityScore], int]:
    """Compare candidate pairs, optionally across worker threads.

    Workers only read the normalized values; each returns its own match
    list, and the lists are merged and sorted afterwards so the output is
    the same for any number of workers.

    Parameters
    ----------
    engine : SimilarityEngine
        Match policy.
    pairs : Sequence[Pair]
        Candidate pairs ``(i, j)``.
    fields : Sequence[str]
        Match fields in priority order.
    values : Mapping[str, Sequence[str | None]]
        Normalized values per field.
    workers : int, optional
        Number of threads, by default 1 (sequential).

    Returns
    -------
    tuple[list[SimilarityScore], int]
        Matching scores sorted by ``(index_a, index_b)`` and the number of
        pairs actually compared.
    """
    if workers <= 1 or len(pairs) <= CHUNK_SIZE:
        matches, compared = _compare_chunk(engine, pairs, fields, values)
    else:
        chunks = [pairs[i : i + CHUNK_SIZE] for i in range(0, len(pairs), CHUNK_SIZE)]
        matches = []
        compared = 0
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(_compare_chunk, engine, chunk, fields, values)
                for chunk in chunks
            ]
            for future in futures:
                local_matches, local_compared = future.result()
                matches.extend(local_matches)
                compared += local_compared

    matches.sort(key=lambda s: (s.index_a, s.index_b))
    return matches, compared


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def _resolve_config(
    match_by: str | Sequence[str],
    method: str,
    normalizer_options: NormalizerOptions | None,
    threshold: float,
    config: DedupConfig | None,
) -> DedupConfig:
    if config is not None:
        return config
    options = normalizer_options or NormalizerOptions()
    return DedupConfig(
        match_by=match_by,  # type: ignore[arg-type]
        method=method,
        threshold=threshold,
        to_lower=options.to_lower,
        rm_punctuation=options.rm_punctuation,
        trim_whitespace=options.trim_whitespace,
    )


def deduplicate(
    records: RecordTable | Iterable[Mapping[str, Any]],
    match_by: str | Sequence[str] = "title",
    method: str = "exact",
    normalizer_options: NormalizerOptions | None = None,
    *,
    threshold: float = DEFAULT_THRESHOLD,
    config: DedupConfig | None = None,
    logger: AuditLogger | None = None,
) -> DeduplicationResult:
    """Cluster duplicate bibliographic records.

    Parameters
    ----------
    records : RecordTable | Iterable[Mapping[str, Any]]
        Records to deduplicate, in input order.
    match_by : str | Sequence[str], optional
        Field, or ordered fallback list of fields, to compare.
        By default "title".
    method : str, optional
        ``exact`` or ``fuzzy:<algorithm>`` (``osa``, ``lv``, ``dl``, ``lcs``,
        ``hamming``, ``jw``), by default "exact".
    normalizer_options : NormalizerOptions | None, optional
        Normalization applied to both sides of every comparison.
    threshold : float, optional
        Minimum similarity ratio for fuzzy matches, by default 0.9.
    config : DedupConfig | None, optional
        Full configuration. When given, the individual options above are
        ignored.
    logger : AuditLogger | None, optional
        Audit logger for stage events and data-quality warnings.

    Returns
    -------
    DeduplicationResult
        Records annotated with clusters and representatives.

    Raises
    ------
    ConfigurationError
        If a match field is missing from the schema, the method is unknown,
        or the threshold is outside [0, 1].

    Examples
    --------
        >>> from bibdedupe import deduplicate, NormalizerOptions
        >>> rows = [{"title": "Woodpecker"}, {"title": "WOODPECKER"}]
        >>> result = deduplicate(rows, "title", "exact", NormalizerOptions(to_lower=True))
        >>> result.cluster_ids
        (0, 0)
    """
    table = _as_table(records)
    cfg = _resolve_config(match_by, method, normalizer_options, threshold, config)
    # A table without records has no schema to check against
    if len(table):
        cfg.validate(table.fields)

    engine = SimilarityEngine(cfg.match_method, cfg.threshold)
    blockers = create_blockers(list(cfg.blocker_configs()))
    fields = cfg.compare_fields
    options = cfg.normalizer_options

    # Normalize once
    stage_start = time.perf_counter()
    if logger:
        logger.stage_started("normalize", expected_records=len(table))

    values = normalize_fields(table, cfg.match_by, options)
    warnings = _collect_warnings(len(table), fields, values)

    if logger:
        for warning in warnings:
            logger.record_flagged(
                index=warning.index,
                flag_name="data_quality",
                reason_code=warning.code,
                stage="normalize",
                fields=warning.fields,
            )
        logger.stage_finished(
            "normalize",
            duration_seconds=time.perf_counter() - stage_start,
            counters={"records": len(table), "warnings": len(warnings)},
        )

    # Candidate pairs
    blocking_input = BlockingInput(
        match_fields=fields,
        values=values,
        table=table,
        options=options,
    )
    pairs, _ = generate_candidate_pairs(blockers, blocking_input, logger=logger)

    # Compare
    stage_start = time.perf_counter()
    if logger:
        logger.stage_started("compare")

    matches, compared = compare_pairs(engine, pairs, fields, values, workers=cfg.workers)

    if logger:
        logger.stage_finished(
            "compare",
            duration_seconds=time.perf_counter() - stage_start,
            counters={
                "candidate_pairs": len(pairs),
                "pairs_compared": compared,
                "pairs_matched": len(matches),
            },
        )

    # Cluster
    stage_start = time.perf_counter()
    if logger:
        logger.stage_started("cluster")

    clusters = build_clusters(len(table), ((s.index_a, s.index_b) for s in matches))
    cluster_ids = assign_cluster_ids(clusters, len(table))

    if logger:
        logger.stage_finished(
            "cluster",
            duration_seconds=time.perf_counter() - stage_start,
            counters={
                "clusters": len(clusters),
                "duplicate_clusters": sum(1 for c in clusters if c.is_duplicate),
                "records_removed": len(table) - len(clusters),
            },
        )
        logger.set_stage(None)

    return DeduplicationResult(
        table=table,
        cluster_ids=cluster_ids,
        clusters=tuple(clusters),
        scores=tuple(matches),
        warnings=tuple(warnings),
        config=cfg,
        comparisons=compared,
    )
