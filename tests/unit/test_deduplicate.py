"""Tests for the deduplication pipeline."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

import bibdedupe.engine.runner as runner
from bibdedupe.audit import AuditLogger
from bibdedupe.engine import DedupConfig, deduplicate
from bibdedupe.errors import ConfigurationError
from bibdedupe.models import RecordTable
from bibdedupe.normalize import NormalizerOptions

LOWER = NormalizerOptions(to_lower=True)


def _titles(*titles: str | None) -> list[dict[str, str | None]]:
    return [{"title": title} for title in titles]


# ---------------------------------------------------------------------------
# Exact matching
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_case_folding_merges_titles() -> None:
    """Test lower-casing makes case variants duplicates."""
    rows = _titles("Woodpecker", "WOODPECKER", "Prescribed Burning", "prescribed burning")

    result = deduplicate(rows, "title", "exact", LOWER)

    assert result.cluster_ids == (0, 0, 1, 1)
    assert result.representatives() == [0, 2]
    assert result.n_removed == 2


@pytest.mark.unit
def test_exact_without_normalization_is_case_sensitive() -> None:
    """Test case variants stay apart without lower-casing."""
    rows = _titles("Woodpecker", "WOODPECKER")

    result = deduplicate(rows, "title", "exact", NormalizerOptions())

    assert result.cluster_ids == (0, 1)
    assert result.duplicate_clusters() == []


@pytest.mark.unit
def test_identical_records_always_cluster() -> None:
    """Test exact copies share a cluster under any method."""
    rows = _titles("Fire regimes", "Fire regimes", "Fire regimes")

    for method in ("exact", "fuzzy:osa", "fuzzy:jw"):
        assert deduplicate(rows, "title", method).cluster_ids == (0, 0, 0)


@pytest.mark.unit
def test_result_is_a_partition(make_table: Callable[..., RecordTable]) -> None:
    """Test every record lands in exactly one cluster."""
    table = make_table(title=["a", "b", "a", None, "c", "b", "a"])

    result = deduplicate(table)

    members = sorted(i for cluster in result.clusters for i in cluster.members)
    assert members == list(range(len(table)))
    assert len(result.cluster_ids) == len(table)
    for index in range(len(table)):
        assert index in result.cluster_of(index).members


@pytest.mark.unit
def test_records_are_not_mutated(make_table: Callable[..., RecordTable]) -> None:
    """Test normalization does not touch the input table."""
    table = make_table(title=["  WOODPECKER ", "woodpecker"])
    before = table.to_dicts()

    result = deduplicate(table, "title", "exact", LOWER)

    assert table.to_dicts() == before
    assert result.table is table
    assert result.cluster_ids == (0, 0)


@pytest.mark.unit
def test_deduplicating_unique_records_is_stable() -> None:
    """Test running again on the survivors finds no further duplicates."""
    rows = _titles("A", "a", "B", "b", "C")
    first = deduplicate(rows, "title", "exact", LOWER)

    second = deduplicate(first.unique_records(), "title", "exact", LOWER)

    assert second.n_removed == 0
    assert len(second.table) == first.n_clusters


@pytest.mark.unit
def test_empty_input() -> None:
    """Test zero records produce an empty result."""
    result = deduplicate(RecordTable(["title"], []))

    assert result.cluster_ids == ()
    assert result.clusters == ()


@pytest.mark.unit
@pytest.mark.parametrize(
    ("match_by", "method"),
    [("title", "exact"), (["doi", "title"], "fuzzy"), ("title", "fuzzy:jw")],
)
def test_empty_input_without_schema(match_by: str | list[str], method: str) -> None:
    """Test zero records give an empty result even when no schema is known."""
    result = deduplicate([], match_by, method)

    assert result.cluster_ids == ()
    assert result.warnings == ()
    assert result.n_records == 0


@pytest.mark.unit
def test_empty_input_with_field_blocking() -> None:
    """Test grouping by another field needs no schema on empty input."""
    config = DedupConfig(method="fuzzy", blocking=("field:year",))

    result = deduplicate([], config=config)

    assert result.clusters == ()


# ---------------------------------------------------------------------------
# Fuzzy matching
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_fuzzy_threshold_boundary() -> None:
    """Test a ratio of exactly 0.9 matches and a lower one does not."""
    rows = _titles("abcdefghij", "abcdefghix", "Prescribed Burning", "Prescribed Burni")

    result = deduplicate(rows, "title", "fuzzy")

    assert result.cluster_ids == (0, 0, 1, 2)


@pytest.mark.unit
def test_fuzzy_matches_are_transitive() -> None:
    """Test A~B and B~C cluster A with C even when A and C do not match."""
    rows = _titles("abcdefghij", "abcdefghix", "abcdefghxx")

    result = deduplicate(rows, "title", "fuzzy:osa")

    assert result.cluster_ids == (0, 0, 0)
    assert [(s.index_a, s.index_b) for s in result.scores] == [(0, 1), (1, 2)]


@pytest.mark.unit
def test_threshold_keyword() -> None:
    """Test a lower threshold admits looser matches."""
    rows = _titles("Prescribed Burning", "Prescribed Burni")

    assert deduplicate(rows, "title", "fuzzy").cluster_ids == (0, 1)
    assert deduplicate(rows, "title", "fuzzy", threshold=0.8).cluster_ids == (0, 0)


@pytest.mark.unit
def test_worker_count_does_not_change_result(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test threaded comparison gives the same scores as sequential."""
    monkeypatch.setattr(runner, "CHUNK_SIZE", 7)
    rows = _titles(*(f"record title {i % 9:02d}{'x' * (i % 3)}" for i in range(40)))

    sequential = deduplicate(rows, config=DedupConfig(method="fuzzy", workers=1))
    threaded = deduplicate(rows, config=DedupConfig(method="fuzzy", workers=4))

    assert threaded.cluster_ids == sequential.cluster_ids
    assert threaded.scores == sequential.scores
    assert threaded.comparisons == sequential.comparisons == 40 * 39 // 2


@pytest.mark.unit
def test_scores_are_sorted() -> None:
    """Test match scores come back ordered by index pair."""
    rows = _titles("b", "a", "b", "a", "b")

    result = deduplicate(rows)

    pairs = [(s.index_a, s.index_b) for s in result.scores]
    assert pairs == sorted(pairs)
    assert all(s.index_a < s.index_b for s in result.scores)


# ---------------------------------------------------------------------------
# Missing values and fallback fields
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_missing_match_value_is_singleton_with_warning() -> None:
    """Test records without a title stay alone and are reported."""
    rows = _titles("A", None, "A", "", None)

    result = deduplicate(rows)

    assert result.cluster_ids == (0, 1, 0, 2, 3)
    assert [w.index for w in result.warnings] == [1, 3, 4]
    assert {w.code for w in result.warnings} == {"match_fields_missing"}


@pytest.mark.unit
def test_fallback_field_decides_pair() -> None:
    """Test a pair is decided on the first field both records have."""
    rows = [
        {"doi": None, "title": "Fire regimes"},
        {"doi": "10.1/x", "title": "Fire regimes"},
        {"doi": "10.1/x", "title": "Something else"},
    ]

    result = deduplicate(rows, ["doi", "title"])

    assert result.cluster_ids == (0, 0, 0)
    assert [(w.index, w.code) for w in result.warnings] == [(0, "primary_field_missing")]
    assert {s.field for s in result.scores} == {"doi", "title"}


@pytest.mark.unit
def test_skip_policy_ignores_fallback_fields() -> None:
    """Test the skip policy never falls back to later fields."""
    rows = [
        {"doi": None, "title": "Fire regimes"},
        {"doi": "10.1/x", "title": "Fire regimes"},
    ]
    config = DedupConfig(match_by=("doi", "title"), missing_policy="skip")

    result = deduplicate(rows, config=config)

    assert result.cluster_ids == (0, 1)
    assert [(w.index, w.code) for w in result.warnings] == [(0, "match_fields_missing")]


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_unknown_field_fails_before_work(tmp_path: Path) -> None:
    """Test schema errors are raised before any stage starts."""
    log_path = tmp_path / "events.jsonl"

    with AuditLogger("run", log_path) as logger:
        with pytest.raises(ConfigurationError, match="isbn"):
            deduplicate(_titles("A"), "isbn", logger=logger)

    assert log_path.read_text() == ""


@pytest.mark.unit
@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"method": "phonetic"}, "phonetic"),
        ({"method": "fuzzy", "threshold": 1.2}, "threshold"),
    ],
)
def test_invalid_options(kwargs: dict[str, object], message: str) -> None:
    """Test invalid methods and thresholds raise ConfigurationError."""
    with pytest.raises(ConfigurationError, match=message):
        deduplicate(_titles("A"), **kwargs)  # type: ignore[arg-type]


@pytest.mark.unit
def test_config_overrides_individual_options() -> None:
    """Test an explicit config wins over the positional options."""
    rows = _titles("Woodpecker", "WOODPECKER")

    result = deduplicate(rows, "missing", "phonetic", config=DedupConfig(to_lower=True))

    assert result.cluster_ids == (0, 0)
    assert result.config == DedupConfig(to_lower=True)


# ---------------------------------------------------------------------------
# Audit events
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_stage_events(tmp_path: Path) -> None:
    """Test each stage logs start and finish with counters."""
    log_path = tmp_path / "events.jsonl"

    with AuditLogger("run", log_path) as logger:
        deduplicate(_titles("A", "a", None), "title", "exact", LOWER, logger=logger)

    events = [json.loads(line) for line in log_path.read_text().splitlines()]
    started = [e["stage"] for e in events if e["event"] == "stage_started"]
    finished = {e["stage"]: e["data"] for e in events if e["event"] == "stage_finished"}
    flagged = [e for e in events if e["event"] == "record_flagged"]

    assert started == ["normalize", "candidates", "compare", "cluster"]
    assert finished["normalize"]["counters"] == {"records": 3, "warnings": 1}
    assert finished["compare"]["counters"]["pairs_matched"] == 1
    assert finished["cluster"]["counters"]["records_removed"] == 1
    assert flagged[0]["index"] == 2
    assert flagged[0]["data"] == {
        "flag_name": "data_quality",
        "reason_code": "match_fields_missing",
        "fields": ["title"],
    }
    assert logger.current_stage is None


# ---------------------------------------------------------------------------
# Result helpers
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_to_dicts_annotates_records() -> None:
    """Test flattened rows carry cluster and representative fields."""
    result = deduplicate(_titles("A", "B", "A"))

    rows = result.to_dicts()

    assert rows[2] == {
        "index": 2,
        "cluster_id": 0,
        "representative": 0,
        "is_representative": False,
        "source": None,
        "fields": {"title": "A"},
    }
    assert [r["is_representative"] for r in rows] == [True, True, False]
