"""Tests for blockers, the blocker factory and candidate generation."""

import json
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

from bibdedupe.audit import AuditLogger
from bibdedupe.candidates import (
    BlockerConfig,
    BlockingInput,
    ExactValueBlocker,
    FieldBlocker,
    MinHashBlocker,
    NoBlocker,
    PrefixBlocker,
    create_blocker,
    create_blockers,
    generate_candidate_pairs,
)
from bibdedupe.errors import ConfigurationError
from bibdedupe.models import RecordTable
from bibdedupe.normalize import NormalizerOptions, normalize_fields

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _input(
    table: RecordTable,
    fields: Sequence[str] = ("title",),
    options: NormalizerOptions | None = None,
) -> BlockingInput:
    """Normalize *fields* and wrap them for the blockers."""
    options = options or NormalizerOptions(to_lower=True)
    return BlockingInput(
        match_fields=tuple(fields),
        values=normalize_fields(table, fields, options),
        table=table,
        options=options,
    )


# ---------------------------------------------------------------------------
# Individual blockers
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_no_blocker_pairs_every_keyed_record(make_table: Callable[..., RecordTable]) -> None:
    """Test full pairwise comparison skips records without match values."""
    table = make_table(title=["a", None, "b", "c"])

    pairs, _ = generate_candidate_pairs([NoBlocker()], _input(table))

    assert pairs == [(0, 2), (0, 3), (2, 3)]


@pytest.mark.unit
def test_exact_blocker_groups_equal_values(make_table: Callable[..., RecordTable]) -> None:
    """Test exact blocking pairs only records with equal normalized values."""
    table = make_table(title=["Fire", "Smoke", "FIRE", "fire "])

    pairs, _ = generate_candidate_pairs([ExactValueBlocker()], _input(table))

    assert pairs == [(0, 2), (0, 3), (2, 3)]


@pytest.mark.unit
def test_exact_blocker_keys_every_present_field(
    make_table: Callable[..., RecordTable],
) -> None:
    """Test one key per present match field."""
    table = make_table([{"title": "a", "doi": "x"}, {"title": "b", "doi": "x"}])

    pairs, _ = generate_candidate_pairs([ExactValueBlocker()], _input(table, ("title", "doi")))

    assert pairs == [(0, 1)]


@pytest.mark.unit
def test_prefix_blocker(make_table: Callable[..., RecordTable]) -> None:
    """Test prefix blocking on the first characters."""
    table = make_table(title=["Prescribed burning", "Prescribed fire", "Woodpecker"])

    pairs, _ = generate_candidate_pairs([PrefixBlocker(4)], _input(table))

    assert pairs == [(0, 1)]


@pytest.mark.unit
def test_prefix_blocker_rejects_zero_length() -> None:
    """Test prefix length must be positive."""
    with pytest.raises(ConfigurationError):
        PrefixBlocker(0)


@pytest.mark.unit
def test_field_blocker_groups_by_other_field(make_table: Callable[..., RecordTable]) -> None:
    """Test only records agreeing on the grouping field are paired."""
    table = make_table(
        title=["a", "b", "c", "d"],
        year=["2019", "2020", "2019", None],
    )

    pairs, stats = generate_candidate_pairs([FieldBlocker("year")], _input(table))

    assert pairs == [(0, 2)]
    assert "field:year" in stats["blockers"]


@pytest.mark.unit
def test_field_blocker_requires_initialize(make_table: Callable[..., RecordTable]) -> None:
    """Test keying before initialize() raises RuntimeError."""
    table = make_table(title=["a"], year=["2019"])

    with pytest.raises(RuntimeError, match="initialize"):
        list(FieldBlocker("year").block_keys(0, _input(table)))


@pytest.mark.unit
def test_field_blocker_unknown_field(make_table: Callable[..., RecordTable]) -> None:
    """Test an unknown grouping field raises ConfigurationError."""
    table = make_table(title=["a"])

    with pytest.raises(ConfigurationError, match="year"):
        FieldBlocker("year").initialize(_input(table))


@pytest.mark.unit
def test_minhash_blocker_pairs_identical_values(
    make_table: Callable[..., RecordTable],
) -> None:
    """Test identical values always share every band."""
    table = make_table(
        title=[
            "prescribed burning in longleaf pine",
            "prescribed burning in longleaf pine",
            "zzzzzzzzzzzzzzzz",
        ]
    )

    pairs, _ = generate_candidate_pairs([MinHashBlocker()], _input(table))

    assert pairs == [(0, 1)]


@pytest.mark.unit
def test_minhash_blocker_is_deterministic(make_table: Callable[..., RecordTable]) -> None:
    """Test keys do not change between instances."""
    table = make_table(title=["prescribed burning"])
    data = _input(table)

    first = list(MinHashBlocker().block_keys(0, data))
    second = list(MinHashBlocker().block_keys(0, data))

    assert first == second
    assert len(first) == 16


@pytest.mark.unit
def test_minhash_blocker_rejects_uneven_bands() -> None:
    """Test permutations must divide evenly into bands."""
    with pytest.raises(ConfigurationError):
        MinHashBlocker(num_perm=64, bands=10)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@pytest.mark.unit
@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("exact", BlockerConfig(type="exact")),
        ("field:year", BlockerConfig(type="field", params={"field": "year"})),
        ("prefix:6", BlockerConfig(type="prefix", params={"prefix_len": 6})),
        ({"type": "minhash", "params": {"bands": 8}}, BlockerConfig("minhash", True, {"bands": 8})),
        ({"type": "none", "enabled": False}, BlockerConfig(type="none", enabled=False)),
    ],
)
def test_blocker_config_parse(spec: object, expected: BlockerConfig) -> None:
    """Test short and mapping blocker specifications."""
    assert BlockerConfig.parse(spec) == expected  # type: ignore[arg-type]


@pytest.mark.unit
@pytest.mark.parametrize("spec", ["prefix:abc", "exact:title", {"params": {}}])
def test_blocker_config_parse_rejects_malformed(spec: object) -> None:
    """Test malformed specifications raise ConfigurationError."""
    with pytest.raises(ConfigurationError):
        BlockerConfig.parse(spec)  # type: ignore[arg-type]


@pytest.mark.unit
def test_create_blocker_unknown_type() -> None:
    """Test unknown blocker types list the valid ones."""
    with pytest.raises(ConfigurationError, match="Valid types"):
        create_blocker(BlockerConfig(type="soundex"))


@pytest.mark.unit
def test_create_blocker_bad_params() -> None:
    """Test constructor errors surface as ConfigurationError."""
    with pytest.raises(ConfigurationError, match="Invalid parameters"):
        create_blocker(BlockerConfig(type="exact", params={"width": 3}))


@pytest.mark.unit
def test_create_blockers_skips_disabled() -> None:
    """Test disabled configs are not instantiated."""
    blockers = create_blockers(
        [BlockerConfig(type="exact"), BlockerConfig(type="none", enabled=False)]
    )

    assert [b.name for b in blockers] == ["exact"]


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_generator_unions_blockers(make_table: Callable[..., RecordTable]) -> None:
    """Test pairs from several blockers are merged, deduplicated and sorted."""
    table = make_table(title=["fire a", "fire b", "smoke", "smoke"])

    pairs, stats = generate_candidate_pairs(
        [ExactValueBlocker(), PrefixBlocker(4)], _input(table)
    )

    assert pairs == [(0, 1), (2, 3)]
    assert stats["global"]["pairs_total_unique"] == 2
    assert stats["blockers"]["exact"]["pairs_unique"] == 1
    assert stats["blockers"]["prefix"]["pairs_unique"] == 2


@pytest.mark.unit
def test_generator_logs_stage_and_oversized_blocks(
    tmp_path: Path,
    make_table: Callable[..., RecordTable],
) -> None:
    """Test stage events and the oversized block warning."""
    table = make_table(title=["a", "a", "a"])
    log_path = tmp_path / "events.jsonl"

    with AuditLogger("run", log_path) as logger:
        generate_candidate_pairs(
            [ExactValueBlocker()], _input(table), logger=logger, max_block_size=2
        )

    events = [json.loads(line) for line in log_path.read_text().splitlines()]
    names = [e["event"] for e in events]

    assert names == ["stage_started", "oversized_block", "stage_finished"]
    assert events[1]["level"] == "WARN"
    assert events[2]["data"]["counters"]["exact_max_block"] == 3
