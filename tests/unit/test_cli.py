"""Tests for CLI module."""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from bibdedupe.cli.main import cli


@pytest.fixture
def runner() -> CliRunner:
    """Provide Click test CLI runner."""
    return CliRunner()


# ---------------------------------------------------------------------------
# Top-level CLI
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_cli_version_flag(runner: CliRunner) -> None:
    """Test --version flag outputs version string."""
    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "bibdedupe" in result.output


@pytest.mark.unit
def test_cli_help(runner: CliRunner) -> None:
    """Test --help output lists commands."""
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    for command in ("parse", "deduplicate", "review"):
        assert command in result.output


@pytest.mark.unit
def test_cli_invalid_command(runner: CliRunner) -> None:
    """Test invalid command returns non-zero exit code."""
    result = runner.invoke(cli, ["invalid-command"])

    assert result.exit_code != 0


# ---------------------------------------------------------------------------
# parse command
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_parse_help(runner: CliRunner) -> None:
    """Test parse command help."""
    result = runner.invoke(cli, ["parse", "--help"])

    assert result.exit_code == 0
    assert "Import bibliographic files" in result.output


@pytest.mark.unit
def test_parse_file(runner: CliRunner, sample_ris: Path, tmp_path: Path) -> None:
    """Test parse command writes one JSON line per record."""
    output_file = tmp_path / "records.jsonl"

    result = runner.invoke(cli, ["parse", str(sample_ris), "-o", str(output_file)])

    assert result.exit_code == 0
    assert "Successfully wrote 2 records" in result.output
    rows = [json.loads(line) for line in output_file.read_text().splitlines()]
    assert rows[0]["index"] == 0
    assert rows[0]["source"] == "sample.ris"
    assert rows[1]["title"] == "Red-cockaded Woodpecker Habitat"


@pytest.mark.unit
def test_parse_folder(
    runner: CliRunner,
    sample_ris: Path,
    sample_csv: Path,
    tmp_path: Path,
) -> None:
    """Test parse command expands folders."""
    output_file = tmp_path / "out" / "records.jsonl"

    result = runner.invoke(cli, ["parse", str(tmp_path), "-o", str(output_file)])

    assert result.exit_code == 0
    assert len(output_file.read_text().splitlines()) == 4


@pytest.mark.unit
def test_parse_unknown_format(runner: CliRunner, tmp_path: Path) -> None:
    """Test unparseable files exit with status 1 and an error message."""
    notes = tmp_path / "notes.txt"
    notes.write_text("just some text\n")

    result = runner.invoke(cli, ["parse", str(notes), "-o", str(tmp_path / "x.jsonl")])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert "No parser available" in result.output


@pytest.mark.unit
def test_parse_missing_input(runner: CliRunner, tmp_path: Path) -> None:
    """Test nonexistent inputs are rejected by argument validation."""
    result = runner.invoke(cli, ["parse", str(tmp_path / "absent.ris"), "-o", "x.jsonl"])

    assert result.exit_code == 2


# ---------------------------------------------------------------------------
# deduplicate command
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_deduplicate_writes_outputs(
    runner: CliRunner,
    sample_ris: Path,
    sample_csv: Path,
    tmp_path: Path,
) -> None:
    """Test deduplicate merges case variants and writes all artifacts."""
    out = tmp_path / "results"

    result = runner.invoke(
        cli,
        [
            "deduplicate",
            str(sample_ris),
            str(sample_csv),
            "-o",
            str(out),
            "--to-lower",
            "--rm-punctuation",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Deduplicated 4 records into 3 unique" in result.output
    assert "1 duplicate clusters, 1 removed" in result.output
    assert (out / "unique.ris").read_text().count("ER  -") == 3
    assert len((out / "clusters.jsonl").read_text().splitlines()) == 3
    assert (out / "events.jsonl").exists()


@pytest.mark.unit
def test_deduplicate_case_sensitive_by_default(
    runner: CliRunner,
    sample_ris: Path,
    sample_csv: Path,
    tmp_path: Path,
) -> None:
    """Test titles differing in case stay apart without --to-lower."""
    result = runner.invoke(
        cli,
        ["deduplicate", str(sample_ris), str(sample_csv), "-o", str(tmp_path / "o")],
    )

    assert result.exit_code == 0
    assert "into 4 unique" in result.output


@pytest.mark.unit
def test_deduplicate_csv_output_and_doi(
    runner: CliRunner,
    sample_ris: Path,
    sample_csv: Path,
    tmp_path: Path,
) -> None:
    """Test matching on DOI with CSV output."""
    out = tmp_path / "o"

    result = runner.invoke(
        cli,
        [
            "deduplicate",
            str(sample_ris),
            str(sample_csv),
            "-o",
            str(out),
            "-m",
            "doi",
            "--format",
            "csv",
        ],
    )

    assert result.exit_code == 0
    assert "into 3 unique" in result.output
    assert len((out / "unique.csv").read_text().splitlines()) == 4


@pytest.mark.unit
def test_deduplicate_config_file(
    runner: CliRunner,
    sample_ris: Path,
    sample_csv: Path,
    tmp_path: Path,
) -> None:
    """Test options are read from a JSON config file."""
    config = tmp_path / "config.json"
    config.write_text(json.dumps({"method": "fuzzy", "to_lower": True}))

    result = runner.invoke(
        cli,
        [
            "deduplicate",
            str(sample_ris),
            str(sample_csv),
            "-o",
            str(tmp_path / "o"),
            "--config",
            str(config),
        ],
    )

    assert result.exit_code == 0
    assert "into 3 unique" in result.output


@pytest.mark.unit
@pytest.mark.parametrize(
    ("args", "message"),
    [
        (["-m", "isbn"], "isbn"),
        (["--threshold", "2"], "threshold"),
        (["--method", "phonetic"], "phonetic"),
        (["-b", "soundex"], "soundex"),
    ],
)
def test_deduplicate_configuration_errors(
    runner: CliRunner,
    sample_ris: Path,
    tmp_path: Path,
    args: list[str],
    message: str,
) -> None:
    """Test invalid options exit with status 1 before any output is written."""
    out = tmp_path / "o"

    result = runner.invoke(cli, ["deduplicate", str(sample_ris), "-o", str(out), *args])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert message in result.output
    assert not (out / "unique.ris").exists()


@pytest.mark.unit
def test_deduplicate_invalid_choice(runner: CliRunner, sample_ris: Path) -> None:
    """Test unknown choices are usage errors."""
    result = runner.invoke(cli, ["deduplicate", str(sample_ris), "--missing-policy", "drop"])

    assert result.exit_code == 2


# ---------------------------------------------------------------------------
# review command
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_review_lists_clusters(
    runner: CliRunner,
    sample_ris: Path,
    sample_csv: Path,
) -> None:
    """Test review prints each duplicate cluster with its members."""
    result = runner.invoke(
        cli,
        ["review", str(sample_ris), str(sample_csv), "--to-lower", "-f", "title", "-f", "year"],
    )

    assert result.exit_code == 0
    assert "Cluster 0 (2 records, representative 0)" in result.output
    assert " * [0] title: Prescribed Burning in Longleaf Pine Forests | year: 2019" in (
        result.output
    )
    assert "   [2] title: Prescribed burning in longleaf pine forests" in result.output
    assert "1 duplicate clusters among 4 records" in result.output


@pytest.mark.unit
def test_review_json(runner: CliRunner, sample_ris: Path, sample_csv: Path) -> None:
    """Test --json prints one object per cluster."""
    result = runner.invoke(
        cli,
        ["review", str(sample_ris), str(sample_csv), "-m", "doi", "--json"],
    )

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert len(lines) == 1
    cluster = json.loads(lines[0])
    assert [m["index"] for m in cluster["members"]] == [0, 2]
    assert cluster["members"][1] == {"index": 2, "doi": "10.1000/fe.2019.101"}
