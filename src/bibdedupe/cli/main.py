"""Command-line interface for bibdedupe.

Provides CLI commands for importing, deduplicating and reviewing
bibliographic records.
"""

import importlib.metadata
import json
import sys
import traceback
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from bibdedupe.engine import MISSING_POLICIES, DedupConfig, load_config

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("bibdedupe")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.4.0"  # Fallback for development


def _fail(error: Exception, verbose: bool) -> None:
    click.secho(f"✗ Error: {error}", fg="red", err=True)
    if verbose:
        click.echo(traceback.format_exc(), err=True)
    sys.exit(1)


def _dedup_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by ``deduplicate`` and ``review``."""
    options = [
        click.option(
            "--config",
            "config_path",
            type=click.Path(exists=True, dir_okay=False),
            default=None,
            help="JSON configuration file; command-line options override it",
        ),
        click.option(
            "--match-by",
            "-m",
            multiple=True,
            help="Field to compare; repeat for fallback fields (default: title)",
        ),
        click.option(
            "--method",
            default=None,
            help="exact or fuzzy:<algorithm> (osa, lv, dl, lcs, hamming, jw)",
        ),
        click.option(
            "--threshold",
            type=float,
            default=None,
            help="Minimum similarity for fuzzy matches (default: 0.9)",
        ),
        click.option(
            "--to-lower/--keep-case",
            default=None,
            help="Case-fold values before comparing",
        ),
        click.option(
            "--rm-punctuation/--keep-punctuation",
            default=None,
            help="Strip punctuation before comparing",
        ),
        click.option(
            "--trim-whitespace/--no-trim-whitespace",
            default=None,
            help="Collapse whitespace before comparing (default: on)",
        ),
        click.option(
            "--missing-policy",
            type=click.Choice(MISSING_POLICIES),
            default=None,
            help="How pairs with missing match fields are decided",
        ),
        click.option(
            "--blocking",
            "-b",
            multiple=True,
            help="Blocker (auto, none, exact, prefix[:N], field:NAME, minhash); repeatable",
        ),
        click.option(
            "--workers",
            type=click.IntRange(min=1),
            default=None,
            help="Threads for pairwise comparison (default: 1)",
        ),
        click.option(
            "--recursive",
            "-r",
            is_flag=True,
            help="Search recursively in subdirectories (for folder input)",
        ),
        click.option(
            "--verbose",
            "-v",
            is_flag=True,
            help="Enable verbose output",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(
    config_path: str | None,
    match_by: tuple[str, ...],
    blocking: tuple[str, ...],
    **overrides: Any,
) -> DedupConfig:
    base = load_config(config_path) if config_path else DedupConfig()

    blocking_override: Any = None
    if blocking == ("auto",):
        blocking_override = "auto"
    elif blocking:
        blocking_override = list(blocking)

    return base.with_overrides(
        match_by=list(match_by) or None,
        blocking=blocking_override,
        **overrides,
    )


@click.group()
@click.version_option(version=__version__, prog_name="bibdedupe")
def cli() -> None:
    """Deduplication of bibliographic records.

    Use 'bibdedupe COMMAND --help' for command-specific help.
    """


@cli.command()
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    required=True,
    help="Output JSONL file path",
)
@click.option(
    "--recursive",
    "-r",
    is_flag=True,
    help="Search recursively in subdirectories (for folder input)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
def parse(inputs: tuple[str, ...], output: str, recursive: bool, verbose: bool) -> None:
    """Import bibliographic files and dump them as JSONL.

    INPUTS are files or folders. Format is auto-detected from file content.

    Supported formats: RIS (.ris, .txt), delimited text (.csv, .tsv)

    Examples
    --------
        bibdedupe parse scopus.csv wos.ris -o records.jsonl
        bibdedupe parse exports/ -o records.jsonl --recursive
    """
    from bibdedupe.api import read_records
    from bibdedupe.merge import write_jsonl

    try:
        table = read_records(inputs, recursive=recursive)
        if verbose:
            click.echo(f"Found {len(table)} records", err=True)
            click.echo(f"Fields: {', '.join(table.fields)}", err=True)
            click.echo(f"Writing to: {output}", err=True)

        rows = ({"index": r.index, "source": r.source, **r.to_dict()} for r in table)
        write_jsonl(rows, Path(output))
        click.secho(f"✓ Successfully wrote {len(table)} records to {output}", fg="green")

    except Exception as e:
        _fail(e, verbose)


@cli.command()
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(),
    default="out",
    help="Output directory for results (default: out)",
)
@click.option(
    "--strategy",
    type=click.Choice(["select", "merge"]),
    default="select",
    help="Keep representatives as-is or fill their gaps from duplicates",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["ris", "csv"]),
    default="ris",
    help="Format of the unique records file (default: ris)",
)
@_dedup_options
def deduplicate(
    inputs: tuple[str, ...],
    output_dir: str,
    strategy: str,
    output_format: str,
    config_path: str | None,
    match_by: tuple[str, ...],
    blocking: tuple[str, ...],
    recursive: bool,
    verbose: bool,
    **overrides: Any,
) -> None:
    """Deduplicate the records in INPUTS.

    INPUTS are files or folders. Writes unique.ris (or unique.csv),
    clusters.jsonl and the audit log events.jsonl to OUTPUT_DIR.

    Examples
    --------
        bibdedupe deduplicate refs.ris
        bibdedupe deduplicate scopus.csv wos.ris -o results --to-lower --rm-punctuation
        bibdedupe deduplicate data/ --method fuzzy:osa --threshold 0.9 -m title -m doi
    """
    from bibdedupe.api import dedupe_files

    try:
        config = _build_config(config_path, match_by, blocking, **overrides)

        if verbose:
            click.echo("Starting deduplication...", err=True)
            click.echo(f"  Inputs: {', '.join(inputs)}", err=True)
            click.echo(f"  Output: {output_dir}", err=True)
            click.echo(f"  Config: {json.dumps(config.to_dict(), sort_keys=True)}", err=True)

        run = dedupe_files(
            inputs,
            output_dir,
            config,
            strategy=strategy,
            output_format=output_format,
            recursive=recursive,
        )
        result = run.result

        if verbose:
            click.echo("\nResults:", err=True)
            click.echo(f"  Total records: {result.n_records}", err=True)
            click.echo(f"  Pairs compared: {result.comparisons}", err=True)
            click.echo(f"  Duplicate clusters: {len(result.duplicate_clusters())}", err=True)
            click.echo(f"  Data quality warnings: {len(result.warnings)}", err=True)
            click.echo("\nOutputs:", err=True)
            for name, path in run.output_files.items():
                click.echo(f"  {name}: {path}", err=True)

        click.secho(
            f"✓ Deduplicated {result.n_records} records into {len(run.unique)} unique "
            f"({len(result.duplicate_clusters())} duplicate clusters, "
            f"{result.n_removed} removed)",
            fg="green",
        )

    except Exception as e:
        _fail(e, verbose)


@cli.command()
@click.argument("inputs", nargs=-1, required=True, type=click.Path(exists=True))
@click.option(
    "--fields",
    "-f",
    multiple=True,
    help="Fields to display (default: the match fields)",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print one JSON object per cluster",
)
@_dedup_options
def review(
    inputs: tuple[str, ...],
    fields: tuple[str, ...],
    as_json: bool,
    config_path: str | None,
    match_by: tuple[str, ...],
    blocking: tuple[str, ...],
    recursive: bool,
    verbose: bool,
    **overrides: Any,
) -> None:
    """Print the duplicate clusters found in INPUTS.

    Nothing is written to disk.

    Examples
    --------
        bibdedupe review refs.ris --to-lower
        bibdedupe review refs.ris --method fuzzy:jw --threshold 0.95 -f title -f year
    """
    from bibdedupe.api import read_records
    from bibdedupe.engine import deduplicate as run_deduplicate
    from bibdedupe.merge import review_duplicates

    try:
        config = _build_config(config_path, match_by, blocking, **overrides)
        table = read_records(inputs, recursive=recursive)
        result = run_deduplicate(table, config=config)
        reviews = review_duplicates(result, list(fields) or None)

        if as_json:
            for item in reviews:
                click.echo(json.dumps(item.to_dict(), ensure_ascii=False, sort_keys=True))
            return

        for item in reviews:
            click.secho(
                f"Cluster {item.cluster_id} ({len(item.members)} records, "
                f"representative {item.representative})",
                bold=True,
            )
            for index, row in zip(item.members, item.values, strict=True):
                marker = "*" if index == item.representative else " "
                shown = " | ".join(
                    f"{name}: {'' if value is None else value}"
                    for name, value in zip(item.fields, row, strict=True)
                )
                click.echo(f" {marker} [{index}] {shown}")

        click.secho(
            f"✓ {len(reviews)} duplicate clusters among {result.n_records} records",
            fg="green",
        )

    except Exception as e:
        _fail(e, verbose)


if __name__ == "__main__":
    cli()
