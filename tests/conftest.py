"""Pytest configuration and fixtures for test suite."""

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# Add src directory to path for imports
SRC_PATH = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(SRC_PATH))

from bibdedupe.models import RecordTable  # noqa: E402

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"

SAMPLE_RIS = """\
TY  - JOUR
TI  - Prescribed Burning in Longleaf Pine Forests
AU  - Smith, John
AU  - Doe, Jane
PY  - 2019///
T2  - Forest Ecology
VL  - 12
IS  - 3
SP  - 101
EP  - 115
DO  - 10.1000/fe.2019.101
KW  - fire
KW  - pine
ER  -

TY  - JOUR
TI  - Red-cockaded Woodpecker Habitat
AU  - Brown, Alice
PY  - 2020
T2  - Wildlife Journal
ER  -
"""

SAMPLE_CSV = """\
Title,Authors,Publication Year,Source Title,DOI
Prescribed burning in longleaf pine forests,Smith J; Doe J,2019,Forest Ecology,10.1000/fe.2019.101
Fire regimes of the southeastern coastal plain,Green P,2018,Fire Ecology,
"""


@pytest.fixture
def make_table() -> Callable[..., RecordTable]:
    """Factory for record tables with minimal boilerplate.

    Accepts either row mappings or, via keyword, a single column of values:
    ``make_table(title=["A", "B"])``.
    """

    def _factory(
        rows: list[dict[str, Any]] | None = None,
        *,
        fields: list[str] | None = None,
        **columns: list[Any],
    ) -> RecordTable:
        if rows is None:
            names = list(columns)
            length = len(next(iter(columns.values()))) if columns else 0
            rows = [{name: columns[name][i] for name in names} for i in range(length)]
            fields = fields or names
        return RecordTable.from_dicts(rows, fields=fields)

    return _factory


@pytest.fixture
def sample_ris(tmp_path: Path) -> Path:
    """Two-record RIS file."""
    path = tmp_path / "sample.ris"
    path.write_text(SAMPLE_RIS, encoding="utf-8")
    return path


@pytest.fixture
def sample_csv(tmp_path: Path) -> Path:
    """Two-record CSV export sharing one work with ``sample_ris``."""
    path = tmp_path / "sample.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return path
