"""
Pytest fixtures for the staff analytics tests.

Tables are written as small CSV files into ``tmp_path`` so the loader, the
join and every aggregate run against the same inputs the dashboard reads.
Header names in the sample deliberately carry stray whitespace.

Sample totals (31 staff over 9 assignments):
    Water 12, Parks 10, Corporate 6, Unknown 3
    unit 99, group 99 (via unit 31) and location 555 have no reference row
"""

import sys
from pathlib import Path
from typing import Dict

import pandas as pd
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from staff_core import config  # noqa: E402
from staff_core.data import clear_cache, decode_table, join_assignments  # noqa: E402

SAMPLE_TABLES: Dict[str, str] = {
    "BusinessGroups": "GroupID, GroupName\n1,Parks\n2,Water\n3,Corporate\n",
    "BusinessUnits": (
        " UnitID,UnitName ,GroupID\n"
        "10,Trees,1\n11,Playgrounds,1\n20,Pipes,2\n21,Treatment,2\n30,Finance,3\n31,Orphan,99\n"
    ),
    "PayLocations": "LocationID,LocationName\n100,HQ\n101,Depot\n102,Plant\n",
    "JobTitles": "TitleID,JobTitle\n1000,Arborist\n1001,Engineer\n1002,Accountant\n1003,Ranger\n",
    "StaffAssignments": (
        "UnitID,LocationID,TitleID,StaffCount\n"
        "10,100,1000,5\n"
        "10,101,1003,3\n"
        "11,101,1003,2\n"
        "20,102,1001,7\n"
        "21,102,1001,4\n"
        "30,100,1002,6\n"
        "31,100,1002,1\n"
        "99,100,1000,2\n"
        "20,555,1001,1\n"
    ),
}


def write_tables(directory: Path, tables: Dict[str, str]) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    for table, content in tables.items():
        (directory / config.SOURCE_FILES[table]).write_text(content, encoding="utf-8")
    return directory


def frame(table: str, rows: list) -> pd.DataFrame:
    """Decode in-memory rows exactly as the loader would decode a CSV."""
    required, _ = config.TABLE_SCHEMAS[table]
    raw = pd.DataFrame([[str(v) for v in row] for row in rows], columns=required, dtype=str)
    df, _ = decode_table(raw, table)
    return df


def enrich(groups, units, locations, titles, assignments) -> pd.DataFrame:
    return join_assignments(
        frame("BusinessGroups", groups),
        frame("BusinessUnits", units),
        frame("PayLocations", locations),
        frame("JobTitles", titles),
        frame("StaffAssignments", assignments),
    )


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_cache()
    yield
    clear_cache()


@pytest.fixture()
def data_dir(tmp_path):
    return write_tables(tmp_path / "data", SAMPLE_TABLES)


@pytest.fixture()
def data_ctx(data_dir):
    from staff_core.data import load_dashboard_data

    return load_dashboard_data(data_dir)


@pytest.fixture()
def enriched(data_ctx):
    return data_ctx["enriched"]
