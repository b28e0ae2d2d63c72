"""
Configuration constants for the staff analytics engine.
"""

import os
from pathlib import Path
from typing import Dict, List, Tuple

# ======================================================
#  DATA SOURCES
# ======================================================
DATA_DIR: Path = Path(os.environ.get("STAFF_DATA_DIR", Path(__file__).resolve().parents[1] / "data"))

# Table key -> CSV file name. All five must load or the dataset is unavailable.
SOURCE_FILES: Dict[str, str] = {
    "BusinessGroups": "BusinessGroups.csv",
    "BusinessUnits": "BusinessUnits.csv",
    "PayLocations": "PayLocations.csv",
    "JobTitles": "JobTitles.csv",
    "StaffAssignments": "StaffAssignments.csv",
}

# Table key -> (required columns, numeric columns)
TABLE_SCHEMAS: Dict[str, Tuple[List[str], List[str]]] = {
    "BusinessGroups": (["GroupID", "GroupName"], ["GroupID"]),
    "BusinessUnits": (["UnitID", "UnitName", "GroupID"], ["UnitID", "GroupID"]),
    "PayLocations": (["LocationID", "LocationName"], ["LocationID"]),
    "JobTitles": (["TitleID", "JobTitle"], ["TitleID"]),
    "StaffAssignments": (["UnitID", "LocationID", "TitleID", "StaffCount"], ["UnitID", "LocationID", "TitleID", "StaffCount"]),
}

UNKNOWN: str = "Unknown"
CROSSTAB_DELIMITER: str = "|"

# ======================================================
#  FILTER DEFAULTS
# ======================================================
# Dimension -> enriched column holding its display name
DIMENSION_COLUMNS: Dict[str, str] = {
    "group": "GroupName",
    "unit": "UnitName",
    "location": "LocationName",
    "title": "JobTitle",
}
FILTER_DIMENSIONS: List[str] = list(DIMENSION_COLUMNS)
SEARCH_DIMENSIONS: List[str] = ["unit", "location", "title"]

DEFAULT_STAFF_RANGE: Tuple[int, int] = (0, 1000)

# ======================================================
#  VIEWS
# ======================================================
FLOW_TOP_N: Dict[str, int] = {"groups": 5, "units": 15, "locations": 10}

TABLE_COLUMNS: List[str] = ["GroupName", "UnitName", "JobTitle", "LocationName", "StaffCount"]
DEFAULT_SORT: Tuple[str, str] = ("StaffCount", "desc")
PAGE_SIZE: int = 50

EXPORT_PREFIX: str = "wcc-staff-data"
EXPORT_FORMATS: List[str] = ["csv", "json"]

# Table key -> columns that must carry a value; blank foreign keys are allowed
# and resolve to "Unknown" at join time.
REQUIRED_VALUES: Dict[str, List[str]] = {
    "BusinessGroups": ["GroupID"],
    "BusinessUnits": ["UnitID"],
    "PayLocations": ["LocationID"],
    "JobTitles": ["TitleID"],
    "StaffAssignments": ["StaffCount"],
}
