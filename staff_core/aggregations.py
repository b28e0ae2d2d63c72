"""Aggregate views over an enriched assignment frame.

Every view groups by display name (``GroupName``, ``UnitName``,
``LocationName``, ``JobTitle``), so distinct ids sharing a name, including the
"Unknown" fallback, land in one bucket. Results are plain lists/dicts so they
can be handed straight to a JSON encoder.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from staff_core.config import CROSSTAB_DELIMITER

Number = Union[int, float]


def as_number(value: object) -> Optional[Number]:
    """Box a pandas/numpy scalar as a plain int (when integral) or float."""
    if value is None or pd.isna(value):
        return None
    out = float(value)  # type: ignore[arg-type]
    return int(out) if out.is_integer() else out


def format_fixed(value: object, ndigits: int = 1) -> str:
    """Format with a fixed number of decimals, rounding half away from zero."""
    q = Decimal(10) ** -ndigits
    return str(Decimal(str(float(value))).quantize(q, rounding=ROUND_HALF_UP))  # type: ignore[arg-type]


def format_percentage(value: object, total: object) -> str:
    if not total or pd.isna(total):
        return "0"
    return format_fixed(float(value) / float(total) * 100, 1)  # type: ignore[arg-type]


def total_staff(records: pd.DataFrame) -> Number:
    if records.empty:
        return 0
    return as_number(records["StaffCount"].sum()) or 0


def _rollup(records: pd.DataFrame, column: str) -> pd.DataFrame:
    if records.empty:
        return pd.DataFrame({"name": pd.Series(dtype=object), "value": pd.Series(dtype=float)})
    out = (
        records.groupby(column, sort=False, dropna=False)["StaffCount"]
        .sum()
        .reset_index()
        .rename(columns={column: "name", "StaffCount": "value"})
    )
    # stable: equal values keep first-encounter order
    return out.sort_values("value", ascending=False, kind="stable").reset_index(drop=True)


def _name_value_rows(rollup: pd.DataFrame) -> List[Dict[str, Any]]:
    return [
        {"name": str(name), "value": as_number(value), "id": str(name)}
        for name, value in zip(rollup["name"], rollup["value"])
    ]


def group_rollup(records: pd.DataFrame) -> List[Dict[str, Any]]:
    total = total_staff(records)
    rollup = _rollup(records, "GroupName")
    return [
        {"name": str(name), "value": as_number(value), "percentage": format_percentage(value, total), "id": str(name)}
        for name, value in zip(rollup["name"], rollup["value"])
    ]


def location_rollup(records: pd.DataFrame) -> List[Dict[str, Any]]:
    return _name_value_rows(_rollup(records, "LocationName"))


def title_rollup(records: pd.DataFrame) -> List[Dict[str, Any]]:
    return _name_value_rows(_rollup(records, "JobTitle"))


def unit_rollup(records: pd.DataFrame) -> List[Dict[str, Any]]:
    """Staff per unit, with the owning group taken from the unit's first record."""
    if records.empty:
        return []
    out = (
        records.groupby("UnitName", sort=False, dropna=False)
        .agg(value=("StaffCount", "sum"), assignments=("StaffCount", "size"))
        .reset_index()
    )
    first = records.drop_duplicates(subset=["UnitName"], keep="first").set_index("UnitName")
    out["group"] = out["UnitName"].map(first["GroupName"])
    out["groupId"] = out["UnitName"].map(first["GroupID"])
    out = out.sort_values("value", ascending=False, kind="stable")
    return [
        {
            "name": str(r["UnitName"]),
            "value": as_number(r["value"]),
            "group": str(r["group"]),
            "groupId": as_number(r["groupId"]) or 0,
            "assignments": int(r["assignments"]),
            "id": str(r["UnitName"]),
        }
        for r in out.to_dict(orient="records")
    ]


def hierarchy(records: pd.DataFrame) -> List[Dict[str, Any]]:
    """Group -> unit tree; each unit carries its staff and distinct title count."""
    tree: List[Dict[str, Any]] = []
    if records.empty:
        return tree
    for group_name, items in records.groupby("GroupName", sort=False):
        children = [
            {
                "name": str(unit_name),
                "value": as_number(unit_items["StaffCount"].sum()),
                "titles": int(unit_items["JobTitle"].nunique()),
            }
            for unit_name, unit_items in items.groupby("UnitName", sort=False)
        ]
        tree.append({"name": str(group_name), "children": children})
    return tree


def diversity(records: pd.DataFrame) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    if records.empty:
        return rows
    for group_name, items in records.groupby("GroupName", sort=False):
        unique_titles = int(items["JobTitle"].nunique())
        staff = as_number(items["StaffCount"].sum()) or 0
        rows.append(
            {
                "name": str(group_name),
                "uniqueTitles": unique_titles,
                "uniqueLocations": int(items["LocationName"].nunique()),
                "totalStaff": staff,
                "avgStaffPerTitle": format_fixed(staff / unique_titles, 1) if unique_titles else "0",
                "units": int(items["UnitName"].nunique()),
            }
        )
    return rows


def _cross(records: pd.DataFrame, first: str, second: str) -> Dict[str, Number]:
    if records.empty:
        return {}
    keys = records[first].astype(str) + CROSSTAB_DELIMITER + records[second].astype(str)
    sums = records["StaffCount"].groupby(keys, sort=False).sum()
    return {str(key): as_number(value) for key, value in sums.items()}


def cross_tab(records: pd.DataFrame) -> Dict[str, Dict[str, Number]]:
    return {
        "groupLocation": _cross(records, "GroupName", "LocationName"),
        "groupTitle": _cross(records, "GroupName", "JobTitle"),
    }


def units_by_group(units: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Bucket a unit rollup under its groups, keeping rollup order inside each."""
    buckets: Dict[str, List[Dict[str, Any]]] = {}
    for unit in units:
        buckets.setdefault(unit["group"], []).append(unit)
    return [
        {
            "name": group,
            "units": members,
            "unitCount": len(members),
            "value": as_number(sum(u["value"] or 0 for u in members)),
        }
        for group, members in buckets.items()
    ]


def summarize(records: pd.DataFrame) -> Dict[str, Any]:
    """Every aggregate view for one record set, recomputed from scratch."""
    return {
        "totalStaff": total_staff(records),
        "groups": group_rollup(records),
        "locations": location_rollup(records),
        "titles": title_rollup(records),
        "units": unit_rollup(records),
        "hierarchy": hierarchy(records),
        "diversity": diversity(records),
        "crossTab": cross_tab(records),
    }
