from __future__ import annotations

from typing import Any, Dict

from staff_core.aggregations import units_by_group
from staff_core.crossfilter import ViewState, view_state_to_dict


def compute_units(state: ViewState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    summary: Dict[str, Any] = ctx.get("summary", {})
    units = summary.get("units", [])
    return {
        "state": view_state_to_dict(state),
        "unit_count": len(units),
        "units": units,
        "by_group": units_by_group(units),
        "hierarchy": summary.get("hierarchy", []),
    }
