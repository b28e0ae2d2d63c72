from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from staff_core.crossfilter import ViewState, view_state_to_dict


def compute_debug(state: ViewState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    enriched: pd.DataFrame = ctx.get("enriched", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    diagnostics = ctx.get("diagnostics", []) or []

    issues_by_table: Dict[str, int] = {}
    for diag in diagnostics:
        issues_by_table[diag["table"]] = issues_by_table.get(diag["table"], 0) + 1

    return {
        "state": view_state_to_dict(state),
        "row_counts": {
            **ctx.get("counts", {}),
            "enriched_rows": int(len(enriched)),
            "filtered_rows": int(len(filtered)),
        },
        "staff_totals": {
            "declared": ctx.get("total_staff", 0),
            "baseline": (ctx.get("baseline") or {}).get("totalStaff", 0),
            "filtered": (ctx.get("summary") or {}).get("totalStaff", 0),
        },
        "resolution_gaps": ctx.get("resolution_gaps", {}),
        "diagnostics_by_table": issues_by_table,
        "diagnostics": diagnostics[:200],
    }
