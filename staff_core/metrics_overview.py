from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from staff_core.charts import group_share_chart, rollup_bar_chart, title_area_chart, to_vega_spec
from staff_core.crossfilter import ViewState, view_state_to_dict


def compute_overview(state: ViewState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    summary: Dict[str, Any] = ctx.get("summary", {})
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())

    charts: Dict[str, Any] = {}
    for key, chart in [
        ("group_bar", rollup_bar_chart(summary.get("groups", []), title="Business Group")),
        ("group_share", group_share_chart(summary.get("groups", []))),
        ("location_bar", rollup_bar_chart(summary.get("locations", []), title="Pay Location", limit=20)),
        ("title_area", title_area_chart(summary.get("titles", []))),
    ]:
        if chart is not None:
            charts[key] = to_vega_spec(chart)

    return {
        "state": view_state_to_dict(state),
        "totalStaff": summary.get("totalStaff", 0),
        "counts": ctx.get("counts", {}),
        "kpis": {
            "assignments": int(len(filtered)),
            "groups": len(summary.get("groups", [])),
            "units": len(summary.get("units", [])),
            "locations": len(summary.get("locations", [])),
            "titles": len(summary.get("titles", [])),
        },
        "groups": summary.get("groups", []),
        "locations": summary.get("locations", []),
        "titles": summary.get("titles", []),
        "units": summary.get("units", []),
        "charts": charts,
    }
