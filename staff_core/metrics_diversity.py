from __future__ import annotations

from typing import Any, Dict

from staff_core.charts import diversity_chart, to_vega_spec
from staff_core.crossfilter import ViewState, view_state_to_dict


def compute_diversity(state: ViewState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    summary: Dict[str, Any] = ctx.get("summary", {})
    rows = summary.get("diversity", [])
    chart = diversity_chart(rows)
    return {
        "state": view_state_to_dict(state),
        "diversity": rows,
        "crossTab": summary.get("crossTab", {"groupLocation": {}, "groupTitle": {}}),
        "charts": {"diversity": to_vega_spec(chart)} if chart is not None else {},
    }
