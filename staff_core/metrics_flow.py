from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import pandas as pd

from staff_core.crossfilter import ViewState, view_state_to_dict
from staff_core.flow import build_flow, flow_shares


def compute_flow(state: ViewState, ctx: Dict[str, Any], *, top_n: Optional[Mapping[str, int]] = None) -> Dict[str, Any]:
    summary: Dict[str, Any] = ctx.get("summary", {})
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    flow = build_flow(summary, filtered, top_n)
    return {"state": view_state_to_dict(state), "flow": flow, "shares": flow_shares(flow)}
