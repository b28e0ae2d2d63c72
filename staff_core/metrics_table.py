from __future__ import annotations

from typing import Any, Dict

import pandas as pd

from staff_core.config import PAGE_SIZE, TABLE_COLUMNS
from staff_core.crossfilter import ViewState, view_state_to_dict
from staff_core.table import paginate, sort_records


def compute_table(state: ViewState, ctx: Dict[str, Any], *, page_size: int = PAGE_SIZE) -> Dict[str, Any]:
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    ordered = sort_records(filtered, state.sort.column, state.sort.direction)
    return {
        "state": view_state_to_dict(state),
        "columns": TABLE_COLUMNS,
        "sort": {"column": state.sort.column, "direction": state.sort.direction},
        **paginate(ordered, state.page, page_size),
    }
