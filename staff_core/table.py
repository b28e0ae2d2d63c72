from __future__ import annotations

import json
import math
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from staff_core.config import DEFAULT_SORT, EXPORT_FORMATS, EXPORT_PREFIX, PAGE_SIZE, TABLE_COLUMNS


def _plain(value: Any) -> Any:
    if isinstance(value, np.generic):
        return value.item()
    return value


def records_to_dicts(records: pd.DataFrame) -> List[Dict[str, Any]]:
    """Rows as plain dicts (NA -> None, numpy scalars -> Python), values unrounded."""
    if records.empty:
        return []
    rows = records.astype(object).where(records.notna(), None).to_dict(orient="records")
    return [{key: _plain(value) for key, value in row.items()} for row in rows]


def sort_records(records: pd.DataFrame, column: str = DEFAULT_SORT[0], direction: str = DEFAULT_SORT[1]) -> pd.DataFrame:
    if column not in TABLE_COLUMNS:
        raise ValueError(f"Unknown sort column: {column!r}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction: {direction!r}")
    if records.empty:
        return records.copy()
    return records.sort_values(column, ascending=direction == "asc", kind="stable").reset_index(drop=True)


def paginate(records: pd.DataFrame, page: int = 0, page_size: int = PAGE_SIZE) -> Dict[str, Any]:
    """Slice one page out of ``records``; out-of-range pages are clamped."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    total = int(len(records))
    page_count = math.ceil(total / page_size)
    page = min(max(0, int(page)), max(page_count - 1, 0))
    start = page * page_size
    end = min(start + page_size, total)
    return {
        "rows": records_to_dicts(records.iloc[start:end]),
        "page": page,
        "page_size": page_size,
        "page_count": page_count,
        "first_row": start + 1 if total else 0,
        "last_row": end,
        "total": total,
    }


def to_csv(records: pd.DataFrame) -> str:
    return records.to_csv(index=False)


def to_json(records: pd.DataFrame) -> str:
    return json.dumps(records_to_dicts(records), indent=2)


def export_filename(fmt: str, today: Optional[date] = None) -> str:
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    return f"{EXPORT_PREFIX}-{(today or date.today()).isoformat()}.{fmt}"


def export_records(records: pd.DataFrame, fmt: str, today: Optional[date] = None) -> Tuple[str, str, str]:
    """Serialize the filtered records; returns ``(content, media_type, filename)``."""
    filename = export_filename(fmt, today)
    if fmt == "csv":
        return to_csv(records), "text/csv", filename
    return to_json(records), "application/json", filename
