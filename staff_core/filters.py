from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import pandas as pd

from staff_core.config import DEFAULT_STAFF_RANGE, DIMENSION_COLUMNS, SEARCH_DIMENSIONS


@dataclass(frozen=True)
class FilterSpec:
    """Inclusion lists per dimension plus an inclusive staff-count range.

    An empty inclusion list leaves that dimension unconstrained.
    """

    group: Tuple[str, ...] = ()
    unit: Tuple[str, ...] = ()
    location: Tuple[str, ...] = ()
    title: Tuple[str, ...] = ()
    min_staff: float = DEFAULT_STAFF_RANGE[0]
    max_staff: float = DEFAULT_STAFF_RANGE[1]


@dataclass(frozen=True)
class SearchSpec:
    unit: str = ""
    location: str = ""
    title: str = ""


def _as_str_tuple(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(str(v) for v in values if v is not None)


def _as_number(value: object, default: float) -> float:
    if value is None:
        return default
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return int(out) if out.is_integer() else out


def normalize_filters(raw: Optional[dict]) -> FilterSpec:
    raw = raw or {}
    return FilterSpec(
        group=_as_str_tuple(raw.get("group")),
        unit=_as_str_tuple(raw.get("unit")),
        location=_as_str_tuple(raw.get("location")),
        title=_as_str_tuple(raw.get("title")),
        min_staff=_as_number(raw.get("min_staff"), DEFAULT_STAFF_RANGE[0]),
        max_staff=_as_number(raw.get("max_staff"), DEFAULT_STAFF_RANGE[1]),
    )


def normalize_search(raw: Optional[dict]) -> SearchSpec:
    raw = raw or {}
    return SearchSpec(**{dim: str(raw.get(dim) or "") for dim in SEARCH_DIMENSIONS})


def apply_filters(
    records: pd.DataFrame,
    filters: Optional[FilterSpec] = None,
    search: Optional[SearchSpec] = None,
) -> pd.DataFrame:
    """Return the subsequence of ``records`` matching every active predicate.

    Inclusion lists match display names exactly, search terms are
    case-insensitive substrings, and the staff range is inclusive on both
    ends. Row order is preserved.
    """
    filters = filters or FilterSpec()
    search = search or SearchSpec()
    if records.empty:
        return records.copy()

    mask = pd.Series(True, index=records.index, dtype=bool)
    for dim, col in DIMENSION_COLUMNS.items():
        selected = getattr(filters, dim)
        if selected:
            mask &= records[col].isin(list(selected))

    for dim in SEARCH_DIMENSIONS:
        term = getattr(search, dim)
        if term:
            col = DIMENSION_COLUMNS[dim]
            mask &= records[col].astype(str).str.lower().str.contains(term.lower(), regex=False, na=False)

    staff = pd.to_numeric(records["StaffCount"], errors="coerce")
    mask &= (staff >= filters.min_staff) & (staff <= filters.max_staff)
    return records.loc[mask.fillna(False)].copy()
