"""Cross-filter controller.

All dashboard interaction state lives in one frozen :class:`ViewState`. Each
user action is a function ``(state, ...) -> new state``; nothing is mutated,
so the rendered view is always a pure function of the current state.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from staff_core.config import DEFAULT_SORT, FILTER_DIMENSIONS, SEARCH_DIMENSIONS, TABLE_COLUMNS
from staff_core.filters import FilterSpec, SearchSpec, normalize_filters, normalize_search

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class Selection:
    dimension: str
    value: str


@dataclass(frozen=True)
class TableSort:
    column: str = DEFAULT_SORT[0]
    direction: str = DEFAULT_SORT[1]


@dataclass(frozen=True)
class ViewState:
    filters: FilterSpec = field(default_factory=FilterSpec)
    search: SearchSpec = field(default_factory=SearchSpec)
    selected: Optional[Selection] = None
    cross_filter_active: bool = True
    sort: TableSort = field(default_factory=TableSort)
    page: int = 0


def _check_dimension(dimension: str, allowed: Iterable[str] = FILTER_DIMENSIONS) -> None:
    if dimension not in allowed:
        raise ValueError(f"Unknown dimension: {dimension!r}")


def _item_name(item: Union[str, Mapping[str, Any], None]) -> Optional[str]:
    if item is None:
        return None
    name = item.get("name") if isinstance(item, Mapping) else item
    return None if name is None else str(name)


def select_entity(state: ViewState, dimension: str, item: Union[str, Mapping[str, Any], None]) -> ViewState:
    """Narrow ``dimension`` to the activated entity.

    ``item`` is a rollup row (anything with a ``name``) or a bare name. The
    dimension's inclusion list is replaced by the single name. A missing item,
    or cross-filtering being switched off, leaves the state untouched.
    """
    _check_dimension(dimension)
    name = _item_name(item)
    if not state.cross_filter_active or name is None:
        return state
    filters = replace(state.filters, **{dimension: (name,)})
    return replace(state, filters=filters, selected=Selection(dimension, name))


def clear(state: ViewState) -> ViewState:
    return replace(state, filters=FilterSpec(), search=SearchSpec(), selected=None)


def toggle_cross_filter(state: ViewState) -> ViewState:
    return replace(state, cross_filter_active=not state.cross_filter_active)


def set_inclusion(state: ViewState, dimension: str, values: Iterable[str]) -> ViewState:
    """Replace one inclusion list; a selection marker on that dimension survives only if still exact."""
    _check_dimension(dimension)
    included = tuple(str(v) for v in values)
    selected = state.selected
    if selected is not None and selected.dimension == dimension and included != (selected.value,):
        selected = None
    return replace(state, filters=replace(state.filters, **{dimension: included}), selected=selected)


def set_search(state: ViewState, dimension: str, text: str) -> ViewState:
    _check_dimension(dimension, SEARCH_DIMENSIONS)
    return replace(state, search=replace(state.search, **{dimension: text or ""}))


def set_staff_range(state: ViewState, min_staff: float, max_staff: float) -> ViewState:
    return replace(state, filters=replace(state.filters, min_staff=min_staff, max_staff=max_staff))


def sort_by(state: ViewState, column: str) -> ViewState:
    """Header click: the active ascending column flips to descending, anything else sorts ascending."""
    if column not in TABLE_COLUMNS:
        raise ValueError(f"Unknown sort column: {column!r}")
    current = state.sort
    direction = "desc" if current.column == column and current.direction == "asc" else "asc"
    return replace(state, sort=TableSort(column, direction))


def set_page(state: ViewState, page: int) -> ViewState:
    return replace(state, page=max(0, int(page)))


def normalize_view_state(raw: Union[ViewState, Mapping[str, Any], None]) -> ViewState:
    if isinstance(raw, ViewState):
        return raw
    raw = raw or {}

    selected = None
    sel = raw.get("selected")
    if isinstance(sel, Mapping) and sel.get("dimension") in FILTER_DIMENSIONS and sel.get("value") is not None:
        selected = Selection(str(sel["dimension"]), str(sel["value"]))

    sort_raw = raw.get("sort") or {}
    column = sort_raw.get("column") if sort_raw.get("column") in TABLE_COLUMNS else DEFAULT_SORT[0]
    direction = sort_raw.get("direction") if sort_raw.get("direction") in SORT_DIRECTIONS else DEFAULT_SORT[1]

    try:
        page = max(0, int(raw.get("page") or 0))
    except (TypeError, ValueError):
        page = 0

    return ViewState(
        filters=normalize_filters(raw.get("filters")),
        search=normalize_search(raw.get("search")),
        selected=selected,
        cross_filter_active=bool(raw.get("cross_filter_active", True)),
        sort=TableSort(column, direction),
        page=page,
    )


def view_state_to_dict(state: ViewState) -> Dict[str, Any]:
    out = asdict(state)
    for dim in FILTER_DIMENSIONS:
        out["filters"][dim] = list(out["filters"][dim])
    return out
