import altair as alt
import pandas as pd
import streamlit as st
from typing import Any, Dict, List

from staff_core.config import DIMENSION_COLUMNS, FILTER_DIMENSIONS, SEARCH_DIMENSIONS, TABLE_COLUMNS
from staff_core.crossfilter import (
    ViewState,
    clear,
    select_entity,
    set_inclusion,
    set_page,
    set_search,
    set_staff_range,
    sort_by,
    toggle_cross_filter,
)
from staff_core.data import LoadFailure, load_dashboard_data, prepare_context
from staff_core.metrics_diversity import compute_diversity
from staff_core.metrics_flow import compute_flow
from staff_core.metrics_overview import compute_overview
from staff_core.metrics_table import compute_table
from staff_core.metrics_units import compute_units
from staff_core.table import export_records

alt.data_transformers.disable_max_rows()

DIMENSION_LABELS = {"group": "Business Group", "unit": "Business Unit", "location": "Pay Location", "title": "Job Title"}


# ---------- ViewState in session ----------
def current_state() -> ViewState:
    return st.session_state.get("view_state") or ViewState()


def sync_widgets(state: ViewState) -> None:
    ss = st.session_state
    for dim in FILTER_DIMENSIONS:
        ss[f"f_{dim}"] = list(getattr(state.filters, dim))
    for dim in SEARCH_DIMENSIONS:
        ss[f"s_{dim}"] = getattr(state.search, dim)
    ss["staff_range"] = (state.filters.min_staff, state.filters.max_staff)
    ss["cross_filter"] = state.cross_filter_active


def dispatch(state: ViewState) -> None:
    """Store the next ViewState and mirror it into the sidebar widgets."""
    st.session_state["view_state"] = state
    sync_widgets(state)
    # new keys drop stale row selections in the clickable tables
    st.session_state["_pick_generation"] = st.session_state.get("_pick_generation", 0) + 1


# ---------- widget callbacks ----------
def on_inclusion(dimension: str) -> None:
    dispatch(set_inclusion(current_state(), dimension, st.session_state[f"f_{dimension}"]))


def on_search(dimension: str) -> None:
    dispatch(set_search(current_state(), dimension, st.session_state[f"s_{dimension}"]))


def on_staff_range() -> None:
    low, high = st.session_state["staff_range"]
    dispatch(set_staff_range(current_state(), low, high))


def on_toggle() -> None:
    dispatch(toggle_cross_filter(current_state()))


def on_sort(column: str) -> None:
    dispatch(set_page(sort_by(current_state(), column), 0))


def on_page() -> None:
    dispatch(set_page(current_state(), int(st.session_state["page_input"]) - 1))


def on_pick(dimension: str, key: str, rows: List[Dict[str, Any]]) -> None:
    event = st.session_state.get(key)
    picked = list(getattr(getattr(event, "selection", None), "rows", []) or [])
    if not picked:
        return
    dispatch(select_entity(current_state(), dimension, rows[picked[0]]))


def on_clear() -> None:
    dispatch(clear(current_state()))


def pick_table(dimension: str, rows: List[Dict[str, Any]], columns: List[str], height: int = 320, suffix: str = "") -> None:
    """Rollup table whose row click cross-filters ``dimension``."""
    if not rows:
        st.info("No data for the current filters.")
        return
    key = f"pick_{dimension}{suffix}_{st.session_state.get('_pick_generation', 0)}"
    st.dataframe(
        pd.DataFrame(rows)[columns],
        hide_index=True,
        use_container_width=True,
        height=height,
        key=key,
        on_select=lambda: on_pick(dimension, key, rows),
        selection_mode="single-row",
    )


# ---------- UI setup ----------
st.set_page_config(page_title="Staff Analytics Platform", layout="wide")
st.title("Staff Analytics Platform")
st.caption("Workforce distribution by business group, unit, pay location and job title.")

try:
    data_ctx = load_dashboard_data()
except LoadFailure as exc:
    st.error(f"Error loading data. Please ensure all CSV files are available ({exc}).")
    st.stop()

enriched: pd.DataFrame = data_ctx["enriched"]
if "view_state" not in st.session_state:
    dispatch(ViewState())

# ----- Sidebar: filters -----
with st.sidebar:
    st.markdown("### Filters")
    st.toggle("Cross-filter", key="cross_filter", on_change=on_toggle)
    for dim in FILTER_DIMENSIONS:
        options = sorted(set(enriched[DIMENSION_COLUMNS[dim]].astype(str)) | set(st.session_state.get(f"f_{dim}", [])))
        st.multiselect(DIMENSION_LABELS[dim], options=options, key=f"f_{dim}", on_change=on_inclusion, args=(dim,))
    st.markdown("---")
    st.markdown("### Search")
    for dim in SEARCH_DIMENSIONS:
        st.text_input(f"{DIMENSION_LABELS[dim]} contains", key=f"s_{dim}", on_change=on_search, args=(dim,))
    st.slider("Staff per assignment", 0, 1000, key="staff_range", on_change=on_staff_range)
    st.button("Clear all filters", on_click=on_clear)

state = current_state()
ctx = prepare_context(state, data_ctx)

if state.selected is not None:
    st.info(f"Cross-filtered on {DIMENSION_LABELS[state.selected.dimension]}: **{state.selected.value}**")

overview = compute_overview(state, ctx)
counts = overview["counts"]
k1, k2, k3, k4, k5 = st.columns(5)
k1.metric("Total Staff", f"{overview['totalStaff']:,}", f"of {data_ctx['total_staff']:,}", delta_color="off")
k2.metric("Business Groups", overview["kpis"]["groups"], f"of {counts['groups']}", delta_color="off")
k3.metric("Business Units", overview["kpis"]["units"], f"of {counts['units']}", delta_color="off")
k4.metric("Pay Locations", overview["kpis"]["locations"], f"of {counts['locations']}", delta_color="off")
k5.metric("Job Titles", overview["kpis"]["titles"], f"of {counts['titles']}", delta_color="off")

tab_dash, tab_units, tab_div, tab_flow, tab_data = st.tabs(["Dashboard", "Units", "Diversity", "Flow", "Data"])

with tab_dash:
    charts = overview["charts"]
    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Staff by Business Group")
        if "group_bar" in charts:
            st.vega_lite_chart(charts["group_bar"], use_container_width=True)
        pick_table("group", overview["groups"], ["name", "value", "percentage"], height=220)
    with c2:
        st.subheader("Group Share")
        if "group_share" in charts:
            st.vega_lite_chart(charts["group_share"], use_container_width=True)
    c3, c4 = st.columns(2)
    with c3:
        st.subheader("Top Pay Locations")
        if "location_bar" in charts:
            st.vega_lite_chart(charts["location_bar"], use_container_width=True)
        pick_table("location", overview["locations"], ["name", "value"])
    with c4:
        st.subheader("Job Title Distribution")
        if "title_area" in charts:
            st.vega_lite_chart(charts["title_area"], use_container_width=True)
        pick_table("title", overview["titles"], ["name", "value"])

with tab_units:
    units_payload = compute_units(state, ctx)
    st.subheader(f"All {units_payload['unit_count']} Business Units")
    for bucket in units_payload["by_group"]:
        with st.expander(f"{bucket['name']} ({bucket['unitCount']} units, {bucket['value']:,} staff)"):
            pick_table("unit", bucket["units"], ["name", "value", "assignments"], height=240, suffix=f"_{bucket['name']}")

with tab_div:
    div_payload = compute_diversity(state, ctx)
    st.subheader("Diversity by Business Group")
    if "diversity" in div_payload["charts"]:
        st.vega_lite_chart(div_payload["charts"]["diversity"], use_container_width=True)
    st.dataframe(pd.DataFrame(div_payload["diversity"]), hide_index=True, use_container_width=True)

with tab_flow:
    flow_payload = compute_flow(state, ctx)
    st.subheader("Organization Flow (Group → Unit → Location)")
    nodes = {n["id"]: n for n in flow_payload["flow"]["nodes"]}
    for share in flow_payload["shares"]:
        with st.expander(f"{share['name']} ({share['value']:,} staff)"):
            for target in share["targets"]:
                st.write(f"→ {target['name']}: {target['value']:,} ({target['percentage']}%)")
    unit_edges = [
        {"unit": nodes[e["source"]]["name"], "location": nodes[e["target"]]["name"], "staff": e["value"]}
        for e in flow_payload["flow"]["edges"]
        if nodes[e["source"]]["type"] == "unit"
    ]
    if unit_edges:
        st.markdown("**Top Units → Locations**")
        st.dataframe(pd.DataFrame(unit_edges), hide_index=True, use_container_width=True)

with tab_data:
    header = st.columns(len(TABLE_COLUMNS))
    for slot, column in zip(header, TABLE_COLUMNS):
        arrow = (" ▲" if state.sort.direction == "asc" else " ▼") if state.sort.column == column else ""
        slot.button(f"{column}{arrow}", key=f"sort_{column}", on_click=on_sort, args=(column,), use_container_width=True)
    table_payload = compute_table(state, ctx)
    st.session_state["page_input"] = table_payload["page"] + 1
    st.number_input(
        "Page",
        min_value=1,
        max_value=max(table_payload["page_count"], 1),
        key="page_input",
        on_change=on_page,
    )
    st.caption(
        f"Showing {table_payload['first_row']} to {table_payload['last_row']} of {table_payload['total']} results"
    )
    st.dataframe(pd.DataFrame(table_payload["rows"], columns=TABLE_COLUMNS), hide_index=True, use_container_width=True)
    e1, e2 = st.columns(2)
    for column, fmt in [(e1, "csv"), (e2, "json")]:
        content, media_type, filename = export_records(ctx["filtered"], fmt)
        column.download_button(f"Export {fmt.upper()}", data=content.encode("utf-8"), file_name=filename, mime=media_type)
