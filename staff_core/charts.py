from __future__ import annotations

from typing import Any, Dict, List, Optional

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def rollup_bar_chart(rows: List[Dict[str, Any]], *, title: str, limit: Optional[int] = None) -> Optional[alt.Chart]:
    if not rows:
        return None
    df = pd.DataFrame(rows[:limit] if limit else rows)
    hover = alt.selection_point(fields=["name"], on="mouseover", empty="all")
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("name:N", title=title, sort="-y", axis=alt.Axis(labelAngle=-40, labelLimit=160)),
            y=alt.Y("value:Q", title="Staff", axis=alt.Axis(format="~s", gridDash=[4, 4], domain=False, ticks=False)),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.5)),
            tooltip=[alt.Tooltip("name:N", title=title), alt.Tooltip("value:Q", title="Staff", format=",")],
        )
        .add_params(hover)
        .properties(height=280)
    )


def group_share_chart(rows: List[Dict[str, Any]]) -> Optional[alt.Chart]:
    if not rows:
        return None
    df = pd.DataFrame(rows)
    return (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta("value:Q", stack=True),
            color=alt.Color("name:N", title="Business Group", sort=df["name"].tolist()),
            tooltip=["name", alt.Tooltip("value:Q", format=","), alt.Tooltip("percentage:N", title="Share %")],
        )
        .properties(height=280)
    )


def title_area_chart(rows: List[Dict[str, Any]], limit: int = 50) -> Optional[alt.Chart]:
    if not rows:
        return None
    df = pd.DataFrame(rows[:limit]).reset_index().rename(columns={"index": "rank"})
    return (
        alt.Chart(df)
        .mark_area(line=True, opacity=0.4)
        .encode(
            x=alt.X("rank:O", title="Job Title Rank", axis=alt.Axis(labels=False, ticks=False)),
            y=alt.Y("value:Q", title="Staff"),
            tooltip=[alt.Tooltip("name:N", title="Job Title"), alt.Tooltip("value:Q", format=",")],
        )
        .properties(height=240)
    )


def diversity_chart(rows: List[Dict[str, Any]]) -> Optional[alt.Chart]:
    if not rows:
        return None
    df = pd.DataFrame(rows).melt(
        id_vars="name",
        value_vars=["uniqueTitles", "uniqueLocations", "units"],
        var_name="metric",
        value_name="count",
    )
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("name:N", title="Business Group"),
            xOffset="metric:N",
            y=alt.Y("count:Q", title="Distinct"),
            color=alt.Color("metric:N", title="Metric"),
            tooltip=["name", "metric", "count"],
        )
        .properties(height=280)
    )
