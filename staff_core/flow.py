from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from staff_core.aggregations import as_number, format_percentage
from staff_core.config import FLOW_TOP_N

# (tier, rollup key, enriched column)
TIERS: List[Tuple[str, str, str]] = [
    ("group", "groups", "GroupName"),
    ("unit", "units", "UnitName"),
    ("location", "locations", "LocationName"),
]


def build_flow(
    aggregates: Mapping[str, Any],
    records: pd.DataFrame,
    top_n: Optional[Mapping[str, int]] = None,
) -> Dict[str, List[Dict[str, Any]]]:
    """Build the group -> unit -> location flow graph.

    Nodes are the leading ``top_n`` entries of each rollup in ``aggregates``
    and get sequential ids in tier order. Each record adds its staff to a
    group->unit edge and a unit->location edge when both ends are nodes;
    records touching a unit or location outside the cut add nothing.
    """
    limits = {**FLOW_TOP_N, **(top_n or {})}

    nodes: List[Dict[str, Any]] = []
    node_ids: Dict[Tuple[str, str], int] = {}
    for tier, key, _ in TIERS:
        for row in list(aggregates.get(key) or [])[: max(0, int(limits[key]))]:
            node_id = len(nodes)
            nodes.append({"id": node_id, "name": row["name"], "type": tier, "value": row["value"]})
            node_ids[(tier, str(row["name"]))] = node_id

    weights: Dict[Tuple[int, int], float] = {}
    if not records.empty and nodes:
        cols = [col for _, _, col in TIERS] + ["StaffCount"]
        for group, unit, location, staff in records[cols].itertuples(index=False, name=None):
            source = node_ids.get(("group", str(group)))
            middle = node_ids.get(("unit", str(unit)))
            target = node_ids.get(("location", str(location)))
            if source is not None and middle is not None:
                weights[(source, middle)] = weights.get((source, middle), 0) + staff
            if middle is not None and target is not None:
                weights[(middle, target)] = weights.get((middle, target), 0) + staff

    edges = [
        {"source": source, "target": target, "value": as_number(value)}
        for (source, target), value in weights.items()
        if value > 0
    ]
    return {"nodes": nodes, "edges": edges}


def flow_shares(flow: Mapping[str, List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """Per group node, where its staff flows and each edge's share of the group."""
    by_id = {node["id"]: node for node in flow.get("nodes", [])}
    shares: List[Dict[str, Any]] = []
    for node in flow.get("nodes", []):
        if node["type"] != "group":
            continue
        targets = [
            {
                "name": by_id[edge["target"]]["name"],
                "value": edge["value"],
                "percentage": format_percentage(edge["value"], node["value"]),
            }
            for edge in flow.get("edges", [])
            if edge["source"] == node["id"] and edge["target"] in by_id
        ]
        shares.append({"name": node["name"], "value": node["value"], "targets": targets})
    return shares
