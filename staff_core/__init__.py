"""Core (UI-agnostic) staff analytics logic.

This package contains:
- data loading (CSV -> pandas) and the reference-table join
- aggregate views (rollups, hierarchy, diversity, cross-tabs, flow graph)
- filter/search and the cross-filter view state
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
