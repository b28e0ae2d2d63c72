"""
Tests for staff_core/aggregations.py: rollups, hierarchy, diversity, cross-tabs.
"""
import pytest

from conftest import enrich
from staff_core.aggregations import (
    cross_tab,
    diversity,
    format_fixed,
    format_percentage,
    group_rollup,
    hierarchy,
    location_rollup,
    summarize,
    title_rollup,
    unit_rollup,
    units_by_group,
)
from staff_core.filters import FilterSpec, apply_filters


class TestFormatting:
    def test_percentage_rounds_half_up(self):
        assert format_percentage(1, 400) == "0.3"
        assert format_percentage(1, 8) == "12.5"

    def test_percentage_full_share(self):
        assert format_percentage(5, 5) == "100.0"

    def test_zero_total_is_zero_string(self):
        assert format_percentage(0, 0) == "0"
        assert format_percentage(3, 0) == "0"

    def test_zero_value_with_total(self):
        assert format_percentage(0, 10) == "0.0"

    def test_format_fixed(self):
        assert format_fixed(2.25, 1) == "2.3"
        assert format_fixed(12, 1) == "12.0"


class TestRollups:
    def test_group_rollup(self, enriched):
        rows = group_rollup(enriched)
        assert [(r["name"], r["value"], r["percentage"]) for r in rows] == [
            ("Water", 12, "38.7"),
            ("Parks", 10, "32.3"),
            ("Corporate", 6, "19.4"),
            ("Unknown", 3, "9.7"),
        ]
        assert all(r["id"] == r["name"] for r in rows)

    def test_scenario_single_group(self):
        records = enrich([[1, "Parks"]], [[10, "Trees", 1]], [[100, "HQ"]], [[1000, "Arborist"]], [[10, 100, 1000, 5]])
        assert group_rollup(records) == [{"name": "Parks", "value": 5, "percentage": "100.0", "id": "Parks"}]

    def test_location_rollup(self, enriched):
        assert [(r["name"], r["value"]) for r in location_rollup(enriched)] == [
            ("HQ", 14), ("Plant", 11), ("Depot", 5), ("Unknown", 1),
        ]
        assert "percentage" not in location_rollup(enriched)[0]

    def test_title_rollup_ties_keep_encounter_order(self, enriched):
        assert [(r["name"], r["value"]) for r in title_rollup(enriched)] == [
            ("Engineer", 12), ("Arborist", 7), ("Accountant", 7), ("Ranger", 5),
        ]

    def test_unit_rollup(self, enriched):
        rows = unit_rollup(enriched)
        assert [r["name"] for r in rows] == ["Trees", "Pipes", "Finance", "Treatment", "Playgrounds", "Unknown", "Orphan"]
        trees = rows[0]
        assert trees == {"name": "Trees", "value": 8, "group": "Parks", "groupId": 1, "assignments": 2, "id": "Trees"}
        unknown = next(r for r in rows if r["name"] == "Unknown")
        assert unknown["group"] == "Unknown"
        assert unknown["groupId"] == 0
        orphan = next(r for r in rows if r["name"] == "Orphan")
        assert orphan["groupId"] == 99

    @pytest.mark.parametrize("view", [group_rollup, location_rollup, title_rollup, unit_rollup])
    def test_rollups_conserve_staff(self, enriched, view):
        assert sum(r["value"] for r in view(enriched)) == enriched["StaffCount"].sum()

    def test_percentages_close_to_100(self, enriched):
        rows = group_rollup(enriched)
        total = sum(float(r["percentage"]) for r in rows)
        assert abs(total - 100.0) <= 0.05 * len(rows) + 1e-9

    def test_zero_total_percentages(self):
        records = enrich(
            [[1, "Parks"], [2, "Water"]],
            [[10, "Trees", 1], [20, "Pipes", 2]],
            [[100, "HQ"]],
            [[1000, "Arborist"]],
            [[10, 100, 1000, 0], [20, 100, 1000, 0]],
        )
        rows = group_rollup(records)
        assert len(rows) == 2
        assert all(r["percentage"] == "0" for r in rows)

    def test_empty_records(self, enriched):
        empty = apply_filters(enriched, FilterSpec(min_staff=1000, max_staff=1000))
        assert empty.empty
        assert group_rollup(empty) == []
        assert unit_rollup(empty) == []
        assert summarize(empty)["totalStaff"] == 0

    def test_same_name_different_ids_merge(self):
        records = enrich(
            [[1, "Parks"], [2, "Parks"]],
            [[10, "Trees", 1], [20, "Lawns", 2]],
            [[100, "HQ"]],
            [[1000, "Arborist"]],
            [[10, 100, 1000, 3], [20, 100, 1000, 4]],
        )
        assert group_rollup(records) == [{"name": "Parks", "value": 7, "percentage": "100.0", "id": "Parks"}]


class TestStructureViews:
    def test_hierarchy(self, enriched):
        tree = hierarchy(enriched)
        assert [g["name"] for g in tree] == ["Parks", "Water", "Corporate", "Unknown"]
        assert tree[0]["children"] == [
            {"name": "Trees", "value": 8, "titles": 2},
            {"name": "Playgrounds", "value": 2, "titles": 1},
        ]
        assert sum(c["value"] for g in tree for c in g["children"]) == 31

    def test_diversity(self, enriched):
        rows = {r["name"]: r for r in diversity(enriched)}
        assert rows["Parks"] == {
            "name": "Parks",
            "uniqueTitles": 2,
            "uniqueLocations": 2,
            "totalStaff": 10,
            "avgStaffPerTitle": "5.0",
            "units": 2,
        }
        assert rows["Unknown"]["avgStaffPerTitle"] == "1.5"
        assert rows["Water"]["uniqueLocations"] == 2

    def test_cross_tab(self, enriched):
        tab = cross_tab(enriched)
        assert tab["groupLocation"] == {
            "Parks|HQ": 5,
            "Parks|Depot": 5,
            "Water|Plant": 11,
            "Corporate|HQ": 6,
            "Unknown|HQ": 3,
            "Water|Unknown": 1,
        }
        assert tab["groupTitle"]["Water|Engineer"] == 12
        assert sum(tab["groupTitle"].values()) == 31

    def test_units_by_group(self, enriched):
        buckets = units_by_group(unit_rollup(enriched))
        parks = next(b for b in buckets if b["name"] == "Parks")
        assert parks["unitCount"] == 2
        assert parks["value"] == 10
        assert [u["name"] for u in parks["units"]] == ["Trees", "Playgrounds"]

    def test_summarize_keys(self, enriched):
        summary = summarize(enriched)
        assert set(summary) == {"totalStaff", "groups", "locations", "titles", "units", "hierarchy", "diversity", "crossTab"}
        assert summary["totalStaff"] == 31

    def test_summary_values_are_plain_python(self, enriched):
        summary = summarize(enriched)
        assert type(summary["totalStaff"]) is int
        assert type(summary["groups"][0]["value"]) is int
