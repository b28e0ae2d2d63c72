"""
Tests for staff_core/filters.py: inclusion lists, search terms, staff range.
"""
from conftest import enrich
from staff_core.aggregations import group_rollup
from staff_core.filters import FilterSpec, SearchSpec, apply_filters, normalize_filters, normalize_search


def _two_groups():
    return enrich(
        [[1, "Parks"], [2, "Water"]],
        [[10, "Trees", 1], [20, "Pipes", 2]],
        [[100, "HQ"]],
        [[1000, "Arborist"], [1001, "Engineer"]],
        [[10, 100, 1000, 5], [20, 100, 1001, 3]],
    )


class TestInclusion:
    def test_group_filter_scenario(self):
        filtered = apply_filters(_two_groups(), FilterSpec(group=("Parks",)))
        assert filtered["StaffCount"].sum() == 5
        assert [r["name"] for r in group_rollup(filtered)] == ["Parks"]

    def test_empty_list_is_unconstrained(self, enriched):
        assert len(apply_filters(enriched, FilterSpec(group=(), unit=(), location=(), title=()))) == len(enriched)

    def test_non_empty_list_never_grows(self, enriched):
        for spec in [
            FilterSpec(group=("Parks",)),
            FilterSpec(unit=("Trees", "Pipes")),
            FilterSpec(location=("Nowhere",)),
            FilterSpec(title=("Engineer",)),
        ]:
            assert len(apply_filters(enriched, spec)) <= len(enriched)

    def test_unknown_bucket_is_selectable(self, enriched):
        filtered = apply_filters(enriched, FilterSpec(group=("Unknown",)))
        assert filtered["StaffCount"].sum() == 3

    def test_predicates_combine_with_and(self, enriched):
        filtered = apply_filters(enriched, FilterSpec(group=("Water",), location=("Plant",)))
        assert filtered["StaffCount"].sum() == 11
        assert set(filtered["UnitName"]) == {"Pipes", "Treatment"}

    def test_order_preserved(self, enriched):
        filtered = apply_filters(enriched, FilterSpec(location=("HQ",)))
        assert filtered["StaffCount"].tolist() == [5, 6, 1, 2]


class TestSearch:
    def test_case_insensitive_substring(self):
        records = enrich([[1, "Parks"]], [[10, "Trees", 1]], [[100, "HQ"]], [[1000, "Arborist"]], [[10, 100, 1000, 5]])
        assert len(apply_filters(records, search=SearchSpec(title="arb"))) == 1
        assert len(apply_filters(records, search=SearchSpec(title="ARBOR"))) == 1
        assert len(apply_filters(records, search=SearchSpec(title="ranger"))) == 0

    def test_empty_search_matches_everything(self, enriched):
        assert len(apply_filters(enriched, search=SearchSpec())) == len(enriched)

    def test_search_is_literal(self, enriched):
        assert apply_filters(enriched, search=SearchSpec(unit=".*")).empty

    def test_search_per_dimension(self, enriched):
        filtered = apply_filters(enriched, search=SearchSpec(unit="tree", location="hq"))
        assert filtered["StaffCount"].tolist() == [5]


class TestStaffRange:
    def test_range_is_inclusive(self, enriched):
        filtered = apply_filters(enriched, FilterSpec(min_staff=5, max_staff=7))
        assert sorted(filtered["StaffCount"].tolist()) == [5, 6, 7]

    def test_default_range_keeps_all(self, enriched):
        assert len(apply_filters(enriched, FilterSpec())) == len(enriched)


class TestNormalize:
    def test_normalize_filters(self):
        spec = normalize_filters({"group": ["Parks", None], "unit": "Trees", "min_staff": "2", "max_staff": "bad"})
        assert spec.group == ("Parks",)
        assert spec.unit == ("Trees",)
        assert spec.location == ()
        assert spec.min_staff == 2
        assert spec.max_staff == 1000

    def test_normalize_search(self):
        assert normalize_search({"title": "arb", "unit": None}) == SearchSpec(title="arb")

    def test_normalize_empty(self):
        assert normalize_filters(None) == FilterSpec()
        assert normalize_search({}) == SearchSpec()
