"""Tests for core.station_query."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.outage_models import FlatRow, Station
from core.station_query import (
    PAGE_SIZE_ALL,
    ViewState,
    clamp_page_size,
    filter_rows,
    paginate,
    query_rows,
    resolve_page,
    toggle,
)


def _row(sid: str, name: str, feeder: str = "F1", eff_out: bool = False) -> FlatRow:
    station = Station(id=sid, feeder=feeder, name=name, consumers=10, is_out=eff_out)
    return FlatRow(feeder=feeder, station=station, eff_out=eff_out)


def _many_rows(n: int, feeder: str = "F1") -> list[FlatRow]:
    return [_row(f"{feeder}-{i}", f"Sub {i:03d}", feeder) for i in range(n)]


# ── Filtering ──

class TestFilterRows:
    def test_empty_needle_matches_all(self):
        rows = _many_rows(5)
        assert len(filter_rows(rows, "")) == 5
        assert len(filter_rows(rows, "   ")) == 5

    def test_matches_station_name_case_insensitive(self):
        rows = [_row("1", "Balaju"), _row("2", "Thamel")]
        assert [r.name for r in filter_rows(rows, "BAL")] == ["Balaju"]

    def test_matches_feeder_name(self):
        rows = [_row("1", "A", feeder="North Bay"), _row("2", "B", feeder="South")]
        assert [r.name for r in filter_rows(rows, "north")] == ["A"]

    def test_affected_only(self):
        rows = [_row("1", "A", eff_out=True), _row("2", "B")]
        assert [r.name for r in filter_rows(rows, affected_only=True)] == ["A"]

    def test_feeder_scope(self):
        rows = [_row("1", "A", feeder="F1"), _row("2", "B", feeder="F2")]
        assert [r.name for r in filter_rows(rows, feeder="F2")] == ["B"]

    def test_all_sentinel_means_no_scope(self):
        rows = [_row("1", "A", feeder="F1"), _row("2", "B", feeder="F2")]
        assert len(filter_rows(rows, feeder="ALL")) == 2
        assert len(filter_rows(rows, feeder=None)) == 2

    def test_scope_applies_before_search(self):
        rows = [_row("1", "F2 spare", feeder="F1"), _row("2", "B", feeder="F2")]
        # "f2" matches both rows, but only F1 is in scope
        assert [r.name for r in filter_rows(rows, "f2", feeder="F1")] == ["F2 spare"]


# ── Sorting ──

class TestSorting:
    def test_sorted_by_name_case_insensitive(self):
        rows = [_row("1", "charlie"), _row("2", "Bravo"), _row("3", "alpha")]
        assert [r.name for r in filter_rows(rows)] == ["alpha", "Bravo", "charlie"]

    def test_ties_broken_by_feeder(self):
        rows = [_row("1", "Same", feeder="Zeta"), _row("2", "Same", feeder="alpha")]
        assert [r.feeder for r in filter_rows(rows)] == ["alpha", "Zeta"]

    def test_sort_is_deterministic(self):
        rows = _many_rows(30)
        shuffled = list(reversed(rows))
        assert filter_rows(rows) == filter_rows(shuffled)


# ── Page sizes ──

class TestClampPageSize:
    @pytest.mark.parametrize("value", [25, 50, 100, 200])
    def test_presets_unchanged(self, value):
        assert clamp_page_size(value) == value

    def test_rounds_up_to_next_preset(self):
        assert clamp_page_size(10) == 25
        assert clamp_page_size(60) == 100

    @pytest.mark.parametrize("value", ["all", "ALL", None, 0, 500, PAGE_SIZE_ALL])
    def test_all(self, value):
        assert clamp_page_size(value) == PAGE_SIZE_ALL

    def test_numeric_string(self):
        assert clamp_page_size("100") == 100

    def test_garbage_string_uses_default(self):
        assert clamp_page_size("lots") == 50


# ── Pagination ──

class TestPagination:
    def test_resolve_page_in_range(self):
        assert resolve_page(2, 3) == 2

    def test_resolve_page_past_end_resets_to_one(self):
        assert resolve_page(5, 3) == 1

    def test_resolve_page_below_one(self):
        assert resolve_page(0, 3) == 1
        assert resolve_page(-2, 3) == 1

    def test_page_slices(self):
        result = paginate(_many_rows(120), page=3, page_size=50)
        assert result.page == 3
        assert result.total_pages == 3
        assert len(result.rows) == 20
        assert (result.start, result.end, result.total_rows) == (101, 120, 120)

    def test_empty_result(self):
        result = paginate([], page=1, page_size=25)
        assert result.total_pages == 1
        assert result.rows == []
        assert (result.start, result.end) == (0, 0)

    def test_all_page_size_single_page(self):
        result = paginate(_many_rows(300), page=1, page_size="all")
        assert result.total_pages == 1
        assert len(result.rows) == 300

    def test_out_of_range_resets_not_clamps(self):
        result = paginate(_many_rows(30), page=4, page_size=25)
        assert result.page == 1
        assert result.rows[0].name == "Sub 000"

    def test_query_rows_combines_steps(self):
        rows = _many_rows(40, "F1") + _many_rows(40, "F2")
        result = query_rows(rows, needle="sub 01", feeder="F2", page=1, page_size=25)
        assert result.total_rows == 10
        assert all(r.feeder == "F2" for r in result.rows)


# ── View state ──

class TestViewState:
    def test_shrinking_filter_resets_page(self):
        rows = _many_rows(120)
        view = ViewState(page_size=50)
        view.go_to(3)
        assert view.apply(rows).page == 3

        # Only "Sub 010".."Sub 019" remain: page 3 no longer exists
        view.search = "sub 01"
        result = view.apply(rows)
        assert result.total_rows == 10
        assert result.page == 1
        assert view.page == 1

    def test_setters_reset_page(self):
        view = ViewState()
        for setter, arg in [
            (view.set_search, "x"),
            (view.set_affected_only, True),
            (view.set_feeder, "F1"),
            (view.set_page_size, 100),
        ]:
            view.page = 4
            setter(arg)
            assert view.page == 1

    def test_set_feeder_none_is_all(self):
        view = ViewState()
        view.set_feeder(None)
        assert view.feeder == "ALL"

    def test_navigation_bounds(self):
        rows = _many_rows(60)
        view = ViewState(page_size=25)
        view.apply(rows)
        view.last_page()
        assert view.page == 3
        view.next_page()
        assert view.page == 3
        view.first_page()
        view.prev_page()
        assert view.page == 1
        view.next_page()
        assert view.apply(rows).page == 2

    def test_clear_search(self):
        view = ViewState(search="abc", affected_only=True, page=2)
        view.clear_search()
        assert (view.search, view.affected_only, view.page) == ("", False, 1)


class TestToggle:
    def test_missing_key_defaults_false_then_flips(self):
        flags = {}
        assert toggle(flags, "F1") is True
        assert flags == {"F1": True}

    def test_double_toggle_restores(self):
        flags = {"F1": False}
        toggle(flags, "F1")
        toggle(flags, "F1")
        assert flags == {"F1": False}
