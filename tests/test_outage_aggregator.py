"""Tests for core.outage_aggregator."""

import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.outage_aggregator import (
    aggregate,
    build_snapshot,
    flatten,
    percent,
    round_half_away,
)
from core.outage_models import Station


def _make_station(sid: str, feeder: str, consumers: int, is_out: bool = False) -> Station:
    return Station(id=sid, feeder=feeder, name=f"Station {sid}", consumers=consumers, is_out=is_out)


def _random_stations(n: int, seed: int) -> list[Station]:
    rng = random.Random(seed)
    return [
        _make_station(
            str(i),
            rng.choice(["F1", "F2", "f1", "Bay 7", "Unassigned"]),
            rng.randint(0, 500),
            rng.random() < 0.3,
        )
        for i in range(n)
    ]


# ── Rounding ──

class TestRounding:
    def test_one_third(self):
        assert percent(1, 3) == 33.3

    def test_two_thirds(self):
        assert percent(2, 3) == 66.7

    def test_zero_total(self):
        assert percent(0, 0) == 0
        assert percent(5, 0) == 0

    def test_half_rounds_away_from_zero(self):
        assert round_half_away(0.25) == 0.3
        assert round_half_away(-0.25) == -0.3

    def test_whole_percent(self):
        assert percent(140, 200) == 70.0


# ── Effective outage ──

class TestEffectiveOutage:
    def test_station_flag_only(self, sample_stations):
        rows = {r.station.id: r.eff_out for r in flatten(aggregate(sample_stations, {}))}
        assert rows == {"a": True, "b": False, "c": False, "d": False}

    def test_feeder_override_cascades(self, sample_stations):
        rows = {r.station.id: r.eff_out for r in flatten(aggregate(sample_stations, {"F1": True}))}
        assert rows == {"a": True, "b": True, "c": True, "d": False}

    def test_override_does_not_mutate_stations(self, sample_stations):
        aggregate(sample_stations, {"F1": True, "F2": True})
        assert [s.is_out for s in sample_stations] == [True, False, False, False]

    def test_override_round_trip_restores_station_flags(self, sample_stations):
        before = {r.station.id: r.eff_out for r in flatten(aggregate(sample_stations, {"F1": False}))}
        aggregate(sample_stations, {"F1": True})
        after = {r.station.id: r.eff_out for r in flatten(aggregate(sample_stations, {"F1": False}))}
        assert before == after
        assert after == {s.id: s.is_out for s in sample_stations}

    def test_unknown_override_key_ignored(self, sample_stations):
        summary = aggregate(sample_stations, {"F9": True})
        assert summary.totals.affected == 40

    def test_empty_feeder_grouped_as_unassigned(self):
        summary = aggregate([Station(id="x", feeder="", name="X", consumers=5)], {"Unassigned": True})
        assert [g.name for g in summary.feeders] == ["Unassigned"]
        assert summary.totals.affected == 5


# ── Rollups ──

class TestRollups:
    def test_end_to_end_scenario(self, sample_stations):
        summary = aggregate(sample_stations, {"F2": True})
        assert summary.totals.total == 200
        assert summary.totals.affected == 140
        assert summary.totals.healthy == 60
        assert summary.totals.pct == 70.0

    def test_feeder_groups(self, sample_stations):
        summary = aggregate(sample_stations, {})
        f1 = summary.feeder("F1")
        assert f1.total == 100
        assert f1.affected == 40
        assert f1.healthy == 60
        assert f1.pct == 40.0
        assert f1.counts.subs_total == 3
        assert f1.counts.subs_off == 1
        assert f1.counts.off_pct == 33.3

    def test_empty_input(self):
        summary = aggregate([], {})
        assert summary.feeders == []
        assert summary.totals.total == 0
        assert summary.totals.pct == 0
        assert summary.counts.subs_total == 0
        assert summary.counts.off_pct == 0

    def test_zero_consumer_feeder_pct_zero(self):
        summary = aggregate([_make_station("1", "F", 0, True)], {})
        assert summary.feeders[0].pct == 0
        assert summary.feeders[0].counts.off_pct == 100.0

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_totals_add_up(self, seed):
        stations = _random_stations(200, seed)
        overrides = {"F1": seed % 2 == 0, "Bay 7": True}
        summary = aggregate(stations, overrides)
        totals = summary.totals
        assert totals.affected + totals.healthy == totals.total
        assert totals.total == sum(s.consumers for s in stations)
        for group in summary.feeders:
            assert sum(r.consumers for r in group.stations) == group.total
            assert group.affected + group.healthy == group.total
        counts = summary.counts
        assert counts.subs_off + counts.subs_on == counts.subs_total == len(stations)

    def test_idempotent(self, sample_stations):
        first = aggregate(sample_stations, {"F2": True})
        second = aggregate(sample_stations, {"F2": True})
        assert first == second


# ── Ordering ──

class TestFeederOrdering:
    def test_sorted_by_name(self):
        stations = [
            _make_station("1", "Zulu", 1),
            _make_station("2", "alpha", 1),
            _make_station("3", "Bravo", 1),
        ]
        assert [g.name for g in aggregate(stations).feeders] == ["alpha", "Bravo", "Zulu"]

    def test_case_variants_are_distinct_and_ordered(self):
        stations = [_make_station("1", "f1", 1), _make_station("2", "F1", 1)]
        assert [g.name for g in aggregate(stations).feeders] == ["F1", "f1"]

    def test_flatten_follows_feeder_order(self, sample_stations):
        rows = flatten(aggregate(list(reversed(sample_stations))))
        assert [r.feeder for r in rows] == ["F1", "F1", "F1", "F2"]


class TestSnapshot:
    def test_snapshot_fields(self, sample_stations):
        snap = build_snapshot(aggregate(sample_stations, {"F2": True}))
        assert snap == {
            "affected": 140,
            "total": 200,
            "healthy": 60,
            "pct": 70.0,
            "subsOff": 2,
            "subsOn": 2,
            "subsTotal": 4,
            "offPct": 50.0,
        }
