"""
Outage aggregation engine.

Pure-computation module: combines station-level outage flags with the
feeder override map into an effective status per station, then rolls up
consumer totals per feeder and globally. No database, HTTP or UI
dependencies; every call recomputes from its inputs.

Effective status: eff_out = feeder_overrides[station.feeder] or station.is_out.
The override is applied to the derived rows only, never written back to
the Station records.
"""

import logging
import math
from typing import Iterable, Mapping, Optional

from .outage_models import (
    UNASSIGNED_FEEDER,
    FeederGroup,
    FlatRow,
    OutageSummary,
    Station,
    StationCounts,
    Totals,
)

logger = logging.getLogger(__name__)


def round_half_away(value: float, digits: int = 1) -> float:
    """Round to ``digits`` decimals, halves away from zero."""
    scale = 10 ** digits
    scaled = abs(value) * scale
    rounded = math.floor(scaled + 0.5) / scale
    return math.copysign(rounded, value) if value else 0.0


def percent(part: float, whole: float) -> float:
    """part/whole as a percentage with one decimal; 0 when whole is 0."""
    if not whole:
        return 0.0
    return round_half_away(part / whole * 100)


def feeder_sort_key(name: str) -> tuple[str, str]:
    """Total order for feeder names: case-folded first, raw name second."""
    return (name.casefold(), name)


def effective_outage(station: Station, feeder_overrides: Mapping[str, bool]) -> bool:
    feeder = station.feeder or UNASSIGNED_FEEDER
    return bool(feeder_overrides.get(feeder, False)) or bool(station.is_out)


def _counts(rows: list[FlatRow]) -> StationCounts:
    total = len(rows)
    off = sum(1 for r in rows if r.eff_out)
    return StationCounts(
        subs_total=total,
        subs_off=off,
        subs_on=total - off,
        off_pct=percent(off, total),
    )


def aggregate(
    stations: Iterable[Station],
    feeder_overrides: Optional[Mapping[str, bool]] = None,
) -> OutageSummary:
    """Group stations by feeder and compute effective outage rollups.

    Args:
        stations: Current Station set, in any order.
        feeder_overrides: feeder name -> forced OFF. Missing feeders are ON.

    Returns:
        OutageSummary with feeder groups sorted by name, global consumer
        totals and substation counts.
    """
    overrides = feeder_overrides or {}
    groups: dict[str, FeederGroup] = {}
    total = 0
    affected = 0

    for station in stations:
        name = station.feeder or UNASSIGNED_FEEDER
        group = groups.get(name)
        if group is None:
            group = FeederGroup(name=name, feeder_out=bool(overrides.get(name, False)))
            groups[name] = group

        eff_out = effective_outage(station, overrides)
        consumers = int(station.consumers or 0)
        group.stations.append(
            FlatRow(feeder=name, station=station, eff_out=eff_out, feeder_out=group.feeder_out)
        )
        group.total += consumers
        total += consumers
        if eff_out:
            group.affected += consumers
            affected += consumers

    # sorted() is stable, so identical keys keep first-seen order
    feeders = sorted(groups.values(), key=lambda g: feeder_sort_key(g.name))
    for group in feeders:
        group.healthy = group.total - group.affected
        group.pct = percent(group.affected, group.total)
        group.counts = _counts(group.stations)

    totals = Totals(
        total=total,
        affected=affected,
        healthy=total - affected,
        pct=percent(affected, total),
    )
    counts = _counts([row for group in feeders for row in group.stations])

    logger.debug(
        f"Aggregated {counts.subs_total} stations across {len(feeders)} feeders: "
        f"{affected}/{total} consumers affected"
    )
    return OutageSummary(feeders=feeders, totals=totals, counts=counts)


def flatten(summary: OutageSummary) -> list[FlatRow]:
    """Flattened (feeder, station, eff_out) rows in feeder order."""
    return [row for group in summary.feeders for row in group.stations]


def build_snapshot(summary: OutageSummary) -> dict:
    """Publishable snapshot fields (wire names, no updatedAt)."""
    totals = summary.totals
    counts = summary.counts
    return {
        "affected": totals.affected,
        "total": totals.total,
        "healthy": totals.healthy,
        "pct": totals.pct,
        "subsOff": counts.subs_off,
        "subsOn": counts.subs_on,
        "subsTotal": counts.subs_total,
        "offPct": counts.off_pct,
    }
