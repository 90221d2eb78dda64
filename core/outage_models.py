"""
Station and aggregate types shared by the outage engine.

Station is the only stored record. Everything else here is derived on
each read by core.outage_aggregator and never persisted.
"""

from dataclasses import dataclass, field

UNASSIGNED_FEEDER = "Unassigned"


@dataclass
class Station:
    """One substation as held in the dashboard state."""

    id: str
    feeder: str
    name: str
    consumers: int
    is_out: bool = False


@dataclass(frozen=True)
class FlatRow:
    """A station paired with its effective outage status."""

    feeder: str
    station: Station
    eff_out: bool
    feeder_out: bool = False

    @property
    def name(self) -> str:
        return self.station.name

    @property
    def consumers(self) -> int:
        return self.station.consumers


@dataclass
class StationCounts:
    """Substation ON/OFF counts (not consumer weighted)."""

    subs_total: int = 0
    subs_off: int = 0
    subs_on: int = 0
    off_pct: float = 0.0


@dataclass
class Totals:
    total: int = 0
    affected: int = 0
    healthy: int = 0
    pct: float = 0.0


@dataclass
class FeederGroup:
    name: str
    feeder_out: bool = False
    stations: list[FlatRow] = field(default_factory=list)
    total: int = 0
    affected: int = 0
    healthy: int = 0
    pct: float = 0.0
    counts: StationCounts = field(default_factory=StationCounts)


@dataclass
class OutageSummary:
    """Output of aggregate(): feeder groups in name order plus rollups."""

    feeders: list[FeederGroup] = field(default_factory=list)
    totals: Totals = field(default_factory=Totals)
    counts: StationCounts = field(default_factory=StationCounts)

    def feeder(self, name: str):
        """Return the FeederGroup called ``name`` or None."""
        for group in self.feeders:
            if group.name == name:
                return group
        return None
