"""
Dashboard state store.

Holds the Station set, the feeder override map and the view state as one
explicit object. All derived numbers come from core.outage_aggregator on
each call. Imports are atomic: the new station set and override map are
installed together, or (on a parse failure) nothing changes.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

import pandas as pd

from .outage_aggregator import aggregate, build_snapshot, flatten
from .outage_models import OutageSummary, Station, StationCounts
from .station_normalizer import (
    StationImportConfig,
    normalize_station_frame,
    normalize_stations,
)
from .station_query import ALL_FEEDERS, StationPage, ViewState, toggle

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    stations_loaded: int = 0
    feeders_loaded: int = 0
    rows_dropped: int = 0
    warnings: list[str] = field(default_factory=list)


class DashboardState:
    """Station set + feeder overrides + view state for one session."""

    def __init__(self, config: Optional[StationImportConfig] = None):
        self.config = config or StationImportConfig()
        self.stations: list[Station] = []
        self.feeder_out: dict[str, bool] = {}
        self.view = ViewState()

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_rows(self, rows: Iterable[Mapping[str, Any]]) -> ImportResult:
        """Replace every station and feeder toggle with the given rows."""
        normalized = normalize_stations(rows, self.config)
        return self._install(normalized)

    def import_frame(
        self, frame: pd.DataFrame, warnings: Optional[list[str]] = None
    ) -> ImportResult:
        """Import an already-parsed table; ``warnings`` are echoed on the result."""
        normalized = normalize_station_frame(frame, self.config)
        result = self._install(normalized)
        result.warnings = list(warnings or [])
        return result

    def _install(self, normalized) -> ImportResult:
        self.stations = normalized.stations
        self.feeder_out = normalized.feeder_out
        self.view.set_feeder(ALL_FEEDERS)
        logger.info(
            f"Imported {len(self.stations)} stations on {len(self.feeder_out)} feeders "
            f"({normalized.rows_dropped} rows dropped)"
        )
        return ImportResult(
            stations_loaded=len(self.stations),
            feeders_loaded=len(self.feeder_out),
            rows_dropped=normalized.rows_dropped,
        )

    # ------------------------------------------------------------------
    # Toggles
    # ------------------------------------------------------------------

    def toggle_feeder(self, name: str) -> bool:
        """Flip the feeder override; returns True when now forced OFF."""
        return toggle(self.feeder_out, name)

    def toggle_station(self, station_id: str) -> bool:
        """Flip the station's own outage flag.

        Raises:
            KeyError: no station has this id.
        """
        matches = [s for s in self.stations if s.id == station_id]
        if not matches:
            raise KeyError(station_id)
        for station in matches:
            station.is_out = not station.is_out
        return matches[0].is_out

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def summary(self) -> OutageSummary:
        return aggregate(self.stations, self.feeder_out)

    def feeder_names(self) -> list[str]:
        return [g.name for g in self.summary().feeders]

    def feeder_counts(self, name: str) -> Optional[StationCounts]:
        """Station counts for one feeder, None for ALL or unknown feeders."""
        if not name or name == ALL_FEEDERS:
            return None
        group = self.summary().feeder(name)
        return group.counts if group else None

    def query(self) -> StationPage:
        return self.view.apply(flatten(self.summary()))

    def snapshot(self) -> dict:
        return build_snapshot(self.summary())
