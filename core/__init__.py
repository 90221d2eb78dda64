"""
Outage impact aggregation core.

Modules:
  station_normalizer - Imported rows to canonical Station records
  outage_aggregator - Effective outage status and consumer rollups
  station_query - Search, filter, sort and pagination of station rows
  dashboard_state - Explicit session state (stations, overrides, view)
"""

from .outage_aggregator import aggregate, build_snapshot, flatten
from .station_normalizer import normalize_stations
from .station_query import query_rows
