"""
Station record normalization.

Transforms loosely-typed imported rows (CSV dicts, JSON objects, or a
DataFrame) into canonical Station records. Handles column aliases
(feeder/bay, name/station/substation, ...), numeric and boolean coercion,
id assignment, and builds the initial feeder override map from the
optional feeder_isOut column.

Rows with an empty name or a non-numeric consumer count are dropped, not
rejected; an empty input yields an empty result.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import pandas as pd
import yaml

from .outage_models import UNASSIGNED_FEEDER, Station

logger = logging.getLogger(__name__)

# Column fallbacks, first non-missing value wins
FEEDER_COLUMNS = ["feeder", "bay", "feeder_name"]
NAME_COLUMNS = ["name", "station", "substation"]
CONSUMER_COLUMNS = ["consumers", "consumer_count", "count"]
OUTAGE_COLUMNS = ["isOut", "outage"]
FEEDER_OUTAGE_COLUMNS = ["feeder_isOut"]
ID_COLUMNS = ["id"]


@dataclass
class StationImportConfig:
    """Column alias lists used when reading imported rows."""

    feeder_columns: list[str] = field(default_factory=lambda: list(FEEDER_COLUMNS))
    name_columns: list[str] = field(default_factory=lambda: list(NAME_COLUMNS))
    consumer_columns: list[str] = field(default_factory=lambda: list(CONSUMER_COLUMNS))
    outage_columns: list[str] = field(default_factory=lambda: list(OUTAGE_COLUMNS))
    feeder_outage_columns: list[str] = field(
        default_factory=lambda: list(FEEDER_OUTAGE_COLUMNS)
    )
    id_columns: list[str] = field(default_factory=lambda: list(ID_COLUMNS))
    default_feeder: str = UNASSIGNED_FEEDER

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "StationImportConfig":
        """Load config from a YAML file."""
        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}
        valid_fields = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in valid_fields})


@dataclass
class NormalizedImport:
    stations: list[Station] = field(default_factory=list)
    feeder_out: dict[str, bool] = field(default_factory=dict)
    rows_read: int = 0
    rows_dropped: int = 0


def is_missing(value: Any) -> bool:
    """True for absent-equivalent cell values: None, NaN, NA and ''."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def first_present(row: Mapping[str, Any], columns: Iterable[str], default: Any = None) -> Any:
    for col in columns:
        value = row.get(col)
        if not is_missing(value):
            return value
    return default


def coerce_flag(value: Any) -> bool:
    """Case-insensitive string test: true iff it starts with 't'.

    "true", "T", "TRUE" and True are true; "1", 1, "yes" are false.
    """
    if is_missing(value):
        return False
    return str(value).strip().lower().startswith("t")


def coerce_consumers(value: Any) -> Optional[int]:
    """Numeric coercion; None for non-finite, non-numeric or negative."""
    if isinstance(value, bool):
        number = float(value)
    elif isinstance(value, str) and "_" in value:
        # digit separators are not numbers in the source data
        return None
    else:
        try:
            number = float(str(value).strip()) if isinstance(value, str) else float(value)
        except (TypeError, ValueError, OverflowError):
            return None
    if not math.isfinite(number) or number < 0:
        return None
    return int(math.floor(number + 0.5))


def _text(value: Any) -> str:
    return "" if is_missing(value) else str(value).strip()


def normalize_station(
    row: Mapping[str, Any],
    config: Optional[StationImportConfig] = None,
) -> Optional[Station]:
    """Build one Station from a raw row, or None if the row is dropped."""
    config = config or StationImportConfig()

    name = _text(first_present(row, config.name_columns, ""))
    if not name:
        return None

    consumers = coerce_consumers(first_present(row, config.consumer_columns, 0))
    if consumers is None:
        return None

    feeder = _text(first_present(row, config.feeder_columns, config.default_feeder))
    station_id = _text(first_present(row, config.id_columns, ""))

    return Station(
        id=station_id or uuid.uuid4().hex,
        feeder=feeder or config.default_feeder,
        name=name,
        consumers=consumers,
        is_out=coerce_flag(first_present(row, config.outage_columns, "false")),
    )


def normalize_stations(
    rows: Iterable[Mapping[str, Any]],
    config: Optional[StationImportConfig] = None,
) -> NormalizedImport:
    """Normalize an ordered row set into Stations plus initial feeder overrides.

    Args:
        rows: Raw row mappings in input order.
        config: Column alias config. Default: built-in alias lists.

    Returns:
        NormalizedImport. Every kept station's feeder gets an override
        entry; when rows of one feeder disagree, the last one wins.
    """
    config = config or StationImportConfig()
    result = NormalizedImport()

    for row in rows:
        result.rows_read += 1
        station = normalize_station(row, config)
        if station is None:
            result.rows_dropped += 1
            continue
        result.stations.append(station)
        result.feeder_out[station.feeder] = coerce_flag(
            first_present(row, config.feeder_outage_columns, "false")
        )

    if result.rows_dropped:
        logger.warning(
            f"Dropped {result.rows_dropped}/{result.rows_read} rows "
            f"with empty name or non-numeric consumers"
        )
    logger.info(
        f"Normalized {len(result.stations)} stations on "
        f"{len(result.feeder_out)} feeders"
    )
    return result


def normalize_station_frame(
    df: pd.DataFrame,
    config: Optional[StationImportConfig] = None,
) -> NormalizedImport:
    """DataFrame entry point; columns are read as row dict keys."""
    if df.empty:
        return NormalizedImport()
    return normalize_stations(df.to_dict(orient="records"), config)
