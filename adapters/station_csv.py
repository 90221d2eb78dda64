"""
Station CSV reader/writer.

Parses CSV text (header row required) into string-valued rows with
pandas, collecting malformed lines as warnings instead of failing the
whole import. Also fetches the default CSV from a local path or URL and
serializes stations back to the canonical export columns. This is the
only place the dashboard touches CSV text; core.dashboard_state works on
parsed frames.
"""

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd
import requests

from core.outage_models import Station
from core.station_normalizer import StationImportConfig

logger = logging.getLogger(__name__)

CONFIGS_DIR = Path(__file__).parent / "configs"
DEFAULT_IMPORT_CONFIG = CONFIGS_DIR / "station_import.yaml"

EXPORT_COLUMNS = ["id", "feeder", "name", "consumers", "isOut"]

# Number of parse warnings echoed to the log per import
MAX_LOGGED_WARNINGS = 3


@dataclass
class ParsedCsv:
    frame: pd.DataFrame
    warnings: list[str] = field(default_factory=list)


def load_import_config(path: Optional[Path] = None) -> StationImportConfig:
    """Load column aliases from YAML, falling back to built-in defaults."""
    path = path or DEFAULT_IMPORT_CONFIG
    if not path.exists():
        logger.debug(f"No import config at {path}, using built-in aliases")
        return StationImportConfig()
    return StationImportConfig.from_yaml(path)


def parse_station_csv(text: str) -> ParsedCsv:
    """Parse CSV text into a DataFrame of raw string cells.

    Lines with more fields than the header are skipped and reported in
    ParsedCsv.warnings. Empty text yields an empty frame.

    Raises:
        ValueError: if pandas cannot parse the document at all.
    """
    text = (text or "").lstrip("\ufeff")
    warnings: list[str] = []

    def _on_bad_line(fields: list[str]):
        warnings.append(f"Skipped malformed line: {','.join(fields)}")
        return None

    if not text.strip():
        return ParsedCsv(frame=pd.DataFrame())

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            engine="python",
            on_bad_lines=_on_bad_line,
        )
    except pd.errors.EmptyDataError:
        return ParsedCsv(frame=pd.DataFrame(), warnings=warnings)
    except pd.errors.ParserError as e:
        raise ValueError(f"Unparseable station CSV: {e}") from e

    if warnings:
        logger.warning(
            f"CSV parse warnings ({len(warnings)}): {warnings[:MAX_LOGGED_WARNINGS]}"
        )
    return ParsedCsv(frame=df, warnings=warnings)


def fetch_default_csv(
    path: Optional[Path] = None,
    url: Optional[str] = None,
    timeout: int = 30,
) -> Optional[str]:
    """Read the default station CSV; None when the source is missing.

    A configured URL takes precedence over the local path.
    """
    if url:
        try:
            resp = requests.get(url, timeout=timeout, headers={"Cache-Control": "no-store"})
            resp.raise_for_status()
            return resp.text
        except requests.exceptions.RequestException as e:
            logger.warning(f"Default CSV not found at {url}: {e}")
            return None

    if path is None or not path.exists():
        logger.warning(f"Default CSV not found at {path}")
        return None
    return path.read_text(encoding="utf-8")


def stations_to_frame(stations: Iterable[Station]) -> pd.DataFrame:
    records = [
        {
            "id": s.id,
            "feeder": s.feeder,
            "name": s.name,
            "consumers": s.consumers,
            "isOut": "true" if s.is_out else "false",
        }
        for s in stations
    ]
    return pd.DataFrame(records, columns=EXPORT_COLUMNS)


def export_station_csv(stations: Iterable[Station]) -> str:
    """Serialize stations to CSV text with the canonical export columns."""
    return stations_to_frame(stations).to_csv(index=False)


def import_station_csv(state, text: str):
    """Parse CSV text and install it into a DashboardState.

    Parsing happens before the state is touched, so an unparseable
    document leaves the previous stations and toggles in place.

    Raises:
        ValueError: if the document cannot be parsed.
    """
    parsed = parse_station_csv(text)
    return state.import_frame(parsed.frame, parsed.warnings)
