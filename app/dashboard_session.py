"""Process-wide dashboard session for the HTTP API.

One DashboardState per server process, guarded by a lock because sync
FastAPI handlers run in a thread pool.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from adapters.station_csv import fetch_default_csv, import_station_csv, load_import_config
from app.config import settings
from core.dashboard_state import DashboardState, ImportResult

logger = logging.getLogger(__name__)

_state: Optional[DashboardState] = None
_lock = threading.Lock()


def _get_state() -> DashboardState:
    global _state
    if _state is None:
        _state = DashboardState(config=load_import_config())
    return _state


@contextmanager
def locked_state() -> Iterator[DashboardState]:
    with _lock:
        yield _get_state()


def get_dashboard() -> Iterator[DashboardState]:
    """FastAPI dependency that provides the locked dashboard state."""
    with locked_state() as state:
        yield state


def reset_dashboard():
    """Drop the current session (tests)."""
    global _state
    with _lock:
        _state = None


def load_default_csv(state: DashboardState) -> Optional[ImportResult]:
    """Import the configured default CSV; None when it cannot be found.

    Parse failures keep the previous state and are re-raised as ValueError.
    """
    text = fetch_default_csv(
        path=settings.DEFAULT_CSV_PATH,
        url=settings.REMOTE_CSV_URL or None,
        timeout=settings.SNAPSHOT_TIMEOUT,
    )
    if text is None:
        return None
    return import_station_csv(state, text)


def autoload_default_csv():
    """Load the default CSV at startup, logging instead of failing."""
    if not settings.AUTOLOAD_DEFAULT_CSV:
        return
    with locked_state() as state:
        try:
            result = load_default_csv(state)
        except ValueError as e:
            logger.warning(f"Default CSV could not be parsed: {e}")
            return
    if result is not None:
        logger.info(f"Default CSV loaded: {result.stations_loaded} stations")
