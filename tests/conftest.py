"""Shared test fixtures for the outage dashboard tests.

Points Redis at a non-existent port so the status store uses its
in-process fallback, disables the startup CSV autoload, and provides a
FastAPI TestClient with a fresh dashboard session per test.
"""

import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

# Override settings before any app imports
os.environ["REDIS_URL"] = "redis://localhost:16379/0"
os.environ["AUTOLOAD_DEFAULT_CSV"] = "false"
os.environ["PUBLISH_RATE_LIMIT"] = "1000/minute"
os.environ.pop("VIEWER_ONLY", None)
os.environ.pop("REMOTE_CSV_URL", None)

from app.main import app  # noqa: E402
from app.dashboard_session import reset_dashboard  # noqa: E402
from app.snapshot_store import clear_snapshot  # noqa: E402
from core.outage_models import Station  # noqa: E402

@pytest.fixture()
def client():
    """FastAPI TestClient with an empty dashboard and status store."""
    from fastapi.testclient import TestClient

    reset_dashboard()
    clear_snapshot()
    with TestClient(app) as c:
        yield c
    reset_dashboard()
    clear_snapshot()


# ── Sample data fixtures ──

SAMPLE_CSV = (
    "id,feeder,name,consumers,isOut\n"
    "a,F1,Alpha,40,true\n"
    "b,F1,Bravo,60,false\n"
    "c,F1,Charlie,0,false\n"
    "d,F2,Delta,100,false\n"
)


@pytest.fixture()
def sample_csv() -> str:
    """Three stations on F1 (one out) and one on F2; 200 consumers."""
    return SAMPLE_CSV


@pytest.fixture()
def sample_stations() -> list[Station]:
    return [
        Station(id="a", feeder="F1", name="Alpha", consumers=40, is_out=True),
        Station(id="b", feeder="F1", name="Bravo", consumers=60),
        Station(id="c", feeder="F1", name="Charlie", consumers=0),
        Station(id="d", feeder="F2", name="Delta", consumers=100),
    ]
