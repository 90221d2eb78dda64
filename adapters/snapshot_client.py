"""
HTTP client for a remote outage status store.

Reads the last published snapshot and publishes new ones. Both calls are
single best-effort requests: no retry, failures are logged and reported
to the caller as None/False.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

STATUS_PATH = "/api/v1/status"

SNAPSHOT_FIELDS = [
    "affected", "total", "healthy", "pct",
    "subsOff", "subsOn", "subsTotal", "offPct",
]


def empty_snapshot() -> dict:
    """Snapshot shape returned when nothing was ever published."""
    data = {name: 0 for name in SNAPSHOT_FIELDS}
    data["updatedAt"] = None
    return data


class SnapshotClient:
    """Reads/publishes the aggregate snapshot at ``base_url``."""

    def __init__(
        self,
        base_url: str,
        user_agent: str = "outage-dashboard/1.0",
        timeout: int = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        self.timeout = timeout

    @property
    def status_url(self) -> str:
        return f"{self.base_url}{STATUS_PATH}"

    def fetch_snapshot(self) -> Optional[dict]:
        """GET the current snapshot; None if the store is unreachable.

        Missing fields are filled with the empty-snapshot defaults.
        """
        try:
            resp = self.session.get(
                self.status_url,
                timeout=self.timeout,
                headers={"Cache-Control": "no-store"},
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Snapshot fetch failed: {e}")
            return None
        except ValueError as e:
            logger.warning(f"Snapshot response is not JSON: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Unexpected snapshot payload: {data!r}")
            return None
        snapshot = empty_snapshot()
        snapshot.update({k: v for k, v in data.items() if k in snapshot})
        return snapshot

    def publish_snapshot(self, payload: dict) -> bool:
        """POST a (partial) snapshot. Returns True when the store accepted it."""
        body = {k: v for k, v in payload.items() if k in SNAPSHOT_FIELDS}
        try:
            resp = self.session.post(self.status_url, json=body, timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Snapshot publish failed: {e}")
            return False
        logger.info(
            f"Published snapshot: {body.get('affected', 0)}/{body.get('total', 0)} "
            f"consumers affected"
        )
        return True
