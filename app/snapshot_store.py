"""Redis-backed status store for the published outage snapshot.

Holds exactly one JSON blob under ``<SNAPSHOT_STORE_NAME>:current``.
Each publish overwrites it; there is no history.

Falls back to an in-process dict when Redis is unavailable, so a single
dev server still works without Redis.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Optional

import redis

from app.config import settings
from core.outage_aggregator import percent

logger = logging.getLogger(__name__)

SNAPSHOT_KEY = "current"

# Lazy-initialized Redis client (None if unavailable)
_redis_client: Optional[redis.Redis] = None
_redis_checked = False

# Used only while Redis is unavailable
_memory_store: dict[str, str] = {}


def get_redis() -> Optional[redis.Redis]:
    """Get the Redis client, or None if Redis is unavailable."""
    global _redis_client, _redis_checked
    if _redis_checked:
        return _redis_client
    _redis_checked = True
    try:
        client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
        _redis_client = client
        logger.info("Redis connected: %s", settings.REDIS_URL)
    except Exception as e:
        logger.warning("Redis unavailable, using in-process status store: %s", e)
        _redis_client = None
    return _redis_client


def store_key() -> str:
    return f"{settings.SNAPSHOT_STORE_NAME}:{SNAPSHOT_KEY}"


def fallback_snapshot() -> dict:
    """Response body when no snapshot has ever been published."""
    return {
        "affected": 0, "total": 0, "healthy": 0, "pct": 0,
        "subsOff": 0, "subsOn": 0, "subsTotal": 0, "offPct": 0,
        "updatedAt": None,
    }


def derive_snapshot(
    affected: Optional[float] = None,
    total: Optional[float] = None,
    healthy: Optional[float] = None,
    pct: Optional[float] = None,
    subs_off: Optional[float] = None,
    subs_on: Optional[float] = None,
    subs_total: Optional[float] = None,
    off_pct: Optional[float] = None,
    now: Optional[datetime] = None,
) -> dict:
    """Fill omitted snapshot fields from the provided ones.

    healthy = max(0, total - affected); pct and offPct use the same
    one-decimal rounding as the aggregation engine; subsTotal defaults to
    subsOff + subsOn. updatedAt is always stamped with ``now`` (UTC).
    """
    affected_v = affected if affected is not None else 0
    total_v = total if total is not None else 0
    subs_off_v = subs_off if subs_off is not None else 0
    subs_on_v = subs_on if subs_on is not None else 0
    subs_total_v = subs_total if subs_total is not None else subs_off_v + subs_on_v
    stamp = now or datetime.now(timezone.utc)

    return {
        "affected": affected_v,
        "total": total_v,
        "healthy": healthy if healthy is not None else max(0, total_v - affected_v),
        "pct": pct if pct is not None else percent(affected_v, total_v),
        "subsOff": subs_off_v,
        "subsOn": subs_on_v,
        "subsTotal": subs_total_v,
        "offPct": off_pct if off_pct is not None else percent(subs_off_v, subs_total_v),
        "updatedAt": stamp.isoformat(),
    }


def read_snapshot() -> Optional[dict]:
    """Return the stored snapshot, or None if nothing was published."""
    r = get_redis()
    raw = None
    if r:
        try:
            raw = r.get(store_key())
        except Exception as e:
            logger.warning("Status store read error: %s", e)
            return None
    else:
        raw = _memory_store.get(store_key())

    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.warning("Corrupt snapshot in status store: %s", e)
        return None


def write_snapshot(payload: dict) -> bool:
    """Overwrite the stored snapshot. Returns False if the write failed."""
    serialized = json.dumps(payload, default=str)
    r = get_redis()
    if r:
        try:
            r.set(store_key(), serialized)
        except Exception as e:
            logger.warning("Status store write error: %s", e)
            return False
    else:
        _memory_store[store_key()] = serialized
    logger.info(
        "Snapshot stored: %s/%s consumers affected (%s%%)",
        payload.get("affected"), payload.get("total"), payload.get("pct"),
    )
    return True


def clear_snapshot():
    """Remove the stored snapshot (tests and maintenance)."""
    r = get_redis()
    if r:
        try:
            r.delete(store_key())
        except Exception as e:
            logger.warning("Status store clear error: %s", e)
    _memory_store.pop(store_key(), None)
