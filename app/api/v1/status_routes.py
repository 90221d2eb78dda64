"""Status store API routes.

Endpoints:
  GET  /api/v1/status - Last published outage snapshot (zeros if none)
  POST /api/v1/status - Publish a (partial) snapshot; omitted fields derived
"""

import logging
import math

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings
from app.schemas.outage_schemas import SnapshotPublishRequest, SnapshotResponse
from app.snapshot_store import (
    derive_snapshot,
    fallback_snapshot,
    read_snapshot,
    write_snapshot,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["status"])

limiter = Limiter(key_func=get_remote_address)

NO_STORE = {"Cache-Control": "no-store"}


@router.get("/status", response_model=SnapshotResponse)
def get_status():
    """Return the last published snapshot, never cached by clients."""
    data = read_snapshot() or fallback_snapshot()
    return JSONResponse(content=data, headers=NO_STORE)


def parse_publish_body(body) -> SnapshotPublishRequest:
    """Validate a publish body.

    Raises:
        ValueError: body is not an object or holds non-finite/non-numeric values.
    """
    if not isinstance(body, dict):
        raise ValueError("Snapshot body must be a JSON object")
    try:
        req = SnapshotPublishRequest(**body)
    except ValidationError as e:
        raise ValueError(str(e)) from e
    for name, value in req.model_dump().items():
        if value is None:
            continue
        try:
            finite = math.isfinite(value)
        except OverflowError:
            finite = False
        if not finite:
            raise ValueError(f"{name} must be finite")
    return req


@router.post("/status", response_class=PlainTextResponse)
@limiter.limit(settings.PUBLISH_RATE_LIMIT)
async def publish_status(request: Request):
    """Publish a snapshot. Malformed bodies are rejected with 400."""
    try:
        body = await request.json()
        req = parse_publish_body(body)
    except ValueError as e:
        logger.warning(f"Rejected snapshot publish: {e}")
        return PlainTextResponse("Bad Request", status_code=400)

    payload = derive_snapshot(
        affected=req.affected,
        total=req.total,
        healthy=req.healthy,
        pct=req.pct,
        subs_off=req.subsOff,
        subs_on=req.subsOn,
        subs_total=req.subsTotal,
        off_pct=req.offPct,
    )
    if not write_snapshot(payload):
        raise HTTPException(status_code=503, detail="Status store unavailable")
    return PlainTextResponse("OK")
