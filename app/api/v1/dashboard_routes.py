"""Dashboard session API routes.

Endpoints:
  GET  /api/v1/dashboard/summary               - Totals and station counts (viewer)
  GET  /api/v1/dashboard/feeders               - Feeder groups with rollups
  GET  /api/v1/dashboard/stations              - Filtered, sorted, paged stations
  POST /api/v1/dashboard/import                - Replace stations from CSV body
  POST /api/v1/dashboard/load-default          - Reload the default CSV
  POST /api/v1/dashboard/feeders/{name}/toggle - Flip feeder override
  POST /api/v1/dashboard/stations/{id}/toggle  - Flip station outage flag
  GET  /api/v1/dashboard/export                - Download stations.csv
  POST /api/v1/dashboard/publish               - Store the current snapshot

Everything except the summary requires admin mode (?admin=1).
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from adapters.station_csv import export_station_csv, parse_station_csv
from app.dashboard_session import get_dashboard, load_default_csv, locked_state
from app.permissions import is_viewer, require_admin
from app.schemas.outage_schemas import (
    DashboardSummaryResponse,
    FeederResponse,
    ImportResponse,
    SnapshotResponse,
    StationCountsResponse,
    StationPageResponse,
    StationRowResponse,
    ToggleResponse,
    TotalsResponse,
)
from app.snapshot_store import derive_snapshot, write_snapshot
from core.dashboard_state import DashboardState, ImportResult
from core.outage_models import FlatRow
from core.station_query import clamp_page_size

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


def _row_response(row: FlatRow) -> StationRowResponse:
    s = row.station
    return StationRowResponse(
        id=s.id,
        feeder=row.feeder,
        name=s.name,
        consumers=s.consumers,
        is_out=s.is_out,
        feeder_out=row.feeder_out,
        eff_out=row.eff_out,
    )


def _import_response(result: ImportResult) -> ImportResponse:
    return ImportResponse(**asdict(result))


def _totals(state: DashboardState) -> TotalsResponse:
    return TotalsResponse(**asdict(state.summary().totals))


@router.get("/summary", response_model=DashboardSummaryResponse)
def dashboard_summary(
    feeder: Optional[str] = Query(None, description="Feeder name for scoped counts"),
    viewer: bool = Depends(is_viewer),
    state: DashboardState = Depends(get_dashboard),
):
    """Consumer totals and substation ON/OFF counts. Available to viewers."""
    summary = state.summary()
    feeder_counts = state.feeder_counts(feeder) if feeder else None
    return DashboardSummaryResponse(
        totals=TotalsResponse(**asdict(summary.totals)),
        counts=StationCountsResponse(**asdict(summary.counts)),
        feeder=feeder if feeder_counts else None,
        feeder_counts=(
            StationCountsResponse(**asdict(feeder_counts)) if feeder_counts else None
        ),
        viewer_only=viewer,
    )


@router.get(
    "/feeders",
    response_model=list[FeederResponse],
    dependencies=[Depends(require_admin)],
)
def list_feeders(state: DashboardState = Depends(get_dashboard)):
    """Feeder groups sorted by name."""
    return [
        FeederResponse(
            name=g.name,
            feeder_out=g.feeder_out,
            total=g.total,
            affected=g.affected,
            healthy=g.healthy,
            pct=g.pct,
            counts=StationCountsResponse(**asdict(g.counts)),
        )
        for g in state.summary().feeders
    ]


@router.get(
    "/stations",
    response_model=StationPageResponse,
    dependencies=[Depends(require_admin)],
)
def list_stations(
    search: Optional[str] = Query(None, description="Substring of station or feeder name"),
    affected_only: Optional[bool] = Query(None),
    feeder: Optional[str] = Query(None, description="Feeder name or ALL"),
    page: Optional[int] = Query(None, description="1-indexed page"),
    page_size: Optional[str] = Query(None, description="25, 50, 100, 200 or all"),
    state: DashboardState = Depends(get_dashboard),
):
    """Paged station view.

    Omitted parameters keep the session's current view. Changing a filter
    or the page size returns to page 1; a page past the end resets to 1.
    """
    view = state.view
    if search is not None and search != view.search:
        view.set_search(search)
    if affected_only is not None and affected_only != view.affected_only:
        view.set_affected_only(affected_only)
    if feeder is not None and feeder != view.feeder:
        view.set_feeder(feeder)
    if page_size is not None and clamp_page_size(page_size) != view.page_size:
        view.set_page_size(page_size)
    if page is not None:
        view.go_to(page)

    result = state.query()
    return StationPageResponse(
        rows=[_row_response(r) for r in result.rows],
        page=result.page,
        page_size=result.page_size,
        total_rows=result.total_rows,
        total_pages=result.total_pages,
        start=result.start,
        end=result.end,
    )


def _import_text(text: str) -> ImportResult:
    # Blocks on the session lock, so it must run off the event loop
    parsed = parse_station_csv(text)
    with locked_state() as state:
        return state.import_frame(parsed.frame, parsed.warnings)


@router.post(
    "/import",
    response_model=ImportResponse,
    dependencies=[Depends(require_admin)],
)
async def import_stations(request: Request):
    """Replace all stations and feeder toggles with the CSV request body."""
    raw = await request.body()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded")

    try:
        result = await run_in_threadpool(_import_text, text)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _import_response(result)


@router.post(
    "/load-default",
    response_model=ImportResponse,
    dependencies=[Depends(require_admin)],
)
def reload_default(state: DashboardState = Depends(get_dashboard)):
    """Re-read the default CSV (local file or REMOTE_CSV_URL)."""
    try:
        result = load_default_csv(state)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Default CSV not found")
    return _import_response(result)


@router.post(
    "/feeders/{name:path}/toggle",
    response_model=ToggleResponse,
    dependencies=[Depends(require_admin)],
)
def toggle_feeder(name: str, state: DashboardState = Depends(get_dashboard)):
    """Flip a feeder between forced OFF and ON."""
    is_out = state.toggle_feeder(name)
    logger.info(f"Feeder {name} toggled {'OFF' if is_out else 'ON'}")
    return ToggleResponse(key=name, is_out=is_out, totals=_totals(state))


@router.post(
    "/stations/{station_id}/toggle",
    response_model=ToggleResponse,
    dependencies=[Depends(require_admin)],
)
def toggle_station(station_id: str, state: DashboardState = Depends(get_dashboard)):
    """Flip one station's own outage flag."""
    try:
        is_out = state.toggle_station(station_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Station '{station_id}' not found")
    return ToggleResponse(key=station_id, is_out=is_out, totals=_totals(state))


@router.get("/export", dependencies=[Depends(require_admin)])
def export_stations(state: DashboardState = Depends(get_dashboard)):
    """Current stations as CSV (id, feeder, name, consumers, isOut)."""
    return Response(
        content=export_station_csv(state.stations).encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="stations.csv"'},
    )


@router.post(
    "/publish",
    response_model=SnapshotResponse,
    dependencies=[Depends(require_admin)],
)
def publish_current(state: DashboardState = Depends(get_dashboard)):
    """Write the current aggregate snapshot to the status store."""
    snap = state.snapshot()
    payload = derive_snapshot(
        affected=snap["affected"],
        total=snap["total"],
        healthy=snap["healthy"],
        pct=snap["pct"],
        subs_off=snap["subsOff"],
        subs_on=snap["subsOn"],
        subs_total=snap["subsTotal"],
        off_pct=snap["offPct"],
    )
    if not write_snapshot(payload):
        raise HTTPException(status_code=503, detail="Status store unavailable")
    return payload
