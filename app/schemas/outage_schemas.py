"""Pydantic models for the status store and dashboard API."""

from typing import Optional, Union

from pydantic import BaseModel, Field

Number = Union[int, float]


class SnapshotResponse(BaseModel):
    affected: Number = 0
    total: Number = 0
    healthy: Number = 0
    pct: Number = 0
    subsOff: Number = 0
    subsOn: Number = 0
    subsTotal: Number = 0
    offPct: Number = 0
    updatedAt: Optional[str] = None


class SnapshotPublishRequest(BaseModel):
    """Publish body; every field optional, omitted ones are derived."""

    affected: Optional[Number] = None
    total: Optional[Number] = None
    healthy: Optional[Number] = None
    pct: Optional[Number] = None
    subsOff: Optional[Number] = None
    subsOn: Optional[Number] = None
    subsTotal: Optional[Number] = None
    offPct: Optional[Number] = None


class StationCountsResponse(BaseModel):
    subs_total: int
    subs_off: int
    subs_on: int
    off_pct: float


class TotalsResponse(BaseModel):
    total: int
    affected: int
    healthy: int
    pct: float


class DashboardSummaryResponse(BaseModel):
    totals: TotalsResponse
    counts: StationCountsResponse
    feeder: Optional[str] = None
    feeder_counts: Optional[StationCountsResponse] = None
    viewer_only: bool = True


class StationRowResponse(BaseModel):
    id: str
    feeder: str
    name: str
    consumers: int
    is_out: bool
    feeder_out: bool
    eff_out: bool


class FeederResponse(BaseModel):
    name: str
    feeder_out: bool
    total: int
    affected: int
    healthy: int
    pct: float
    counts: StationCountsResponse


class StationPageResponse(BaseModel):
    rows: list[StationRowResponse]
    page: int
    page_size: int
    total_rows: int
    total_pages: int
    start: int
    end: int


class ImportResponse(BaseModel):
    stations_loaded: int
    feeders_loaded: int
    rows_dropped: int
    warnings: list[str] = Field(default_factory=list)


class ToggleResponse(BaseModel):
    key: str
    is_out: bool
    totals: TotalsResponse
