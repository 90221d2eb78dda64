"""
Query/view layer over the flattened station rows.

Applies, in order: feeder scope, text search, affected-only filter, a
deterministic sort, then page-size clamping and 1-indexed pagination.

A page past the end resets to page 1 (it is not clamped to the last
page). Dashboards rely on this when a filter shrinks the result set.
"""

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from .outage_models import FlatRow

ALL_FEEDERS = "ALL"

PAGE_SIZE_PRESETS = [25, 50, 100, 200]
PAGE_SIZE_ALL = 10_000
DEFAULT_PAGE_SIZE = 50

PageSize = Union[int, str, None]


def clamp_page_size(page_size: PageSize) -> int:
    """Map a requested page size onto the preset list.

    "all", None and 0 select PAGE_SIZE_ALL. Other values round up to the
    next preset; anything above the largest preset becomes PAGE_SIZE_ALL.
    """
    if page_size is None:
        return PAGE_SIZE_ALL
    if isinstance(page_size, str):
        text = page_size.strip().lower()
        if text in ("", "all"):
            return PAGE_SIZE_ALL
        try:
            page_size = int(text)
        except ValueError:
            return DEFAULT_PAGE_SIZE
    if page_size <= 0 or page_size >= PAGE_SIZE_ALL:
        return PAGE_SIZE_ALL
    for preset in PAGE_SIZE_PRESETS:
        if page_size <= preset:
            return preset
    return PAGE_SIZE_ALL


def total_pages_for(total_rows: int, page_size: int) -> int:
    return max(1, math.ceil(total_rows / page_size))


def resolve_page(page: int, total_pages: int) -> int:
    """Out-of-range pages go back to 1, never to the last page."""
    if page < 1 or page > total_pages:
        return 1
    return page


def row_sort_key(row: FlatRow) -> tuple[str, str, str]:
    return (row.name.casefold(), row.feeder.casefold(), row.station.id)


def filter_rows(
    rows: Iterable[FlatRow],
    needle: str = "",
    affected_only: bool = False,
    feeder: Optional[str] = ALL_FEEDERS,
) -> list[FlatRow]:
    """Scope, search and affected filter, then sort by station name."""
    result = list(rows)
    if feeder and feeder != ALL_FEEDERS:
        result = [r for r in result if r.feeder == feeder]

    text = (needle or "").strip().casefold()
    if text:
        result = [
            r for r in result
            if text in r.name.casefold() or text in r.feeder.casefold()
        ]

    if affected_only:
        result = [r for r in result if r.eff_out]

    return sorted(result, key=row_sort_key)


@dataclass
class StationPage:
    rows: list[FlatRow]
    page: int
    page_size: int
    total_rows: int
    total_pages: int

    @property
    def start(self) -> int:
        """1-based index of the first row shown (0 when empty)."""
        if self.total_rows == 0:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def end(self) -> int:
        return min(self.page * self.page_size, self.total_rows)


def paginate(rows: list[FlatRow], page: int = 1, page_size: PageSize = DEFAULT_PAGE_SIZE) -> StationPage:
    size = clamp_page_size(page_size)
    total_rows = len(rows)
    pages = total_pages_for(total_rows, size)
    current = resolve_page(page, pages)
    offset = (current - 1) * size
    return StationPage(
        rows=rows[offset:offset + size],
        page=current,
        page_size=size,
        total_rows=total_rows,
        total_pages=pages,
    )


def query_rows(
    rows: Iterable[FlatRow],
    needle: str = "",
    affected_only: bool = False,
    feeder: Optional[str] = ALL_FEEDERS,
    page: int = 1,
    page_size: PageSize = DEFAULT_PAGE_SIZE,
) -> StationPage:
    """Filter, sort and page the flattened rows in one call."""
    filtered = filter_rows(rows, needle=needle, affected_only=affected_only, feeder=feeder)
    return paginate(filtered, page=page, page_size=page_size)


@dataclass
class ViewState:
    """Search/filter/pagination state of one dashboard view.

    Changing a filter or the page size jumps back to page 1. The page is
    also reset after a query whenever it fell outside the result set.
    """

    search: str = ""
    affected_only: bool = False
    feeder: str = ALL_FEEDERS
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_pages: int = field(default=1, repr=False)

    def set_search(self, needle: str):
        self.search = needle or ""
        self.page = 1

    def set_affected_only(self, enabled: bool):
        self.affected_only = bool(enabled)
        self.page = 1

    def set_feeder(self, feeder: Optional[str]):
        self.feeder = feeder or ALL_FEEDERS
        self.page = 1

    def set_page_size(self, page_size: PageSize):
        self.page_size = clamp_page_size(page_size)
        self.page = 1

    def clear_search(self):
        self.search = ""
        self.affected_only = False
        self.page = 1

    def go_to(self, page: int):
        self.page = page

    def first_page(self):
        self.page = 1

    def last_page(self):
        self.page = self.total_pages

    def next_page(self):
        self.page = min(self.total_pages, self.page + 1)

    def prev_page(self):
        self.page = max(1, self.page - 1)

    def apply(self, rows: Iterable[FlatRow]) -> StationPage:
        """Run the query and store the effective page back on the state."""
        result = query_rows(
            rows,
            needle=self.search,
            affected_only=self.affected_only,
            feeder=self.feeder,
            page=self.page,
            page_size=self.page_size,
        )
        self.page = result.page
        self.page_size = result.page_size
        self.total_pages = result.total_pages
        return result


def toggle(flags: dict, key) -> bool:
    """Flip flags[key] (missing reads as False) and return the new value."""
    flags[key] = not flags.get(key, False)
    return flags[key]
