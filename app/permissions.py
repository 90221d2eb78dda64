"""Viewer/admin capability flag for the dashboard routes.

Viewers see the summary only. Admin mode is requested with ``?admin=1``
unless the VIEWER_ONLY setting is configured, which then decides for
every request. This is a presentation gate, not authentication.
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Query

from app.config import settings

logger = logging.getLogger(__name__)


def resolve_viewer_only(admin: Optional[str], viewer_only: Optional[bool] = None) -> bool:
    """True when the request runs in viewer mode."""
    if viewer_only is None:
        viewer_only = settings.VIEWER_ONLY
    if viewer_only is not None:
        return viewer_only
    return admin != "1"


def is_viewer(
    admin: Optional[str] = Query(None, description="Set to 1 for admin mode"),
) -> bool:
    """FastAPI dependency: whether the current request is viewer-only."""
    return resolve_viewer_only(admin)


def require_admin(viewer: bool = Depends(is_viewer)) -> bool:
    """FastAPI dependency that rejects viewer-mode requests."""
    if viewer:
        raise HTTPException(
            status_code=403,
            detail="Viewer mode: open the dashboard with ?admin=1 to make changes",
        )
    return True
