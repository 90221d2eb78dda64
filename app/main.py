"""
Outage Impact Dashboard API

FastAPI application serving the outage status store (last published
snapshot) and the dashboard session: CSV import/export, feeder and
substation toggles, and the paged substation view.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from app.config import settings
from app.dashboard_session import autoload_default_csv
from app.snapshot_store import get_redis
from app.api.v1.status_routes import router as status_router
from app.api.v1.dashboard_routes import router as dashboard_router

# Rate limiter (in-memory, no Redis needed)
limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Missing default CSV is not an error: the dashboard starts empty
    autoload_default_csv()
    yield


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=(
        "API for the outage impact dashboard: consumer-weighted outage "
        "totals per feeder and substation, plus the published status snapshot."
    ),
    lifespan=lifespan,
)

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS (status endpoints are read cross-origin by viewer pages)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["content-type", "authorization"],
)

# Include API routes
app.include_router(status_router)
app.include_router(dashboard_router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": settings.API_VERSION,
        "status_store": "redis" if get_redis() else "memory",
    }

