"""Application configuration via environment variables."""

import os
from pathlib import Path
from typing import Optional


def _optional_bool(raw: Optional[str]) -> Optional[bool]:
    """'true'/'1'/'yes' -> True, 'false'/'0'/'no' -> False, unset -> None."""
    if raw is None or raw.strip() == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    PROJECT_ROOT: Path = Path(__file__).parent.parent
    DATA_DIR: Path = PROJECT_ROOT / "data"

    # Status store (Redis key-value, one fixed snapshot key)
    REDIS_URL: str = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
    SNAPSHOT_STORE_NAME: str = os.environ.get("SNAPSHOT_STORE_NAME", "status-store")
    PUBLISH_RATE_LIMIT: str = os.environ.get("PUBLISH_RATE_LIMIT", "30/minute")

    # Station data sources
    DEFAULT_CSV_PATH: Path = Path(
        os.environ.get("DEFAULT_CSV_PATH", str(DATA_DIR / "feeders_substations.csv"))
    )
    REMOTE_CSV_URL: str = os.environ.get("REMOTE_CSV_URL", "")
    AUTOLOAD_DEFAULT_CSV: bool = _optional_bool(
        os.environ.get("AUTOLOAD_DEFAULT_CSV")
    ) is not False

    # None: admin only with ?admin=1; True/False forces viewer/admin
    VIEWER_ONLY: Optional[bool] = _optional_bool(os.environ.get("VIEWER_ONLY"))

    # Remote status store used by the CLI
    STATUS_URL: str = os.environ.get("STATUS_URL", "http://localhost:8000")
    SNAPSHOT_TIMEOUT: int = int(os.environ.get("SNAPSHOT_TIMEOUT", "10"))

    # API settings
    API_TITLE: str = "Outage Impact Dashboard API"
    API_VERSION: str = "1.0.0"
    CORS_ORIGINS: list[str] = [
        o.strip()
        for o in os.environ.get("CORS_ORIGINS", "*").split(",")
        if o.strip()
    ]


settings = Settings()
