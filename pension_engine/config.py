"""
Engine configuration from environment variables.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings. Tax-year constants are not configurable here."""

    environment: str = "dev"
    port: int = 8080
    log_level: str = "INFO"
    storage_dir: str = ".pension_storage"
    session_tick_seconds: float = 30.0
    analytics_max_events: int = 100
    leads_max_entries: int = 500


def get_config() -> EngineConfig:
    """Get engine configuration from environment."""
    return EngineConfig(
        environment=os.environ.get("ENVIRONMENT", "dev"),
        port=int(os.environ.get("PORT", "8080")),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        storage_dir=os.environ.get("PENSION_STORAGE_DIR", ".pension_storage"),
        session_tick_seconds=float(os.environ.get("SESSION_TICK_SECONDS", "30")),
        analytics_max_events=int(os.environ.get("ANALYTICS_MAX_EVENTS", "100")),
        leads_max_entries=int(os.environ.get("LEADS_MAX_ENTRIES", "500")),
    )
