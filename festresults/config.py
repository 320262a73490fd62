"""Settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    feed_url: str = ""
    http_timeout: float = 10.0
    refresh_interval: float = 300.0  # seconds; 0 disables the periodic refresh
    store: str = "memory"            # "memory", "sqlite" or "supabase"
    sqlite_path: str = "program_status.db"
    supabase_url: str = ""
    supabase_key: str = ""
    status_table: str = "program_status"


def load_settings() -> Settings:
    return Settings(
        feed_url=os.getenv("FESTRESULTS_FEED_URL", ""),
        http_timeout=float(os.getenv("FESTRESULTS_HTTP_TIMEOUT", "10")),
        refresh_interval=float(os.getenv("FESTRESULTS_REFRESH_INTERVAL", "300")),
        store=os.getenv("FESTRESULTS_STORE", "memory").strip().lower(),
        sqlite_path=os.getenv("FESTRESULTS_SQLITE_PATH", "program_status.db"),
        supabase_url=os.getenv("SUPABASE_URL", ""),
        supabase_key=(
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_ANON_KEY")
            or ""
        ),
        status_table=os.getenv("FESTRESULTS_STATUS_TABLE", "program_status"),
    )
