"""PipDesk — application configuration.

Loads .env variables into a typed config object.
Validates backend-specific variables on startup.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


STORAGE_BACKENDS = ("sqlite", "memory", "supabase")

_SUPABASE_VARS = [
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
]


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    db_path: str
    log_level: str
    api_port: int
    feed_tick_seconds: float
    feed_update_interval_seconds: float
    feed_latency_seconds: float
    default_account_currency: str
    default_leverage: float
    storage_backend: str  # "sqlite", "memory" or "supabase"
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    @property
    def supabase_rest_url(self) -> str:
        """Return the PostgREST base URL of the Supabase project."""
        return f"{(self.supabase_url or '').rstrip('/')}/rest/v1"

    @property
    def supabase_auth_url(self) -> str:
        """Return the GoTrue base URL of the Supabase project."""
        return f"{(self.supabase_url or '').rstrip('/')}/auth/v1"


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` when ``STORAGE_BACKEND`` is unknown, or with a
    message naming the missing variable when the Supabase backend is
    selected without its credentials.
    """
    load_dotenv(dotenv_path=env_path)

    backend = os.environ.get("STORAGE_BACKEND", "sqlite").lower()
    if backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"STORAGE_BACKEND must be one of {', '.join(STORAGE_BACKENDS)}, "
            f"got {backend!r}"
        )

    if backend == "supabase":
        missing = [v for v in _SUPABASE_VARS if not os.environ.get(v)]
        if missing:
            raise ValueError(
                f"Missing required environment variable(s): {', '.join(missing)}"
            )

    return Config(
        db_path=os.environ.get("PIPDESK_DB_PATH", "data/pipdesk.db"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=int(os.environ.get("API_PORT", "8080")),
        feed_tick_seconds=float(os.environ.get("FEED_TICK_SECONDS", "1.0")),
        feed_update_interval_seconds=float(
            os.environ.get("FEED_UPDATE_INTERVAL_SECONDS", "10.0")
        ),
        feed_latency_seconds=float(os.environ.get("FEED_LATENCY_SECONDS", "0.2")),
        default_account_currency=os.environ.get("DEFAULT_ACCOUNT_CURRENCY", "USD").upper(),
        default_leverage=float(os.environ.get("DEFAULT_LEVERAGE", "100")),
        storage_backend=backend,
        supabase_url=os.environ.get("SUPABASE_URL") or None,
        supabase_anon_key=os.environ.get("SUPABASE_ANON_KEY") or None,
    )
