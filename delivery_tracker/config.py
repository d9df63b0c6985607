"""Runtime configuration for the delivery tracker.

Everything here is a module constant read from the environment at import
time. Tests override values by passing explicit arguments to the services
(or monkeypatching these names) rather than mutating the environment.
"""
from __future__ import annotations

import os


def _env_bool(name: str, default: bool) -> bool:
	raw = os.getenv(name)
	if raw is None or not raw.strip():
		return default
	return raw.strip().lower() in {"1", "true", "yes", "on"}


# ------------------------------- Order API -------------------------------- #
# Base URL of the remote order/site API (HDPhotoHub brand endpoint).
ORDER_API_BASE_URL: str = os.getenv("ORDER_API_BASE_URL", "https://sites.davidallenproductions.com/api/v1").rstrip("/")
# Sent as the `api_key` header. No default: an unset key simply yields 401s
# from the remote side, which surface as failed refresh cycles.
ORDER_API_KEY: str | None = os.getenv("ORDER_API_KEY") or os.getenv("HDPH_API_KEY") or None

ORDER_FETCH_TIMEOUT: float = float(os.getenv("ORDER_FETCH_TIMEOUT", "60"))
SITE_FETCH_TIMEOUT: float = float(os.getenv("SITE_FETCH_TIMEOUT", "30"))
# Upper bound on concurrent site lookups inside one refresh cycle.
SITE_LOOKUP_CONCURRENCY: int = max(1, int(os.getenv("SITE_LOOKUP_CONCURRENCY", "5")))

# ------------------------------- Snapshot --------------------------------- #
SNAPSHOT_PATH: str = os.getenv("SNAPSHOT_PATH", "jobs.json")

# ------------------------------ Reconciliation ---------------------------- #
REFRESH_INTERVAL_SECONDS: float = float(os.getenv("REFRESH_INTERVAL_SECONDS", str(15 * 60)))
REFRESH_ON_STARTUP: bool = _env_bool("REFRESH_ON_STARTUP", True)
# IANA zone name used for the yesterday/today window. Unset -> system local.
TRACKER_TIMEZONE: str | None = os.getenv("TRACKER_TIMEZONE") or None

# ------------------------------- Transport -------------------------------- #
PUBLIC_DIR: str = os.getenv("PUBLIC_DIR", "public")
CORS_ORIGINS: list[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
PORT: int = int(os.getenv("PORT", "3000"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str | None = os.getenv("LOG_FILE") or None

__all__ = [
	"ORDER_API_BASE_URL",
	"ORDER_API_KEY",
	"ORDER_FETCH_TIMEOUT",
	"SITE_FETCH_TIMEOUT",
	"SITE_LOOKUP_CONCURRENCY",
	"SNAPSHOT_PATH",
	"REFRESH_INTERVAL_SECONDS",
	"REFRESH_ON_STARTUP",
	"TRACKER_TIMEZONE",
	"PUBLIC_DIR",
	"CORS_ORIGINS",
	"PORT",
	"LOG_LEVEL",
	"LOG_FILE",
]
