from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # External people-data source
    apollo_api_key: str | None
    apollo_api_url: str
    apollo_rate_limit_per_minute: int
    rate_limit_mode: str  # wait | raise
    request_timeout_seconds: int
    source_name: str  # auto | apollo | mock

    # Batch pacing
    batch_group_size: int
    record_delay_seconds: float
    group_delay_seconds: float
    offline_record_delay_seconds: float
    offline_group_delay_seconds: float

    # Match scoring
    tier_exact_threshold: int
    tier_partial_threshold: int
    skip_sentinel_matching: bool

    # Ingestion
    max_upload_bytes: int
    allowed_upload_extensions: list[str]

    # Core/runtime
    db_path: str
    run_env: str
    log_level: str

    # Logging/tracing
    lookup_trace: bool = False
    lookup_log_path: str = "logs/lookups.jsonl"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    exact = int(os.getenv("TIER_EXACT_THRESHOLD", "4"))
    partial = int(os.getenv("TIER_PARTIAL_THRESHOLD", "2"))
    if not (0 <= partial <= exact <= 4):
        raise RuntimeError(
            f"Invalid tier thresholds: exact={exact}, partial={partial} (need 0 <= partial <= exact <= 4)"
        )
    rate_limit_mode = os.getenv("RATE_LIMIT_MODE", "wait").lower()
    if rate_limit_mode not in ("wait", "raise"):
        raise RuntimeError(f"RATE_LIMIT_MODE must be 'wait' or 'raise', got {rate_limit_mode!r}")
    extensions = os.getenv("ALLOWED_FILE_TYPES", ".xlsx,.csv")
    return Settings(
        apollo_api_key=os.getenv("APOLLO_API_KEY") or None,
        apollo_api_url=os.getenv("APOLLO_API_URL", "https://api.apollo.io").rstrip("/"),
        apollo_rate_limit_per_minute=int(os.getenv("APOLLO_API_RATE_LIMIT", "100")),
        rate_limit_mode=rate_limit_mode,
        request_timeout_seconds=int(os.getenv("REQUEST_TIMEOUT", "30")),
        source_name=os.getenv("PEOPLE_SOURCE", "auto").lower(),
        batch_group_size=max(1, int(os.getenv("BATCH_GROUP_SIZE", "5"))),
        record_delay_seconds=float(os.getenv("RECORD_DELAY_SECONDS", "2.0")),
        group_delay_seconds=float(os.getenv("GROUP_DELAY_SECONDS", "1.0")),
        offline_record_delay_seconds=float(os.getenv("OFFLINE_RECORD_DELAY_SECONDS", "0.0")),
        offline_group_delay_seconds=float(os.getenv("OFFLINE_GROUP_DELAY_SECONDS", "0.0")),
        tier_exact_threshold=exact,
        tier_partial_threshold=partial,
        skip_sentinel_matching=_as_bool(os.getenv("SKIP_SENTINEL_MATCHING"), default=True),
        max_upload_bytes=int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024))),
        allowed_upload_extensions=[
            ext.strip().lower() for ext in extensions.split(",") if ext.strip()
        ],
        db_path=os.getenv("DB_PATH", "enrichment.db"),
        run_env=os.getenv("RUN_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        lookup_trace=_as_bool(os.getenv("LOOKUP_TRACE")),
        lookup_log_path=os.getenv("LOOKUP_LOG_PATH", "logs/lookups.jsonl"),
    )
