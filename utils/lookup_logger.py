from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


def _ensure_parent_dir(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logging.debug(f"Could not create lookup log dir {path.parent}: {exc}")


def sha256_text(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    return hashlib.sha256(text.strip().lower().encode("utf-8")).hexdigest()


def log_lookup(
    *,
    caller: str,
    provider: str,
    operation: str,
    strategy: Optional[str] = None,
    identifier: Optional[str] = None,
    duration_ms: Optional[int] = None,
    status: str = "ok",
    error: Optional[str] = None,
    batch_id: Optional[str] = None,
) -> None:
    """Append a single JSON line describing an external lookup if tracing is enabled.

    The identifier (usually an email address) is stored only as a sha256 hash.
    Controlled by LOOKUP_TRACE / LOOKUP_LOG_PATH in config/settings.py
    """
    from config.settings import get_settings

    settings = get_settings()
    if not settings.lookup_trace:
        return

    log_path = Path(settings.lookup_log_path)
    _ensure_parent_dir(log_path)

    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "caller": caller,
        "provider": provider,
        "operation": operation,
        "strategy": strategy,
        "identifier_hash": sha256_text(identifier),
        "duration_ms": duration_ms,
        "status": status,
        "error": error,
    }
    if batch_id:
        payload["batch_id"] = batch_id

    try:
        with log_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False) + "\n")
    except OSError as exc:
        # Never break the run on logging failures
        logging.debug(f"Lookup trace write failed: {exc}")
