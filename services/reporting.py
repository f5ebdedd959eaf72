from __future__ import annotations

import json
from collections import Counter
from pathlib import Path
from typing import Dict

from models import BatchState


def _lookup_usage_for_batch(batch_id: str) -> Dict[str, Dict[str, int]]:
    """Aggregate traced lookups from the lookup log for the given batch.

    Returns dict like { 'email': {'found': N, 'not_found': M}, 'name_domain': {...} }
    """
    from config.settings import get_settings

    result: Dict[str, Dict[str, int]] = {}
    settings = get_settings()
    log_path = Path(settings.lookup_log_path)
    if not settings.lookup_trace or not log_path.exists():
        return result
    counters: Dict[str, Counter] = {}
    with log_path.open("r", encoding="utf-8") as f:
        for line in f:
            try:
                rec = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(rec, dict) or rec.get("batch_id") != batch_id:
                continue
            strategy = rec.get("strategy") or "unknown"
            counters.setdefault(strategy, Counter())[rec.get("status") or "unknown"] += 1
    for strategy, counter in counters.items():
        result[strategy] = dict(counter)
    return result


def print_summary(state: BatchState) -> None:
    """Print summary of a batch analysis."""
    stats = state.stats()

    print("\n" + "="*60)
    print("EMPLOYEE ENRICHMENT - SUMMARY")
    print("="*60)
    print(f"Batch: {state.batch_id}")
    print(f"File: {state.file_name or 'N/A'}")
    print(f"Status: {state.status.value}")
    print(f"Uploaded At: {state.uploaded_at.isoformat()}")
    if state.started_at:
        print(f"Started At: {state.started_at.isoformat()}")
    if state.completed_at:
        print(f"Completed At: {state.completed_at.isoformat()}")
    print()
    print("Match Statistics:")
    print(f"  Total Records: {stats['total']}")
    print(f"  Processed: {stats['processed']} ({state.progress}%)")
    print(f"  Pending: {stats['pending']}")
    print(f"  Exact Matches: {stats['exact']}")
    print(f"  Partial Matches: {stats['partial']}")
    print(f"  Invalid / No Match: {stats['invalid']}")
    if stats["not_processed"]:
        print(f"  Not Processed: {stats['not_processed']}")
    if state.error:
        print()
        print(f"Error: {state.error}")
    usage = _lookup_usage_for_batch(state.batch_id)
    if usage:
        print("Lookups:")
        for strategy, counts in usage.items():
            parts = ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
            print(f"  {strategy}: {parts}")
    print("="*60)
