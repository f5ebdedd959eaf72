import argparse
import json
import sys
from pathlib import Path

import logging
from config.settings import get_settings
from db.connection import get_connection
from db import schema
from db.repos.batches_repo import SqliteBatchStore
from ports.repos import BatchListingPort, BatchStorePort
from models import BatchStateError, TIER_FILTERS
from pipelines.orchestrator import BatchOrchestrator
from pipelines.steps.analyze_batch import Pacing
from services.export import select_outcomes, to_csv
from services.ingestion import IngestionError, create_batch
from services.reporting import print_summary
from services.resolver import CandidateResolver
from services.scoring import MatchScorer
from sources.registry import default_source_name, get_source
from utils.logging_setup import init_logging
import sources  # noqa: F401  (registers built-in sources)


def _store(args) -> BatchListingPort:
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    return SqliteBatchStore(conn)


def _load_state(store: BatchStorePort, batch_id: str):
    state = store.get(batch_id)
    if state is None:
        print(f"Unknown batch: {batch_id}")
        sys.exit(1)
    return state


def _build_source(name: str):
    try:
        return get_source(name)
    except KeyError:
        print(f"Unknown source: {name}")
        sys.exit(2)
    except ValueError as e:
        # Apollo without a key
        print(str(e))
        sys.exit(2)


def cmd_bootstrap(args):
    conn = get_connection(args.db)
    schema.bootstrap(conn)
    print("Schema ready")


def cmd_upload(args):
    store = _store(args)
    path = Path(args.input)
    if not path.exists():
        print(f"File not found: {path}")
        sys.exit(1)
    try:
        state = create_batch(path.read_bytes(), path.name)
    except IngestionError as e:
        print(f"Upload failed: {e}")
        sys.exit(1)
    store.set(state.batch_id, state)
    print(f"Successfully parsed {len(state.entries)} employee records")
    print(f"Batch: {state.batch_id}")


def cmd_analyze(args):
    settings = get_settings()
    store = _store(args)
    state = _load_state(store, args.batch)

    source_name = args.source or default_source_name(settings)
    source = _build_source(source_name)
    if hasattr(source, "seed"):
        source.seed(entry.record for entry in state.entries)
    logging.info(f"Analyzing batch {args.batch} with source {source_name}", extra={"batch_id": args.batch, "provider": source_name})

    orchestrator = BatchOrchestrator(
        store,
        CandidateResolver(source, MatchScorer.from_settings(settings)),
        Pacing.from_settings(settings, live=getattr(source, "live", True)),
    )

    def _progress(cur, total, record_id, name):
        print(f"[{cur}/{total}] Resolving {record_id} name={name}")

    try:
        started = orchestrator.start_run(
            args.batch,
            on_progress=_progress if args.progress else None,
            resume=args.resume,
        )
    except BatchStateError as e:
        print(str(e))
        sys.exit(1)
    if not started:
        print(f"Batch {args.batch} is already being analyzed (use --resume if that run is gone)")
        return
    try:
        while orchestrator.is_running(args.batch):
            orchestrator.wait(args.batch, timeout=0.5)
    except KeyboardInterrupt:
        print("Stopping after the current record...")
        orchestrator.request_stop(args.batch)
        orchestrator.wait(args.batch)

    final = orchestrator.get_batch_state(args.batch)
    print_summary(final)
    if final.status.value == "failed":
        sys.exit(1)


def cmd_status(args):
    store = _store(args)
    state = _load_state(store, args.batch)
    out = {
        "batch_id": state.batch_id,
        "file_name": state.file_name,
        "status": state.status.value,
        "progress": state.progress,
        "stats": state.stats(),
        "error": state.error,
        "stop_requested": state.stop_requested,
    }
    print(json.dumps(out, indent=2, ensure_ascii=False))


def cmd_export(args):
    store = _store(args)
    state = _load_state(store, args.batch)
    outcomes = select_outcomes(state, args.tier)
    if not outcomes:
        label = "" if args.tier == "all" else f"{args.tier} "
        print(f"No {label}records found to download")
        sys.exit(1)
    content = to_csv(outcomes)
    if args.output:
        Path(args.output).write_text(content, encoding="utf-8")
        print(f"Wrote {len(outcomes)} records to {args.output}")
    else:
        sys.stdout.write(content + "\n")


def cmd_batches(args):
    store = _store(args)
    out = []
    for batch_id in store.list_ids():
        state = store.get(batch_id)
        if state is None:
            continue
        out.append({
            "batch_id": batch_id,
            "file_name": state.file_name,
            "status": state.status.value,
            "records": len(state.entries),
            "progress": state.progress,
        })
    print(json.dumps(out, indent=2, ensure_ascii=False))


def cmd_check_connection(args):
    settings = get_settings()
    source_name = args.source or default_source_name(settings)
    source = _build_source(source_name)
    report = source.check_connection()
    print(report.message)
    if report.mode == "live" and not report.success:
        sys.exit(1)


def main():
    settings = get_settings()
    init_logging(settings.log_level)
    parser = argparse.ArgumentParser(description="Employee enrichment CLI")
    parser.add_argument("--db", default=settings.db_path, help="Path to SQLite DB (default from settings)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_boot = sub.add_parser("bootstrap", help="Create tables and indexes")
    p_boot.set_defaults(func=cmd_bootstrap)

    p_up = sub.add_parser("upload", help="Parse an employee spreadsheet (.csv/.xlsx) into a new batch")
    p_up.add_argument("--input", required=True, help="Path to the CSV or XLSX file")
    p_up.set_defaults(func=cmd_upload)

    p_an = sub.add_parser("analyze", help="Enrich and match every pending record of a batch")
    p_an.add_argument("--batch", required=True, help="Batch id printed by upload")
    p_an.add_argument("--progress", action="store_true", help="Print progress for each record")
    p_an.add_argument("--source", default=None, help="People source name (default: apollo with a key, else mock)")
    p_an.add_argument("--resume", action="store_true", help="Take over a batch left analyzing by a run that died")
    p_an.set_defaults(func=cmd_analyze)

    p_st = sub.add_parser("status", help="Show run status and match statistics for a batch")
    p_st.add_argument("--batch", required=True)
    p_st.set_defaults(func=cmd_status)

    p_ex = sub.add_parser("export", help="Export resolved records as CSV")
    p_ex.add_argument("--batch", required=True)
    p_ex.add_argument("--tier", choices=list(TIER_FILTERS), default="all", help="Limit to one match tier (default: all)")
    p_ex.add_argument("--output", "-o", default=None, help="Write to file instead of stdout")
    p_ex.set_defaults(func=cmd_export)

    p_ls = sub.add_parser("batches", help="List uploaded batches")
    p_ls.set_defaults(func=cmd_batches)

    p_cc = sub.add_parser("check-connection", help="Test the people-data API connection")
    p_cc.add_argument("--source", default=None)
    p_cc.set_defaults(func=cmd_check_connection)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
