"""
run_visibility.py: process a query file end-to-end without the HTTP server

Runs the whole pipeline in one go:
  1. Create tables in the configured database
  2. Load the query file (.txt or .csv)
  3. Show which platforms have credentials
  4. Process every query (sequentially, throttled)
  5. Print per-query results and the KPI summary

Usage:
    python run_visibility.py queries.txt
    python run_visibility.py queries.csv --platform ChatGPT --platform Claude
"""

import argparse
import asyncio
import sys
from pathlib import Path

from ai_visibility.core.config import settings, validate_settings
from ai_visibility.core.logging import setup_logging
from ai_visibility.db.session import async_session_factory, engine, init_db
from ai_visibility.ingestion.file_reader import read_query_file
from ai_visibility.schemas.query import Platform, Query
from ai_visibility.services.metrics_service import MetricsService
from ai_visibility.services.processing_service import ProcessingService
from ai_visibility.services.query_processor import QueryProcessor
from ai_visibility.storage.config_store import ConfigStore
from ai_visibility.storage.crawl_store import CrawlStore
from ai_visibility.storage.kv import KeyValueStore
from ai_visibility.storage.result_store import ResultStore
from ai_visibility.storage.snapshot_store import SnapshotStore


def _banner(title: str) -> None:
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


async def _run(path: Path, platforms: list[Platform] | None) -> int:
    await init_db()

    kv = KeyValueStore(async_session_factory)
    config_store = ConfigStore(kv, settings)
    result_store = ResultStore(kv)
    crawl_store = CrawlStore(kv, settings.max_crawls)
    snapshot_store = SnapshotStore(kv, settings.max_snapshots)

    # ── Step 1: Queries ─────────────────────────────────────
    _banner(f"Step 1: Queries from {path.name}")
    parsed = read_query_file(path.name, path.read_bytes())
    queries = [Query(id=q.id, text=q.text) for q in parsed.queries]
    for q in queries:
        print(f"    [{q.id}] {q.text[:70]}")
    if not queries:
        print("  ✗ No queries found")
        return 1

    # ── Step 2: Platforms ───────────────────────────────────
    _banner("Step 2: Platforms")
    config = await config_store.load()
    configured = config.configured_platforms()
    for platform in Platform:
        mark = "✓ configured" if platform in configured else "✗ missing key"
        print(f"  {platform.value:11s} {mark}  (model: {config.model_for(platform)})")
    active = platforms or configured
    if not active:
        print("\n  ❌ No API keys configured. Set OPENAI_API_KEY, ANTHROPIC_API_KEY, ...")
        return 1

    # ── Step 3: Processing ──────────────────────────────────
    _banner("Step 3: Processing")
    print(f"  {len(queries)} queries × {len(active)} platforms, one call at a time")

    def progress(done: int, total: int) -> None:
        print(f"  ... {done}/{total} queries done")

    service = ProcessingService(
        QueryProcessor(config_store, settings), config_store, result_store, crawl_store, snapshot_store
    )
    run = await service.run(queries, platforms=platforms, on_progress=progress)

    # ── Step 4: Results ─────────────────────────────────────
    _banner("Step 4: Results")
    for processed in run.processed:
        print(f"  [{processed.status.value:9s}] {processed.text[:55]}")
        for r in processed.results:
            position = r.position if r.position is not None else "-"
            competitors = ", ".join(r.competitor_mentions) or "-"
            print(f"      {r.platform.value:11s} mentioned={r.mentioned!s:5s} pos={position}  competitors={competitors}")
        if processed.error:
            print(f"      error: {processed.error}")

    if run.error:
        print(f"\n  ❌ {run.error}")
        return 1

    kpis = await MetricsService(config_store, result_store, crawl_store, snapshot_store).kpi_data()
    _banner("Summary")
    print(f"  Crawl:            {run.crawl_id}")
    print(f"  Results:          {run.total_results}")
    for kpi in (kpis.overall_visibility, kpis.total_mentions, kpis.avg_sentiment, kpis.competitor_rank):
        print(f"  {kpi.label + ':':28s} {kpi.value}  ({kpi.description})")
    return 0


async def main(path: Path, platforms: list[Platform] | None) -> int:
    validate_settings()
    try:
        return await _run(path, platforms)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Track brand visibility for a query file")
    parser.add_argument("file", type=Path, help="Query file (.txt, one per line, or .csv with a query column)")
    parser.add_argument(
        "--platform",
        action="append",
        choices=[p.value for p in Platform],
        help="Restrict to a platform (repeatable; default: every configured platform)",
    )
    args = parser.parse_args()

    setup_logging()
    selected = [Platform(p) for p in args.platform] if args.platform else None
    sys.exit(asyncio.run(main(args.file, selected)))
