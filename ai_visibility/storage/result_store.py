"""Legacy flat result list and processed-query history.

The flat list predates the crawl log and is still what metrics and
snapshots read: it holds every result ever produced, deduplicated by id.
Results are written here incrementally, one query at a time, so a batch
that dies half-way keeps what it already produced.
"""

import csv
import io
import json
import logging

from ai_visibility.schemas.query import ProcessedQuery, QueryResult
from ai_visibility.storage.crawl_store import CrawlStore
from ai_visibility.storage.kv import KeyValueStore
from ai_visibility.storage.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

RESULTS_KEY = "ai-visibility-query-results"
PROCESSED_KEY = "ai-visibility-processed-queries"

CSV_HEADERS = ["ID", "Query", "Platform", "Mentioned", "Position", "Sentiment", "Date", "Context", "Confidence"]


def _merge_by_id(existing: list[dict], new: list[dict]) -> list[dict]:
    """Later entries win; first-seen order is kept."""
    merged: dict[str, dict] = {}
    for item in existing + new:
        merged[item["id"]] = item
    return list(merged.values())


class ResultStore:
    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    async def save_query_results(self, results: list[QueryResult]) -> None:
        if not results:
            logger.warning("No results to save")
            return
        existing = await self.kv.get_list(RESULTS_KEY)
        merged = _merge_by_id(existing, [r.model_dump(mode="json") for r in results])
        await self.kv.set(RESULTS_KEY, merged)
        logger.debug("Saved %d results, %d stored in total", len(results), len(merged))

    async def load_query_results(self) -> list[QueryResult]:
        results = [QueryResult.model_validate(item) for item in await self.kv.get_list(RESULTS_KEY)]
        logger.debug("Loaded %d query results", len(results))
        return results

    async def save_processed_queries(self, queries: list[ProcessedQuery]) -> None:
        existing = await self.kv.get_list(PROCESSED_KEY)
        merged = _merge_by_id(existing, [q.model_dump(mode="json") for q in queries])
        await self.kv.set(PROCESSED_KEY, merged)

    async def load_processed_queries(self) -> list[ProcessedQuery]:
        return [ProcessedQuery.model_validate(item) for item in await self.kv.get_list(PROCESSED_KEY)]

    async def clear_stored_data(self, crawls: CrawlStore, snapshots: SnapshotStore) -> None:
        """Drop results, processed queries, the crawl log and historical snapshots."""
        await self.kv.delete(RESULTS_KEY)
        await self.kv.delete(PROCESSED_KEY)
        await crawls.clear_all_crawls()
        await snapshots.clear_historical_data()


def export_results_json(results: list[QueryResult]) -> str:
    return json.dumps([r.model_dump(mode="json") for r in results], indent=2, ensure_ascii=False)


def export_results_csv(results: list[QueryResult]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for r in results:
        writer.writerow(
            [
                r.id,
                r.query_text,
                r.platform.value,
                "Yes" if r.mentioned else "No",
                r.position if r.position is not None else "",
                r.sentiment.value,
                r.date,
                r.context,
                r.confidence if r.confidence else "",
            ]
        )
    return buf.getvalue()
