"""Batch processing run: the persistence side of the query processor.

One run:
  1. processes the queries one by one; each finished query's results go
     straight into the flat result store, so a crash mid-batch keeps them
  2. appends one crawl with every result of the run
  3. stores the processed queries
  4. builds a snapshot from all stored results and upserts it by ISO week

Provider failures never reach this level. Store-write failures propagate.
"""

import logging
from collections.abc import Callable

from ai_visibility.core.metrics import PROCESSING_RUNS
from ai_visibility.schemas.processing import ProcessingRun
from ai_visibility.schemas.query import Platform, ProcessedQuery, Query
from ai_visibility.services.historical_tracking import create_snapshot
from ai_visibility.services.query_processor import QueryProcessor
from ai_visibility.storage.config_store import ConfigStore
from ai_visibility.storage.crawl_store import CrawlStore
from ai_visibility.storage.result_store import ResultStore
from ai_visibility.storage.snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

NO_RESULTS_MESSAGE = (
    "No results returned from any AI provider. Check API key configuration and network connection."
)


class ProcessingService:
    def __init__(
        self,
        processor: QueryProcessor,
        config_store: ConfigStore,
        result_store: ResultStore,
        crawl_store: CrawlStore,
        snapshot_store: SnapshotStore,
    ):
        self.processor = processor
        self.config_store = config_store
        self.result_store = result_store
        self.crawl_store = crawl_store
        self.snapshot_store = snapshot_store

    async def _persist_query(self, processed: ProcessedQuery) -> None:
        if processed.results:
            await self.result_store.save_query_results(processed.results)

    async def run(
        self,
        queries: list[Query],
        platforms: list[Platform] | None = None,
        on_progress: Callable[[int, int], None] | None = None,
    ) -> ProcessingRun:
        processed = await self.processor.process_queries(
            queries, platforms=platforms, on_progress=on_progress, on_query_done=self._persist_query
        )
        await self.result_store.save_processed_queries(processed)

        results = [r for p in processed for r in p.results]
        query_errors = list(dict.fromkeys(p.error for p in processed if p.error))

        if not results:
            PROCESSING_RUNS.labels(status="no_results").inc()
            logger.error("Batch of %d queries produced no results: %s", len(queries), query_errors)
            return ProcessingRun(processed=processed, error=NO_RESULTS_MESSAGE, query_errors=query_errors)

        crawl_id = await self.crawl_store.save_crawl(results)

        config = await self.config_store.load()
        snapshot = create_snapshot(await self.result_store.load_query_results(), config.brand)
        await self.snapshot_store.save_snapshot(snapshot)

        PROCESSING_RUNS.labels(status="completed").inc()
        logger.info("Batch complete: %d queries, %d results, crawl %s", len(processed), len(results), crawl_id)
        return ProcessingRun(
            processed=processed,
            total_results=len(results),
            crawl_id=crawl_id,
            snapshot=snapshot,
            query_errors=query_errors,
        )
