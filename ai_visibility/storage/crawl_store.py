"""Append-only crawl log.

A crawl is one processing run's results. Crawls are never merged or
overwritten: every save appends a record with a fresh id. Reads are always
newest-first; the log is capped at ``max_crawls`` (oldest dropped).
"""

import logging
import time
import uuid
from datetime import datetime, timedelta, timezone

from ai_visibility.core.config import settings
from ai_visibility.schemas.crawl import Crawl, CrawlMetadata, CrawlSummary
from ai_visibility.schemas.query import QueryResult
from ai_visibility.storage.kv import KeyValueStore, as_utc, timestamp_of

logger = logging.getLogger(__name__)

CRAWLS_KEY = "ai-visibility-crawls"


def generate_crawl_id() -> str:
    return f"crawl-{int(time.time() * 1000)}-{uuid.uuid4().hex[:7]}"


class CrawlStore:
    def __init__(self, kv: KeyValueStore, max_crawls: int | None = None):
        self.kv = kv
        self.max_crawls = max_crawls or settings.max_crawls

    async def save_crawl(self, results: list[QueryResult]) -> str:
        """Append a new crawl; returns its id, or "" when there is nothing to save."""
        if not results:
            logger.warning("No results to save as crawl")
            return ""

        now = datetime.now(timezone.utc)
        crawl = Crawl(
            crawl_id=generate_crawl_id(),
            timestamp=now,
            date=now.date().isoformat(),
            results=results,
            metadata=CrawlMetadata(
                total_queries=len(results),
                platforms=list(dict.fromkeys(r.platform.value for r in results)),
                query_count=len({r.query_text for r in results}),
            ),
        )

        stored = await self.kv.append_to_list(
            CRAWLS_KEY,
            crawl.model_dump(mode="json"),
            sort_key=timestamp_of,
            max_items=self.max_crawls,
        )
        logger.info("Saved crawl %s with %d results. Total crawls: %d", crawl.crawl_id, len(results), len(stored))
        return crawl.crawl_id

    async def load_all_crawls(self) -> list[Crawl]:
        """All crawls, newest first."""
        raw = await self.kv.get_list(CRAWLS_KEY)
        crawls = [Crawl.model_validate(item) for item in raw]
        crawls.sort(key=lambda c: as_utc(c.timestamp), reverse=True)
        return crawls

    async def get_crawl_by_id(self, crawl_id: str) -> Crawl | None:
        for crawl in await self.load_all_crawls():
            if crawl.crawl_id == crawl_id:
                return crawl
        return None

    async def get_latest_crawl(self) -> Crawl | None:
        crawls = await self.load_all_crawls()
        return crawls[0] if crawls else None

    async def get_all_results(self) -> list[QueryResult]:
        """Results from every crawl, flattened newest crawl first."""
        return [result for crawl in await self.load_all_crawls() for result in crawl.results]

    async def get_crawl_results(self, crawl_id: str) -> list[QueryResult]:
        crawl = await self.get_crawl_by_id(crawl_id)
        return crawl.results if crawl else []

    async def get_crawls_in_range(self, start: datetime, end: datetime) -> list[Crawl]:
        """Crawls whose timestamp lies within [start, end], inclusive."""
        start, end = as_utc(start), as_utc(end)
        return [c for c in await self.load_all_crawls() if start <= as_utc(c.timestamp) <= end]

    async def get_crawls_last_n_days(self, days: int) -> list[Crawl]:
        end = datetime.now(timezone.utc)
        return await self.get_crawls_in_range(end - timedelta(days=days), end)

    async def delete_crawl(self, crawl_id: str) -> bool:
        raw = await self.kv.get_list(CRAWLS_KEY)
        remaining = [item for item in raw if item.get("crawl_id") != crawl_id]
        if len(remaining) == len(raw):
            return False
        await self.kv.set(CRAWLS_KEY, remaining)
        logger.info("Deleted crawl %s", crawl_id)
        return True

    async def clear_all_crawls(self) -> None:
        await self.kv.delete(CRAWLS_KEY)
        logger.info("Cleared all crawls")

    async def get_crawl_summaries(self) -> list[CrawlSummary]:
        return [
            CrawlSummary(
                crawl_id=crawl.crawl_id,
                date=crawl.date,
                timestamp=crawl.timestamp,
                result_count=len(crawl.results),
                mentioned_count=sum(1 for r in crawl.results if r.mentioned),
                platforms=crawl.metadata.platforms,
            )
            for crawl in await self.load_all_crawls()
        ]
