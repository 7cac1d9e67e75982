"""Query processor: dispatches queries to AI platforms one call at a time.

For each query the live configuration is re-read (credentials saved
mid-batch take effect on the next query), every selected platform is
called in sequence through the throttle, and each non-empty answer is run
through brand detection and turned into a ``QueryResult``.

Queries are processed end-to-end, one after another, with a fixed gap
between them (longer while ChatGPT is active). Nothing here runs
concurrently.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from ai_visibility.analysis.brand_detection import detect_brand
from ai_visibility.collectors.base import BaseLlmCollector
from ai_visibility.collectors.registry import get_collector
from ai_visibility.core.config import Settings, settings as default_settings
from ai_visibility.core.exceptions import ConfigurationError, ProviderError
from ai_visibility.core.metrics import PROVIDER_CALLS
from ai_visibility.gateway.rate_limiter import SequentialThrottle, SleepFunc
from ai_visibility.schemas.config import CREDENTIAL_LABELS, PLATFORM_CREDENTIAL_KEYS, AppConfig
from ai_visibility.schemas.query import (
    BrandPresenceAnalysis,
    Platform,
    ProcessedQuery,
    Query,
    QueryResult,
    QueryStatus,
    Sentiment,
)
from ai_visibility.storage.config_store import ConfigStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
QueryDoneCallback = Callable[[ProcessedQuery], Awaitable[None]]
CollectorFactory = Callable[[Platform, AppConfig, Settings], BaseLlmCollector]


def no_providers_message() -> str:
    labels = ", ".join(CREDENTIAL_LABELS[key] for key in PLATFORM_CREDENTIAL_KEYS.values())
    return f"No API keys configured. Configure at least one of: {labels}."


def build_result(query: Query, platform: Platform, content: str, analysis: BrandPresenceAnalysis) -> QueryResult:
    """Result record for one (query, platform) call; dated with the crawl date."""
    now = datetime.now(timezone.utc)
    return QueryResult(
        id=f"{query.id}-{platform.value.lower()}-{int(time.time() * 1000)}",
        query_text=query.text,
        platform=platform,
        mentioned=analysis.mentioned,
        position=analysis.position,
        sentiment=Sentiment.NEUTRAL,
        date=now.date().isoformat(),
        context=analysis.context,
        full_response=content,
        confidence=analysis.confidence,
        competitor_mentions=analysis.competitor_mentions,
        urls=analysis.urls,
    )


class QueryProcessor:
    def __init__(
        self,
        config_store: ConfigStore,
        settings: Settings | None = None,
        throttle: SequentialThrottle | None = None,
        sleep: SleepFunc = asyncio.sleep,
        collector_factory: CollectorFactory = get_collector,
    ):
        self.config_store = config_store
        self.settings = settings or default_settings
        self.throttle = throttle or SequentialThrottle.from_settings(self.settings, sleep=sleep)
        self._sleep = sleep
        self._collector_factory = collector_factory

    def query_delay(self, platforms: list[Platform]) -> float:
        """Gap between two queries of a batch."""
        if Platform.CHATGPT in platforms:
            return self.settings.throttled_query_delay
        return self.settings.default_query_delay

    async def _call(self, query: Query, platform: Platform, config: AppConfig) -> str:
        collector = self._collector_factory(platform, config, self.settings)
        async with self.throttle.slot(platform):
            response = await collector.query_llm(query.text)
        return response.content

    async def process_query(self, query: Query, platforms: list[Platform] | None = None) -> ProcessedQuery:
        """Run *query* against every selected platform, in sequence.

        A failing platform is logged and skipped. The query is marked ``error``
        only when no platform is available or every attempted platform raised.
        """
        config = await self.config_store.load()
        targets = list(platforms) if platforms else config.configured_platforms()
        processed_at = datetime.now(timezone.utc)

        if not targets:
            error = no_providers_message()
            logger.error("Query %s not processed: %s", query.id, error)
            return ProcessedQuery(
                **query.model_dump(), results=[], processed_at=processed_at, status=QueryStatus.ERROR, error=error
            )

        results: list[QueryResult] = []
        errors: list[str] = []

        for platform in targets:
            log_extra = {"platform": platform.value}
            logger.info("Processing query %r on %s", query.text[:50], platform.value, extra=log_extra)
            try:
                content = await self._call(query, platform, config)
            except ProviderError as e:
                PROVIDER_CALLS.labels(platform=platform.value, outcome="error").inc()
                if e.recoverable:
                    logger.warning(
                        "Query %r failed on %s, retry later: %s", query.text[:50], platform.value, e, extra=log_extra
                    )
                else:
                    logger.error("Query %r failed on %s: %s", query.text[:50], platform.value, e, extra=log_extra)
                errors.append(str(e))
                continue
            except ConfigurationError as e:
                PROVIDER_CALLS.labels(platform=platform.value, outcome="error").inc()
                logger.error("Query %r failed on %s: %s", query.text[:50], platform.value, e, extra=log_extra)
                errors.append(str(e))
                continue
            except Exception as e:
                PROVIDER_CALLS.labels(platform=platform.value, outcome="error").inc()
                logger.exception("Unexpected error for query %r on %s", query.text[:50], platform.value, extra=log_extra)
                errors.append(str(e) or e.__class__.__name__)
                continue

            if not content.strip():
                PROVIDER_CALLS.labels(platform=platform.value, outcome="empty").inc()
                logger.warning(
                    "Empty response from %s for query %r", platform.value, query.text[:50], extra=log_extra
                )
                continue

            PROVIDER_CALLS.labels(platform=platform.value, outcome="success").inc()
            analysis = detect_brand(content, config)
            results.append(build_result(query, platform, content, analysis))
            logger.info(
                "%s: mentioned=%s position=%s competitors=%s",
                platform.value,
                analysis.mentioned,
                analysis.position,
                analysis.competitor_mentions,
            )

        if len(errors) == len(targets):
            return ProcessedQuery(
                **query.model_dump(),
                results=results,
                processed_at=processed_at,
                status=QueryStatus.ERROR,
                error="; ".join(errors),
            )

        logger.info("Completed query %r with %d results", query.text[:50], len(results))
        return ProcessedQuery(
            **query.model_dump(), results=results, processed_at=processed_at, status=QueryStatus.COMPLETED
        )

    async def process_queries(
        self,
        queries: list[Query],
        platforms: list[Platform] | None = None,
        on_progress: ProgressCallback | None = None,
        on_query_done: QueryDoneCallback | None = None,
    ) -> list[ProcessedQuery]:
        """Process *queries* one at a time, end-to-end.

        *on_query_done* is awaited with each finished query before the next
        one starts (used to persist results incrementally); *on_progress*
        fires once per query with ``(completed, total)``.
        """
        config = await self.config_store.load()
        active = list(platforms) if platforms else config.configured_platforms()
        delay = self.query_delay(active)
        total = len(queries)
        processed: list[ProcessedQuery] = []

        logger.info(
            "Starting sequential processing of %d queries on %s", total, [p.value for p in active] or "no platforms"
        )

        for index, query in enumerate(queries):
            result = await self.process_query(query, platforms)
            processed.append(result)

            if on_query_done:
                await on_query_done(result)
            if on_progress:
                on_progress(len(processed), total)

            logger.info("Completed query %d/%d, got %d results", index + 1, total, len(result.results))

            # No providers means no network calls, so nothing to pace
            if index < total - 1 and active:
                logger.debug("Waiting %.1fs before next query", delay)
                await self._sleep(delay)

        logger.info(
            "All queries completed. Queries: %d, results: %d", len(processed), sum(len(p.results) for p in processed)
        )
        return processed

    async def process_query_for_platform(self, query: Query, platform: Platform) -> QueryResult:
        """Single-platform call; errors propagate to the caller."""
        config = await self.config_store.load()
        content = await self._call(query, platform, config)
        return build_result(query, platform, content, detect_brand(content, config))
