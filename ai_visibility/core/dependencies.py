"""FastAPI dependencies: one shared key-value store, stores and services built on it."""

from functools import lru_cache

from fastapi import Depends

from ai_visibility.core.config import settings
from ai_visibility.db.session import async_session_factory
from ai_visibility.services.metrics_service import MetricsService
from ai_visibility.services.processing_service import ProcessingService
from ai_visibility.services.query_processor import QueryProcessor
from ai_visibility.storage.config_store import ConfigStore
from ai_visibility.storage.crawl_store import CrawlStore
from ai_visibility.storage.kv import KeyValueStore
from ai_visibility.storage.query_store import QueryStore
from ai_visibility.storage.result_store import ResultStore
from ai_visibility.storage.snapshot_store import SnapshotStore


@lru_cache
def get_kv_store() -> KeyValueStore:
    return KeyValueStore(async_session_factory)


def get_config_store(kv: KeyValueStore = Depends(get_kv_store)) -> ConfigStore:
    return ConfigStore(kv, settings)


def get_result_store(kv: KeyValueStore = Depends(get_kv_store)) -> ResultStore:
    return ResultStore(kv)


def get_crawl_store(kv: KeyValueStore = Depends(get_kv_store)) -> CrawlStore:
    return CrawlStore(kv, settings.max_crawls)


def get_snapshot_store(kv: KeyValueStore = Depends(get_kv_store)) -> SnapshotStore:
    return SnapshotStore(kv, settings.max_snapshots)


def get_query_store(kv: KeyValueStore = Depends(get_kv_store)) -> QueryStore:
    return QueryStore(kv)


def get_query_processor(config_store: ConfigStore = Depends(get_config_store)) -> QueryProcessor:
    return QueryProcessor(config_store, settings)


def get_processing_service(
    processor: QueryProcessor = Depends(get_query_processor),
    config_store: ConfigStore = Depends(get_config_store),
    result_store: ResultStore = Depends(get_result_store),
    crawl_store: CrawlStore = Depends(get_crawl_store),
    snapshot_store: SnapshotStore = Depends(get_snapshot_store),
) -> ProcessingService:
    return ProcessingService(processor, config_store, result_store, crawl_store, snapshot_store)


def get_metrics_service(
    config_store: ConfigStore = Depends(get_config_store),
    result_store: ResultStore = Depends(get_result_store),
    crawl_store: CrawlStore = Depends(get_crawl_store),
    snapshot_store: SnapshotStore = Depends(get_snapshot_store),
) -> MetricsService:
    return MetricsService(config_store, result_store, crawl_store, snapshot_store)
