"""Processing API: run a batch, read and export the accumulated results."""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ai_visibility.core.dependencies import (
    get_crawl_store,
    get_processing_service,
    get_query_store,
    get_result_store,
    get_snapshot_store,
)
from ai_visibility.core.exceptions import ConfigurationError
from ai_visibility.schemas.processing import ProcessingRun, ProcessRequest
from ai_visibility.schemas.query import ProcessedQuery, Query as QueryModel, QueryResult
from ai_visibility.services.processing_service import ProcessingService
from ai_visibility.storage.crawl_store import CrawlStore
from ai_visibility.storage.query_store import QueryStore
from ai_visibility.storage.result_store import ResultStore, export_results_csv, export_results_json
from ai_visibility.storage.snapshot_store import SnapshotStore

router = APIRouter(prefix="/processing", tags=["processing"])


@router.post("/run", response_model=ProcessingRun)
async def run_batch(
    payload: ProcessRequest,
    service: ProcessingService = Depends(get_processing_service),
    query_store: QueryStore = Depends(get_query_store),
):
    """Process ad-hoc texts, selected library queries, or the whole library.

    Runs synchronously: queries and platforms are called strictly one at a time.
    """
    if payload.texts:
        queries = [
            QueryModel(id=f"query-{i}", text=text.strip())
            for i, text in enumerate((t for t in payload.texts if t.strip()), start=1)
        ]
    else:
        stored = await query_store.load_queries()
        if payload.query_ids is not None:
            wanted = set(payload.query_ids)
            stored = [q for q in stored if q.id in wanted]
        queries = [q.to_query() for q in stored]

    if not queries:
        raise ConfigurationError("No queries to process. Upload or add queries first.")

    return await service.run(queries, platforms=payload.platforms)


@router.get("/results", response_model=list[QueryResult])
async def list_results(store: ResultStore = Depends(get_result_store)):
    return await store.load_query_results()


@router.get("/processed", response_model=list[ProcessedQuery])
async def list_processed(store: ResultStore = Depends(get_result_store)):
    return await store.load_processed_queries()


@router.get("/results/export")
async def export_results(
    fmt: str = Query("csv", alias="format", pattern=r"^(csv|json)$"),
    store: ResultStore = Depends(get_result_store),
):
    results = await store.load_query_results()
    if fmt == "json":
        return Response(
            content=export_results_json(results),
            media_type="application/json",
            headers={"Content-Disposition": 'attachment; filename="ai-visibility-results.json"'},
        )
    return Response(
        content=export_results_csv(results),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="ai-visibility-results.csv"'},
    )


@router.delete("/data", status_code=204)
async def clear_data(
    store: ResultStore = Depends(get_result_store),
    crawls: CrawlStore = Depends(get_crawl_store),
    snapshots: SnapshotStore = Depends(get_snapshot_store),
):
    """Drop results, processed queries, crawls and snapshots."""
    await store.clear_stored_data(crawls, snapshots)
