"""Crawl log API."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from ai_visibility.core.dependencies import get_crawl_store
from ai_visibility.core.exceptions import NotFoundError
from ai_visibility.schemas.crawl import Crawl, CrawlSummary
from ai_visibility.storage.crawl_store import CrawlStore

router = APIRouter(prefix="/crawls", tags=["crawls"])


@router.get("", response_model=list[CrawlSummary])
async def list_crawls(
    date_from: datetime | None = Query(None),
    date_to: datetime | None = Query(None),
    store: CrawlStore = Depends(get_crawl_store),
):
    """Crawl summaries, newest first, optionally limited to a time range."""
    summaries = await store.get_crawl_summaries()
    if date_from or date_to:
        in_range = {
            c.crawl_id
            for c in await store.get_crawls_in_range(date_from or datetime.min, date_to or datetime.max)
        }
        summaries = [s for s in summaries if s.crawl_id in in_range]
    return summaries


@router.get("/latest", response_model=Crawl)
async def get_latest_crawl(store: CrawlStore = Depends(get_crawl_store)):
    crawl = await store.get_latest_crawl()
    if not crawl:
        raise NotFoundError("No crawls yet")
    return crawl


@router.get("/{crawl_id}", response_model=Crawl)
async def get_crawl(crawl_id: str, store: CrawlStore = Depends(get_crawl_store)):
    crawl = await store.get_crawl_by_id(crawl_id)
    if not crawl:
        raise NotFoundError("Crawl not found")
    return crawl


@router.delete("/{crawl_id}", status_code=204)
async def delete_crawl(crawl_id: str, store: CrawlStore = Depends(get_crawl_store)):
    if not await store.delete_crawl(crawl_id):
        raise NotFoundError("Crawl not found")
