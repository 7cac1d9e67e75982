from datetime import datetime

from pydantic import BaseModel, Field

from ai_visibility.schemas.query import QueryResult


class CrawlMetadata(BaseModel):
    total_queries: int
    platforms: list[str]
    query_count: int


class Crawl(BaseModel):
    """One complete processing run, stored as an immutable unit."""

    crawl_id: str
    timestamp: datetime
    date: str  # YYYY-MM-DD
    results: list[QueryResult] = Field(default_factory=list)
    metadata: CrawlMetadata


class CrawlSummary(BaseModel):
    crawl_id: str
    date: str
    timestamp: datetime
    result_count: int
    mentioned_count: int
    platforms: list[str]
