from pydantic import BaseModel, Field

from ai_visibility.schemas.query import Platform, ProcessedQuery
from ai_visibility.schemas.snapshot import HistoricalSnapshot


class ProcessRequest(BaseModel):
    """Batch run request. Without ``query_ids`` the whole query library is processed."""

    query_ids: list[str] | None = None
    texts: list[str] | None = None
    platforms: list[Platform] | None = None


class ProcessingRun(BaseModel):
    processed: list[ProcessedQuery] = Field(default_factory=list)
    total_results: int = 0
    crawl_id: str | None = None
    snapshot: HistoricalSnapshot | None = None
    error: str | None = None
    query_errors: list[str] = Field(default_factory=list)
