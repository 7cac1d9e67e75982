"""Query library: stored queries, categories, intents and file upload."""

import logging

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel

from ai_visibility.core.dependencies import get_query_store
from ai_visibility.core.exceptions import NotFoundError
from ai_visibility.ingestion.file_reader import read_query_file
from ai_visibility.schemas.query import QueryCategory, QueryCreate, QueryIntent, QueryUpdate, StoredQuery
from ai_visibility.storage.query_store import QueryStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/queries", tags=["queries"])


class BulkDelete(BaseModel):
    ids: list[str]


class NameCreate(BaseModel):
    name: str


class UploadResponse(BaseModel):
    added: list[StoredQuery]
    headers: list[str]


# ── Queries ──────────────────────────────────────────────────────


@router.get("", response_model=list[StoredQuery])
async def list_queries(
    category: str | None = Query(None),
    intent: str | None = Query(None),
    store: QueryStore = Depends(get_query_store),
):
    queries = await store.load_queries()
    if category:
        queries = [q for q in queries if q.category == category]
    if intent:
        queries = [q for q in queries if q.intent == intent]
    return queries


@router.post("", response_model=StoredQuery, status_code=201)
async def add_query(payload: QueryCreate, store: QueryStore = Depends(get_query_store)):
    return await store.add_query(payload)


@router.patch("/{query_id}", response_model=StoredQuery)
async def update_query(query_id: str, payload: QueryUpdate, store: QueryStore = Depends(get_query_store)):
    query = await store.update_query(query_id, payload)
    if not query:
        raise NotFoundError("Query not found")
    return query


@router.delete("/{query_id}", status_code=204)
async def delete_query(query_id: str, store: QueryStore = Depends(get_query_store)):
    if not await store.delete_query(query_id):
        raise NotFoundError("Query not found")


@router.post("/bulk-delete")
async def delete_queries(payload: BulkDelete, store: QueryStore = Depends(get_query_store)):
    return {"deleted": await store.delete_queries(payload.ids)}


@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_queries(
    file: UploadFile = File(...),
    category: str | None = Form(None),
    intent: str | None = Form(None),
    store: QueryStore = Depends(get_query_store),
):
    """Add every query from a .txt or .csv file to the library."""
    try:
        parsed = read_query_file(file.filename or "", await file.read())
    finally:
        await file.close()
    added = await store.add_queries(parsed.texts, category=category, intent=intent)
    logger.info("Upload %s: %d queries added", file.filename, len(added))
    return UploadResponse(added=added, headers=parsed.headers)


# ── Categories & intents ────────────────────────────────────────


@router.get("/categories", response_model=list[QueryCategory])
async def list_categories(store: QueryStore = Depends(get_query_store)):
    return await store.load_categories()


@router.post("/categories", response_model=QueryCategory, status_code=201)
async def add_category(payload: NameCreate, store: QueryStore = Depends(get_query_store)):
    return await store.add_category(payload.name)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(category_id: str, store: QueryStore = Depends(get_query_store)):
    if not await store.delete_category(category_id):
        raise NotFoundError("Category not found")


@router.get("/intents", response_model=list[QueryIntent])
async def list_intents(store: QueryStore = Depends(get_query_store)):
    return await store.load_intents()


@router.post("/intents", response_model=QueryIntent, status_code=201)
async def add_intent(payload: NameCreate, store: QueryStore = Depends(get_query_store)):
    return await store.add_intent(payload.name)


@router.delete("/intents/{intent_id}", status_code=204)
async def delete_intent(intent_id: str, store: QueryStore = Depends(get_query_store)):
    if not await store.delete_intent(intent_id):
        raise NotFoundError("Intent not found")
