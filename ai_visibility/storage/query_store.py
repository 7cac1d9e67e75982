"""Query library: stored queries plus their category and intent definitions."""

import logging
import time
import uuid
from datetime import datetime, timezone

from ai_visibility.schemas.query import QueryCategory, QueryCreate, QueryIntent, QueryUpdate, StoredQuery
from ai_visibility.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

QUERIES_KEY = "ai-visibility-stored-queries"
CATEGORIES_KEY = "ai-visibility-query-categories"
INTENTS_KEY = "ai-visibility-query-intents"


def generate_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:7]}"


class QueryStore:
    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def load_queries(self) -> list[StoredQuery]:
        return [StoredQuery.model_validate(item) for item in await self.kv.get_list(QUERIES_KEY)]

    async def save_queries(self, queries: list[StoredQuery]) -> None:
        await self.kv.set(QUERIES_KEY, [q.model_dump(mode="json") for q in queries])
        logger.info("Saved %d queries", len(queries))

    async def add_query(self, data: QueryCreate) -> StoredQuery:
        queries = await self.load_queries()
        now = datetime.now(timezone.utc)
        query = StoredQuery(
            id=generate_id("query"),
            text=data.text.strip(),
            category=data.category,
            intent=data.intent,
            created_at=now,
            updated_at=now,
        )
        queries.append(query)
        await self.save_queries(queries)
        return query

    async def add_queries(self, texts: list[str], category: str | None = None, intent: str | None = None) -> list[StoredQuery]:
        """Bulk add (upload path); blank lines are skipped."""
        queries = await self.load_queries()
        now = datetime.now(timezone.utc)
        added = [
            StoredQuery(id=generate_id("query"), text=text.strip(), category=category, intent=intent, created_at=now, updated_at=now)
            for text in texts
            if text.strip()
        ]
        if added:
            await self.save_queries(queries + added)
        return added

    async def update_query(self, query_id: str, data: QueryUpdate) -> StoredQuery | None:
        queries = await self.load_queries()
        for index, query in enumerate(queries):
            if query.id == query_id:
                changes = data.model_dump(exclude_unset=True)
                changes["updated_at"] = datetime.now(timezone.utc)
                queries[index] = query.model_copy(update=changes)
                await self.save_queries(queries)
                return queries[index]
        return None

    async def delete_query(self, query_id: str) -> bool:
        return await self.delete_queries([query_id]) == 1

    async def delete_queries(self, query_ids: list[str]) -> int:
        queries = await self.load_queries()
        ids = set(query_ids)
        remaining = [q for q in queries if q.id not in ids]
        deleted = len(queries) - len(remaining)
        if deleted:
            await self.save_queries(remaining)
        return deleted

    async def get_query_by_id(self, query_id: str) -> StoredQuery | None:
        return next((q for q in await self.load_queries() if q.id == query_id), None)

    async def get_queries_by_category(self, category: str) -> list[StoredQuery]:
        return [q for q in await self.load_queries() if q.category == category]

    async def get_queries_by_intent(self, intent: str) -> list[StoredQuery]:
        return [q for q in await self.load_queries() if q.intent == intent]

    # ------------------------------------------------------------------
    # Categories & intents
    # ------------------------------------------------------------------

    async def load_categories(self) -> list[QueryCategory]:
        raw = await self.kv.get(CATEGORIES_KEY)
        if raw is None:
            defaults = [QueryCategory(id="default", name="General", created_at=datetime.now(timezone.utc))]
            await self.kv.set(CATEGORIES_KEY, [c.model_dump(mode="json") for c in defaults])
            return defaults
        return [QueryCategory.model_validate(item) for item in raw]

    async def add_category(self, name: str) -> QueryCategory:
        categories = await self.load_categories()
        existing = next((c for c in categories if c.name.lower() == name.strip().lower()), None)
        if existing:
            return existing
        category = QueryCategory(id=generate_id("cat"), name=name.strip(), created_at=datetime.now(timezone.utc))
        categories.append(category)
        await self.kv.set(CATEGORIES_KEY, [c.model_dump(mode="json") for c in categories])
        return category

    async def delete_category(self, category_id: str) -> bool:
        """Delete a category and unassign it from every query."""
        categories = await self.load_categories()
        remaining = [c for c in categories if c.id != category_id]
        if len(remaining) == len(categories):
            return False
        await self.kv.set(CATEGORIES_KEY, [c.model_dump(mode="json") for c in remaining])
        queries = await self.load_queries()
        await self.save_queries(
            [q.model_copy(update={"category": None}) if q.category == category_id else q for q in queries]
        )
        return True

    async def load_intents(self) -> list[QueryIntent]:
        raw = await self.kv.get(INTENTS_KEY)
        if raw is None:
            defaults = [QueryIntent(id="default", name="Informational", created_at=datetime.now(timezone.utc))]
            await self.kv.set(INTENTS_KEY, [i.model_dump(mode="json") for i in defaults])
            return defaults
        return [QueryIntent.model_validate(item) for item in raw]

    async def add_intent(self, name: str) -> QueryIntent:
        intents = await self.load_intents()
        existing = next((i for i in intents if i.name.lower() == name.strip().lower()), None)
        if existing:
            return existing
        intent = QueryIntent(id=generate_id("intent"), name=name.strip(), created_at=datetime.now(timezone.utc))
        intents.append(intent)
        await self.kv.set(INTENTS_KEY, [i.model_dump(mode="json") for i in intents])
        return intent

    async def delete_intent(self, intent_id: str) -> bool:
        """Delete an intent and unassign it from every query."""
        intents = await self.load_intents()
        remaining = [i for i in intents if i.id != intent_id]
        if len(remaining) == len(intents):
            return False
        await self.kv.set(INTENTS_KEY, [i.model_dump(mode="json") for i in remaining])
        queries = await self.load_queries()
        await self.save_queries([q.model_copy(update={"intent": None}) if q.intent == intent_id else q for q in queries])
        return True

    async def clear_all_query_data(self) -> None:
        for key in (QUERIES_KEY, CATEGORIES_KEY, INTENTS_KEY):
            await self.kv.delete(key)
