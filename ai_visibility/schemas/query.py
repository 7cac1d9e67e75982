from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Platform(str, Enum):
    """Supported AI chat platforms."""

    CHATGPT = "ChatGPT"
    CLAUDE = "Claude"
    PERPLEXITY = "Perplexity"
    GEMINI = "Gemini"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class QueryStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class Query(BaseModel):
    model_config = {"frozen": True}

    id: str
    text: str
    category: str | None = None
    intent: str | None = None


class StoredQuery(BaseModel):
    id: str
    text: str
    category: str | None = None
    intent: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_query(self) -> Query:
        return Query(id=self.id, text=self.text, category=self.category, intent=self.intent)


class QueryCategory(BaseModel):
    id: str
    name: str
    created_at: datetime


class QueryIntent(BaseModel):
    id: str
    name: str
    created_at: datetime


class QueryResult(BaseModel):
    """Outcome of one query on one platform in one processing run."""

    id: str
    query_text: str
    platform: Platform
    mentioned: bool
    position: int | None = None  # 1 = first mention, None = not mentioned
    sentiment: Sentiment = Sentiment.NEUTRAL
    date: str  # YYYY-MM-DD, crawl date
    context: str = ""
    full_response: str | None = None
    confidence: float = 0.0
    competitor_mentions: list[str] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)


class ProcessedQuery(BaseModel):
    id: str
    text: str
    category: str | None = None
    intent: str | None = None
    results: list[QueryResult] = Field(default_factory=list)
    processed_at: datetime
    status: QueryStatus
    error: str | None = None


class Mention(BaseModel):
    text: str  # excerpt around the match
    position: int  # 1-indexed order of discovery


class BrandPresenceAnalysis(BaseModel):
    mentioned: bool
    position: int | None
    sentiment: Sentiment = Sentiment.NEUTRAL  # always neutral, kept for the data contract
    context: str
    confidence: float
    mentions: list[Mention] = Field(default_factory=list)
    competitor_mentions: list[str] = Field(default_factory=list)
    urls: list[str] = Field(default_factory=list)


class QueryCreate(BaseModel):
    text: str = Field(min_length=1)
    category: str | None = None
    intent: str | None = None


class QueryUpdate(BaseModel):
    text: str | None = None
    category: str | None = None
    intent: str | None = None
