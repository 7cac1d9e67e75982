"""Brand presence detection in AI responses.

Search terms are the configured brand name plus all aliases, compared
case-insensitively. Plain terms match on word boundaries, so "samlino"
does not match inside "mysamlino". Terms containing a dot are treated as
domains and matched as raw substrings ("samlino.dk" would otherwise fail on
the boundary after "dk" in text such as "samlino.dk/bil").

Sentiment is not analysed: every result is ``neutral``.
"""

from __future__ import annotations

import logging
import re

from ai_visibility.analysis.citation_extractor import extract_urls
from ai_visibility.analysis.competitors import COMPETITORS, CompetitorConfig, detect_competitors_in_response
from ai_visibility.schemas.config import AppConfig, BrandConfig
from ai_visibility.schemas.query import BrandPresenceAnalysis, Mention, Sentiment

logger = logging.getLogger(__name__)

# Characters of context kept on each side of a mention
CONTEXT_RADIUS = 50


def build_search_terms(brand: BrandConfig, brand_name: str | None = None) -> list[str]:
    """Brand name + aliases, lowercased and deduplicated in order."""
    terms: dict[str, None] = {}
    for term in [brand_name or brand.name, *brand.aliases]:
        if term and term.strip():
            terms[term.strip().lower()] = None
    return list(terms)


def term_pattern(term: str) -> re.Pattern[str]:
    escaped = re.escape(term)
    if "." in term:
        return re.compile(escaped, re.IGNORECASE)
    return re.compile(r"\b" + escaped + r"\b", re.IGNORECASE)


def calculate_confidence(mention_count: int, response_length: int) -> float:
    """Confidence in [0, 1] from mention count and response size."""
    confidence = min(mention_count * 0.3, 0.9)
    if response_length > 200:
        confidence = min(confidence + 0.1, 1.0)
    if mention_count > 0 and confidence < 0.5:
        confidence = 0.5
    return round(confidence, 2)


def find_mentions(response: str, terms: list[str]) -> list[Mention]:
    mentions: list[Mention] = []
    for term in terms:
        for match in term_pattern(term).finditer(response):
            start = max(0, match.start() - CONTEXT_RADIUS)
            end = min(len(response), match.end() + CONTEXT_RADIUS)
            mentions.append(Mention(text=response[start:end], position=len(mentions) + 1))
    return mentions


def detect_brand(
    response: str,
    config: AppConfig,
    brand_name: str | None = None,
    competitors: tuple[CompetitorConfig, ...] | list[CompetitorConfig] = COMPETITORS,
) -> BrandPresenceAnalysis:
    """Analyze *response* for the brand, competitors and (when the brand is present) URLs."""
    brand = config.brand
    terms = build_search_terms(brand, brand_name)
    mentions = find_mentions(response, terms)
    mentioned = bool(mentions)

    analysis = BrandPresenceAnalysis(
        mentioned=mentioned,
        position=mentions[0].position if mentioned else None,
        sentiment=Sentiment.NEUTRAL,
        context=mentions[0].text if mentioned else "",
        confidence=calculate_confidence(len(mentions), len(response)),
        mentions=mentions,
        competitor_mentions=detect_competitors_in_response(response, competitors),
        # Links are only worth keeping when they sit next to a brand mention
        urls=extract_urls(response) if mentioned else [],
    )

    logger.debug(
        "Brand analysis for %r (%d chars): mentioned=%s mentions=%d confidence=%.2f competitors=%s urls=%d",
        brand_name or brand.name,
        len(response),
        analysis.mentioned,
        len(mentions),
        analysis.confidence,
        analysis.competitor_mentions,
        len(analysis.urls),
    )
    return analysis
