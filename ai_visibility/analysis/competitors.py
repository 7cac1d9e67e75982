"""Competitor configuration and detection in AI responses."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ai_visibility.schemas.query import Sentiment


@dataclass(frozen=True)
class CompetitorConfig:
    name: str
    aliases: tuple[str, ...] = field(default_factory=tuple)


COMPETITORS: tuple[CompetitorConfig, ...] = (
    CompetitorConfig("findforsikring", ("findforsikring", "find forsikring", "findforsikring.dk")),
    CompetitorConfig("fdm", ("fdm", "FDM", "FDM.dk")),
    CompetitorConfig("alm. brand", ("alm. brand", "alm brand", "almbrand")),
)

# Keyword heuristics for the per-competitor path only; brand results stay neutral
_POSITIVE_WORDS = ("best", "excellent", "great", "recommended", "top", "leading", "preferred")
_NEGATIVE_WORDS = ("worst", "poor", "bad", "avoid", "issues", "problems", "complaints")

# Approximate position bucket size, in characters
_POSITION_BUCKET = 50


def _alias_pattern(alias: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(alias) + r"\b", re.IGNORECASE)


def detect_competitors_in_response(
    response: str,
    competitors: tuple[CompetitorConfig, ...] | list[CompetitorConfig] = COMPETITORS,
) -> list[str]:
    """Canonical names of every competitor with at least one alias in *response*.

    Word-boundary, case-insensitive matching; each competitor appears once,
    in configuration order.
    """
    mentioned: list[str] = []
    for competitor in competitors:
        if competitor.name in mentioned:
            continue
        if any(_alias_pattern(alias).search(response) for alias in competitor.aliases):
            mentioned.append(competitor.name)
    return mentioned


@dataclass
class CompetitorMention:
    mentioned: bool = False
    position: int | None = None
    sentiment: Sentiment = Sentiment.NEUTRAL


def detect_competitor_mention(response: str, competitor: CompetitorConfig) -> CompetitorMention:
    """Richer single-competitor check: approximate position and keyword sentiment."""
    lower = response.lower()
    result = CompetitorMention()

    first_index: int | None = None
    for alias in competitor.aliases:
        index = lower.find(alias.lower())
        if index != -1 and (first_index is None or index < first_index):
            first_index = index

    if first_index is None:
        return result

    result.mentioned = True
    result.position = first_index // _POSITION_BUCKET + 1

    start = max(0, first_index - 2 * _POSITION_BUCKET)
    end = min(len(response), first_index + 2 * _POSITION_BUCKET)
    context = lower[start:end]

    positive = sum(1 for word in _POSITIVE_WORDS if word in context)
    negative = sum(1 for word in _NEGATIVE_WORDS if word in context)
    if positive > negative:
        result.sentiment = Sentiment.POSITIVE
    elif negative > positive:
        result.sentiment = Sentiment.NEGATIVE
    return result
