"""Tests for competitor detection."""

from ai_visibility.analysis.competitors import (
    COMPETITORS,
    CompetitorConfig,
    detect_competitor_mention,
    detect_competitors_in_response,
)
from ai_visibility.schemas.query import Sentiment

FDM = next(c for c in COMPETITORS if c.name == "fdm")
FINDFORSIKRING = next(c for c in COMPETITORS if c.name == "findforsikring")


def test_aliases_map_to_canonical_name():
    assert detect_competitors_in_response("Prøv Find Forsikring i dag") == ["findforsikring"]


def test_each_competitor_reported_once_in_config_order():
    text = "almbrand, FDM, findforsikring.dk og fdm igen"
    assert detect_competitors_in_response(text) == ["findforsikring", "fdm", "alm. brand"]


def test_word_boundaries_apply():
    assert detect_competitors_in_response("fdmx is not a competitor") == []


def test_custom_competitor_list():
    custom = [CompetitorConfig("tryg", ("tryg", "tryg.dk"))]
    assert detect_competitors_in_response("Tryg er dyr", custom) == ["tryg"]


def test_single_competitor_positive_context():
    mention = detect_competitor_mention("FDM is the best choice for members", FDM)
    assert mention.mentioned is True
    assert mention.position == 1
    assert mention.sentiment == Sentiment.POSITIVE


def test_single_competitor_negative_context_and_bucketed_position():
    text = "x" * 120 + " avoid findforsikring, many complaints"
    mention = detect_competitor_mention(text, FINDFORSIKRING)
    assert mention.mentioned is True
    assert mention.position == 3
    assert mention.sentiment == Sentiment.NEGATIVE


def test_single_competitor_absent():
    mention = detect_competitor_mention("Nothing relevant here", FDM)
    assert mention.mentioned is False
    assert mention.position is None
    assert mention.sentiment == Sentiment.NEUTRAL
