"""Tests for brand presence detection."""

import pytest

from ai_visibility.analysis.brand_detection import (
    build_search_terms,
    calculate_confidence,
    detect_brand,
    find_mentions,
)
from ai_visibility.schemas.config import AppConfig, BrandConfig
from ai_visibility.schemas.query import Sentiment


def _config(name: str = "Samlino", aliases: list[str] | None = None) -> AppConfig:
    return AppConfig(brand=BrandConfig(name=name, aliases=aliases if aliases is not None else ["samlino.dk"]))


class TestSearchTerms:
    def test_name_and_aliases_lowercased_and_deduplicated(self):
        brand = BrandConfig(name="Samlino", aliases=["Samlino", "samlino", "samlino.dk", "  "])
        assert build_search_terms(brand) == ["samlino", "samlino.dk"]

    def test_explicit_brand_name_overrides_config_name(self):
        brand = BrandConfig(name="Samlino", aliases=[])
        assert build_search_terms(brand, brand_name="Mybrand") == ["mybrand"]


class TestMatching:
    def test_plain_alias_respects_word_boundaries(self):
        analysis = detect_brand("Try mysamlino for cheap quotes.", _config(aliases=["samlino"]))
        assert analysis.mentioned is False
        assert analysis.position is None
        assert analysis.confidence == 0.0

    def test_dotted_alias_matches_as_substring(self):
        mentions = find_mentions("...see samlino.dk/bil today", ["samlino.dk"])
        assert len(mentions) == 1
        assert "samlino.dk" in mentions[0].text

    def test_case_insensitive(self):
        analysis = detect_brand("SAMLINO is a comparison site.", _config())
        assert analysis.mentioned is True

    def test_context_window_is_fifty_chars_each_side(self):
        text = "a" * 100 + " Samlino " + "b" * 100
        analysis = detect_brand(text, _config(aliases=[]))
        start = text.index("Samlino")
        assert analysis.context == text[start - 50 : start + len("Samlino") + 50]

    def test_positions_are_discovery_order(self):
        mentions = find_mentions("Samlino and samlino.dk", ["samlino", "samlino.dk"])
        assert [m.position for m in mentions] == [1, 2, 3]


class TestConfidence:
    def test_single_short_mention_hits_floor(self):
        assert calculate_confidence(1, 100) == 0.5

    def test_no_mentions_short_response(self):
        assert calculate_confidence(0, 100) == 0.0

    def test_long_response_bonus_capped_at_one(self):
        assert calculate_confidence(3, 500) == 1.0
        assert calculate_confidence(10, 500) == 1.0

    def test_two_mentions(self):
        assert calculate_confidence(2, 100) == 0.6
        assert calculate_confidence(2, 201) == 0.7

    @pytest.mark.parametrize("length", [50, 200, 201, 5000])
    def test_monotonic_and_bounded(self, length):
        scores = [calculate_confidence(n, length) for n in range(0, 8)]
        assert scores == sorted(scores)
        assert all(0.0 <= s <= 1.0 for s in scores)


class TestDetectBrand:
    def test_end_to_end_danish_answer(self):
        text = "Samlino er billigst, men findforsikring er også god."
        analysis = detect_brand(text, _config())

        assert analysis.mentioned is True
        assert analysis.position == 1
        assert analysis.sentiment == Sentiment.NEUTRAL
        assert analysis.confidence == 0.5
        assert analysis.competitor_mentions == ["findforsikring"]

    def test_urls_only_extracted_when_brand_mentioned(self):
        with_brand = detect_brand("Samlino: see https://www.samlino.dk/bilforsikring.", _config(aliases=[]))
        without_brand = detect_brand("See https://www.fdm.dk for details.", _config(aliases=[]))

        assert with_brand.urls == ["https://www.samlino.dk/bilforsikring"]
        assert without_brand.urls == []

    def test_competitors_reported_without_brand(self):
        analysis = detect_brand("FDM og Alm. Brand er gode valg.", _config())
        assert analysis.mentioned is False
        assert analysis.competitor_mentions == ["fdm", "alm. brand"]
