"""Tests for URL extraction from AI responses."""

from ai_visibility.analysis.citation_extractor import extract_urls, get_unique_domains, is_valid_url


def test_explicit_and_www_links_with_trailing_punctuation():
    text = "Visit https://example.com/a, or www.foo.dk."
    assert extract_urls(text) == ["https://example.com/a", "https://www.foo.dk"]


def test_bare_domain_gets_https_scheme():
    assert extract_urls("Se samlino.dk for mere") == ["https://samlino.dk"]


def test_duplicates_dropped_in_first_seen_order():
    text = "https://b.dk and https://a.dk, then https://b.dk again"
    assert extract_urls(text) == ["https://b.dk", "https://a.dk"]


def test_no_urls():
    assert extract_urls("Ingen links her") == []


def test_malformed_port_is_discarded():
    assert extract_urls("https://example.com:99999/x") == []


def test_is_valid_url():
    assert is_valid_url("https://www.samlino.dk/bil")
    assert not is_valid_url("ftp://example.com")
    assert not is_valid_url("https://")


def test_unique_domains_strip_www():
    urls = ["https://www.samlino.dk/a", "https://samlino.dk/b", "https://fdm.dk"]
    assert get_unique_domains(urls) == ["samlino.dk", "fdm.dk"]
