"""URL extraction from AI responses.

Matches explicit ``http(s)://`` links, ``www.`` hosts and bare
``domain.tld[/path]`` tokens. Scheme-less matches get ``https://``,
trailing punctuation is stripped, duplicates are dropped in first-seen
order and anything that does not parse as an http(s) URL is discarded.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

_URL_PATTERN = re.compile(
    r"https?://[^\s]+|www\.[^\s]+|[a-zA-Z0-9-]+\.[a-zA-Z]{2,}(?:/[^\s]*)?",
    re.IGNORECASE,
)

_TRAILING_PUNCTUATION = re.compile(r"[.,;:!?]+$")

_HOSTNAME = re.compile(r"^[\w-]+(?:\.[\w-]+)*\.?$")


def _normalize(candidate: str) -> str:
    if not candidate.lower().startswith(("http://", "https://")):
        candidate = "https://" + candidate
    return _TRAILING_PUNCTUATION.sub("", candidate)


def is_valid_url(url: str) -> bool:
    """Strict parse: http(s) scheme, a well-formed host and a valid port if any."""
    try:
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return False
        _ = parsed.port  # raises ValueError on a malformed port
    except ValueError:
        return False
    hostname = parsed.hostname or ""
    return bool(hostname) and bool(_HOSTNAME.match(hostname))


def extract_urls(text: str) -> list[str]:
    """Extract, normalize and deduplicate URLs in order of appearance."""
    seen: dict[str, None] = {}
    for match in _URL_PATTERN.finditer(text):
        url = _normalize(match.group(0))
        if url not in seen:
            seen[url] = None
    return [url for url in seen if is_valid_url(url)]


def get_unique_domains(urls: list[str]) -> list[str]:
    """Hostnames without ``www.``, deduplicated in order."""
    domains: dict[str, None] = {}
    for url in urls:
        host = (urlparse(url).hostname or "").lower()
        if host.startswith("www."):
            host = host[4:]
        if host:
            domains[host] = None
    return list(domains)
