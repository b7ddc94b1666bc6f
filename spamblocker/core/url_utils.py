"""
URL utilities for spam detection — extraction, normalisation and static checks.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlencode, urlsplit

# Tracking parameters stripped before comparing links
TRACKING_PARAMS = frozenset(
    {"utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content", "fbclid", "gclid", "ref", "source"}
)

URL_SHORTENERS = frozenset(
    {
        "bit.ly",
        "tinyurl.com",
        "t.co",
        "goo.gl",
        "ow.ly",
        "is.gd",
        "buff.ly",
        "adf.ly",
        "j.mp",
        "rb.gy",
        "shorturl.at",
        "cutt.ly",
        "t.ly",
        "tiny.cc",
        "v.gd",
        "x.co",
        "soo.gd",
        "s.id",
        "clck.ru",
        "rebrand.ly",
    }
)

SUSPICIOUS_TLDS = (".xyz", ".top", ".click", ".loan", ".work", ".gq", ".cf", ".tk", ".ml", ".ga")

URL_PATTERN = re.compile(r"https?://[^\s<>\"'`\[\]{}|\\^]+", re.IGNORECASE)
_TRAILING_PUNCTUATION = re.compile(r"[.,;:!?)]+$")
_IPV4_HOST = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")


def _split(url: str):
    """urlsplit restricted to absolute http(s) URLs with a host; None otherwise."""
    try:
        parts = urlsplit(url.strip())
        # Accessing .port raises ValueError on a malformed port
        parts.port
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        return None
    return parts


def is_valid_url(url: str) -> bool:
    return _split(url) is not None


def extract_domain(url: str) -> str | None:
    """Lowercase hostname without a leading www."""
    parts = _split(url)
    if parts is None:
        return None
    host = parts.hostname.lower()
    return host[4:] if host.startswith("www.") else host


def normalize_url(url: str) -> str | None:
    """Canonical form for duplicate-link comparison.

    Lowercases, drops www. and tracking parameters, strips trailing slashes,
    sorts the remaining query parameters.
    """
    parts = _split(url)
    if parts is None:
        return None

    scheme = parts.scheme.lower()
    host = extract_domain(url)
    port = parts.port
    if port and port not in (80, 443):
        host = f"{host}:{port}"

    path = parts.path.rstrip("/") or "/"
    params = sorted(
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in TRACKING_PARAMS
    )
    normalized = f"{scheme}://{host}{path}"
    if params:
        normalized += f"?{urlencode(params)}"
    if parts.fragment:
        normalized += f"#{parts.fragment}"
    return normalized.lower()


def count_query_params(url: str) -> int:
    parts = _split(url)
    if parts is None:
        return 0
    return len(parse_qsl(parts.query, keep_blank_values=True))


def is_url_shortener(url: str) -> bool:
    domain = extract_domain(url)
    return domain is not None and domain in URL_SHORTENERS


def has_suspicious_tld(url: str) -> bool:
    domain = extract_domain(url)
    return domain is not None and domain.endswith(SUSPICIOUS_TLDS)


def is_ip_address_url(url: str) -> bool:
    domain = extract_domain(url)
    return domain is not None and bool(_IPV4_HOST.match(domain))


def extract_urls_from_text(text: str | None) -> list[str]:
    """All http(s) URLs in free text, minus trailing sentence punctuation."""
    if not text:
        return []

    urls: list[str] = []
    for url in URL_PATTERN.findall(text):
        if "?" in url or "#" in url:
            url = url.rstrip(".,;:!")
            # Only drop a closing paren that has no opening partner
            while url.endswith(")") and url.count(")") > url.count("("):
                url = url[:-1]
        else:
            url = _TRAILING_PUNCTUATION.sub("", url)
        urls.append(url)
    return urls


def count_urls(text: str | None) -> int:
    return len(URL_PATTERN.findall(text or ""))


def collect_all_urls(
    link: str | None = None,
    content: str | None = None,
    title: str | None = None,
) -> list[str]:
    """Raw URLs from the link field, content and title, deduplicated in order."""
    seen: dict[str, None] = {}
    if link and link.strip():
        seen[link.strip()] = None
    for url in extract_urls_from_text(content) + extract_urls_from_text(title):
        seen[url] = None
    return list(seen)
