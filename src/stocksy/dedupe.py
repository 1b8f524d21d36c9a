from __future__ import annotations

import re
from typing import List, Set
from urllib.parse import parse_qsl, urlencode, urlsplit

from stocksy.models import NewsItem

TRACKING_PARAMS = {"fbclid", "gclid", "cmpid", "ref", "guccounter", "guce_referrer"}

_NON_WORD = re.compile(r"[^\w\s]")


def url_key(url: str) -> str:
    """Host, path and non-tracking query of an article link.

    The query is kept because Finnhub article links differ only by ``?id=``.
    """
    parts = urlsplit((url or "").strip())
    if not parts.scheme or not parts.netloc:
        return ""
    host = parts.netloc.lower().removeprefix("www.")
    query = sorted(
        (k, v)
        for k, v in parse_qsl(parts.query, keep_blank_values=True)
        if not k.lower().startswith("utm_") and k.lower() not in TRACKING_PARAMS
    )
    key = f"{host}{parts.path.rstrip('/')}"
    return f"{key}?{urlencode(query)}" if query else key


def headline_key(title: str, source: str = "") -> str:
    # NewsAPI titles usually end in " - <publisher>".
    text = (title or "").strip()
    if source:
        for sep in (" - ", " | "):
            suffix = f"{sep}{source}"
            if text.lower().endswith(suffix.lower()):
                text = text[: -len(suffix)]
                break
    return " ".join(_NON_WORD.sub(" ", text.lower()).split())


def dedupe_items(items: List[NewsItem]) -> List[NewsItem]:
    """Keep the first item per article link or headline, in input order."""
    seen_urls: Set[str] = set()
    seen_headlines: Set[str] = set()
    unique: List[NewsItem] = []
    for item in items:
        link = url_key(item.url)
        headline = headline_key(item.title, item.source)
        if (link and link in seen_urls) or (headline and headline in seen_headlines):
            continue
        unique.append(item)
        if link:
            seen_urls.add(link)
        if headline:
            seen_headlines.add(headline)
    return unique
