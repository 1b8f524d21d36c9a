from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

import requests
from dateutil import parser as date_parser

from stocksy.config import Settings
from stocksy.dedupe import dedupe_items
from stocksy.models import NewsItem

logger = logging.getLogger(__name__)

NEWSAPI_URL = "https://newsapi.org/v2/everything"
FINNHUB_COMPANY_NEWS_URL = "https://finnhub.io/api/v1/company-news"


class NewsProviderError(Exception):
    pass


def _parse_date(raw: Any) -> Optional[datetime]:
    if not raw:
        return None
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return None
    try:
        return date_parser.parse(str(raw))
    except (ValueError, TypeError, OverflowError):
        return None


def _normalize_text(text: Any) -> str:
    return " ".join(str(text or "").split()).strip()


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return ""
    return str(payload.get("message") or payload.get("error") or "") if isinstance(payload, dict) else ""


def _get_json(provider: str, url: str, params: dict, timeout: int) -> Any:
    try:
        resp = requests.get(url, params=params, timeout=timeout)
    except requests.RequestException as exc:
        raise NewsProviderError(f"{provider} request failed: {exc}") from exc
    if resp.status_code >= 400:
        detail = _error_message(resp) or f"HTTP {resp.status_code}"
        raise NewsProviderError(f"{provider} error: {detail}")
    try:
        return resp.json()
    except ValueError as exc:
        raise NewsProviderError(f"{provider} returned invalid JSON") from exc


def fetch_newsapi_items(query: str, api_key: Optional[str], page_size: int = 10, timeout: int = 15) -> List[NewsItem]:
    """Search NewsAPI; raises ``NewsProviderError`` when the provider is unusable."""
    if not api_key:
        raise NewsProviderError("NewsAPI key not set")
    if not query:
        return []

    params = {
        "q": query,
        "language": "en",
        "sortBy": "relevancy",
        "pageSize": page_size,
        "apiKey": api_key,
    }
    payload = _get_json("NewsAPI", NEWSAPI_URL, params, timeout)
    if not isinstance(payload, dict):
        raise NewsProviderError("NewsAPI returned an unexpected payload")
    if payload.get("status") == "error":
        raise NewsProviderError(f"NewsAPI error: {payload.get('message') or payload.get('code')}")

    items: List[NewsItem] = []
    for article in payload.get("articles") or []:
        if not isinstance(article, dict):
            continue
        title = _normalize_text(article.get("title"))
        # NewsAPI blanks out retracted articles instead of dropping them.
        if not title or title == "[Removed]":
            continue
        source = article.get("source") or {}
        source_name = source.get("name") if isinstance(source, dict) else source
        items.append(
            NewsItem(
                title=title,
                url=str(article.get("url") or "").strip(),
                source=str(source_name or "NewsAPI"),
                description=_normalize_text(article.get("description")),
                published_at=_parse_date(article.get("publishedAt")),
            )
        )
    return items


def fetch_finnhub_company_news(
    symbol: str,
    api_key: Optional[str],
    lookback_days: int = 7,
    timeout: int = 15,
    today: Optional[date] = None,
) -> List[NewsItem]:
    if not api_key:
        raise NewsProviderError("Finnhub API key not set")
    if not symbol:
        return []

    to_day = today or date.today()
    params = {
        "symbol": symbol,
        "from": (to_day - timedelta(days=lookback_days)).isoformat(),
        "to": to_day.isoformat(),
        "token": api_key,
    }
    payload = _get_json("Finnhub", FINNHUB_COMPANY_NEWS_URL, params, timeout)
    if not isinstance(payload, list):
        raise NewsProviderError("Finnhub returned an unexpected payload")

    items: List[NewsItem] = []
    for article in payload:
        if not isinstance(article, dict):
            continue
        title = _normalize_text(article.get("headline"))
        if not title:
            continue
        items.append(
            NewsItem(
                title=title,
                url=str(article.get("url") or "").strip(),
                source=str(article.get("source") or "Finnhub"),
                description=_normalize_text(article.get("summary")),
                published_at=_parse_date(article.get("datetime")),
            )
        )
    return items


def relevance_terms(symbol: str, company_name: str) -> List[str]:
    terms = [symbol.lower(), company_name.lower()]
    terms += [w.lower() for w in re.split(r"[^A-Za-z0-9]+", company_name) if len(w) >= 3]
    return [t for t in dict.fromkeys(terms) if t]


def is_relevant(item: NewsItem, symbol: str, company_name: str) -> bool:
    text = f"{item.title} {item.description}".lower()
    return any(term in text for term in relevance_terms(symbol, company_name))


@dataclass
class NewsBatch:
    items: List[NewsItem] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    providers_tried: int = 0

    @property
    def all_failed(self) -> bool:
        """True when every provider that was asked errored out."""
        return self.providers_tried > 0 and len(self.errors) == self.providers_tried


class NewsAggregator:
    """Collects headlines for a company, topping up from a secondary provider."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @staticmethod
    def _call(batch: NewsBatch, fetch: Callable[[], List[NewsItem]]) -> List[NewsItem]:
        batch.providers_tried += 1
        try:
            return fetch()
        except NewsProviderError as exc:
            logger.warning("%s", exc)
            batch.errors.append(str(exc))
            return []

    def fetch_news(self, symbol: str, company_name: str) -> NewsBatch:
        settings = self.settings
        batch = NewsBatch()
        primary = self._call(
            batch,
            lambda: fetch_newsapi_items(
                company_name,
                api_key=settings.newsapi_key,
                page_size=settings.news_page_size,
                timeout=settings.request_timeout_sec,
            ),
        )
        relevant = [item for item in primary if is_relevant(item, symbol, company_name)]
        logger.info("Primary news: %d fetched, %d relevant for %s", len(primary), len(relevant), symbol)

        combined = list(relevant)
        if len(relevant) < settings.news_min_relevant:
            secondary = self._call(
                batch,
                lambda: fetch_finnhub_company_news(
                    symbol,
                    api_key=settings.finnhub_api_key,
                    lookback_days=settings.secondary_news_lookback_days,
                    timeout=settings.request_timeout_sec,
                ),
            )
            logger.info("Secondary news: %d fetched for %s", len(secondary), symbol)
            combined += secondary

        unique = dedupe_items(combined)
        if len(unique) < len(combined):
            logger.info("Removed %d duplicate headlines", len(combined) - len(unique))
        batch.items = unique[: settings.news_max_items]
        return batch
