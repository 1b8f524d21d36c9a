from __future__ import annotations

import logging
import re
from functools import partial
from typing import Callable, Dict, List, Optional

import requests

from stocksy.config import Settings
from stocksy.models import ResolvedTarget
from stocksy.source_loader import load_symbol_table

logger = logging.getLogger(__name__)

FINNHUB_SEARCH_URL = "https://finnhub.io/api/v1/search"
DEFAULT_SYMBOL = "AAPL"

KNOWN_COMPANIES: Dict[str, str] = {
    "TESLA": "TSLA",
    "APPLE": "AAPL",
    "MICROSOFT": "MSFT",
    "GOOGLE": "GOOGL",
    "ALPHABET": "GOOGL",
    "AMAZON": "AMZN",
    "NVIDIA": "NVDA",
    "META": "META",
    "FACEBOOK": "META",
    "NETFLIX": "NFLX",
}

STOPWORDS = {
    "a", "about", "ago", "am", "an", "and", "at", "back", "backtest", "been", "bought", "buy", "by", "could",
    "day", "days", "do", "does", "for", "good", "had", "have", "held", "hold", "how", "i", "if", "in", "invest",
    "is", "it", "last", "made", "make", "me", "month", "months", "my", "next", "now", "of", "on", "over", "past",
    "price", "profit", "return", "returns", "sell", "share", "shares", "should", "since", "sold", "stock",
    "stocks", "that", "the", "then", "this", "time", "to", "today", "was", "week", "weeks", "were", "what",
    "when", "with", "worth", "would", "year", "years",
}

_ACTION_PHRASE = re.compile(r"\b(?:buy|sell|hold)\s+([a-z.&'\s]+)", re.IGNORECASE)
_CASHTAG = re.compile(r"\$([A-Za-z]{1,5})\b")
_WORD = re.compile(r"[A-Za-z][A-Za-z.&']*")

Strategy = Callable[[str], Optional[ResolvedTarget]]


def _meaningful_words(text: str) -> List[str]:
    return [w.strip(".'") for w in _WORD.findall(text) if w.strip(".'").lower() not in STOPWORDS]


def extract_company_phrase(query: str) -> Optional[str]:
    """Return the name following buy/sell/hold, minus trailing filler words."""
    match = _ACTION_PHRASE.search(query or "")
    if not match:
        return None
    words = match.group(1).split()
    while words and words[-1].strip(".'").lower() in STOPWORDS:
        words.pop()
    while words and words[0].strip(".'").lower() in STOPWORDS:
        words.pop(0)
    phrase = " ".join(words).strip(" .'")
    return phrase or None


def lookup_known_name(query: str, table: Dict[str, str]) -> Optional[ResolvedTarget]:
    upper = (query or "").upper()
    for name, ticker in table.items():
        if name in upper:
            return ResolvedTarget(symbol=ticker, company_name=name.title())
    return None


def lookup_search_provider(query: str, api_key: Optional[str], timeout: int = 15) -> Optional[ResolvedTarget]:
    if not api_key:
        return None
    term = extract_company_phrase(query)
    if not term:
        words = _meaningful_words(query or "")
        term = words[-1] if words else ""
    if not term:
        return None

    try:
        resp = requests.get(FINNHUB_SEARCH_URL, params={"q": term, "token": api_key}, timeout=timeout)
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Symbol search failed for %r: %s", term, exc)
        return None

    results = payload.get("result") if isinstance(payload, dict) else None
    rows = [row for row in results if isinstance(row, dict)] if isinstance(results, list) else []
    if not rows:
        return None
    top = rows[0]
    symbol = str(top.get("symbol") or top.get("displaySymbol") or "").upper().strip()
    if not symbol:
        return None
    return ResolvedTarget(symbol=symbol, company_name=str(top.get("description") or symbol).strip())


def heuristic_fallback(query: str) -> ResolvedTarget:
    phrase = extract_company_phrase(query)
    if phrase:
        name = " ".join(phrase.upper().split())
        return ResolvedTarget(symbol=name, company_name=name)

    cashtag = _CASHTAG.search(query or "")
    if cashtag:
        ticker = cashtag.group(1).upper()
        return ResolvedTarget(symbol=ticker, company_name=ticker)

    words = _meaningful_words(query or "")
    for word in words:
        if word.isupper() and 1 < len(word) <= 5:
            return ResolvedTarget(symbol=word, company_name=word)
    if words:
        token = words[-1].upper()
        return ResolvedTarget(symbol=token, company_name=token)
    return ResolvedTarget(symbol=DEFAULT_SYMBOL, company_name=DEFAULT_SYMBOL)


class SymbolResolver:
    """Maps a free-text question to a ticker using an ordered strategy chain."""

    def __init__(self, settings: Settings):
        table = dict(KNOWN_COMPANIES)
        if settings.symbol_table_path:
            table.update(load_symbol_table(settings.symbol_table_path))
        self.table = table
        self.online: List[Strategy] = [
            partial(lookup_known_name, table=table),
            partial(
                lookup_search_provider,
                api_key=settings.finnhub_api_key,
                timeout=settings.request_timeout_sec,
            ),
        ]
        self.offline: List[Strategy] = [partial(lookup_known_name, table=table)]

    @staticmethod
    def _run_chain(strategies: List[Strategy], query: str) -> ResolvedTarget:
        for strategy in strategies:
            target = strategy(query)
            if target:
                return target
        return heuristic_fallback(query)

    def resolve(self, query: str) -> ResolvedTarget:
        target = self._run_chain(self.online, query)
        logger.info("Resolved %r to %s (%s)", query, target.symbol, target.company_name)
        return target

    def resolve_offline(self, query: str) -> ResolvedTarget:
        return self._run_chain(self.offline, query)
