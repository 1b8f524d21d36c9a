from __future__ import annotations

import logging
import math
from typing import Any, List, Optional

import requests

from stocksy.config import Settings
from stocksy.errors import UpstreamError
from stocksy.models import TREND_DOWN, TREND_NEUTRAL, TREND_UP, HistoricalBar, Quote

logger = logging.getLogger(__name__)

FINNHUB_QUOTE_URL = "https://finnhub.io/api/v1/quote"
TWELVE_DATA_SERIES_URL = "https://api.twelvedata.com/time_series"

WEEKLY_THRESHOLD_DAYS = 60
MIN_WEEKLY_OUTPUT = 52


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def trend_for(change: Optional[float]) -> str:
    if change is None or change == 0:
        return TREND_NEUTRAL
    return TREND_UP if change > 0 else TREND_DOWN


def history_request_plan(days: int) -> tuple[str, int, int]:
    """Return ``(interval, outputsize, bars_to_keep)`` for a window of ``days``.

    Windows longer than 60 days use weekly bars; 52 weeks are always requested
    so short weekly windows still have data to slice from.
    """
    days = max(1, days)
    if days > WEEKLY_THRESHOLD_DAYS:
        weeks = math.ceil(days / 7)
        return "1week", max(weeks, MIN_WEEKLY_OUTPUT), weeks
    return "1day", days, days


class MarketDataFetcher:
    def __init__(self, settings: Settings):
        self.settings = settings

    def fetch_quote(self, symbol: str) -> Quote:
        api_key = self.settings.finnhub_api_key
        if not api_key:
            logger.warning("Quote skipped for %s: Finnhub API key not set", symbol)
            return Quote.unavailable()

        try:
            resp = requests.get(
                FINNHUB_QUOTE_URL,
                params={"symbol": symbol, "token": api_key},
                timeout=self.settings.request_timeout_sec,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Quote fetch failed for %s: %s", symbol, exc)
            return Quote.unavailable()

        if not isinstance(payload, dict):
            return Quote.unavailable()
        current = _to_float(payload.get("c"))
        # Finnhub answers unknown symbols with an all-zero quote.
        if not current:
            logger.warning("No quote data for %s", symbol)
            return Quote.unavailable()

        change = _to_float(payload.get("d"))
        return Quote(
            current_price=current,
            change=change,
            change_percent=_to_float(payload.get("dp")),
            high=_to_float(payload.get("h")),
            low=_to_float(payload.get("l")),
            open=_to_float(payload.get("o")),
            prev_close=_to_float(payload.get("pc")),
            trend=trend_for(change),
        )

    def fetch_history(self, symbol: str, days: int) -> List[HistoricalBar]:
        api_key = self.settings.twelve_data_key
        if not api_key:
            raise UpstreamError("Twelve Data API key not set")

        interval, outputsize, keep = history_request_plan(days)
        params = {
            "symbol": symbol,
            "interval": interval,
            "outputsize": outputsize,
            "format": "JSON",
            "apikey": api_key,
        }
        try:
            resp = requests.get(TWELVE_DATA_SERIES_URL, params=params, timeout=self.settings.request_timeout_sec)
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise UpstreamError(f"Twelve Data request failed: {exc}") from exc

        if not isinstance(payload, dict) or payload.get("status") == "error" or not payload.get("values"):
            message = payload.get("message") if isinstance(payload, dict) else None
            raise UpstreamError(f"Twelve Data API error: {message or payload}")

        bars: List[HistoricalBar] = []
        for row in payload["values"]:
            close = _to_float(row.get("close"))
            if close is None:
                continue
            bars.append(
                HistoricalBar(
                    time=str(row.get("datetime", "")),
                    open=_to_float(row.get("open")) or 0.0,
                    high=_to_float(row.get("high")) or 0.0,
                    low=_to_float(row.get("low")) or 0.0,
                    close=close,
                )
            )

        bars.sort(key=lambda bar: bar.time)
        logger.info("Fetched %d %s bars for %s, keeping last %d", len(bars), interval, symbol, keep)
        return bars[-keep:]
