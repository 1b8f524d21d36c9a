from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict

from stocksy.backtest import parse_duration, simulate, strip_duration
from stocksy.config import Settings
from stocksy.decision import decide, sentiment_counts, sentiment_for_action
from stocksy.errors import InputError, NotFoundError, UpstreamError
from stocksy.fetchers.market import WEEKLY_THRESHOLD_DAYS, MarketDataFetcher
from stocksy.fetchers.news import NewsAggregator
from stocksy.resolver import SymbolResolver
from stocksy.sentiment import SentimentScorer

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    resolver: SymbolResolver
    news: NewsAggregator
    scorer: SentimentScorer
    market: MarketDataFetcher

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        return cls(
            settings=settings,
            resolver=SymbolResolver(settings),
            news=NewsAggregator(settings),
            scorer=SentimentScorer(settings),
            market=MarketDataFetcher(settings),
        )


def _require_prompt(prompt: Any) -> str:
    if not isinstance(prompt, str) or not prompt.strip():
        raise InputError("Prompt is required")
    return prompt.strip()


def run_sentiment(services: Services, prompt: Any) -> Dict[str, Any]:
    query = _require_prompt(prompt)
    target = services.resolver.resolve(query)

    with ThreadPoolExecutor(max_workers=2) as pool:
        news_future = pool.submit(services.news.fetch_news, target.symbol, target.company_name)
        quote_future = pool.submit(services.market.fetch_quote, target.symbol)
        batch = news_future.result()
        quote = quote_future.result()

    news = batch.items
    if not news and batch.all_failed:
        raise UpstreamError("; ".join(batch.errors))
    if not news:
        raise NotFoundError(
            f'No recent news found for "{target.company_name}" ({target.symbol}). '
            "Try the full company name or its ticker symbol."
        )

    scored = services.scorer.score_items(news)
    labels = [item.sentiment for item in scored]
    action = decide(labels)
    counts = sentiment_counts(labels)
    logger.info("Decision for %s: %s", target.symbol, action, extra={"counts": counts})

    return {
        "symbol": target.symbol,
        "companyName": target.company_name,
        "sentiment": sentiment_for_action(action),
        "action": action,
        "confidenceBreakdown": [item.to_dict() for item in scored],
        "currentPrice": quote.current_price,
        "change": quote.change,
        "changePercent": quote.change_percent,
        "trend": quote.trend,
        "reason": (
            f'Based on sentiment analysis of {len(news)} recent news headlines for "{target.company_name}" '
            f"({counts['positive']} positive, {counts['negative']} negative, {counts['neutral']} neutral)."
        ),
        "news": [item.to_dict() for item in news],
    }


def run_backtest(services: Services, prompt: Any) -> Dict[str, Any]:
    query = _require_prompt(prompt)
    days = parse_duration(query, default=services.settings.default_backtest_days)
    target = services.resolver.resolve_offline(strip_duration(query))

    history = services.market.fetch_history(target.symbol, days)
    result = simulate(history)
    granularity = "weekly" if days > WEEKLY_THRESHOLD_DAYS else "daily"
    logger.info("Backtest for %s over %d days: %s", target.symbol, days, result.recommendation)

    return {
        "symbol": target.symbol,
        "days": days,
        "backtestResult": result.to_dict(),
        "historicalData": [bar.to_dict() for bar in history],
        "reason": f"Backtest simulation for {target.symbol} over last {days} days using Twelve Data ({granularity} data).",
    }
