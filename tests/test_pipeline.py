import threading
from types import SimpleNamespace

import pytest

from stocksy.errors import InputError, NotFoundError, UpstreamError
from stocksy.fetchers.news import NewsBatch
from stocksy.models import HistoricalBar, NewsItem, Quote, ResolvedTarget, ScoredItem
from stocksy.pipeline import Services, run_backtest, run_sentiment
from stocksy.resolver import SymbolResolver


class FakeNews:
    def __init__(self, items, errors=(), barrier=None):
        self.items = items
        self.errors = list(errors)
        self.barrier = barrier
        self.calls = []

    def fetch_news(self, symbol, company_name):  # type: ignore[no-untyped-def]
        self.calls.append((symbol, company_name))
        if self.barrier:
            self.barrier.wait()
        return NewsBatch(items=list(self.items), errors=list(self.errors), providers_tried=2)


class FakeScorer:
    def __init__(self, labels):
        self.labels = labels

    def score_items(self, items):  # type: ignore[no-untyped-def]
        return [ScoredItem(label, 0.0 if label == "neutral" else 90.0) for label in self.labels[: len(items)]]


class FakeMarket:
    def __init__(self, bars=None, barrier=None):
        self.bars = bars or []
        self.barrier = barrier
        self.history_calls = []

    def fetch_quote(self, symbol):  # type: ignore[no-untyped-def]
        if self.barrier:
            self.barrier.wait()
        return Quote(current_price=250.0, change=5.0, change_percent=2.04, trend="up")

    def fetch_history(self, symbol, days):  # type: ignore[no-untyped-def]
        self.history_calls.append((symbol, days))
        return list(self.bars)


class FakeResolver:
    def resolve(self, query):  # type: ignore[no-untyped-def]
        return ResolvedTarget(symbol="TSLA", company_name="Tesla")


def _news(n: int) -> list:
    return [NewsItem(title=f"Tesla headline {i}", url=f"https://example.com/{i}", source="S") for i in range(n)]


def _services(news=None, labels=None, bars=None, resolver=None) -> Services:
    settings = SimpleNamespace(default_backtest_days=30, finnhub_api_key=None, symbol_table_path=None, request_timeout_sec=5)
    return Services(
        settings=settings,
        resolver=resolver or FakeResolver(),
        news=FakeNews(news if news is not None else _news(3)),
        scorer=FakeScorer(labels or ["positive", "positive", "negative"]),
        market=FakeMarket(bars),
    )


def test_run_sentiment_assembles_response() -> None:
    services = _services()
    out = run_sentiment(services, "Should I buy Tesla?")

    assert out["action"] == "Buy"
    assert out["sentiment"] == "positive"
    assert out["symbol"] == "TSLA"
    assert out["companyName"] == "Tesla"
    assert out["currentPrice"] == 250.0
    assert out["trend"] == "up"
    assert len(out["news"]) == len(out["confidenceBreakdown"]) == 3
    assert out["confidenceBreakdown"][2] == {"sentiment": "negative", "confidence": 90.0}
    assert "3 recent news headlines" in out["reason"]
    assert services.news.calls == [("TSLA", "Tesla")]


def test_run_sentiment_hold_on_tie() -> None:
    out = run_sentiment(_services(news=_news(3), labels=["positive", "negative", "neutral"]), "hold tesla")
    assert out["action"] == "Hold"
    assert out["sentiment"] == "neutral"


def test_run_sentiment_without_news_raises_not_found() -> None:
    with pytest.raises(NotFoundError, match="No recent news"):
        run_sentiment(_services(news=[]), "Should I buy Tesla?")


def test_run_sentiment_news_outage_raises_upstream_error() -> None:
    services = _services(news=[])
    services.news = FakeNews([], errors=["NewsAPI error: rateLimited", "Finnhub request failed: connection refused"])

    with pytest.raises(UpstreamError, match="NewsAPI error: rateLimited") as excinfo:
        run_sentiment(services, "Should I buy Tesla?")
    assert excinfo.value.status_code == 500


def test_run_sentiment_partial_provider_failure_still_reports_not_found() -> None:
    services = _services(news=[])
    services.news = FakeNews([], errors=["Finnhub request failed: connection refused"])

    with pytest.raises(NotFoundError):
        run_sentiment(services, "Should I buy Tesla?")


def test_run_sentiment_fetches_news_and_quote_concurrently() -> None:
    barrier = threading.Barrier(2, timeout=5)
    services = _services()
    services.news = FakeNews(_news(3), barrier=barrier)
    services.market = FakeMarket(barrier=barrier)

    out = run_sentiment(services, "Should I buy Tesla?")

    assert out["currentPrice"] == 250.0
    assert len(out["news"]) == 3


@pytest.mark.parametrize("prompt", [None, "", "   ", 42])
def test_prompt_is_required(prompt) -> None:
    with pytest.raises(InputError):
        run_sentiment(_services(), prompt)
    with pytest.raises(InputError):
        run_backtest(_services(), prompt)


def test_run_backtest_parses_symbol_and_duration() -> None:
    bars = [HistoricalBar(time=f"2026-0{i}-01", open=1, high=1, low=1, close=c) for i, c in [(1, 200.0), (2, 180.0), (3, 220.0)]]
    services = _services(bars=bars)
    services.resolver = SymbolResolver(services.settings)

    out = run_backtest(services, "Backtest tesla over the last 3 months")

    assert services.market.history_calls == [("TSLA", 90)]
    assert out["symbol"] == "TSLA"
    assert out["days"] == 90
    assert out["backtestResult"]["profit"] == 20.0
    assert out["backtestResult"]["returnPct"] == 10.0
    assert out["historicalData"][0]["time"] == "2026-01-01"
    assert "weekly" in out["reason"]


def test_run_backtest_default_window_and_ticker_token() -> None:
    services = _services(bars=[])
    services.resolver = SymbolResolver(services.settings)

    out = run_backtest(services, "backtest AMD")

    assert services.market.history_calls == [("AMD", 30)]
    assert out["backtestResult"]["recommendation"] == "Not enough data"
    assert "daily" in out["reason"]
