from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

POSITIVE = "positive"
NEGATIVE = "negative"
NEUTRAL = "neutral"
SENTIMENT_LABELS = (POSITIVE, NEGATIVE, NEUTRAL)

BUY = "Buy"
SELL = "Sell"
HOLD = "Hold"

TREND_UP = "up"
TREND_DOWN = "down"
TREND_NEUTRAL = "neutral"


@dataclass(frozen=True)
class ResolvedTarget:
    symbol: str
    company_name: str


@dataclass
class NewsItem:
    title: str
    url: str
    source: str
    description: str = ""
    published_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "source": self.source,
            "publishedAt": self.published_at.isoformat() if self.published_at else None,
        }


@dataclass(frozen=True)
class ScoredItem:
    sentiment: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {"sentiment": self.sentiment, "confidence": self.confidence}


@dataclass
class Quote:
    current_price: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    open: Optional[float] = None
    prev_close: Optional[float] = None
    trend: str = TREND_NEUTRAL

    @classmethod
    def unavailable(cls) -> "Quote":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentPrice": self.current_price,
            "change": self.change,
            "changePercent": self.change_percent,
            "high": self.high,
            "low": self.low,
            "open": self.open,
            "prevClose": self.prev_close,
            "trend": self.trend,
        }


@dataclass
class HistoricalBar:
    time: str
    open: float
    high: float
    low: float
    close: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": self.time,
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
        }


@dataclass
class BacktestResult:
    buy_price: float
    sell_price: float
    profit: float
    return_pct: float
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "buyPrice": self.buy_price,
            "sellPrice": self.sell_price,
            "profit": self.profit,
            "returnPct": self.return_pct,
            "recommendation": self.recommendation,
        }
