from __future__ import annotations

import re
from typing import Sequence

from stocksy.models import BacktestResult, HistoricalBar

DEFAULT_DAYS = 30
UNIT_DAYS = {"day": 1, "week": 7, "month": 30, "year": 365}

_DURATION = re.compile(r"(\d+)\s*(day|week|month|year)s?\b", re.IGNORECASE)

NOT_ENOUGH_DATA = "Not enough data"
PROFITABLE = "Profitable (Buy Signal Valid)"
LOSS = "Loss (Sell Signal Better)"


def parse_duration(query: str, default: int = DEFAULT_DAYS) -> int:
    matches = list(_DURATION.finditer(query or ""))
    if not matches:
        return default
    last = matches[-1]
    return int(last.group(1)) * UNIT_DAYS[last.group(2).lower()]


def strip_duration(query: str) -> str:
    return _DURATION.sub(" ", query or "")


def simulate(bars: Sequence[HistoricalBar]) -> BacktestResult:
    """Buy at the first close, sell at the last one. Intermediate bars are ignored."""
    if len(bars) < 2:
        return BacktestResult(
            buy_price=0,
            sell_price=0,
            profit=0,
            return_pct=0,
            recommendation=NOT_ENOUGH_DATA,
        )

    buy = bars[0].close
    sell = bars[-1].close
    profit = sell - buy
    return_pct = round(profit / buy * 100, 2) if buy else 0.0
    return BacktestResult(
        buy_price=buy,
        sell_price=sell,
        profit=round(profit, 2),
        return_pct=return_pct,
        recommendation=PROFITABLE if profit > 0 else LOSS,
    )
