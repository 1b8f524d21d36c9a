from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable

from stocksy.models import BUY, HOLD, NEGATIVE, NEUTRAL, POSITIVE, SELL, SENTIMENT_LABELS

_ACTION_SENTIMENT: Dict[str, str] = {BUY: POSITIVE, SELL: NEGATIVE, HOLD: NEUTRAL}


def sentiment_counts(sentiments: Iterable[str]) -> Dict[str, int]:
    counts = Counter(sentiments)
    return {label: counts.get(label, 0) for label in SENTIMENT_LABELS}


def decide(sentiments: Iterable[str]) -> str:
    """Net vote: positives minus negatives. Neutral labels never move the result."""
    counts = sentiment_counts(sentiments)
    score = counts[POSITIVE] - counts[NEGATIVE]
    if score > 0:
        return BUY
    if score < 0:
        return SELL
    return HOLD


def sentiment_for_action(action: str) -> str:
    return _ACTION_SENTIMENT.get(action, NEUTRAL)
