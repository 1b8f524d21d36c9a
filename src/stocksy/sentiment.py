from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Tuple

import requests

from stocksy.config import Settings
from stocksy.models import NEGATIVE, NEUTRAL, POSITIVE, NewsItem, ScoredItem

logger = logging.getLogger(__name__)

# Label vocabularies of the common finance/sentiment checkpoints on the hub
# (finbert, twitter-roberta, nlptown star ratings, generic LABEL_n heads).
LABEL_MAP: Dict[str, str] = {
    "positive": POSITIVE,
    "pos": POSITIVE,
    "bullish": POSITIVE,
    "label_2": POSITIVE,
    "4 stars": POSITIVE,
    "5 stars": POSITIVE,
    "negative": NEGATIVE,
    "neg": NEGATIVE,
    "bearish": NEGATIVE,
    "label_0": NEGATIVE,
    "1 star": NEGATIVE,
    "2 stars": NEGATIVE,
    "neutral": NEUTRAL,
    "neu": NEUTRAL,
    "label_1": NEUTRAL,
    "3 stars": NEUTRAL,
}

FALLBACK = ScoredItem(sentiment=NEUTRAL, confidence=0.0)


class ClassifierResponseError(ValueError):
    pass


def normalize_label(label: Any) -> str:
    return LABEL_MAP.get(str(label or "").strip().lower(), NEUTRAL)


def _flatten_predictions(payload: Any) -> List[Dict[str, Any]]:
    # The inference API returns [[{label, score}, ...]] for a single input,
    # some deployments return the inner list directly.
    if isinstance(payload, dict) and "error" in payload:
        raise ClassifierResponseError(str(payload["error"]))
    if isinstance(payload, list) and payload and isinstance(payload[0], list):
        payload = payload[0]
    if not isinstance(payload, list):
        raise ClassifierResponseError(f"Unexpected classifier payload: {payload!r}")
    return [row for row in payload if isinstance(row, dict) and "label" in row and "score" in row]


def pick_top_prediction(payload: Any) -> Tuple[str, float]:
    predictions = _flatten_predictions(payload)
    if not predictions:
        raise ClassifierResponseError("Classifier returned no predictions")
    top = max(predictions, key=lambda row: float(row["score"]))
    return normalize_label(top["label"]), float(top["score"])


def to_confidence(score: float) -> float:
    return round(min(max(score * 100, 0.0), 100.0), 2)


class SentimentScorer:
    """Scores headlines with a hosted text-classification model."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.endpoint = f"{settings.hf_base_url.rstrip('/')}/{settings.hf_model}"

    def _classify(self, text: str) -> Tuple[str, float]:
        headers = {"Authorization": f"Bearer {self.settings.hf_api_key}"} if self.settings.hf_api_key else {}
        resp = requests.post(
            self.endpoint,
            json={"inputs": text},
            headers=headers,
            timeout=self.settings.request_timeout_sec,
        )
        resp.raise_for_status()
        return pick_top_prediction(resp.json())

    def score(self, item: NewsItem) -> ScoredItem:
        try:
            label, score = self._classify(item.title)
        except (requests.RequestException, ValueError, TypeError) as exc:
            logger.warning("Classification failed for %r: %s", item.title, exc)
            return FALLBACK
        return ScoredItem(sentiment=label, confidence=to_confidence(score))

    def score_items(self, items: List[NewsItem]) -> List[ScoredItem]:
        """Score every item concurrently; results keep the input order."""
        if not items:
            return []
        with ThreadPoolExecutor(max_workers=len(items)) as pool:
            return list(pool.map(self.score, items))
