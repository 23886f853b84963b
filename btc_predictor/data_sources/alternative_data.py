"""Alternative data client - crowd/social sentiment streams.

Two independent streams, each normalised to [-1, +1]:
  * CoinTrendz social sentiment (reported 0-100, 50 = neutral), the "reddit" stream
  * Santiment Twitter crowd sentiment, the "x" stream
"""

from __future__ import annotations

import math

from btc_predictor.errors import MalformedResponse
from btc_predictor.utils.http import get_json, post_json
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("alt_data")

_SANTIMENT_QUERY = (
    '{ crowdsentiment(selector: {slugs: ["bitcoin"], source: SANTIMENT_TWITTER}) '
    "{ datetime sentiment } }"
)


def clamp_unit(value: float) -> float:
    """Clamp *value* into [-1, 1]."""
    return max(-1.0, min(1.0, value))


def _finite(source: str, raw: float) -> float:
    if not math.isfinite(raw):
        raise MalformedResponse(source, f"non-finite sentiment {raw!r}")
    return raw


class SocialSentimentClient:
    """Fetch social sentiment scores for BTC."""

    COINTRENDZ_URL = "https://api.cointrendz.com/api/v1/social-sentiment"
    SANTIMENT_URL = "https://api.santiment.net/graphql"

    def get_cointrendz_sentiment(self) -> float:
        """CoinTrendz hourly social sentiment mapped from 0..100 to -1..1."""
        data = get_json("CoinTrendz", self.COINTRENDZ_URL, params={"coin": "bitcoin", "interval": "1h"})
        try:
            raw = float(data["sentiment"])
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise MalformedResponse("CoinTrendz", "missing sentiment value") from e
        return clamp_unit((_finite("CoinTrendz", raw) - 50) / 50)

    def get_santiment_sentiment(self) -> float:
        """Latest Santiment Twitter crowd sentiment; 0.0 when no points exist."""
        data = post_json("Santiment", self.SANTIMENT_URL, {"query": _SANTIMENT_QUERY})
        if not isinstance(data, dict):
            raise MalformedResponse("Santiment", "unexpected response type")
        if data.get("errors"):
            raise MalformedResponse("Santiment", str(data["errors"][0].get("message", "graphql error")))
        points = (data.get("data") or {}).get("crowdsentiment") or []
        if not points:
            logger.debug("Santiment returned no crowd sentiment points")
            return 0.0
        try:
            raw = float(points[-1]["sentiment"])
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise MalformedResponse("Santiment", "unparsable sentiment point") from e
        return clamp_unit(_finite("Santiment", raw))
