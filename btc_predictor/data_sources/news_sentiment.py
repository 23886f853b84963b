"""News and sentiment data client.

Primary: CryptoPanic news feed | Sentiment: headline keyword scoring
"""

from __future__ import annotations

from btc_predictor.config import Keys
from btc_predictor.data_sources.alternative_data import clamp_unit
from btc_predictor.errors import MalformedResponse, SourceUnavailable
from btc_predictor.utils.http import get_json
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("news_sentiment")

BULLISH_KEYWORDS: tuple[str, ...] = ("bull", "surge")
BEARISH_KEYWORDS: tuple[str, ...] = ("crash", "fall")


def score_headlines(posts: list[dict]) -> float:
    """Score recent posts by bullish/bearish keyword presence.

    Each news headline containing a bullish keyword adds 1, each containing
    a bearish keyword subtracts 1 (a headline can do both). The total is
    divided by the number of posts and clamped to [-1, 1].
    """
    if not posts:
        return 0.0
    score = 0
    for post in posts:
        if post.get("kind") != "news":
            continue
        title = (post.get("title") or "").lower()
        if any(k in title for k in BULLISH_KEYWORDS):
            score += 1
        if any(k in title for k in BEARISH_KEYWORDS):
            score -= 1
    return clamp_unit(score / len(posts))


class NewsSentimentClient:
    """Fetch recent BTC news and compute a headline sentiment score."""

    URL = "https://cryptopanic.com/api/v1/posts/"

    def get_recent_news(self, limit: int = 10) -> list[dict]:
        """Get the latest BTC news posts from CryptoPanic."""
        if not Keys.CRYPTOPANIC:
            raise SourceUnavailable("CryptoPanic", "no API key configured")

        data = get_json(
            "CryptoPanic",
            self.URL,
            params={
                "auth_token": Keys.CRYPTOPANIC,
                "currencies": "BTC",
                "kind": "news",
                "limit": limit,
            },
        )
        results = data.get("results") if isinstance(data, dict) else None
        if results is None:
            raise MalformedResponse("CryptoPanic", "missing results")
        return results[:limit]

    def get_news_sentiment(self) -> float:
        posts = self.get_recent_news()
        score = score_headlines(posts)
        logger.info("News sentiment %.2f over %d posts", score, len(posts))
        return score
