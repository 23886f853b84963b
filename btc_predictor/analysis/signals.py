"""Auxiliary signal aggregation: social/news sentiment, on-chain metrics, sessions.

Every remote signal is fetched independently and concurrently. A failing
fetch never aborts the others or the pipeline: it is logged and replaced
with its neutral default (0 / "good"), so prediction generation can always
proceed once a price series exists.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from btc_predictor.config import setting
from btc_predictor.data_sources.alternative_data import SocialSentimentClient
from btc_predictor.data_sources.news_sentiment import NewsSentimentClient
from btc_predictor.data_sources.onchain import OnchainClient
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("signals")

# region -> (active_from, active_until_exclusive, peak_from, peak_until_inclusive, timezone label), UTC hours
MARKET_SESSIONS: dict[str, tuple[int, int, int, int, str]] = {
    "asia": (0, 8, 1, 5, "JST/HKT"),
    "europe": (7, 16, 9, 11, "GMT/CET"),
    "us": (13, 22, 14, 20, "EST/CST"),
}


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class SentimentSnapshot:
    """Sentiment streams in [-1, 1]; 0 means neutral or unknown."""

    reddit: float = 0.0
    x: float = 0.0
    news: float = 0.0

    @property
    def social(self) -> float:
        return (self.reddit + self.x) / 2

    def to_dict(self) -> dict:
        return {
            "reddit": round(self.reddit, 2),
            "x": round(self.x, 2),
            "social": round(self.social, 2),
            "news": round(self.news, 2),
        }


@dataclass(frozen=True)
class OnchainSnapshot:
    fear_greed_index: float = 0.0
    mempool_size: int = 0
    whale_transactions: int = 0
    active_addresses: int = 0
    exchange_inflow: float = 0.0
    exchange_outflow: float = 0.0
    large_transactions: tuple = ()
    tx_volume_24h: float = 0.0
    network_health: str = "good"

    def to_dict(self) -> dict:
        return {
            "fear_greed_index": round(self.fear_greed_index, 2),
            "mempool_size": self.mempool_size,
            "whale_transactions": self.whale_transactions,
            "active_addresses": self.active_addresses,
            "exchange_inflow": self.exchange_inflow,
            "exchange_outflow": self.exchange_outflow,
            "large_transactions": list(self.large_transactions),
            "tx_volume_24h": self.tx_volume_24h,
            "network_health": self.network_health,
        }


@dataclass(frozen=True)
class SessionStatus:
    active: bool
    peak: bool
    timezone: str

    def to_dict(self) -> dict:
        return {"active": self.active, "peak": self.peak, "timezone": self.timezone}


@dataclass(frozen=True)
class MarketSessionState:
    markets: dict[str, SessionStatus]
    utc_time: datetime

    def to_dict(self) -> dict:
        return {
            "markets": {name: s.to_dict() for name, s in self.markets.items()},
            "utc_time": self.utc_time.isoformat(),
        }


def market_sessions(now: datetime | None = None) -> MarketSessionState:
    """Derive regional session activity purely from the current UTC hour."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    hour = now.hour
    markets = {
        name: SessionStatus(
            active=start <= hour < end,
            peak=peak_start <= hour <= peak_end,
            timezone=label,
        )
        for name, (start, end, peak_start, peak_end, label) in MARKET_SESSIONS.items()
    }
    return MarketSessionState(markets=markets, utc_time=now)


@dataclass(frozen=True)
class SignalBundle:
    sentiment: SentimentSnapshot = field(default_factory=SentimentSnapshot)
    onchain: OnchainSnapshot = field(default_factory=OnchainSnapshot)
    market_hours: MarketSessionState = field(default_factory=market_sessions)


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------
def _neutral_on_failure(label: str, fetch: Callable[[], Any], default: Any) -> Any:
    try:
        return fetch()
    except Exception as e:
        logger.warning("%s unavailable, using neutral default: %s", label, e)
        return default


class SignalAggregator:
    """Collect every auxiliary signal concurrently, degrading each to neutral on failure."""

    def __init__(
        self,
        social: SocialSentimentClient | None = None,
        news: NewsSentimentClient | None = None,
        onchain: OnchainClient | None = None,
        max_workers: int | None = None,
    ):
        self.social = social or SocialSentimentClient()
        self.news = news or NewsSentimentClient()
        self.onchain = onchain or OnchainClient()
        self.max_workers = max_workers or int(setting("signals", "max_workers", 4))

    def collect(self, now: datetime | None = None) -> SignalBundle:
        tasks: dict[str, tuple[Callable[[], Any], Any]] = {
            "reddit": (self.social.get_cointrendz_sentiment, 0.0),
            "x": (self.social.get_santiment_sentiment, 0.0),
            "news": (self.news.get_news_sentiment, 0.0),
            "fear_greed": (self.onchain.get_fear_greed_index, 0.0),
            "tx_rate": (self.onchain.get_tx_rate, 0),
        }
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                name: executor.submit(_neutral_on_failure, name, fetch, default)
                for name, (fetch, default) in tasks.items()
            }
            values = {name: future.result() for name, future in futures.items()}

        bundle = SignalBundle(
            sentiment=SentimentSnapshot(reddit=values["reddit"], x=values["x"], news=values["news"]),
            onchain=OnchainSnapshot(
                fear_greed_index=values["fear_greed"],
                mempool_size=values["tx_rate"],
            ),
            market_hours=market_sessions(now),
        )
        logger.info(
            "Signals: social=%.2f news=%.2f fear_greed=%.2f",
            bundle.sentiment.social, bundle.sentiment.news, bundle.onchain.fear_greed_index,
        )
        return bundle
