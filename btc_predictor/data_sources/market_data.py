"""Market data client - spot price and hourly candle history.

Both needs are served by ordered fallback chains configured under
``sources`` in configs/settings.yaml. The first provider that answers with
valid data wins; nothing is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

import pandas as pd

from btc_predictor.config import setting
from btc_predictor.data_sources.base import SourceAdapter
from btc_predictor.data_sources.fallback import fetch_first_success
from btc_predictor.data_sources.history_sources import HISTORY_SOURCES
from btc_predictor.data_sources.price_sources import PRICE_SOURCES
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("market_data")


@dataclass(frozen=True)
class SpotQuote:
    price: float
    source: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "price": round(self.price, 2),
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }


@dataclass(frozen=True)
class PriceHistory:
    candles: pd.DataFrame
    source: str

    @property
    def current_price(self) -> float:
        return float(self.candles["Close"].iloc[-1])


def _build_chain(names: Sequence[str], registry: dict[str, type], kind: str) -> list[SourceAdapter]:
    unknown = [n for n in names if n not in registry]
    if unknown:
        raise ValueError(f"Unknown {kind} source(s): {', '.join(unknown)}")
    if not names:
        raise ValueError(f"No {kind} sources configured")
    return [registry[n]() for n in names]


class MarketDataClient:
    """Fetch BTC spot price and hourly history through fallback chains."""

    def __init__(
        self,
        price_sources: Sequence[SourceAdapter[float]] | None = None,
        history_sources: Sequence[SourceAdapter[pd.DataFrame]] | None = None,
    ):
        if price_sources is None:
            names = setting("sources", "price", list(PRICE_SOURCES))
            price_sources = _build_chain(names, PRICE_SOURCES, "price")
        if history_sources is None:
            names = setting("sources", "history", list(HISTORY_SOURCES))
            history_sources = _build_chain(names, HISTORY_SOURCES, "history")
        self.price_sources = list(price_sources)
        self.history_sources = list(history_sources)

    def get_spot_price(self) -> SpotQuote:
        """Get the latest BTC price.

        Raises:
            AllSourcesExhausted: if no provider returned a positive price.
        """
        price, source = fetch_first_success(self.price_sources, need="spot price")
        logger.info("BTC spot %.2f from %s", price, source)
        return SpotQuote(price=price, source=source)

    def get_price_history(self) -> PriceHistory:
        """Get the trailing hourly Close/Volume history.

        Raises:
            AllSourcesExhausted: if no provider returned a usable series.
        """
        candles, source = fetch_first_success(self.history_sources, need="price history")
        logger.info("Got %d hourly candles from %s", len(candles), source)
        return PriceHistory(candles=candles, source=source)
