"""AnalysisEngine: the two entry points exposed to callers.

* ``get_spot_price()`` - spot BTC price via the price fallback chain.
* ``get_analysis()``   - history -> indicators, signals in parallel,
  then one prediction per configured timeframe.

Every call is stateless: all data is fetched fresh and every result object
is built for that call only.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone

from btc_predictor.analysis.scoring import Prediction, PredictionGenerator
from btc_predictor.analysis.signals import SignalAggregator, SignalBundle
from btc_predictor.analysis.technical import IndicatorSnapshot, TechnicalAnalyzer
from btc_predictor.data_sources.market_data import MarketDataClient, SpotQuote
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("pipeline")


@dataclass(frozen=True)
class AnalysisReport:
    current_price: float
    history_source: str
    predictions: tuple[Prediction, ...]
    indicators: IndicatorSnapshot
    signals: SignalBundle
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "current_price": round(self.current_price, 2),
            "history_source": self.history_source,
            "predictions": [p.to_dict() for p in self.predictions],
            "sentiment": self.signals.sentiment.to_dict(),
            "news_sentiment": round(self.signals.sentiment.news, 2),
            "indicators": self.indicators.to_dict(),
            "onchain_metrics": self.signals.onchain.to_dict(),
            "market_hours": self.signals.market_hours.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


class AnalysisEngine:
    """Wire market data, indicators, signals and scoring together."""

    def __init__(
        self,
        market: MarketDataClient | None = None,
        signals: SignalAggregator | None = None,
        technical: TechnicalAnalyzer | None = None,
        predictor: PredictionGenerator | None = None,
    ):
        self.market = market or MarketDataClient()
        self.signals = signals or SignalAggregator()
        self.technical = technical or TechnicalAnalyzer()
        self.predictor = predictor or PredictionGenerator()

    def get_spot_price(self) -> SpotQuote:
        """Latest BTC spot quote.

        Raises:
            AllSourcesExhausted: when every price source failed.
        """
        return self.market.get_spot_price()

    def get_analysis(self) -> AnalysisReport:
        """Full analysis with predictions for every configured timeframe.

        History and auxiliary signals are fetched concurrently. Signal
        failures degrade to neutral values; a history failure aborts.

        Raises:
            AllSourcesExhausted: when no history source returned a usable series.
            InsufficientHistory: when the returned series is too short for the indicators.
        """
        start = time.monotonic()
        with ThreadPoolExecutor(max_workers=2) as executor:
            history_future = executor.submit(self.market.get_price_history)
            signals_future = executor.submit(self.signals.collect)
            history = history_future.result()
            signals = signals_future.result()

        indicators = self.technical.compute_snapshot(history.candles)
        current_price = history.current_price
        predictions = self.predictor.generate(current_price, indicators, signals.sentiment)

        logger.info(
            "Analysis completed in %.1fs (history from %s, %d predictions)",
            time.monotonic() - start, history.source, len(predictions),
        )
        return AnalysisReport(
            current_price=current_price,
            history_source=history.source,
            predictions=tuple(predictions),
            indicators=indicators,
            signals=signals,
        )
