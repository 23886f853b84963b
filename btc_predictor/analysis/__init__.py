from .technical import TechnicalAnalyzer, IndicatorSnapshot
from .signals import SignalAggregator, SignalBundle, SentimentSnapshot, OnchainSnapshot, MarketSessionState
from .scoring import PredictionGenerator, Prediction, Timeframe
