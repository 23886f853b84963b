"""BTC-Predictor: multi-source market data, indicators and short-horizon predictions."""

__version__ = "1.0.0"
