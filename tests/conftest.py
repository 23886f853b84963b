"""Shared pytest fixtures for the BTC-Predictor test suite.

Provides synthetic hourly candles with a fixed random seed for
reproducibility. All fixtures are independent of external APIs.
"""

import numpy as np
import pandas as pd
import pytest


def make_candles(n=168, seed=42, start_price=50_000.0, drift=0.0, vol=0.004):
    """Hourly Close/Volume frame following a geometric random walk."""
    rng = np.random.default_rng(seed)
    index = pd.date_range("2024-01-01", periods=n, freq="h", tz="UTC")
    close = start_price * np.exp(np.cumsum(rng.normal(drift, vol, n)))
    volume = rng.uniform(5e7, 2e8, n)
    return pd.DataFrame({"Close": close, "Volume": volume}, index=index)


@pytest.fixture
def sample_candles():
    """168 hourly candles (7 days) around $50k, seeded at 42."""
    return make_candles()


@pytest.fixture
def trending_candles():
    """168 hourly candles with a steady upward drift."""
    return make_candles(drift=0.002, vol=0.001)
