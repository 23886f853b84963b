"""Technical indicator engine.

All indicators read the tail of the series (most recent samples), not
calendar windows, so irregular spacing between candles is tolerated. Each
function refuses series shorter than its lookback window with
``InsufficientHistory``.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np
import pandas as pd

from btc_predictor.errors import InsufficientHistory
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("technical")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
BB_PERIOD = 20
BB_STDS = 2.0
ATR_PERIOD = 14
SR_LOOKBACK = 50
SR_LOWER_QUANTILE = 0.25
SR_UPPER_QUANTILE = 0.75
VOLUME_WINDOW = 24
VOLUME_BUCKET = 100

MIN_ROWS = max(RSI_PERIOD + 1, MACD_SLOW, BB_PERIOD, ATR_PERIOD + 1, SR_LOOKBACK, VOLUME_WINDOW)


def _as_array(values: Sequence[float] | np.ndarray | pd.Series) -> np.ndarray:
    return np.asarray(values, dtype=float)


def _require(arr: np.ndarray, n: int, indicator: str) -> None:
    if len(arr) < n:
        raise InsufficientHistory(f"{indicator} needs {n} samples, got {len(arr)}")


# ---------------------------------------------------------------------------
# Indicators
# ---------------------------------------------------------------------------
def rsi(prices, period: int = RSI_PERIOD) -> float:
    """Simple-average RSI over the last *period* price changes.

    Returns 100.0 when there were no losing moves in the window.
    """
    p = _as_array(prices)
    _require(p, period + 1, "RSI")
    deltas = np.diff(p[-(period + 1):])
    gains = deltas[deltas > 0].sum()
    losses = -deltas[deltas < 0].sum()
    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0
    return float(100 - 100 / (1 + avg_gain / avg_loss))


def ema(prices, period: int) -> float:
    """EMA seeded with the raw price *period* samples from the end."""
    p = _as_array(prices)
    _require(p, period, f"EMA({period})")
    k = 2 / (period + 1)
    value = p[-period]
    for price in p[-period + 1:]:
        value = price * k + value * (1 - k)
    return float(value)


def macd(prices, fast: int = MACD_FAST, slow: int = MACD_SLOW) -> float:
    """MACD line only: EMA(fast) - EMA(slow), no signal smoothing."""
    return ema(prices, fast) - ema(prices, slow)


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float

    def to_dict(self) -> dict:
        return {
            "upper": round(self.upper, 2),
            "middle": round(self.middle, 2),
            "lower": round(self.lower, 2),
        }


def bollinger_bands(prices, period: int = BB_PERIOD, stds: float = BB_STDS) -> BollingerBands:
    """SMA +/- *stds* population standard deviations of the last *period* prices."""
    p = _as_array(prices)
    _require(p, period, "Bollinger Bands")
    window = p[-period:]
    middle = float(window.mean())
    sd = float(window.std(ddof=0))
    return BollingerBands(upper=middle + stds * sd, middle=middle, lower=middle - stds * sd)


def atr(prices, period: int = ATR_PERIOD) -> float:
    """Close-only ATR proxy: mean absolute change over the last *period* moves."""
    p = _as_array(prices)
    _require(p, period + 1, "ATR")
    true_range = np.abs(np.diff(p))
    return float(true_range[-period:].mean())


@dataclass(frozen=True)
class SupportResistance:
    support: float
    support2: float
    resistance2: float
    resistance: float

    def to_dict(self) -> dict:
        return {
            "support": round(self.support, 2),
            "support2": round(self.support2, 2),
            "resistance2": round(self.resistance2, 2),
            "resistance": round(self.resistance, 2),
        }


def support_resistance(prices, lookback: int = SR_LOOKBACK) -> SupportResistance:
    """Extremes of the last *lookback* prices plus an inner quartile band."""
    p = _as_array(prices)
    _require(p, lookback, "Support/Resistance")
    window = np.sort(p[-lookback:])
    n = len(window)
    return SupportResistance(
        support=float(window[0]),
        support2=float(window[math.floor(n * SR_LOWER_QUANTILE)]),
        resistance2=float(window[math.floor(n * SR_UPPER_QUANTILE)]),
        resistance=float(window[-1]),
    )


class VolumeProfile(Mapping):
    """Read-only mapping of price-bucket floor -> accumulated volume.

    Iteration is in ascending bucket order.
    """

    def __init__(self, buckets: dict[int, float], bucket_size: int = VOLUME_BUCKET):
        self._buckets = dict(sorted(buckets.items()))
        self.bucket_size = bucket_size

    def __getitem__(self, key: int) -> float:
        return self._buckets[key]

    def __iter__(self) -> Iterator[int]:
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __repr__(self) -> str:
        return f"VolumeProfile({self._buckets!r})"

    def to_dict(self) -> dict[str, float]:
        return {str(k): round(v, 2) for k, v in self._buckets.items()}


def volume_profile(prices, volumes, window: int = VOLUME_WINDOW, bucket_size: int = VOLUME_BUCKET) -> VolumeProfile:
    """Sum the last *window* volumes into fixed-width price buckets."""
    p = _as_array(prices)
    v = _as_array(volumes)
    if len(p) != len(v):
        raise ValueError(f"prices and volumes differ in length ({len(p)} vs {len(v)})")
    _require(p, window, "Volume Profile")
    buckets: dict[int, float] = {}
    for price, vol in zip(p[-window:], v[-window:]):
        key = int(math.floor(price / bucket_size) * bucket_size)
        buckets[key] = buckets.get(key, 0.0) + float(vol)
    return VolumeProfile(buckets, bucket_size)


def volume_ratio(volumes, window: int = VOLUME_WINDOW) -> float:
    """Latest volume over the mean of the last *window* volumes (0.0 if that mean is 0)."""
    v = _as_array(volumes)
    _require(v, window, "Volume Ratio")
    avg = v[-window:].mean()
    if avg == 0:
        return 0.0
    return float(v[-1] / avg)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class IndicatorSnapshot:
    rsi: float
    macd: float
    bollinger: BollingerBands
    atr: float
    support_resistance: SupportResistance
    volume_ratio: float
    volume_profile: VolumeProfile

    def to_dict(self) -> dict:
        return {
            "rsi": round(self.rsi, 2),
            "macd": round(self.macd, 2),
            "atr": round(self.atr, 2),
            "bollinger_bands": self.bollinger.to_dict(),
            "volume_ratio": round(self.volume_ratio, 2),
            "support_resistance": self.support_resistance.to_dict(),
            "volume_profile": self.volume_profile.to_dict(),
        }


class TechnicalAnalyzer:
    """Compute the full indicator snapshot from an hourly Close/Volume frame."""

    def compute_snapshot(self, candles: pd.DataFrame) -> IndicatorSnapshot:
        """Compute every indicator on *candles*.

        Raises:
            InsufficientHistory: when fewer than ``MIN_ROWS`` candles are given.
        """
        n = len(candles)
        if n < MIN_ROWS:
            raise InsufficientHistory(f"Indicator snapshot needs {MIN_ROWS} candles, got {n}")

        close = candles["Close"].to_numpy(dtype=float)
        volume = candles["Volume"].to_numpy(dtype=float)

        snapshot = IndicatorSnapshot(
            rsi=rsi(close),
            macd=macd(close),
            bollinger=bollinger_bands(close),
            atr=atr(close),
            support_resistance=support_resistance(close),
            volume_ratio=volume_ratio(volume),
            volume_profile=volume_profile(close, volume),
        )
        logger.info(
            "Indicators on %d candles: RSI=%.1f MACD=%.2f ATR=%.2f vol_ratio=%.2f",
            n, snapshot.rsi, snapshot.macd, snapshot.atr, snapshot.volume_ratio,
        )
        return snapshot
