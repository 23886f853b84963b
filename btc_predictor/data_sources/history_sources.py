"""Hourly candle history adapters.

Each adapter returns a DataFrame indexed by a UTC ``DatetimeIndex`` with
float ``Close`` and ``Volume`` columns, oldest row first. Volumes are quote
(USD) denominated where the provider allows it.
"""

from __future__ import annotations

import time
from abc import abstractmethod
from typing import Any, Iterable

import numpy as np
import pandas as pd
import yfinance as yf

from btc_predictor.config import setting
from btc_predictor.data_sources.base import SourceAdapter
from btc_predictor.errors import MalformedResponse, SourceUnavailable
from btc_predictor.utils.http import get_json

_PARSE_ERRORS = (KeyError, IndexError, TypeError, ValueError, AttributeError, OverflowError)


def history_hours() -> int:
    return int(setting("history", "hours", 168))


def min_samples() -> int:
    return int(setting("history", "min_samples", 50))


def build_history(source: str, rows: Iterable[tuple[Any, Any, Any]]) -> pd.DataFrame:
    """Turn ``(timestamp_ms, close, volume)`` rows into a validated frame.

    Rows are sorted by timestamp and duplicate timestamps collapsed (last
    wins). The result must hold at least ``history.min_samples`` rows of
    finite, strictly positive closes and finite, non-negative volumes.
    """
    try:
        df = pd.DataFrame(list(rows), columns=["timestamp", "Close", "Volume"])
        df["timestamp"] = pd.to_datetime(df["timestamp"].astype("int64"), unit="ms", utc=True)
        df["Close"] = pd.to_numeric(df["Close"], errors="raise").astype(float)
        df["Volume"] = pd.to_numeric(df["Volume"], errors="raise").astype(float)
    except _PARSE_ERRORS as e:
        raise MalformedResponse(source, f"unparsable candles: {e}") from e

    df = (
        df.drop_duplicates(subset="timestamp", keep="last")
        .sort_values("timestamp")
        .set_index("timestamp")
    )

    needed = min_samples()
    if len(df) < needed:
        raise MalformedResponse(source, f"only {len(df)} candles, need {needed}")
    close = df["Close"].to_numpy()
    if not np.all(np.isfinite(close)) or (close <= 0).any():
        raise MalformedResponse(source, "non-positive or missing close prices")
    volume = df["Volume"].to_numpy()
    if not np.all(np.isfinite(volume)) or (volume < 0).any():
        raise MalformedResponse(source, "negative or missing volumes")
    return df


class HistorySource(SourceAdapter[pd.DataFrame]):
    """Adapter template: fetch one payload then turn it into candle rows."""

    @abstractmethod
    def request(self) -> Any:
        """Fetch the raw provider payload."""

    @abstractmethod
    def rows(self, payload: Any) -> list[tuple[Any, Any, Any]]:
        """Return ``(timestamp_ms, close, volume)`` rows from *payload*."""

    def fetch_once(self) -> pd.DataFrame:
        payload = self.request()
        try:
            rows = self.rows(payload)
        except _PARSE_ERRORS as e:
            raise MalformedResponse(self.name, f"unexpected payload shape: {e!r}") from e
        return build_history(self.name, rows)


class BinanceHistory(HistorySource):
    name = "Binance"
    url = "https://api.binance.com/api/v3/klines"

    def request(self):
        params = {"symbol": "BTCUSDT", "interval": "1h", "limit": history_hours()}
        return get_json(self.name, self.url, params=params)

    def rows(self, payload):
        # [open_time, open, high, low, close, volume, close_time, quote_volume, ...]
        return [(c[0], c[4], c[7]) for c in payload]


class KrakenHistory(HistorySource):
    name = "Kraken"
    url = "https://api.kraken.com/0/public/OHLC"

    def request(self):
        since = int(time.time()) - history_hours() * 3600
        params = {"pair": "XBTUSDT", "interval": 60, "since": since}
        return get_json(self.name, self.url, params=params)

    def rows(self, payload):
        if payload.get("error"):
            raise MalformedResponse(self.name, "; ".join(payload["error"]))
        result = payload.get("result") or {}
        pairs = [k for k in result if k != "last"]
        if not pairs:
            raise MalformedResponse(self.name, "no OHLC data in response")
        # [time, open, high, low, close, vwap, volume, count]; the last
        # candle is still forming and is dropped.
        candles = result[pairs[0]][:-1]
        return [(int(c[0]) * 1000, c[4], float(c[5]) * float(c[6])) for c in candles]


class CoinGeckoHistory(HistorySource):
    name = "CoinGecko"
    url = "https://api.coingecko.com/api/v3/coins/bitcoin/market_chart"

    def request(self):
        # 2-90 day ranges are served at hourly granularity
        days = max(2, round(history_hours() / 24))
        return get_json(self.name, self.url, params={"vs_currency": "usd", "days": days})

    def rows(self, payload):
        prices = payload["prices"]
        volumes = payload["total_volumes"]
        if len(prices) != len(volumes):
            raise MalformedResponse(self.name, "price and volume series differ in length")
        return [(p[0], p[1], v[1]) for p, v in zip(prices, volumes)]


class YahooHistory(HistorySource):
    name = "Yahoo"
    ticker = "BTC-USD"

    def request(self):
        days = max(1, round(history_hours() / 24))
        try:
            return yf.Ticker(self.ticker).history(period=f"{days}d", interval="1h")
        except Exception as e:
            raise SourceUnavailable(self.name, f"yfinance history failed: {e}") from e

    def rows(self, payload):
        if payload is None or payload.empty:
            raise MalformedResponse(self.name, "empty history")
        index = payload.index
        if index.tz is None:
            index = index.tz_localize("UTC")
        stamps = (index.tz_convert("UTC") - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)
        # yfinance reports BTC volume in USD already
        return list(zip(stamps.tolist(), payload["Close"].tolist(), payload["Volume"].tolist()))


HISTORY_SOURCES: dict[str, type[HistorySource]] = {
    "binance": BinanceHistory,
    "kraken": KrakenHistory,
    "coingecko": CoinGeckoHistory,
    "yahoo": YahooHistory,
}
