"""Spot price adapters, one per exchange / aggregator.

Each adapter performs a single public ticker request and returns the last
traded BTC price in USD (or USDT) as a strictly positive float.
"""

from __future__ import annotations

import math
from abc import abstractmethod
from typing import Any

from btc_predictor.data_sources.base import SourceAdapter
from btc_predictor.errors import MalformedResponse
from btc_predictor.utils.http import get_json

_PARSE_ERRORS = (KeyError, IndexError, TypeError, ValueError, AttributeError, OverflowError)


def validate_price(source: str, raw: Any) -> float:
    """Coerce *raw* to a finite, strictly positive float."""
    try:
        price = float(raw)
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedResponse(source, f"unparsable price {raw!r}") from e
    if not math.isfinite(price) or price <= 0:
        raise MalformedResponse(source, f"non-positive price {raw!r}")
    return price


class PriceSource(SourceAdapter[float]):
    """Adapter template: GET ``url`` with ``params`` then ``parse`` the body."""

    url: str = ""
    params: dict | None = None

    @abstractmethod
    def parse(self, payload: Any) -> Any:
        """Extract the raw price field from a decoded response body."""

    def fetch_once(self) -> float:
        payload = get_json(self.name, self.url, params=self.params)
        try:
            raw = self.parse(payload)
        except _PARSE_ERRORS as e:
            raise MalformedResponse(self.name, f"unexpected payload shape: {e!r}") from e
        return validate_price(self.name, raw)


class BinancePrice(PriceSource):
    name = "Binance"
    url = "https://api.binance.com/api/v3/ticker/price"
    params = {"symbol": "BTCUSDT"}

    def parse(self, payload):
        return payload["price"]


class KrakenPrice(PriceSource):
    name = "Kraken"
    url = "https://api.kraken.com/0/public/Ticker"
    params = {"pair": "XBTUSDT"}

    def parse(self, payload):
        result = payload["result"]
        pair = next(iter(result), None)
        if pair is None:
            raise MalformedResponse(self.name, "no ticker in response")
        # "c" is [last trade price, lot volume]
        return result[pair]["c"][0]


class CoinbasePrice(PriceSource):
    name = "Coinbase"
    url = "https://api.coinbase.com/v2/prices/BTC-USD/spot"

    def parse(self, payload):
        return payload["data"]["amount"]


class BybitPrice(PriceSource):
    name = "Bybit"
    url = "https://api.bybit.com/v5/market/tickers"
    params = {"category": "spot", "symbol": "BTCUSDT"}

    def parse(self, payload):
        tickers = (payload.get("result") or {}).get("list") or []
        if not tickers:
            raise MalformedResponse(self.name, "no tickers in response")
        return tickers[0]["lastPrice"]


class OKXPrice(PriceSource):
    name = "OKX"
    url = "https://www.okx.com/api/v5/market/ticker"
    params = {"instId": "BTC-USDT"}

    def parse(self, payload):
        data = payload.get("data") or []
        if not data:
            raise MalformedResponse(self.name, "no ticker data in response")
        return data[0]["last"]


class CoinGeckoPrice(PriceSource):
    name = "CoinGecko"
    url = "https://api.coingecko.com/api/v3/simple/price"
    params = {"ids": "bitcoin", "vs_currencies": "usd"}

    def parse(self, payload):
        return payload["bitcoin"]["usd"]


PRICE_SOURCES: dict[str, type[PriceSource]] = {
    "binance": BinancePrice,
    "kraken": KrakenPrice,
    "coinbase": CoinbasePrice,
    "bybit": BybitPrice,
    "okx": OKXPrice,
    "coingecko": CoinGeckoPrice,
}
