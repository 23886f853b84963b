"""On-chain and market-mood metrics.

Fear & Greed index from alternative.me (no key required) and the network
transaction rate from blockchain.info.
"""

from __future__ import annotations

from btc_predictor.errors import MalformedResponse
from btc_predictor.utils.http import get_json, get_text
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("onchain")


class OnchainClient:
    """Fetch BTC on-chain metrics."""

    FEAR_GREED_URL = "https://api.alternative.me/fng/"
    TX_RATE_URL = "https://blockchain.info/q/txrate"

    def get_fear_greed_index(self) -> float:
        """Fear & Greed index rescaled from 0..100 to -1..1."""
        data = get_json("alternative.me", self.FEAR_GREED_URL, params={"limit": 1, "format": "json"})
        try:
            value = int(data["data"][0]["value"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise MalformedResponse("alternative.me", "missing fear & greed value") from e
        return max(-1.0, min(1.0, (value - 50) / 50))

    def get_tx_rate(self) -> int:
        """Transactions per second on the network; 0 when the body is not a number."""
        body = get_text("blockchain.info", self.TX_RATE_URL).strip()
        try:
            return max(0, int(float(body)))
        except (ValueError, OverflowError):
            logger.debug("Unparsable tx rate %r", body[:40])
            return 0
