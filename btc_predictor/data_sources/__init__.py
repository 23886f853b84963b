"""Data source modules: spot/history fallback chains and auxiliary signals."""

from .market_data import MarketDataClient, PriceHistory, SpotQuote
from .alternative_data import SocialSentimentClient
from .news_sentiment import NewsSentimentClient
from .onchain import OnchainClient
