"""Tests for btc_predictor.pipeline.engine and the CLI entry point."""

import json
from unittest.mock import MagicMock, patch

import pytest

from btc_predictor.analysis.signals import SignalBundle, SentimentSnapshot
from btc_predictor.data_sources.market_data import MarketDataClient, PriceHistory
from btc_predictor.errors import AllSourcesExhausted, InsufficientHistory, SourceUnavailable
from btc_predictor.pipeline.engine import AnalysisEngine

from conftest import make_candles


def _failing_source(name):
    src = MagicMock()
    src.name = name
    src.fetch_once.side_effect = SourceUnavailable(name, "down")
    return src


def _engine(candles=None, history_error=None, bundle=None):
    market = MagicMock(spec=MarketDataClient)
    if history_error is not None:
        market.get_price_history.side_effect = history_error
    else:
        market.get_price_history.return_value = PriceHistory(candles=candles, source="Binance")
    signals = MagicMock()
    signals.collect.return_value = bundle or SignalBundle()
    return AnalysisEngine(market=market, signals=signals)


class TestGetAnalysis:

    def test_full_report(self, sample_candles):
        report = _engine(sample_candles).get_analysis()
        assert report.current_price == pytest.approx(sample_candles["Close"].iloc[-1])
        assert report.history_source == "Binance"
        assert [p.timeframe.label for p in report.predictions] == ["1h", "2h", "3h", "5h"]
        for p in report.predictions:
            assert 50.0 <= p.confidence_pct <= 95.0

    def test_to_dict_is_json_serialisable(self, sample_candles):
        d = _engine(sample_candles).get_analysis().to_dict()
        assert set(d) == {
            "current_price", "history_source", "predictions", "sentiment", "news_sentiment",
            "indicators", "onchain_metrics", "market_hours", "timestamp",
        }
        json.dumps(d, allow_nan=False)

    def test_signals_feed_predictions(self, sample_candles):
        bundle = SignalBundle(sentiment=SentimentSnapshot(reddit=1.0, x=1.0, news=1.0))
        report = _engine(sample_candles, bundle=bundle).get_analysis()
        reasons = report.predictions[0].reasoning
        assert "Strong bullish sentiment" in reasons
        assert "Positive news" in reasons

    def test_history_failure_propagates(self):
        error = AllSourcesExhausted("price history", [("Binance", "down")])
        with pytest.raises(AllSourcesExhausted):
            _engine(history_error=error).get_analysis()

    def test_short_history_raises(self):
        with pytest.raises(InsufficientHistory):
            _engine(make_candles(n=30)).get_analysis()

    def test_repeated_runs_are_identical(self, sample_candles):
        engine = _engine(sample_candles)
        a = engine.get_analysis()
        b = engine.get_analysis()
        assert a.predictions == b.predictions
        assert a.indicators == b.indicators


class TestGetSpotPrice:

    def test_all_price_sources_fail(self):
        market = MarketDataClient(price_sources=[_failing_source(n) for n in
                                                 ("Binance", "Kraken", "Coinbase", "Bybit", "OKX", "CoinGecko")])
        engine = AnalysisEngine(market=market, signals=MagicMock())
        with pytest.raises(AllSourcesExhausted) as exc:
            engine.get_spot_price()
        assert len(exc.value.failures) == 6


class TestCli:

    def test_price_failure_exits_non_zero(self, capsys):
        import main

        engine = MagicMock()
        engine.get_spot_price.side_effect = AllSourcesExhausted("spot price", [])
        with patch.object(main, "AnalysisEngine", return_value=engine), \
                patch("sys.argv", ["main.py", "price"]):
            with pytest.raises(SystemExit) as exc:
                main.main()
        assert exc.value.code != 0

    def test_analyze_json(self, sample_candles, capsys):
        import main

        with patch.object(main, "AnalysisEngine", return_value=_engine(sample_candles)), \
                patch("sys.argv", ["main.py", "analyze", "--json"]):
            main.main()
        out = json.loads(capsys.readouterr().out)
        assert len(out["predictions"]) == 4

    def test_analyze_table(self, sample_candles, capsys):
        import main

        with patch.object(main, "AnalysisEngine", return_value=_engine(sample_candles)), \
                patch("sys.argv", ["main.py", "analyze"]):
            main.main()
        out = capsys.readouterr().out
        assert "RSI" in out
        assert "5h" in out
