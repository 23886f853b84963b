"""Tests for btc_predictor.analysis.technical -- indicator formulas and snapshot."""

import numpy as np
import pytest

from btc_predictor.analysis.technical import (
    MIN_ROWS,
    BollingerBands,
    TechnicalAnalyzer,
    VolumeProfile,
    atr,
    bollinger_bands,
    ema,
    macd,
    rsi,
    support_resistance,
    volume_profile,
    volume_ratio,
)
from btc_predictor.errors import InsufficientHistory

from conftest import make_candles


# ---------------------------------------------------------------------------
# RSI
# ---------------------------------------------------------------------------

class TestRSI:

    def test_known_value(self):
        # 7 gains of +2 and 7 losses of -1: avg_gain=1, avg_loss=0.5, RS=2
        prices = [100.0]
        for i in range(14):
            prices.append(prices[-1] + (2 if i % 2 == 0 else -1))
        assert rsi(prices) == pytest.approx(100 - 100 / 3)

    def test_only_uses_last_period_moves(self):
        base = [100.0 + (2 if i % 2 == 0 else 0) for i in range(15)]
        noisy_prefix = [500.0, 10.0, 900.0]
        assert rsi(noisy_prefix + base) == pytest.approx(rsi(base))

    def test_no_losses_clamps_to_100(self):
        assert rsi(np.arange(1.0, 30.0)) == 100.0

    def test_flat_series_clamps_to_100(self):
        assert rsi([100.0] * 20) == 100.0

    def test_only_losses_is_zero(self):
        assert rsi(np.arange(30.0, 1.0, -1.0)) == pytest.approx(0.0)

    def test_range_on_random_series(self):
        for seed in range(20):
            value = rsi(make_candles(seed=seed)["Close"])
            assert 0.0 <= value <= 100.0

    def test_insufficient_samples_raises(self):
        with pytest.raises(InsufficientHistory):
            rsi([1.0] * 14)


# ---------------------------------------------------------------------------
# EMA / MACD
# ---------------------------------------------------------------------------

class TestEMA:

    def test_seeded_recurrence(self):
        # k = 0.5; seed 1 -> 1.5 -> 2.25
        assert ema([1.0, 2.0, 3.0], 3) == pytest.approx(2.25)

    def test_ignores_samples_before_seed(self):
        assert ema([1000.0, 1.0, 2.0, 3.0], 3) == pytest.approx(2.25)

    def test_constant_series(self):
        assert ema([42.0] * 30, 12) == pytest.approx(42.0)

    def test_insufficient_samples_raises(self):
        with pytest.raises(InsufficientHistory):
            ema([1.0] * 5, 12)


class TestMACD:

    def test_flat_series_is_zero(self):
        assert macd([100.0] * 40) == pytest.approx(0.0)

    def test_uptrend_is_positive(self, trending_candles):
        assert macd(trending_candles["Close"]) > 0

    def test_downtrend_is_negative(self):
        prices = np.linspace(60_000, 50_000, 60)
        assert macd(prices) < 0


# ---------------------------------------------------------------------------
# Bollinger Bands
# ---------------------------------------------------------------------------

class TestBollingerBands:

    def test_population_std(self):
        prices = [9.0, 11.0] * 10
        bands = bollinger_bands(prices)
        assert bands.middle == pytest.approx(10.0)
        assert bands.upper == pytest.approx(12.0)
        assert bands.lower == pytest.approx(8.0)

    def test_uses_last_20_only(self):
        prices = [1_000.0] * 5 + [9.0, 11.0] * 10
        assert bollinger_bands(prices).middle == pytest.approx(10.0)

    def test_flat_series_collapses(self):
        bands = bollinger_bands([100.0] * 25)
        assert bands.upper == bands.middle == bands.lower == 100.0

    def test_ordering(self, sample_candles):
        bands = bollinger_bands(sample_candles["Close"])
        assert bands.upper >= bands.middle >= bands.lower

    def test_to_dict_rounds(self):
        d = BollingerBands(upper=1.23456, middle=1.0, lower=0.76544).to_dict()
        assert d == {"upper": 1.23, "middle": 1.0, "lower": 0.77}


# ---------------------------------------------------------------------------
# ATR
# ---------------------------------------------------------------------------

class TestATR:

    def test_mean_absolute_change(self):
        prices = [1_000.0] + [100.0, 102.0] * 7 + [100.0]
        assert atr(prices) == pytest.approx(2.0)

    def test_non_negative(self, sample_candles):
        assert atr(sample_candles["Close"]) >= 0

    def test_flat_series_is_zero(self):
        assert atr([100.0] * 20) == 0.0


# ---------------------------------------------------------------------------
# Support / Resistance
# ---------------------------------------------------------------------------

class TestSupportResistance:

    def test_quartile_indices(self):
        rng = np.random.default_rng(0)
        prices = rng.permutation(np.arange(1.0, 51.0))
        sr = support_resistance(prices)
        assert sr.support == 1.0
        assert sr.support2 == 13.0   # sorted[12]
        assert sr.resistance2 == 38.0  # sorted[37]
        assert sr.resistance == 50.0

    def test_uses_last_50(self):
        sr = support_resistance(np.arange(1.0, 61.0))
        assert sr.support == 11.0
        assert sr.resistance == 60.0

    def test_ordering_invariant(self):
        for seed in range(20):
            sr = support_resistance(make_candles(seed=seed)["Close"])
            assert sr.support <= sr.support2 <= sr.resistance2 <= sr.resistance

    def test_insufficient_samples_raises(self):
        with pytest.raises(InsufficientHistory):
            support_resistance([1.0] * 49)


# ---------------------------------------------------------------------------
# Volume
# ---------------------------------------------------------------------------

class TestVolumeProfile:

    def test_buckets_last_24(self):
        prices = [70_000.0] * 6 + [50_050.0] * 12 + [50_150.0] * 12
        volumes = [999.0] * 6 + [1.0] * 12 + [2.0] * 12
        profile = volume_profile(prices, volumes)
        assert dict(profile) == {50_000: 12.0, 50_100: 24.0}

    def test_keys_ascending(self):
        prices = [50_350.0, 50_150.0, 50_250.0] * 8
        profile = volume_profile(prices, [1.0] * 24)
        assert list(profile) == [50_100, 50_200, 50_300]

    def test_total_volume_preserved(self, sample_candles):
        profile = volume_profile(sample_candles["Close"], sample_candles["Volume"])
        assert sum(profile.values()) == pytest.approx(sample_candles["Volume"].iloc[-24:].sum())

    def test_is_read_only_mapping(self):
        profile = VolumeProfile({200: 1.0, 100: 2.0})
        assert list(profile.items()) == [(100, 2.0), (200, 1.0)]
        with pytest.raises(TypeError):
            profile[300] = 1.0

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            volume_profile([1.0] * 24, [1.0] * 23)

    def test_to_dict_string_keys(self):
        assert VolumeProfile({50_000: 1.234}).to_dict() == {"50000": 1.23}


class TestVolumeRatio:

    def test_latest_over_mean(self):
        volumes = [1.0] * 23 + [2.0]
        assert volume_ratio(volumes) == pytest.approx(2.0 / (25.0 / 24.0))

    def test_zero_volume_is_zero(self):
        assert volume_ratio([0.0] * 30) == 0.0


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

class TestComputeSnapshot:

    def setup_method(self):
        self.analyzer = TechnicalAnalyzer()

    def test_snapshot_fields(self, sample_candles):
        snap = self.analyzer.compute_snapshot(sample_candles)
        close = sample_candles["Close"]
        assert snap.rsi == pytest.approx(rsi(close))
        assert snap.macd == pytest.approx(macd(close))
        assert snap.atr == pytest.approx(atr(close))
        assert snap.volume_ratio >= 0
        assert len(snap.volume_profile) >= 1

    def test_to_dict_keys(self, sample_candles):
        d = self.analyzer.compute_snapshot(sample_candles).to_dict()
        assert set(d) == {
            "rsi", "macd", "atr", "bollinger_bands", "volume_ratio",
            "support_resistance", "volume_profile",
        }

    def test_deterministic(self, sample_candles):
        a = self.analyzer.compute_snapshot(sample_candles)
        b = self.analyzer.compute_snapshot(sample_candles.copy())
        assert a == b

    def test_short_history_raises(self):
        with pytest.raises(InsufficientHistory):
            self.analyzer.compute_snapshot(make_candles(n=MIN_ROWS - 1))

    def test_minimum_history_accepted(self):
        snap = self.analyzer.compute_snapshot(make_candles(n=MIN_ROWS))
        assert 0 <= snap.rsi <= 100
