"""Heuristic prediction scoring.

Each timeframe starts from a neutral ``ScoringState`` (direction neutral,
confidence 0.5, target = current price) and is threaded through an ordered
list of pure rule functions. A rule may overwrite the direction, add to the
confidence, append a reasoning label and move the target. Later rules win
on direction; confidence accumulates from every matching rule and is
clamped to [0.5, 0.95] at the end.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Callable, Sequence

from btc_predictor.analysis.signals import SentimentSnapshot
from btc_predictor.analysis.technical import BollingerBands, IndicatorSnapshot, SupportResistance
from btc_predictor.config import setting
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("scoring")

UP = "up"
DOWN = "down"
NEUTRAL = "neutral"

BASE_CONFIDENCE = 0.5
MIN_CONFIDENCE = 0.5
MAX_CONFIDENCE = 0.95

RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30
MACD_BEARISH = -50
BAND_BREAKOUT = 0.02
HIGH_VOLUME_RATIO = 1.5
SOCIAL_THRESHOLD = 0.2
NEWS_THRESHOLD = 0.3
STOP_LOSS_ATR = 2.0


@dataclass(frozen=True)
class Timeframe:
    label: str
    hours: float
    volatility_multiplier: float


DEFAULT_TIMEFRAMES: tuple[Timeframe, ...] = (
    Timeframe("1h", 1, 0.5),
    Timeframe("2h", 2, 0.7),
    Timeframe("3h", 3, 0.85),
    Timeframe("5h", 5, 1.0),
)


def load_timeframes() -> tuple[Timeframe, ...]:
    """Timeframes from ``prediction.timeframes`` in settings, in configured order."""
    configured = setting("prediction", "timeframes")
    if not configured:
        return DEFAULT_TIMEFRAMES
    return tuple(
        Timeframe(
            label=str(tf["label"]),
            hours=float(tf["hours"]),
            volatility_multiplier=float(tf.get("volatility_multiplier", 1.0)),
        )
        for tf in configured
    )


@dataclass(frozen=True)
class ScoringInputs:
    current_price: float
    rsi: float
    macd: float
    bollinger: BollingerBands
    atr: float
    support_resistance: SupportResistance
    volume_ratio: float
    social_sentiment: float
    news_sentiment: float

    @classmethod
    def from_snapshots(
        cls, current_price: float, indicators: IndicatorSnapshot, sentiment: SentimentSnapshot,
    ) -> ScoringInputs:
        return cls(
            current_price=current_price,
            rsi=indicators.rsi,
            macd=indicators.macd,
            bollinger=indicators.bollinger,
            atr=indicators.atr,
            support_resistance=indicators.support_resistance,
            volume_ratio=indicators.volume_ratio,
            social_sentiment=sentiment.social,
            news_sentiment=sentiment.news,
        )


@dataclass(frozen=True)
class ScoringState:
    direction: str
    confidence: float
    target: float
    reasoning: tuple[str, ...] = ()

    @classmethod
    def initial(cls, current_price: float) -> ScoringState:
        return cls(direction=NEUTRAL, confidence=BASE_CONFIDENCE, target=current_price)

    def with_reason(self, label: str, **changes) -> ScoringState:
        return replace(self, reasoning=self.reasoning + (label,), **changes)


Rule = Callable[[ScoringState, ScoringInputs], ScoringState]


# ---------------------------------------------------------------------------
# Rules, applied in list order
# ---------------------------------------------------------------------------
def rsi_rule(s: ScoringState, x: ScoringInputs) -> ScoringState:
    if x.rsi > RSI_OVERBOUGHT:
        return s.with_reason("RSI overbought", direction=DOWN, confidence=s.confidence + 0.15,
                             target=s.target - 1.5 * x.atr)
    if x.rsi < RSI_OVERSOLD:
        return s.with_reason("RSI oversold", direction=UP, confidence=s.confidence + 0.15,
                             target=s.target + 1.5 * x.atr)
    return s


def macd_rule(s: ScoringState, x: ScoringInputs) -> ScoringState:
    # MACD only sets direction (and adds confidence) when it does not
    # contradict a direction already chosen.
    if x.macd > 0:
        direction, confidence = s.direction, s.confidence
        if direction != DOWN:
            direction, confidence = UP, confidence + 0.12
        return s.with_reason("MACD positive", direction=direction, confidence=confidence,
                             target=s.target + 0.8 * x.atr)
    if x.macd < MACD_BEARISH:
        direction, confidence = s.direction, s.confidence
        if direction != UP:
            direction, confidence = DOWN, confidence + 0.12
        return s.with_reason("MACD negative", direction=direction, confidence=confidence,
                             target=s.target - 0.8 * x.atr)
    return s


def bollinger_rule(s: ScoringState, x: ScoringInputs) -> ScoringState:
    # Band breakouts override direction and snap the target to the inner band.
    if x.current_price > x.bollinger.upper * (1 + BAND_BREAKOUT):
        return s.with_reason("Price at resistance", direction=DOWN, confidence=s.confidence + 0.2,
                             target=x.support_resistance.support2)
    if x.current_price < x.bollinger.lower * (1 - BAND_BREAKOUT):
        return s.with_reason("Price at support", direction=UP, confidence=s.confidence + 0.2,
                             target=x.support_resistance.resistance2)
    return s


def volume_rule(s: ScoringState, x: ScoringInputs) -> ScoringState:
    if x.volume_ratio > HIGH_VOLUME_RATIO and s.direction == UP:
        return s.with_reason("High volume bullish", confidence=s.confidence + 0.15, target=s.target * 1.01)
    if x.volume_ratio > HIGH_VOLUME_RATIO and s.direction == DOWN:
        return s.with_reason("High volume bearish", confidence=s.confidence + 0.15, target=s.target * 0.99)
    return s


def social_sentiment_rule(s: ScoringState, x: ScoringInputs) -> ScoringState:
    if x.social_sentiment > SOCIAL_THRESHOLD:
        return s.with_reason("Strong bullish sentiment", confidence=s.confidence + 0.10, target=s.target * 1.005)
    if x.social_sentiment < -SOCIAL_THRESHOLD:
        return s.with_reason("Strong bearish sentiment", confidence=s.confidence + 0.10, target=s.target * 0.995)
    return s


def news_sentiment_rule(s: ScoringState, x: ScoringInputs) -> ScoringState:
    if x.news_sentiment > NEWS_THRESHOLD:
        return s.with_reason("Positive news", confidence=s.confidence + 0.08, target=s.target * 1.003)
    if x.news_sentiment < -NEWS_THRESHOLD:
        return s.with_reason("Negative news", confidence=s.confidence + 0.08, target=s.target * 0.997)
    return s


RULES: tuple[Rule, ...] = (
    rsi_rule,
    macd_rule,
    bollinger_rule,
    volume_rule,
    social_sentiment_rule,
    news_sentiment_rule,
)


# ---------------------------------------------------------------------------
# Predictions
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Prediction:
    timeframe: Timeframe
    target_price: float
    direction: str
    confidence: float      # fraction, 0.5 .. 0.95
    reasoning: tuple[str, ...]
    stop_loss: float
    take_profit: float
    risk_reward: float     # inf when the stop-loss distance is zero

    @property
    def confidence_pct(self) -> float:
        return round(self.confidence * 100, 1)

    def to_dict(self) -> dict:
        return {
            "timeframe": self.timeframe.label,
            "hours": self.timeframe.hours,
            "volatility_multiplier": self.timeframe.volatility_multiplier,
            "target_price": round(self.target_price, 2),
            "direction": self.direction,
            "confidence": self.confidence_pct,
            "reasoning": list(self.reasoning),
            "stop_loss": round(self.stop_loss, 2),
            "take_profit": round(self.take_profit, 2),
            "risk_reward": round(self.risk_reward, 2) if math.isfinite(self.risk_reward) else None,
        }


def stop_loss_for(direction: str, current_price: float, atr: float) -> float:
    # Neutral falls through to the short-side stop.
    if direction == UP:
        return current_price - STOP_LOSS_ATR * atr
    return current_price + STOP_LOSS_ATR * atr


def risk_reward_ratio(current_price: float, target: float, stop_loss: float) -> float:
    """Reward distance over risk distance; inf when risk is 0 and reward is not, 0.0 when both are 0."""
    risk = abs(current_price - stop_loss)
    reward = abs(target - current_price)
    if risk == 0:
        return 0.0 if reward == 0 else math.inf
    return reward / risk


class PredictionGenerator:
    """Turn price, indicators and sentiment into one prediction per timeframe."""

    def __init__(self, timeframes: Sequence[Timeframe] | None = None, rules: Sequence[Rule] = RULES):
        self.timeframes = tuple(timeframes) if timeframes is not None else load_timeframes()
        self.rules = tuple(rules)

    def score(self, inputs: ScoringInputs) -> ScoringState:
        state = ScoringState.initial(inputs.current_price)
        for rule in self.rules:
            state = rule(state, inputs)
        return replace(state, confidence=max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, state.confidence)))

    def predict(self, timeframe: Timeframe, inputs: ScoringInputs) -> Prediction:
        state = self.score(inputs)
        stop_loss = stop_loss_for(state.direction, inputs.current_price, inputs.atr)
        return Prediction(
            timeframe=timeframe,
            target_price=state.target,
            direction=state.direction,
            confidence=state.confidence,
            reasoning=state.reasoning,
            stop_loss=stop_loss,
            take_profit=state.target,
            risk_reward=risk_reward_ratio(inputs.current_price, state.target, stop_loss),
        )

    def generate(
        self, current_price: float, indicators: IndicatorSnapshot, sentiment: SentimentSnapshot,
    ) -> list[Prediction]:
        inputs = ScoringInputs.from_snapshots(current_price, indicators, sentiment)
        predictions = [self.predict(tf, inputs) for tf in self.timeframes]
        if predictions:
            p = predictions[0]
            logger.info(
                "Prediction: %s %.1f%% target=%.2f (%s)",
                p.direction, p.confidence_pct, p.target_price, " + ".join(p.reasoning) or "no signals",
            )
        return predictions
