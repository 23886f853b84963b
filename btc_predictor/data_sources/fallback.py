"""Ordered "first success wins" combinator over source adapters."""

from __future__ import annotations

from typing import Sequence, TypeVar

from btc_predictor.data_sources.base import SourceAdapter
from btc_predictor.errors import AllSourcesExhausted, SourceUnavailable
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("fallback")

T = TypeVar("T")


def fetch_first_success(
    sources: Sequence[SourceAdapter[T]], need: str = "data",
) -> tuple[T, str]:
    """Try *sources* strictly in order and return ``(value, source_name)``.

    Sources after the first success are never invoked. Individual failures
    are logged and collected; only when every source has failed is a single
    ``AllSourcesExhausted`` raised.
    """
    failures: list[tuple[str, str]] = []
    for source in sources:
        try:
            value = source.fetch_once()
        except SourceUnavailable as e:
            logger.warning("%s %s failed: %s", source.name, need, e.reason)
            failures.append((source.name, e.reason))
            continue
        logger.info("Got %s from %s", need, source.name)
        return value, source.name

    logger.error("All %d %s sources failed", len(failures), need)
    raise AllSourcesExhausted(need, failures)
