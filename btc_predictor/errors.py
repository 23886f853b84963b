"""Error taxonomy for data acquisition and indicator computation."""

from __future__ import annotations


class SourceUnavailable(Exception):
    """A single provider failed to deliver usable data."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class MalformedResponse(SourceUnavailable):
    """The provider answered, but the payload could not be used."""


class AllSourcesExhausted(Exception):
    """Every provider in a fallback chain failed."""

    def __init__(self, need: str, failures: list[tuple[str, str]]):
        detail = "; ".join(f"{name}: {reason}" for name, reason in failures) or "no sources configured"
        super().__init__(f"All {need} sources failed ({detail})")
        self.need = need
        self.failures = failures


class InsufficientHistory(ValueError):
    """The price series is shorter than an indicator's lookback window."""
