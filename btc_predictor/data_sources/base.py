"""Base class for all market data source adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

T = TypeVar("T")


class SourceAdapter(ABC, Generic[T]):
    """Interface every provider adapter must implement.

    To add a new provider:
    1. Subclass ``PriceSource`` or ``HistorySource``
    2. Implement ``name`` and ``fetch_once()``
    3. Register it in the module's ``*_SOURCES`` mapping and list it
       in configs/settings.yaml under ``sources``
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name used in logs and results."""
        ...

    @abstractmethod
    def fetch_once(self) -> T:
        """Perform exactly one outbound request and return a validated value.

        Raises:
            SourceUnavailable: on any transport, status or payload problem.
        """
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"
