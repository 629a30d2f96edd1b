from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import CounterType
from .model import Counter


class CounterRepository(Protocol):
    def increment(
        self,
        *,
        counter_type: CounterType,
        year: int,
        month: int,
        prefix: str,
        start: int,
        increment_by: int,
    ) -> int:
        """Atomically advance the scope's counter and return the new last number.

        The first call for a scope stores and returns ``start``.
        """

        raise NotImplementedError

    def get(self, *, counter_type: CounterType, year: int, month: int) -> Optional[Counter]:
        raise NotImplementedError

    def list_counters(self, *, counter_type: Optional[CounterType] = None, year: Optional[int] = None) -> Sequence[Counter]:
        raise NotImplementedError

    def delete(self, *, counter_type: CounterType, year: int, month: int) -> bool:
        """Drop the scope so the next number starts over."""

        raise NotImplementedError
