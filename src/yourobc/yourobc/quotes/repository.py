from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import QuoteStatus
from .model import Quote


class QuoteRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, quote_id: int, *, include_deleted: bool = False) -> Optional[Quote]:
        raise NotImplementedError

    def list_quotes(
        self,
        *,
        status: Optional[QuoteStatus] = None,
        owner_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Quote]:
        raise NotImplementedError

    def update(self, quote_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, quote_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    def restore(self, quote_id: int, *, restored_by: int) -> bool:
        raise NotImplementedError

    def expire(self, *, today: date) -> int:
        """Mark live, non-final quotes valid until before ``today`` as expired; returns the count."""

        raise NotImplementedError
