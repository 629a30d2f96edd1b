from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import WikiEntryType, WikiStatus
from .model import WikiEntry


class WikiRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, entry_id: int) -> Optional[WikiEntry]:
        raise NotImplementedError

    def get_by_slug(self, slug: str) -> Optional[WikiEntry]:
        raise NotImplementedError

    def slug_taken(self, slug: str, *, exclude_id: Optional[int] = None) -> bool:
        """True when any row (deleted ones included) already uses ``slug``."""

        raise NotImplementedError

    def search(
        self,
        *,
        query: Optional[str] = None,
        category: Optional[str] = None,
        entry_type: Optional[WikiEntryType] = None,
        status: Optional[WikiStatus] = None,
        limit: int = 50,
    ) -> Sequence[WikiEntry]:
        raise NotImplementedError

    def update(self, entry_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, entry_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    def increment_views(self, entry_id: int) -> None:
        raise NotImplementedError
