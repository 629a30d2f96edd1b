from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Notification


class NotificationRepository(Protocol):
    def create(self, *, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def list_for_user(self, *, user_id: int, unread_only: bool = False, limit: int = 100) -> Sequence[Notification]:
        raise NotImplementedError

    def unread_count(self, *, user_id: int) -> int:
        raise NotImplementedError

    def mark_read(self, notification_id: int, *, read_at: datetime) -> bool:
        raise NotImplementedError

    def mark_all_read(self, *, user_id: int, read_at: datetime) -> int:
        raise NotImplementedError

    def delete_read_before(self, *, cutoff: datetime) -> int:
        raise NotImplementedError
