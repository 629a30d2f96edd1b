from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AuditEntry


class AuditLogRepository(Protocol):
    def record(
        self,
        *,
        user_id: Optional[int],
        action: str,
        entity_type: str,
        entity_id: int,
        description: str,
    ) -> int:
        raise NotImplementedError

    def list_for_entity(self, *, entity_type: str, entity_id: int, limit: int = 100) -> Sequence[AuditEntry]:
        raise NotImplementedError
