from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AuditEntry:
    audit_id: int
    user_id: Optional[int]
    action: str
    entity_type: str
    entity_id: int
    description: str
    created_at: datetime
