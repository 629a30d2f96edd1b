from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import WikiEntryType, WikiStatus


@dataclass(frozen=True)
class WikiEntry:
    entry_id: int
    public_id: str
    owner_id: int
    title: str
    slug: str
    content: str
    entry_type: WikiEntryType
    status: WikiStatus
    category: Optional[str] = None
    tags: tuple[str, ...] = ()
    view_count: int = 0
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
