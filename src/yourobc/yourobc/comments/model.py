from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Mention:
    name: str
    user_ref: str


@dataclass(frozen=True)
class Comment:
    comment_id: int
    public_id: str
    owner_id: int
    entity_type: str
    entity_id: int
    content: str
    parent_id: Optional[int] = None
    is_internal: bool = False
    mentions: tuple[Mention, ...] = ()
    is_edited: bool = False
    edited_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


@dataclass(frozen=True)
class CommentThread:
    comment: Comment
    replies: list[Comment] = field(default_factory=list)
