from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Optional

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.permissions import Actor, require_edit
from ..common.validators import require_max_length, require_non_empty
from ..core.constants import MAX_COMMENT_LENGTH
from ..core.exceptions import NotFoundError, ValidationError
from .model import Comment, CommentThread, Mention
from .repository import CommentRepository

logger = logging.getLogger(__name__)

_ENTITY = "comment"
MENTION_RE = re.compile(r"@\[([^\]]+)\]\(([^)]+)\)")


def extract_mentions(content: str) -> tuple[Mention, ...]:
    """Mentions written as ``@[Display Name](user-ref)``, first occurrence wins."""
    found: list[Mention] = []
    seen: set[str] = set()
    for name, ref in MENTION_RE.findall(content or ""):
        if ref not in seen:
            seen.add(ref)
            found.append(Mention(name=name, user_ref=ref))
    return tuple(found)


def _validate_content(content: str) -> str:
    return require_max_length(require_non_empty(content, "Comment"), "Comment", MAX_COMMENT_LENGTH)


class CommentService:
    def __init__(self, comments: CommentRepository, *, audit: Optional[AuditLogRepository] = None):
        self._comments = comments
        self._audit = audit

    def get_comment(self, comment_id: int) -> Comment:
        comment = self._comments.get(int(comment_id))
        if not comment:
            raise NotFoundError("Comment not found")
        return comment

    def add_comment(
        self,
        *,
        actor: Actor,
        entity_type: str,
        entity_id: int,
        content: str,
        parent_id: Optional[int] = None,
        is_internal: bool = False,
    ) -> int:
        entity_type = require_non_empty(entity_type, "Entity type")
        content = _validate_content(content)
        if parent_id is not None:
            parent = self.get_comment(parent_id)
            if parent.parent_id is not None:
                raise ValidationError("Replies cannot be nested")
            if parent.entity_type != entity_type or parent.entity_id != int(entity_id):
                raise ValidationError("Reply must belong to the same entity")

        comment_id = self._comments.create(
            owner_id=actor.user_id,
            values={
                "entity_type": entity_type,
                "entity_id": int(entity_id),
                "content": content,
                "parent_id": parent_id,
                "is_internal": bool(is_internal),
                "mentions": [{"name": m.name, "user_ref": m.user_ref} for m in extract_mentions(content)],
            },
        )
        trail.record(
            self._audit,
            actor,
            action="comment.created",
            entity_type=_ENTITY,
            entity_id=comment_id,
            description=f"On {entity_type}#{entity_id}",
        )
        return comment_id

    def edit_comment(self, *, actor: Actor, comment_id: int, content: str, now: Optional[datetime] = None) -> Comment:
        comment = self.get_comment(comment_id)
        require_edit(actor, comment.owner_id)
        content = _validate_content(content)
        changes = {
            "content": content,
            "mentions": [{"name": m.name, "user_ref": m.user_ref} for m in extract_mentions(content)],
            "is_edited": True,
            "edited_at": now or now_local(),
        }
        if not self._comments.update(comment.comment_id, changes=changes, updated_by=actor.user_id):
            raise ValidationError("Updating comment failed")
        trail.record(self._audit, actor, action="comment.updated", entity_type=_ENTITY, entity_id=comment.comment_id, description="Edited")
        return self.get_comment(comment.comment_id)

    def delete_comment(self, *, actor: Actor, comment_id: int) -> None:
        comment = self.get_comment(comment_id)
        require_edit(actor, comment.owner_id)
        if not self._comments.soft_delete(comment.comment_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting comment failed")
        trail.record(self._audit, actor, action="comment.deleted", entity_type=_ENTITY, entity_id=comment.comment_id, description="Deleted")

    def list_thread(self, *, entity_type: str, entity_id: int, include_internal: bool = True) -> list[CommentThread]:
        """Top-level comments, each with its replies. Replies to deleted parents are dropped."""
        comments = self._comments.list_for_entity(
            entity_type=entity_type,
            entity_id=int(entity_id),
            include_internal=include_internal,
        )
        threads: dict[int, CommentThread] = {}
        for c in comments:
            if c.parent_id is None:
                threads[c.comment_id] = CommentThread(comment=c)
        for c in comments:
            if c.parent_id is not None and c.parent_id in threads:
                threads[c.parent_id].replies.append(c)
        return list(threads.values())
