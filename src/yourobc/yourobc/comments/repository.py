from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from .model import Comment


class CommentRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, comment_id: int) -> Optional[Comment]:
        raise NotImplementedError

    def list_for_entity(self, *, entity_type: str, entity_id: int, include_internal: bool = True) -> Sequence[Comment]:
        """Live comments on one entity, oldest first."""

        raise NotImplementedError

    def update(self, comment_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, comment_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError
