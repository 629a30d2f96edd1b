from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..audit import trail
from ..audit.repository import AuditLogRepository
from ..common.datetime_utils import now_local
from ..common.permissions import Actor, require_edit
from ..common.validators import normalize_tags, optional_text, require_max_length, require_non_empty
from ..core.constants import MAX_TITLE_LENGTH
from ..core.enums import WikiEntryType, WikiStatus
from ..core.exceptions import NotFoundError, ValidationError
from .model import WikiEntry
from .repository import WikiRepository

logger = logging.getLogger(__name__)

_ENTITY = "wiki_entry"
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_EDITABLE_FIELDS = ("title", "content", "category", "entry_type", "tags")


def slugify(text: str) -> str:
    """Lowercase; every run of non-alphanumerics becomes one hyphen; no leading/trailing hyphens."""
    return _NON_ALNUM_RE.sub("-", (text or "").lower()).strip("-")


class WikiService:
    def __init__(self, entries: WikiRepository, *, audit: Optional[AuditLogRepository] = None):
        self._entries = entries
        self._audit = audit

    def _unique_slug(self, title: str, *, exclude_id: Optional[int] = None) -> str:
        base = slugify(title)
        if not base:
            raise ValidationError("Title must contain letters or digits")
        slug = base
        counter = 1
        while self._entries.slug_taken(slug, exclude_id=exclude_id):
            slug = f"{base}-{counter}"
            counter += 1
        return slug

    def get_entry(self, entry_id: int) -> WikiEntry:
        entry = self._entries.get(int(entry_id))
        if not entry:
            raise NotFoundError("Wiki entry not found")
        return entry

    def get_by_slug(self, slug: str) -> WikiEntry:
        """Look up by slug and count the view."""
        entry = self._entries.get_by_slug(slug)
        if not entry:
            raise NotFoundError("Wiki entry not found")
        self._entries.increment_views(entry.entry_id)
        return replace(entry, view_count=entry.view_count + 1)

    def search_entries(
        self,
        *,
        query: Optional[str] = None,
        category: Optional[str] = None,
        entry_type: Optional[WikiEntryType] = None,
        status: Optional[WikiStatus] = None,
        limit: int = 50,
    ) -> Sequence[WikiEntry]:
        return self._entries.search(
            query=optional_text(query),
            category=optional_text(category),
            entry_type=entry_type,
            status=status,
            limit=limit,
        )

    def create_entry(
        self,
        *,
        actor: Actor,
        title: str,
        content: str,
        entry_type: WikiEntryType = WikiEntryType.GUIDE,
        category: Optional[str] = None,
        tags=None,
    ) -> int:
        title = require_max_length(require_non_empty(title, "Title"), "Title", MAX_TITLE_LENGTH)
        slug = self._unique_slug(title)
        entry_id = self._entries.create(
            owner_id=actor.user_id,
            values={
                "title": title,
                "slug": slug,
                "content": require_non_empty(content, "Content"),
                "category": require_max_length(optional_text(category), "Category", 100),
                "entry_type": entry_type,
                "status": WikiStatus.DRAFT,
                "tags": normalize_tags(tags),
            },
        )
        trail.record(self._audit, actor, action="wiki.created", entity_type=_ENTITY, entity_id=entry_id, description=slug)
        return entry_id

    def update_entry(self, *, actor: Actor, entry_id: int, changes: Mapping[str, Any]) -> WikiEntry:
        entry = self.get_entry(entry_id)
        require_edit(actor, entry.owner_id)
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        patch: dict[str, Any] = dict(changes)
        if "title" in patch:
            patch["title"] = require_max_length(require_non_empty(patch["title"], "Title"), "Title", MAX_TITLE_LENGTH)
            if slugify(patch["title"]) != slugify(entry.title):
                patch["slug"] = self._unique_slug(patch["title"], exclude_id=entry.entry_id)
        if "content" in patch:
            patch["content"] = require_non_empty(patch["content"], "Content")
        if "category" in patch:
            patch["category"] = require_max_length(optional_text(patch["category"]), "Category", 100)
        if "tags" in patch:
            patch["tags"] = normalize_tags(patch["tags"])

        if patch and not self._entries.update(entry.entry_id, changes=patch, updated_by=actor.user_id):
            raise ValidationError("Updating wiki entry failed")
        trail.record(
            self._audit,
            actor,
            action="wiki.updated",
            entity_type=_ENTITY,
            entity_id=entry.entry_id,
            description=patch.get("slug", entry.slug),
        )
        return self.get_entry(entry.entry_id)

    def publish_entry(self, *, actor: Actor, entry_id: int, now: Optional[datetime] = None) -> None:
        entry = self.get_entry(entry_id)
        require_edit(actor, entry.owner_id)
        if entry.status == WikiStatus.PUBLISHED:
            raise ValidationError("Entry is already published")
        self._entries.update(
            entry.entry_id,
            changes={"status": WikiStatus.PUBLISHED, "published_at": now or now_local()},
            updated_by=actor.user_id,
        )
        trail.record(self._audit, actor, action="wiki.published", entity_type=_ENTITY, entity_id=entry.entry_id, description=entry.slug)

    def archive_entry(self, *, actor: Actor, entry_id: int) -> None:
        entry = self.get_entry(entry_id)
        require_edit(actor, entry.owner_id)
        if entry.status == WikiStatus.ARCHIVED:
            raise ValidationError("Entry is already archived")
        self._entries.update(entry.entry_id, changes={"status": WikiStatus.ARCHIVED}, updated_by=actor.user_id)
        trail.record(self._audit, actor, action="wiki.archived", entity_type=_ENTITY, entity_id=entry.entry_id, description=entry.slug)

    def delete_entry(self, *, actor: Actor, entry_id: int) -> None:
        entry = self.get_entry(entry_id)
        require_edit(actor, entry.owner_id)
        if not self._entries.soft_delete(entry.entry_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting wiki entry failed")
        trail.record(self._audit, actor, action="wiki.deleted", entity_type=_ENTITY, entity_id=entry.entry_id, description=entry.slug)
