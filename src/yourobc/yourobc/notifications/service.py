from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.permissions import Actor
from ..common.validators import optional_text, require_max_length, require_non_empty
from ..core.constants import MAX_NOTIFICATION_MESSAGE_LENGTH, MAX_TITLE_LENGTH, NOTIFICATION_RETENTION_DAYS
from ..core.enums import NotificationType
from ..core.exceptions import AuthorizationError, NotFoundError
from .model import Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, notifications: NotificationRepository, *, retention_days: int = NOTIFICATION_RETENTION_DAYS):
        self._notifications = notifications
        self._retention = timedelta(days=int(retention_days))

    def notify(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.INFO,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
    ) -> int:
        notification_id = self._notifications.create(
            values={
                "user_id": int(user_id),
                "notification_type": notification_type,
                "title": require_max_length(require_non_empty(title, "Title"), "Title", MAX_TITLE_LENGTH),
                "message": require_max_length(require_non_empty(message, "Message"), "Message", MAX_NOTIFICATION_MESSAGE_LENGTH),
                "entity_type": optional_text(entity_type),
                "entity_id": entity_id,
            }
        )
        logger.debug("Notified user %s (%s)", user_id, notification_type.value)
        return notification_id

    def list_for_user(self, *, actor: Actor, unread_only: bool = False, limit: int = 100) -> Sequence[Notification]:
        return self._notifications.list_for_user(user_id=actor.user_id, unread_only=unread_only, limit=limit)

    def unread_count(self, *, actor: Actor) -> int:
        return self._notifications.unread_count(user_id=actor.user_id)

    def mark_read(self, *, actor: Actor, notification_id: int, now: Optional[datetime] = None) -> None:
        notification = self._notifications.get(int(notification_id))
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.user_id != actor.user_id:
            raise AuthorizationError("Not your notification")
        if not notification.is_read:
            self._notifications.mark_read(notification.notification_id, read_at=now or now_local())

    def mark_all_read(self, *, actor: Actor, now: Optional[datetime] = None) -> int:
        return self._notifications.mark_all_read(user_id=actor.user_id, read_at=now or now_local())

    def purge_old(self, *, now: Optional[datetime] = None) -> int:
        """Delete read notifications older than the retention period."""
        cutoff = (now or now_local()) - self._retention
        purged = self._notifications.delete_read_before(cutoff=cutoff)
        if purged:
            logger.info("Purged %s notifications read before %s", purged, cutoff.date().isoformat())
        return purged
