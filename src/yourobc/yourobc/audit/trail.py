from __future__ import annotations

import logging
from typing import Optional

from ..common.permissions import Actor
from .repository import AuditLogRepository

logger = logging.getLogger(__name__)


def record(
    audit: Optional[AuditLogRepository],
    actor: Optional[Actor],
    *,
    action: str,
    entity_type: str,
    entity_id: int,
    description: str,
) -> None:
    """Append an audit entry when an audit repository is wired in.

    Actions are dotted ``<entity>.<verb>`` names, e.g. ``invoice.created``.
    """

    logger.info("%s %s#%s by user=%s", action, entity_type, entity_id, actor.user_id if actor else None)
    if audit is None:
        return
    audit.record(
        user_id=actor.user_id if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=int(entity_id),
        description=description,
    )
