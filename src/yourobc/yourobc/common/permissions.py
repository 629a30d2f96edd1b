"""Owner-or-admin permission predicates shared by every service."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import Role
from ..core.exceptions import AuthorizationError


@dataclass(frozen=True)
class Actor:
    """The authenticated user performing an operation."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_manager(self) -> bool:
        return self.role in (Role.ADMIN, Role.MANAGER)


def can_edit(actor: Actor, owner_id: int) -> bool:
    return actor.is_admin or int(owner_id) == int(actor.user_id)


def require_edit(actor: Actor, owner_id: int) -> None:
    if not can_edit(actor, owner_id):
        raise AuthorizationError("No edit permission")


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Admin permission required")


def require_manager(actor: Actor) -> None:
    if not actor.is_manager:
        raise AuthorizationError("Manager permission required")
