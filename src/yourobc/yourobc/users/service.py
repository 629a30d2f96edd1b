from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.permissions import Actor, require_admin
from ..common.validators import require_email, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active or user.deleted_at is not None:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password")

        logger.info("User %s logged in", user.user_id)
        return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role)


class UserService:
    """Use case: manage login accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_account(
        self,
        *,
        actor: Actor,
        full_name: str,
        username: str,
        password: str,
        role: Role,
        email: Optional[str] = None,
    ) -> int:
        require_admin(actor)
        full_name = require_non_empty(full_name, "Full name")
        username = require_non_empty(username, "Username")
        require_min_length(password, "Password", 6)
        email = require_email(email)

        if self._users.get_by_username(username):
            raise ConflictError("Username already exists")

        return self._users.create_user(
            full_name=full_name,
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            email=email,
        )

    def get_user(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user or user.deleted_at is not None:
            raise NotFoundError("User not found")
        return user

    def list_users(self, *, role: Optional[Role] = None) -> Sequence[User]:
        return self._users.list_users(role=role)

    def set_active(self, *, actor: Actor, user_id: int, is_active: bool) -> None:
        require_admin(actor)
        user = self.get_user(user_id)
        if user.user_id == actor.user_id and not is_active:
            raise ValidationError("You cannot deactivate your own account")
        if not self._users.set_active(user.user_id, is_active=is_active):
            raise ValidationError("Updating account failed")

    def delete_user(self, *, actor: Actor, user_id: int) -> None:
        require_admin(actor)
        user = self.get_user(user_id)
        if user.role == Role.ADMIN:
            raise ValidationError("Admin accounts cannot be deleted")

        if not self._users.soft_delete(user.user_id, deleted_by=actor.user_id):
            raise ValidationError("Deleting account failed")
