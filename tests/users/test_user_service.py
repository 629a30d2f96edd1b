from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from src.yourobc.yourobc.core.enums import Role
from src.yourobc.yourobc.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.yourobc.yourobc.users.model import User
from src.yourobc.yourobc.users.service import AuthService, UserService


class FakeUsers:
    def __init__(self):
        self.rows: dict[int, User] = {}

    def add(self, username, password, *, role=Role.STAFF, is_active=True):
        user_id = len(self.rows) + 1
        self.rows[user_id] = User(
            user_id=user_id,
            public_id=f"usr-{user_id}",
            full_name=username.title(),
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            is_active=is_active,
        )
        return user_id

    def get_by_id(self, user_id):
        return self.rows.get(user_id)

    def get_by_username(self, username):
        return next((u for u in self.rows.values() if u.username == username and u.deleted_at is None), None)

    def create_user(self, *, full_name, username, password_hash, role, email):
        user_id = len(self.rows) + 1
        self.rows[user_id] = User(
            user_id=user_id,
            public_id=f"usr-{user_id}",
            full_name=full_name,
            username=username,
            password_hash=password_hash,
            role=role,
            email=email,
        )
        return user_id

    def set_active(self, user_id, *, is_active):
        self.rows[user_id] = replace(self.rows[user_id], is_active=is_active)
        return True

    def soft_delete(self, user_id, *, deleted_by):
        self.rows[user_id] = replace(self.rows[user_id], deleted_at=datetime(2026, 10, 16))
        return True

    def list_users(self, *, role=None, limit=200):
        return [u for u in self.rows.values() if role is None or u.role == role]


@pytest.fixture
def users():
    return FakeUsers()


def test_authenticate_returns_session_user(users):
    user_id = users.add("sam", "staff123")

    session_user = AuthService(users).authenticate(" sam ", "staff123")

    assert session_user.user_id == user_id
    assert session_user.role == Role.STAFF


@pytest.mark.parametrize("username, password", [("sam", "wrong"), ("nobody", "staff123"), ("", "")])
def test_authenticate_rejects_bad_credentials(users, username, password):
    users.add("sam", "staff123")

    with pytest.raises(AuthenticationError, match="Invalid username or password"):
        AuthService(users).authenticate(username, password)


def test_inactive_and_deleted_users_cannot_log_in(users):
    users.add("off", "secret1", is_active=False)
    gone = users.add("gone", "secret1")
    users.soft_delete(gone, deleted_by=1)

    with pytest.raises(AuthenticationError):
        AuthService(users).authenticate("off", "secret1")
    with pytest.raises(AuthenticationError):
        AuthService(users).authenticate("gone", "secret1")


def test_create_account_hashes_password(users, admin, manager):
    svc = UserService(users)

    with pytest.raises(AuthorizationError):
        svc.create_account(actor=manager, full_name="Ann", username="ann", password="secret1", role=Role.STAFF)
    user_id = svc.create_account(actor=admin, full_name="Ann", username="ann", password="secret1", role=Role.STAFF)

    assert users.rows[user_id].password_hash != "secret1"
    assert AuthService(users).authenticate("ann", "secret1").user_id == user_id


def test_create_account_validation(users, admin):
    svc = UserService(users)
    users.add("sam", "staff123")

    with pytest.raises(ValidationError, match="at least 6"):
        svc.create_account(actor=admin, full_name="Ann", username="ann", password="short", role=Role.STAFF)
    with pytest.raises(ConflictError):
        svc.create_account(actor=admin, full_name="Sam", username="sam", password="secret1", role=Role.STAFF)


def test_set_active_and_delete(users, admin):
    svc = UserService(users)
    admin_id = users.add("root", "admin123", role=Role.ADMIN)
    staff_id = users.add("sam", "staff123")
    me = replace(admin, user_id=admin_id)

    with pytest.raises(ValidationError, match="your own account"):
        svc.set_active(actor=me, user_id=admin_id, is_active=False)
    svc.set_active(actor=me, user_id=staff_id, is_active=False)
    assert users.rows[staff_id].is_active is False

    with pytest.raises(ValidationError, match="Admin accounts"):
        svc.delete_user(actor=me, user_id=admin_id)
    svc.delete_user(actor=me, user_id=staff_id)
    with pytest.raises(NotFoundError):
        svc.get_user(staff_id)
