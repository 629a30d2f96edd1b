from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from flask import Flask, jsonify

from src.yourobc.yourobc.common.http import (
    ApiJSONProvider,
    current_actor,
    date_value,
    enum_value,
    int_value,
    login_required,
    manager_required,
    register_error_handlers,
)
from src.yourobc.yourobc.core.enums import Role
from src.yourobc.yourobc.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)


@pytest.fixture
def client():
    app = Flask(__name__)
    app.secret_key = "test"
    app.json = ApiJSONProvider(app)
    register_error_handlers(app)

    errors = {
        "validation": ValidationError("Amount must be positive"),
        "forbidden": AuthorizationError("No edit permission"),
        "missing": NotFoundError("Invoice not found"),
        "conflict": ConflictError("Invoice number already exists"),
        "boom": RuntimeError("database exploded"),
    }

    @app.get("/raise/<kind>")
    def raise_error(kind):
        raise errors[kind]

    @app.get("/me")
    @login_required
    def me():
        actor = current_actor()
        return jsonify({"user_id": actor.user_id, "role": actor.role.value})

    @app.get("/team")
    @manager_required
    def team():
        return jsonify({"ok": True})

    @app.get("/values")
    def values():
        return jsonify({"day": date(2026, 10, 15), "amount": Decimal("1607.69")})

    return app.test_client()


def _login(client, user_id, role):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["role"] = role.value


@pytest.mark.parametrize(
    "kind, status, message",
    [
        ("validation", 400, "Amount must be positive"),
        ("forbidden", 403, "No edit permission"),
        ("missing", 404, "Invoice not found"),
        ("conflict", 409, "Invoice number already exists"),
        ("boom", 500, "Internal server error"),
    ],
)
def test_domain_errors_map_to_status(client, kind, status, message):
    resp = client.get(f"/raise/{kind}")

    assert resp.status_code == status
    assert resp.get_json() == {"error": message}


def test_unknown_route_is_json(client):
    resp = client.get("/nope")

    assert resp.status_code == 404
    assert "error" in resp.get_json()


def test_login_required_and_roles(client):
    assert client.get("/me").status_code == 401

    _login(client, 3, Role.STAFF)
    assert client.get("/me").get_json() == {"user_id": 3, "role": "staff"}
    assert client.get("/team").status_code == 403

    _login(client, 2, Role.MANAGER)
    assert client.get("/team").status_code == 200


def test_json_provider_writes_iso_dates_and_decimal_strings(client):
    assert client.get("/values").get_json() == {"day": "2026-10-15", "amount": "1607.69"}


def test_value_parsers():
    assert date_value("2026-10-15", "Due date") == date(2026, 10, 15)
    assert date_value("", "Due date") is None
    assert int_value("42", "Limit") == 42
    assert int_value(None, "Limit") is None
    assert enum_value(Role, "manager", "Role") == Role.MANAGER
    with pytest.raises(ValidationError, match="Due date must be a date"):
        date_value("15.10.2026", "Due date")
    with pytest.raises(ValidationError, match="Limit must be an integer"):
        int_value("ten", "Limit")
    with pytest.raises(ValidationError, match="Role is not valid"):
        enum_value(Role, "owner", "Role")
