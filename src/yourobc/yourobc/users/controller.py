from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.http import admin_required, current_actor, enum_value, json_body, login_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError


def _public(user) -> dict:
    return {
        "user_id": user.user_id,
        "public_id": user.public_id,
        "full_name": user.full_name,
        "username": user.username,
        "role": user.role,
        "email": user.email,
        "is_active": user.is_active,
    }


def register(app: Flask, container: Container) -> None:
    @app.post("/api/auth/login", endpoint="login")
    def login():
        data = json_body()
        s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value
        return jsonify(s_user)

    @app.post("/api/auth/logout", endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"ok": True})

    @app.get("/api/auth/me", endpoint="me")
    @login_required
    def me():
        return jsonify({"user_id": session["user_id"], "full_name": session.get("name"), "role": session.get("role")})

    @app.get("/api/users", endpoint="list_users")
    @admin_required
    def list_users():
        role = enum_value(Role, request.args.get("role"), "Role")
        return jsonify([_public(u) for u in container.user_service.list_users(role=role)])

    @app.post("/api/users", endpoint="create_user")
    @admin_required
    def create_user():
        data = json_body()
        role = enum_value(Role, data.get("role"), "Role")
        if role is None:
            raise ValidationError("Role is required")
        user_id = container.user_service.create_account(
            actor=current_actor(),
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            role=role,
            email=data.get("email"),
        )
        return jsonify({"user_id": user_id}), 201

    @app.patch("/api/users/<int:user_id>/active", endpoint="set_user_active")
    @admin_required
    def set_user_active(user_id: int):
        data = json_body()
        container.user_service.set_active(actor=current_actor(), user_id=user_id, is_active=bool(data.get("is_active")))
        return jsonify({"ok": True})

    @app.delete("/api/users/<int:user_id>", endpoint="delete_user")
    @admin_required
    def delete_user(user_id: int):
        container.user_service.delete_user(actor=current_actor(), user_id=user_id)
        return jsonify({"ok": True})
