from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, enum_value, int_value, json_body, login_required
from ..container import Container
from ..core.enums import WikiEntryType, WikiStatus


def register(app: Flask, container: Container) -> None:
    svc = container.wiki_service

    @app.get("/api/wiki", endpoint="search_wiki")
    @login_required
    def search_entries():
        entries = svc.search_entries(
            query=request.args.get("q"),
            category=request.args.get("category"),
            entry_type=enum_value(WikiEntryType, request.args.get("type"), "Entry type"),
            status=enum_value(WikiStatus, request.args.get("status"), "Status"),
            limit=int_value(request.args.get("limit"), "Limit") or 50,
        )
        return jsonify(entries)

    @app.get("/api/wiki/<slug>", endpoint="get_wiki_entry")
    @login_required
    def get_by_slug(slug: str):
        return jsonify(svc.get_by_slug(slug))

    @app.post("/api/wiki", endpoint="create_wiki_entry")
    @login_required
    def create_entry():
        data = json_body()
        entry_id = svc.create_entry(
            actor=current_actor(),
            title=data.get("title", ""),
            content=data.get("content", ""),
            entry_type=enum_value(WikiEntryType, data.get("entry_type"), "Entry type") or WikiEntryType.GUIDE,
            category=data.get("category"),
            tags=data.get("tags"),
        )
        return jsonify(svc.get_entry(entry_id)), 201

    @app.patch("/api/wiki/entries/<int:entry_id>", endpoint="update_wiki_entry")
    @login_required
    def update_entry(entry_id: int):
        changes = dict(json_body())
        if "entry_type" in changes:
            changes["entry_type"] = enum_value(WikiEntryType, changes["entry_type"], "Entry type") or WikiEntryType.GUIDE
        return jsonify(svc.update_entry(actor=current_actor(), entry_id=entry_id, changes=changes))

    @app.post("/api/wiki/entries/<int:entry_id>/publish", endpoint="publish_wiki_entry")
    @login_required
    def publish_entry(entry_id: int):
        svc.publish_entry(actor=current_actor(), entry_id=entry_id)
        return jsonify(svc.get_entry(entry_id))

    @app.post("/api/wiki/entries/<int:entry_id>/archive", endpoint="archive_wiki_entry")
    @login_required
    def archive_entry(entry_id: int):
        svc.archive_entry(actor=current_actor(), entry_id=entry_id)
        return jsonify(svc.get_entry(entry_id))

    @app.delete("/api/wiki/entries/<int:entry_id>", endpoint="delete_wiki_entry")
    @login_required
    def delete_entry(entry_id: int):
        svc.delete_entry(actor=current_actor(), entry_id=entry_id)
        return jsonify({"ok": True})
