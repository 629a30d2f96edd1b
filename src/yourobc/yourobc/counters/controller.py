from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import admin_required, current_actor, enum_value, int_value
from ..container import Container
from ..core.enums import CounterType


def register(app: Flask, container: Container) -> None:
    @app.get("/api/counters", endpoint="list_counters")
    @admin_required
    def list_counters():
        counters = container.counter_service.list_counters(
            actor=current_actor(),
            counter_type=enum_value(CounterType, request.args.get("type"), "Counter type"),
            year=int_value(request.args.get("year"), "Year"),
        )
        return jsonify(counters)

    @app.get("/api/counters/<counter_type>/<int:year>", endpoint="get_counter")
    @admin_required
    def get_counter(counter_type: str, year: int):
        counter = container.counter_service.get_counter(
            actor=current_actor(),
            counter_type=enum_value(CounterType, counter_type, "Counter type"),
            year=year,
            month=int_value(request.args.get("month"), "Month") or 0,
        )
        return jsonify(counter)

    @app.post("/api/counters/<counter_type>/<int:year>/reset", endpoint="reset_counter")
    @admin_required
    def reset_counter(counter_type: str, year: int):
        container.counter_service.reset_counter(
            actor=current_actor(),
            counter_type=enum_value(CounterType, counter_type, "Counter type"),
            year=year,
            month=int_value(request.args.get("month"), "Month") or 0,
        )
        return jsonify({"ok": True})
