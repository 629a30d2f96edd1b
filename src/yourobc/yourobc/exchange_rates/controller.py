from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import current_actor, enum_value, json_body, login_required, manager_required
from ..container import Container
from ..core.enums import Currency
from ..core.exceptions import ValidationError


def _pair(source) -> tuple[Currency, Currency]:
    from_currency = enum_value(Currency, source.get("from"), "From currency")
    to_currency = enum_value(Currency, source.get("to"), "To currency")
    if from_currency is None or to_currency is None:
        raise ValidationError("Both currencies are required")
    return from_currency, to_currency


def register(app: Flask, container: Container) -> None:
    svc = container.exchange_rate_service

    @app.get("/api/exchange-rates", endpoint="list_exchange_rates")
    @login_required
    def list_rates():
        rates = svc.list_rates(
            from_currency=enum_value(Currency, request.args.get("from"), "From currency"),
            to_currency=enum_value(Currency, request.args.get("to"), "To currency"),
        )
        return jsonify(rates)

    @app.post("/api/exchange-rates", endpoint="create_exchange_rate")
    @manager_required
    def create_rate():
        data = json_body()
        from_currency, to_currency = _pair(data)
        rate_id = svc.create_rate(
            actor=current_actor(),
            from_currency=from_currency,
            to_currency=to_currency,
            rate=data.get("rate"),
            source=data.get("source"),
        )
        return jsonify({"rate_id": rate_id}), 201

    @app.get("/api/exchange-rates/current", endpoint="current_exchange_rate")
    @login_required
    def current_rate():
        from_currency, to_currency = _pair(request.args)
        return jsonify({"from": from_currency, "to": to_currency, "rate": svc.get_rate(from_currency, to_currency)})

    @app.get("/api/exchange-rates/convert", endpoint="convert_currency")
    @login_required
    def convert():
        from_currency, to_currency = _pair(request.args)
        amount = svc.convert(request.args.get("amount"), from_currency, to_currency)
        return jsonify({"from": from_currency, "to": to_currency, "amount": amount})
