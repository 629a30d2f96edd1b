from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import now_local, previous_month
from ..common.http import current_actor, enum_value, int_value, json_body, login_required, manager_required
from ..container import Container
from ..core.enums import KpiMetric, KpiStatus, RankingMetric
from ..core.exceptions import ValidationError


def _period(source: dict) -> tuple[int, int]:
    default_year, default_month = previous_month(now_local().date())
    year = int_value(source.get("year"), "Year") or default_year
    month = int_value(source.get("month"), "Month") or default_month
    return year, month


def register(app: Flask, container: Container) -> None:
    svc = container.kpi_service

    @app.get("/api/kpis", endpoint="list_kpis")
    @login_required
    def list_kpis():
        kpis = svc.list_kpis(
            employee_id=int_value(request.args.get("employee_id"), "Employee"),
            year=int_value(request.args.get("year"), "Year"),
            month=int_value(request.args.get("month"), "Month"),
            status=enum_value(KpiStatus, request.args.get("status"), "Status"),
        )
        return jsonify(kpis)

    @app.get("/api/kpis/<int:kpi_id>", endpoint="get_kpi")
    @login_required
    def get_kpi(kpi_id: int):
        return jsonify(svc.get_kpi(kpi_id))

    @app.post("/api/kpis", endpoint="create_kpi")
    @manager_required
    def create_kpi():
        data = json_body()
        metric_key = enum_value(KpiMetric, data.get("metric_key"), "Metric")
        employee_id = int_value(data.get("employee_id"), "Employee")
        year = int_value(data.get("year"), "Year")
        if metric_key is None or employee_id is None or year is None:
            raise ValidationError("Employee, metric and year are required")

        kpi_id = svc.create_kpi(
            actor=current_actor(),
            employee_id=employee_id,
            metric_name=data.get("metric_name") or metric_key.value,
            metric_key=metric_key,
            year=year,
            month=int_value(data.get("month"), "Month"),
            target_value=data.get("target_value"),
            current_value=data.get("current_value", 0),
            warning_threshold=data.get("warning_threshold"),
            critical_threshold=data.get("critical_threshold"),
        )
        return jsonify(svc.get_kpi(kpi_id)), 201

    @app.patch("/api/kpis/<int:kpi_id>", endpoint="update_kpi")
    @login_required
    def update_kpi(kpi_id: int):
        data = json_body()
        kpi = svc.update_kpi(
            actor=current_actor(),
            kpi_id=kpi_id,
            target_value=data.get("target_value"),
            warning_threshold=data.get("warning_threshold"),
            critical_threshold=data.get("critical_threshold"),
        )
        return jsonify(kpi)

    @app.put("/api/kpis/<int:kpi_id>/value", endpoint="update_kpi_value")
    @login_required
    def update_kpi_value(kpi_id: int):
        kpi = svc.update_kpi_value(actor=current_actor(), kpi_id=kpi_id, current_value=json_body().get("current_value"))
        return jsonify(kpi)

    @app.delete("/api/kpis/<int:kpi_id>", endpoint="delete_kpi")
    @login_required
    def delete_kpi(kpi_id: int):
        svc.delete_kpi(actor=current_actor(), kpi_id=kpi_id)
        return jsonify({"ok": True})

    @app.get("/api/employees/<int:employee_id>/targets", endpoint="get_kpi_targets")
    @login_required
    def get_targets(employee_id: int):
        year, month = _period(request.args)
        return jsonify(svc.get_targets(employee_id=employee_id, year=year, month=month))

    @app.put("/api/employees/<int:employee_id>/targets", endpoint="set_kpi_targets")
    @manager_required
    def set_targets(employee_id: int):
        data = json_body()
        year, month = _period(data)
        svc.set_targets(
            actor=current_actor(),
            employee_id=employee_id,
            year=year,
            month=month,
            quotes_target=int_value(data.get("quotes_target"), "Quotes target"),
            orders_target=int_value(data.get("orders_target"), "Orders target"),
            revenue_target=data.get("revenue_target"),
            conversion_target=data.get("conversion_target"),
            commission_target=data.get("commission_target"),
        )
        return jsonify(svc.get_targets(employee_id=employee_id, year=year, month=month))

    @app.delete("/api/employees/<int:employee_id>/targets", endpoint="delete_kpi_targets")
    @manager_required
    def delete_targets(employee_id: int):
        year, month = _period(request.args)
        svc.delete_targets(actor=current_actor(), employee_id=employee_id, year=year, month=month)
        return jsonify({"ok": True})

    @app.post("/api/employees/<int:employee_id>/performance", endpoint="calculate_performance")
    @manager_required
    def calculate_performance(employee_id: int):
        year, month = _period(json_body())
        snapshot_id = svc.calculate_performance(actor=current_actor(), employee_id=employee_id, year=year, month=month)
        return jsonify({"snapshot_id": snapshot_id})

    @app.get("/api/rankings", endpoint="kpi_rankings")
    @login_required
    def rankings():
        year, month = _period(request.args)
        by = enum_value(RankingMetric, request.args.get("by"), "Ranking metric") or RankingMetric.REVENUE
        return jsonify(svc.rankings(year=year, month=month, by=by))
