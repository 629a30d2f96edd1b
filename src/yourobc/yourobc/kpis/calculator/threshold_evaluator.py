from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from ...core.enums import KpiStatus
from .base import KpiEvaluation, KpiEvaluator

_HUNDRED = Decimal("100")


def achievement_percentage(current_value, target_value) -> Decimal:
    """current / target * 100, rounded to 2 places; 0 for a non-positive target."""
    target = Decimal(str(target_value))
    if target <= 0:
        return Decimal("0.00")
    pct = Decimal(str(current_value)) / target * _HUNDRED
    return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def status_for(achievement: Decimal, *, warning_threshold: Decimal, critical_threshold: Decimal) -> KpiStatus:
    if achievement >= _HUNDRED:
        return KpiStatus.ACHIEVED
    if achievement >= Decimal(str(warning_threshold)):
        return KpiStatus.ON_TRACK
    if achievement >= Decimal(str(critical_threshold)):
        return KpiStatus.AT_RISK
    return KpiStatus.BEHIND


class ThresholdKpiEvaluator(KpiEvaluator):
    """Achieved at 100%, then on track / at risk / behind by the KPI's thresholds."""

    def evaluate(
        self,
        *,
        current_value: Decimal,
        target_value: Decimal,
        warning_threshold: Decimal,
        critical_threshold: Decimal,
    ) -> KpiEvaluation:
        achievement = achievement_percentage(current_value, target_value)
        return KpiEvaluation(
            achievement_percentage=achievement,
            status=status_for(achievement, warning_threshold=warning_threshold, critical_threshold=critical_threshold),
        )
