from decimal import Decimal

import pytest

from src.yourobc.yourobc.core.enums import KpiStatus
from src.yourobc.yourobc.core.exceptions import ValidationError
from src.yourobc.yourobc.kpis.calculator.threshold_evaluator import ThresholdKpiEvaluator, achievement_percentage
from src.yourobc.yourobc.kpis.service import validate_thresholds


@pytest.mark.parametrize(
    "current, expected",
    [
        ("120", KpiStatus.ACHIEVED),
        ("100", KpiStatus.ACHIEVED),
        ("80", KpiStatus.ON_TRACK),
        ("79.99", KpiStatus.AT_RISK),
        ("50", KpiStatus.AT_RISK),
        ("49", KpiStatus.BEHIND),
    ],
)
def test_status_bands(current, expected):
    result = ThresholdKpiEvaluator().evaluate(
        current_value=Decimal(current),
        target_value=Decimal("100"),
        warning_threshold=Decimal("80"),
        critical_threshold=Decimal("50"),
    )
    assert result.status == expected


def test_achievement_is_rounded_and_safe_for_zero_target():
    assert achievement_percentage(Decimal("2"), Decimal("3")) == Decimal("66.67")
    assert achievement_percentage(Decimal("5"), Decimal("0")) == Decimal("0.00")


def test_threshold_order_is_enforced():
    assert validate_thresholds("80", "50") == (Decimal("80"), Decimal("50"))
    with pytest.raises(ValidationError):
        validate_thresholds("40", "60")
    with pytest.raises(ValidationError):
        validate_thresholds("120", "50")
