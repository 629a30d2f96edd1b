from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ...core.enums import KpiStatus


@dataclass(frozen=True)
class KpiEvaluation:
    achievement_percentage: Decimal
    status: KpiStatus


class KpiEvaluator(ABC):
    """Evaluator interface (Strategy Pattern for KPI achievement)."""

    @abstractmethod
    def evaluate(
        self,
        *,
        current_value: Decimal,
        target_value: Decimal,
        warning_threshold: Decimal,
        critical_threshold: Decimal,
    ) -> KpiEvaluation:
        raise NotImplementedError
