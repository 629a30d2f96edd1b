from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import CommissionStatus
from .model import Commission, CommissionRule, CommissionSummary


class CommissionRuleRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, rule_id: int) -> Optional[CommissionRule]:
        raise NotImplementedError

    def list_rules(self, *, active_only: bool = False, employee_id: Optional[int] = None) -> Sequence[CommissionRule]:
        raise NotImplementedError

    def update(self, rule_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, rule_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError


class CommissionRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, commission_id: int) -> Optional[Commission]:
        raise NotImplementedError

    def list_commissions(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[CommissionStatus] = None,
        limit: int = 200,
    ) -> Sequence[Commission]:
        raise NotImplementedError

    def update(self, commission_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def transition(
        self,
        commission_id: int,
        *,
        from_status: CommissionStatus,
        changes: Mapping[str, Any],
        updated_by: int,
    ) -> bool:
        """Apply ``changes`` only while the commission is still in ``from_status``."""

        raise NotImplementedError

    def count_for_rule(self, rule_id: int) -> int:
        raise NotImplementedError

    def summary(self, *, employee_id: int) -> CommissionSummary:
        raise NotImplementedError
