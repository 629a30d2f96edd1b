from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import PartnerStatus, ServiceType
from .model import Partner


class PartnerRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, partner_id: int, *, include_deleted: bool = False) -> Optional[Partner]:
        raise NotImplementedError

    def list_partners(
        self,
        *,
        status: Optional[PartnerStatus] = None,
        country: Optional[str] = None,
        service_type: Optional[ServiceType] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Partner]:
        """``country`` matches the home country or any service country."""

        raise NotImplementedError

    def update(self, partner_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, partner_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    def restore(self, partner_id: int, *, restored_by: int) -> bool:
        raise NotImplementedError
