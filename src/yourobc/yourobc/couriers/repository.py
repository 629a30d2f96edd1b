from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import PartnerStatus, ServiceType
from .model import Courier


class CourierRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        raise NotImplementedError

    def get(self, courier_id: int, *, include_deleted: bool = False) -> Optional[Courier]:
        raise NotImplementedError

    def list_couriers(
        self,
        *,
        status: Optional[PartnerStatus] = None,
        country: Optional[str] = None,
        service_type: Optional[ServiceType] = None,
        search: Optional[str] = None,
        limit: int = 200,
    ) -> Sequence[Courier]:
        raise NotImplementedError

    def update(self, courier_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, courier_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    def restore(self, courier_id: int, *, restored_by: int) -> bool:
        raise NotImplementedError
