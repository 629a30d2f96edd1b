from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import InvoiceStatus
from .model import Invoice


class InvoiceRepository(Protocol):
    def create(self, *, owner_id: int, values: Mapping[str, Any]) -> int:
        """Insert an invoice; ``values`` keys are Invoice field names."""

        raise NotImplementedError

    def get(self, invoice_id: int, *, include_deleted: bool = False) -> Optional[Invoice]:
        raise NotImplementedError

    def get_by_number(self, invoice_number: str) -> Optional[Invoice]:
        raise NotImplementedError

    def list_invoices(
        self,
        *,
        status: Optional[InvoiceStatus] = None,
        owner_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        due_before: Optional[date] = None,
        limit: int = 200,
    ) -> Sequence[Invoice]:
        """Live (not soft-deleted) invoices, newest first."""

        raise NotImplementedError

    def update(self, invoice_id: int, *, changes: Mapping[str, Any], updated_by: Optional[int]) -> bool:
        raise NotImplementedError

    def soft_delete(self, invoice_id: int, *, deleted_by: int) -> bool:
        raise NotImplementedError

    def restore(self, invoice_id: int, *, restored_by: int) -> bool:
        raise NotImplementedError

    def mark_overdue(self, *, today: date) -> int:
        """Flip sent invoices due before ``today`` to overdue; returns the count."""

        raise NotImplementedError
