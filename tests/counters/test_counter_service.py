from datetime import date

import pytest

from src.yourobc.yourobc.core.enums import CounterType
from src.yourobc.yourobc.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.yourobc.yourobc.counters.formatting import (
    format_counter_number,
    format_invoice_number,
    parse_counter_number,
    parse_invoice_number,
    validate_prefix,
)
from src.yourobc.yourobc.counters.service import CounterService


def test_invoice_numbers_start_at_13_and_step_by_13(counter_service):
    svc = counter_service

    first = svc.next_invoice_number(issued_on=date(2026, 10, 3))
    second = svc.next_invoice_number(issued_on=date(2026, 10, 20))

    assert first.number == "26100013"
    assert second.number == "26100026"
    assert second.sequence == 26


def test_invoice_counter_restarts_each_month(counter_service):
    svc = counter_service
    svc.next_invoice_number(issued_on=date(2026, 10, 3))

    november = svc.next_invoice_number(issued_on=date(2026, 11, 1))

    assert november.number == "26110013"


def test_invoice_prefix_is_prepended(counter_repo):
    svc = CounterService(counter_repo, invoice_prefix="INV")

    assert svc.next_invoice_number(issued_on=date(2026, 1, 5)).number == "INV26010013"


def test_yearly_counters_are_independent_per_type(counter_service):
    svc = counter_service

    assert svc.next_sequence_number(CounterType.QUOTE, year=2026) == "QT-2026-000001"
    assert svc.next_sequence_number(CounterType.QUOTE, year=2026) == "QT-2026-000002"
    assert svc.next_sequence_number(CounterType.COURIER, year=2026) == "COU-2026-000001"
    assert svc.next_sequence_number(CounterType.QUOTE, year=2027) == "QT-2027-000001"


def test_invoice_type_is_rejected_for_yearly_counters(counter_service):
    svc = counter_service

    with pytest.raises(ValidationError):
        svc.next_sequence_number(CounterType.INVOICE, year=2026)


def test_non_positive_numbering_settings_are_rejected(counter_repo):
    with pytest.raises(ValueError):
        CounterService(counter_repo, invoice_start=0)


def test_formatting_helpers():
    assert format_invoice_number("", 2026, 3, 13) == "26030013"
    assert format_counter_number("EMP", 2026, 42) == "EMP-2026-000042"

    parsed = parse_counter_number("PTR-2025-000107")
    assert parsed.prefix == "PTR"
    assert parsed.year == 2025
    assert parsed.sequence == 107
    assert parse_counter_number("garbage") is None


@pytest.mark.parametrize("prefix", ["", "lower", "A1", "TOOLONGPREFIX"])
def test_validate_prefix_rejects_bad_values(prefix):
    with pytest.raises(ValidationError):
        validate_prefix(prefix)


def test_get_and_reset_counter_are_admin_only(counter_service, admin, manager):
    svc = counter_service
    svc.next_sequence_number(CounterType.QUOTE, year=2026)
    svc.next_sequence_number(CounterType.QUOTE, year=2026)

    with pytest.raises(AuthorizationError):
        svc.get_counter(actor=manager, counter_type=CounterType.QUOTE, year=2026)
    with pytest.raises(AuthorizationError):
        svc.reset_counter(actor=manager, counter_type=CounterType.QUOTE, year=2026)
    assert svc.get_counter(actor=admin, counter_type=CounterType.QUOTE, year=2026).last_number == 2

    svc.reset_counter(actor=admin, counter_type=CounterType.QUOTE, year=2026)

    with pytest.raises(NotFoundError):
        svc.get_counter(actor=admin, counter_type=CounterType.QUOTE, year=2026)
    with pytest.raises(NotFoundError):
        svc.reset_counter(actor=admin, counter_type=CounterType.QUOTE, year=2026)
    assert svc.next_sequence_number(CounterType.QUOTE, year=2026) == "QT-2026-000001"


def test_invoice_counter_cannot_be_reset(counter_service, admin):
    svc = counter_service
    first = svc.next_invoice_number(issued_on=date(2026, 10, 3))

    with pytest.raises(ValidationError, match="cannot be reset"):
        svc.reset_counter(actor=admin, counter_type=CounterType.INVOICE, year=2026, month=10)

    assert svc.next_invoice_number(issued_on=date(2026, 10, 9)).number != first.number


def test_parse_invoice_number():
    parsed = parse_invoice_number("26100026")
    assert (parsed.year, parsed.month, parsed.sequence) == (2026, 10, 26)
    assert parse_invoice_number("INV26010013", "INV").month == 1
    assert parse_invoice_number("26010013", "INV") is None
    assert parse_invoice_number("26130013") is None
    assert parse_invoice_number("MAN-1") is None


def test_generated_invoice_number_shape_follows_prefix(counter_repo):
    svc = CounterService(counter_repo, invoice_prefix="INV")

    assert svc.is_generated_invoice_number("INV26100013")
    assert not svc.is_generated_invoice_number("26100013")
