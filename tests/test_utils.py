import re
from datetime import datetime, timezone

import pytest

from app.models.inventory_history import AdjustmentType
from app.models.order import OrderStatus
from app.utils.dates import add_months, as_utc, days_since, days_until
from app.utils.orders import can_transition, generate_order_number
from app.utils.subdomain import is_valid_custom_domain, validate_subdomain
from app.services.inventory import apply_adjustment


@pytest.mark.parametrize("value", ["acme", "my-store", "shop123", "a1b"])
def test_valid_subdomains(value):
    assert validate_subdomain(value) == (True, None)


@pytest.mark.parametrize(
    "value, reason",
    [
        ("", "Subdomain is required"),
        ("ab", "Subdomain must be at least 3 characters"),
        ("x" * 64, "Subdomain must be no more than 63 characters"),
        ("-acme", "cannot start or end with a hyphen"),
        ("my_store", "only contain lowercase letters"),
        ("admin", "reserved"),
        ("my--store", "consecutive hyphens"),
    ],
)
def test_invalid_subdomains(value, reason):
    valid, error = validate_subdomain(value)
    assert valid is False
    assert reason in error


def test_subdomain_is_case_insensitive():
    assert validate_subdomain("  MyStore ") == (True, None)


def test_custom_domain_format():
    assert is_valid_custom_domain("shop.example.com")
    assert is_valid_custom_domain("example.co")
    assert not is_valid_custom_domain("localhost")
    assert not is_valid_custom_domain("bad_domain.com")


def test_add_months_clamps_to_month_end():
    jan_31 = datetime(2025, 1, 31, tzinfo=timezone.utc)
    assert add_months(jan_31, 1) == datetime(2025, 2, 28, tzinfo=timezone.utc)
    assert add_months(datetime(2024, 1, 31, tzinfo=timezone.utc), 1).day == 29
    assert add_months(datetime(2025, 11, 15, tzinfo=timezone.utc), 3) == datetime(2026, 2, 15, tzinfo=timezone.utc)


def test_day_counting():
    now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert days_until(datetime(2025, 6, 3, 13, 0, tzinfo=timezone.utc), now) == 3
    assert days_since(datetime(2025, 5, 30, 13, 0, tzinfo=timezone.utc), now) == 1
    # naive values from SQLite are read as UTC
    assert as_utc(datetime(2025, 6, 1, 12, 0)) == now


def test_order_number_format():
    number = generate_order_number(datetime(2025, 3, 9, tzinfo=timezone.utc))
    assert re.fullmatch(r"ORD-20250309-[A-Z0-9]{6}", number)


def test_order_status_transitions():
    assert can_transition(OrderStatus.pending, OrderStatus.processing)
    assert can_transition(OrderStatus.shipped, OrderStatus.delivered)
    assert can_transition(OrderStatus.cancelled, OrderStatus.refunded)
    assert not can_transition(OrderStatus.pending, OrderStatus.delivered)
    assert not can_transition(OrderStatus.delivered, OrderStatus.cancelled)
    assert not can_transition(OrderStatus.refunded, OrderStatus.pending)


@pytest.mark.parametrize(
    "before, kind, quantity, expected",
    [
        (10, AdjustmentType.increase, 5, (15, 5)),
        (10, AdjustmentType.return_, 2, (12, 2)),
        (10, AdjustmentType.decrease, 3, (7, -3)),
        (2, AdjustmentType.damage, 5, (0, -5)),
        (10, AdjustmentType.set, 4, (4, -6)),
        (None, AdjustmentType.increase, 3, (3, 3)),
    ],
)
def test_apply_adjustment(before, kind, quantity, expected):
    assert apply_adjustment(before, kind, quantity) == expected
