from datetime import datetime

from schoolhub.ledger import (
    apply_allocation,
    derive_status,
    outstanding,
    reverse_allocation,
    round_money,
    status_after_allocation,
)
from schoolhub.models import FeeStatus


DUE = datetime(2024, 6, 30)
BEFORE_DUE = datetime(2024, 6, 1)
AFTER_DUE = datetime(2024, 7, 15)


def test_round_money_keeps_two_decimals():
    assert round_money(0.1 + 0.2) == 0.3
    assert round_money(12) == 12.0


def test_outstanding_never_negative():
    assert outstanding(100, 40) == 60
    assert outstanding(100, 100) == 0
    assert outstanding(100, 120) == 0


def test_derive_status_orders_paid_partial_overdue_pending():
    assert derive_status(100, 100, DUE, AFTER_DUE) == FeeStatus.PAID
    assert derive_status(30, 100, DUE, AFTER_DUE) == FeeStatus.PARTIAL
    assert derive_status(0, 100, DUE, AFTER_DUE) == FeeStatus.OVERDUE
    assert derive_status(0, 100, DUE, BEFORE_DUE) == FeeStatus.PENDING


def test_zero_amount_fee_counts_as_paid():
    assert derive_status(0, 0, DUE, BEFORE_DUE) == FeeStatus.PAID


def test_status_after_allocation_keeps_current_when_nothing_paid():
    assert status_after_allocation(0, 100, FeeStatus.OVERDUE) == FeeStatus.OVERDUE
    assert status_after_allocation(50, 100, FeeStatus.OVERDUE) == FeeStatus.PARTIAL


def test_apply_then_reverse_restores_balance():
    paid, status = apply_allocation(20, 100, 80, FeeStatus.PARTIAL)
    assert (paid, status) == (100, FeeStatus.PAID)

    paid, status = reverse_allocation(paid, 100, 80, DUE, BEFORE_DUE)
    assert (paid, status) == (20, FeeStatus.PARTIAL)


def test_reverse_allocation_clamps_at_zero_and_rederives_overdue():
    paid, status = reverse_allocation(10, 100, 25, DUE, AFTER_DUE)
    assert paid == 0
    assert status == FeeStatus.OVERDUE
