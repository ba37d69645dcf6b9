"""Fee ledger arithmetic.

A ``StudentFee`` carries ``paid_amount`` and ``status`` that must always agree
with the ``FeePayment`` allocations recorded against it. Payments and the
student-fee endpoints both go through these helpers so that status is derived
the same way everywhere.
"""
from datetime import datetime

from .models import FeeStatus


def round_money(value: float) -> float:
    return round(float(value), 2)


def outstanding(amount: float, paid_amount: float) -> float:
    return round_money(max(0.0, amount - paid_amount))


def derive_status(paid_amount: float, amount: float, due_date: datetime, now: datetime) -> FeeStatus:
    if paid_amount >= amount:
        return FeeStatus.PAID
    if paid_amount > 0:
        return FeeStatus.PARTIAL
    if now > due_date:
        return FeeStatus.OVERDUE
    return FeeStatus.PENDING


def status_after_allocation(paid_amount: float, amount: float, current: FeeStatus) -> FeeStatus:
    if paid_amount >= amount:
        return FeeStatus.PAID
    if paid_amount > 0:
        return FeeStatus.PARTIAL
    return current


def apply_allocation(paid_amount: float, amount: float, allocation: float, current: FeeStatus) -> tuple[float, FeeStatus]:
    new_paid = round_money(paid_amount + allocation)
    return new_paid, status_after_allocation(new_paid, amount, current)


def reverse_allocation(
    paid_amount: float, amount: float, allocation: float, due_date: datetime, now: datetime
) -> tuple[float, FeeStatus]:
    new_paid = round_money(max(0.0, paid_amount - allocation))
    return new_paid, derive_status(new_paid, amount, due_date, now)
