"""Payments and their allocations against student fees.

Every write here keeps ``StudentFee.paid_amount`` equal to the sum of the
live ``FeePayment`` rows for that fee. Validation happens before anything is
written; the writes themselves run in one transaction that is rolled back as
a whole on failure.
"""
import logging
from collections import defaultdict

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ..dates import utcnow
from ..ledger import apply_allocation, outstanding, reverse_allocation, round_money
from ..middleware import check_tenant
from ..models import Account, FeePayment, Payment, Student, StudentFee
from ..schemas import FeeAllocationIn, PaymentCreate, PaymentUpdate
from .common import blank_to_none, get_for_write, get_in_school, get_school


logger = logging.getLogger(__name__)


def _payment_options():
    return (
        selectinload(Payment.student).selectinload(Student.school_class),
        selectinload(Payment.fee_payments).selectinload(FeePayment.student_fee).selectinload(StudentFee.fee),
    )


def list_payments(db: Session, *, school_id: int, student_id: int | None = None) -> list[Payment]:
    query = db.query(Payment).filter(Payment.school_id == school_id)
    if student_id is not None:
        query = query.filter(Payment.student_id == student_id)
    return query.options(*_payment_options()).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


def get_payment(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).options(*_payment_options()).filter(Payment.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


def _validate_allocations(
    db: Session, *, allocations: list[FeeAllocationIn], amount: float, student_id: int, school_id: int
) -> dict[int, StudentFee]:
    total = round_money(sum(item.amount for item in allocations))
    if total > round_money(amount):
        raise HTTPException(status_code=400, detail="Total allocated amount cannot exceed payment amount")

    fees: dict[int, StudentFee] = {}
    requested: dict[int, float] = defaultdict(float)
    for item in allocations:
        student_fee = fees.get(item.student_fee_id)
        if student_fee is None:
            student_fee = (
                db.query(StudentFee)
                .filter(StudentFee.id == item.student_fee_id, StudentFee.school_id == school_id)
                .first()
            )
            if not student_fee:
                raise HTTPException(status_code=404, detail=f"Student fee {item.student_fee_id} not found")
            if student_fee.student_id != student_id:
                raise HTTPException(
                    status_code=400,
                    detail=f"Student fee {item.student_fee_id} does not belong to this student",
                )
            fees[student_fee.id] = student_fee

        requested[student_fee.id] = round_money(requested[student_fee.id] + item.amount)
        if requested[student_fee.id] > outstanding(student_fee.amount, student_fee.paid_amount):
            raise HTTPException(
                status_code=400,
                detail=f"Allocation for student fee {student_fee.id} exceeds its outstanding balance",
            )
    return fees


def create_payment(db: Session, payload: PaymentCreate, *, actor: Account | None = None) -> Payment:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    get_in_school(db, Student, payload.student_id, payload.school_id, "Student")
    fees = _validate_allocations(
        db,
        allocations=payload.fee_allocations,
        amount=payload.amount,
        student_id=payload.student_id,
        school_id=payload.school_id,
    )

    try:
        payment = Payment(
            student_id=payload.student_id,
            amount=round_money(payload.amount),
            payment_date=payload.payment_date,
            payment_method=payload.payment_method,
            reference_number=blank_to_none(payload.reference_number),
            notes=blank_to_none(payload.notes),
            school_id=payload.school_id,
            created_by=actor.id if actor else None,
        )
        db.add(payment)
        db.flush()

        for item in payload.fee_allocations:
            student_fee = fees[item.student_fee_id]
            db.add(FeePayment(payment_id=payment.id, student_fee_id=student_fee.id, amount=round_money(item.amount)))
            student_fee.paid_amount, student_fee.status = apply_allocation(
                student_fee.paid_amount, student_fee.amount, item.amount, student_fee.status
            )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Payment for student %s rolled back", payload.student_id)
        raise

    logger.info(
        "Recorded payment %s of %.2f for student %s across %s allocation(s)",
        payment.id,
        payment.amount,
        payment.student_id,
        len(payload.fee_allocations),
    )
    return get_payment(db, payment.id)


def update_payment(db: Session, *, payment_id: int, payload: PaymentUpdate, actor: Account | None = None) -> Payment:
    payment = get_for_write(db, Payment, payment_id, "Payment", actor)
    changes = payload.model_dump(exclude_unset=True)

    for required in ("amount", "payment_date", "payment_method"):
        if required in changes and changes[required] is None:
            raise HTTPException(status_code=400, detail=f"Invalid value for field(s): {required}")
    if "amount" in changes:
        allocated = round_money(sum(item.amount for item in payment.fee_payments))
        new_amount = round_money(changes["amount"])
        if new_amount < allocated:
            raise HTTPException(
                status_code=400, detail="Payment amount cannot be less than the total allocated amount"
            )
        payment.amount = new_amount
    if "payment_date" in changes:
        payment.payment_date = changes["payment_date"]
    if "payment_method" in changes:
        payment.payment_method = changes["payment_method"]
    for key in ("reference_number", "notes"):
        if key in changes:
            setattr(payment, key, blank_to_none(changes[key]))

    db.commit()
    return get_payment(db, payment.id)


def delete_payment(db: Session, *, payment_id: int, actor: Account | None = None) -> None:
    payment = get_for_write(db, Payment, payment_id, "Payment", actor)
    now = utcnow()
    try:
        for allocation in payment.fee_payments:
            student_fee = allocation.student_fee
            student_fee.paid_amount, student_fee.status = reverse_allocation(
                student_fee.paid_amount, student_fee.amount, allocation.amount, student_fee.due_date, now
            )
            db.delete(allocation)
        db.delete(payment)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Deleting payment %s rolled back", payment_id)
        raise

    logger.info("Deleted payment %s and reversed its allocations", payment_id)
