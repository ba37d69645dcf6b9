from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import get_optional_user, school_scope
from ..models import Account, FeeStatus
from ..responses import success
from ..schemas import (
    AssignByGradeRequest,
    FeeCount,
    FeeCreate,
    FeeOut,
    FeeUpdate,
    PaymentCreate,
    PaymentOut,
    PaymentUpdate,
    StudentFeeCreate,
    StudentFeeOut,
    StudentFeeUpdate,
)
from ..services import finance, payments

fees_router = APIRouter(prefix="/fees", tags=["Fees"])
student_fees_router = APIRouter(prefix="/student-fees", tags=["Student fees"])
payments_router = APIRouter(prefix="/payments", tags=["Payments"])


def _fee_out(fee) -> FeeOut:
    out = FeeOut.model_validate(fee)
    out.count = FeeCount(student_fees=len(fee.student_fees))
    return out


@fees_router.get("")
def list_fees(school_id: int = Depends(school_scope), db: Session = Depends(get_db_session)):
    return success([_fee_out(fee) for fee in finance.list_fees(db, school_id=school_id)])


@fees_router.post("", status_code=status.HTTP_201_CREATED)
def create_fee(
    payload: FeeCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    fee = finance.create_fee(db, payload, actor=current_user)
    return success(_fee_out(fee), "Fee created successfully")


@fees_router.put("/{fee_id}")
def update_fee(
    fee_id: int,
    payload: FeeUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    fee = finance.update_fee(db, fee_id=fee_id, payload=payload, actor=current_user)
    return success(_fee_out(fee), "Fee updated successfully")


@fees_router.delete("/{fee_id}")
def delete_fee(
    fee_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    finance.delete_fee(db, fee_id=fee_id, actor=current_user)
    return success(message="Fee deleted successfully")


@student_fees_router.get("")
def list_student_fees(
    student_id: int | None = Query(default=None, alias="studentId"),
    fee_status: FeeStatus | None = Query(default=None, alias="status"),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    rows = finance.list_student_fees(db, school_id=school_id, student_id=student_id, fee_status=fee_status)
    return success([StudentFeeOut.model_validate(row) for row in rows])


@student_fees_router.post("", status_code=status.HTTP_201_CREATED)
def create_student_fee(
    payload: StudentFeeCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    row = finance.create_student_fee(db, payload, actor=current_user)
    return success(StudentFeeOut.model_validate(row), "Student fee created successfully")


@student_fees_router.post("/assign-by-grade", status_code=status.HTTP_201_CREATED)
def assign_by_grade(
    payload: AssignByGradeRequest,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    outcome = finance.assign_fees_by_grade(db, payload, actor=current_user)
    return success(
        {
            "studentsCount": outcome["students_count"],
            "feesCount": outcome["fees_count"],
            "assignedCount": outcome["assigned_count"],
        },
        outcome["message"],
    )


@student_fees_router.put("/{student_fee_id}")
def update_student_fee(
    student_fee_id: int,
    payload: StudentFeeUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    row = finance.update_student_fee(db, student_fee_id=student_fee_id, payload=payload, actor=current_user)
    return success(StudentFeeOut.model_validate(row), "Student fee updated successfully")


@student_fees_router.delete("/{student_fee_id}")
def delete_student_fee(
    student_fee_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    finance.delete_student_fee(db, student_fee_id=student_fee_id, actor=current_user)
    return success(message="Student fee deleted successfully")


@payments_router.get("")
def list_payments(
    student_id: int | None = Query(default=None, alias="studentId"),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    rows = payments.list_payments(db, school_id=school_id, student_id=student_id)
    return success([PaymentOut.model_validate(row) for row in rows])


@payments_router.post("", status_code=status.HTTP_201_CREATED)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    payment = payments.create_payment(db, payload, actor=current_user)
    return success(PaymentOut.model_validate(payment), "Payment recorded successfully")


@payments_router.put("/{payment_id}")
def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    payment = payments.update_payment(db, payment_id=payment_id, payload=payload, actor=current_user)
    return success(PaymentOut.model_validate(payment), "Payment updated successfully")


@payments_router.delete("/{payment_id}")
def delete_payment(
    payment_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    payments.delete_payment(db, payment_id=payment_id, actor=current_user)
    return success(message="Payment deleted successfully")
