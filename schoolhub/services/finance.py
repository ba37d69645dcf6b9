import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ..dates import utcnow
from ..ledger import derive_status, round_money
from ..middleware import check_tenant
from ..models import Account, Fee, FeeStatus, Grade, Student, StudentFee
from ..schemas import AssignByGradeRequest, FeeCreate, FeeUpdate, StudentFeeCreate, StudentFeeUpdate
from .common import blank_to_none, delete_row, get_for_write, get_in_school, get_school


logger = logging.getLogger(__name__)


# Fees


def list_fees(db: Session, *, school_id: int) -> list[Fee]:
    return (
        db.query(Fee)
        .filter(Fee.school_id == school_id)
        .options(selectinload(Fee.grade), selectinload(Fee.student_fees))
        .order_by(Fee.grade_id.asc(), Fee.name.asc())
        .all()
    )


def create_fee(db: Session, payload: FeeCreate, *, actor: Account | None = None) -> Fee:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    if payload.grade_id is not None:
        get_in_school(db, Grade, payload.grade_id, payload.school_id, "Grade")

    fee = Fee(
        name=payload.name,
        amount=round_money(payload.amount),
        frequency=payload.frequency,
        grade_id=payload.grade_id,
        is_active=payload.is_active,
        school_id=payload.school_id,
    )
    db.add(fee)
    db.commit()
    db.refresh(fee)
    return fee


def update_fee(db: Session, *, fee_id: int, payload: FeeUpdate, actor: Account | None = None) -> Fee:
    fee = get_for_write(db, Fee, fee_id, "Fee", actor)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("grade_id") is not None:
        get_in_school(db, Grade, changes["grade_id"], fee.school_id, "Grade")
    for required in ("name", "amount", "frequency", "is_active"):
        if required in changes and changes[required] is None:
            raise HTTPException(status_code=400, detail=f"Invalid value for field(s): {required}")
    if "amount" in changes:
        changes["amount"] = round_money(changes["amount"])

    for key, value in changes.items():
        setattr(fee, key, value)
    db.commit()
    db.refresh(fee)
    return fee


def delete_fee(db: Session, *, fee_id: int, actor: Account | None = None) -> None:
    fee = get_for_write(db, Fee, fee_id, "Fee", actor)
    delete_row(db, fee)


# Student fees


def _student_fee_options():
    return (
        selectinload(StudentFee.student).selectinload(Student.school_class),
        selectinload(StudentFee.fee),
    )


def list_student_fees(
    db: Session, *, school_id: int, student_id: int | None = None, fee_status: FeeStatus | None = None
) -> list[StudentFee]:
    query = db.query(StudentFee).filter(StudentFee.school_id == school_id)
    if student_id is not None:
        query = query.filter(StudentFee.student_id == student_id)
    if fee_status is not None:
        query = query.filter(StudentFee.status == fee_status)
    return query.options(*_student_fee_options()).order_by(StudentFee.due_date.asc(), StudentFee.id.asc()).all()


def create_student_fee(db: Session, payload: StudentFeeCreate, *, actor: Account | None = None) -> StudentFee:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    fee = get_in_school(db, Fee, payload.fee_id, payload.school_id, "Fee")
    get_in_school(db, Student, payload.student_id, payload.school_id, "Student")

    amount = round_money(payload.amount if payload.amount is not None else fee.amount)
    student_fee = StudentFee(
        student_id=payload.student_id,
        fee_id=fee.id,
        amount=amount,
        paid_amount=0,
        due_date=payload.due_date,
        status=derive_status(0, amount, payload.due_date, utcnow()),
        school_id=payload.school_id,
        academic_year=blank_to_none(payload.academic_year),
        term=blank_to_none(payload.term),
        notes=blank_to_none(payload.notes),
    )
    db.add(student_fee)
    db.commit()
    db.refresh(student_fee)
    return student_fee


def assign_fees_by_grade(db: Session, payload: AssignByGradeRequest, *, actor: Account | None = None) -> dict:
    """Give every student of a grade each active fee of that grade.

    Rows that already exist for the same student, fee, academic year and term
    are left alone, so the call can be repeated safely.
    """
    check_tenant(payload.school_id, actor)
    get_in_school(db, Grade, payload.grade_id, payload.school_id, "Grade")
    academic_year = blank_to_none(payload.academic_year)
    term = blank_to_none(payload.term)

    fees = (
        db.query(Fee)
        .filter(Fee.school_id == payload.school_id, Fee.grade_id == payload.grade_id, Fee.is_active.is_(True))
        .order_by(Fee.id.asc())
        .all()
    )
    if not fees:
        raise HTTPException(status_code=404, detail="No active fees found for this grade")

    students = (
        db.query(Student)
        .filter(Student.school_id == payload.school_id, Student.grade_id == payload.grade_id)
        .order_by(Student.id.asc())
        .all()
    )
    if not students:
        raise HTTPException(status_code=404, detail="No students found in this grade")

    existing = {
        (row.student_id, row.fee_id)
        for row in db.query(StudentFee.student_id, StudentFee.fee_id).filter(
            StudentFee.school_id == payload.school_id,
            StudentFee.fee_id.in_([fee.id for fee in fees]),
            StudentFee.academic_year.is_(None) if academic_year is None else StudentFee.academic_year == academic_year,
            StudentFee.term.is_(None) if term is None else StudentFee.term == term,
        )
    }

    now = utcnow()
    assigned = 0
    try:
        for student in students:
            for fee in fees:
                if (student.id, fee.id) in existing:
                    continue
                amount = round_money(fee.amount)
                db.add(
                    StudentFee(
                        student_id=student.id,
                        fee_id=fee.id,
                        amount=amount,
                        paid_amount=0,
                        due_date=payload.due_date,
                        status=derive_status(0, amount, payload.due_date, now),
                        school_id=payload.school_id,
                        academic_year=academic_year,
                        term=term,
                    )
                )
                assigned += 1
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Assigned %s fees to %s students in grade %s", assigned, len(students), payload.grade_id
    )
    return {
        "message": f"Assigned {assigned} fees to {len(students)} students",
        "students_count": len(students),
        "fees_count": len(fees),
        "assigned_count": assigned,
    }


def update_student_fee(
    db: Session, *, student_fee_id: int, payload: StudentFeeUpdate, actor: Account | None = None
) -> StudentFee:
    student_fee = get_for_write(db, StudentFee, student_fee_id, "Student fee", actor)
    changes = payload.model_dump(exclude_unset=True)

    if "amount" in changes:
        if changes["amount"] is None:
            raise HTTPException(status_code=400, detail="Amount must be a valid positive number")
        amount = round_money(changes["amount"])
        if amount < student_fee.paid_amount:
            raise HTTPException(status_code=400, detail="Amount cannot be less than the amount already paid")
        student_fee.amount = amount
    if "due_date" in changes:
        if changes["due_date"] is None:
            raise HTTPException(status_code=400, detail="Invalid due date format")
        student_fee.due_date = changes["due_date"]
    for key in ("academic_year", "term", "notes"):
        if key in changes:
            setattr(student_fee, key, blank_to_none(changes[key]))

    student_fee.status = derive_status(student_fee.paid_amount, student_fee.amount, student_fee.due_date, utcnow())
    db.commit()
    db.refresh(student_fee)
    return student_fee


def delete_student_fee(db: Session, *, student_fee_id: int, actor: Account | None = None) -> None:
    student_fee = get_for_write(db, StudentFee, student_fee_id, "Student fee", actor)
    delete_row(db, student_fee)
    logger.info("Deleted student fee %s", student_fee_id)
