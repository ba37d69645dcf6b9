from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import get_optional_user, school_scope
from ..models import Account
from ..responses import success
from ..schemas import AttendanceCreate, AttendanceOut, AttendanceUpdate
from ..services import attendance

router = APIRouter(prefix="/attendances", tags=["Attendance"])


@router.get("")
def list_attendances(
    search: str | None = Query(default=None),
    lesson_id: int | None = Query(default=None, alias="lessonId"),
    on_day: date | None = Query(default=None, alias="date"),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    records = attendance.list_attendances(
        db, school_id=school_id, search=search, lesson_id=lesson_id, on_day=on_day
    )
    return success([AttendanceOut.model_validate(record) for record in records])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_attendance(
    payload: AttendanceCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    record = attendance.create_attendance(db, payload, actor=current_user)
    return success(AttendanceOut.model_validate(record), "Attendance recorded successfully")


@router.put("/{attendance_id}")
def update_attendance(
    attendance_id: int,
    payload: AttendanceUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    record = attendance.update_attendance(db, attendance_id=attendance_id, payload=payload, actor=current_user)
    return success(AttendanceOut.model_validate(record), "Attendance updated successfully")


@router.delete("/{attendance_id}")
def delete_attendance(
    attendance_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    attendance.delete_attendance(db, attendance_id=attendance_id, actor=current_user)
    return success(message="Attendance deleted successfully")
