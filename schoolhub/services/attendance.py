from datetime import date

from sqlalchemy.orm import Session, selectinload

from ..dates import day_bounds, school_zone
from ..middleware import check_tenant
from ..models import Account, Attendance, Lesson, Student
from ..schemas import AttendanceCreate, AttendanceUpdate
from .common import delete_row, get_for_write, get_in_school, get_school, search_filter


def list_attendances(
    db: Session,
    *,
    school_id: int,
    search: str | None = None,
    lesson_id: int | None = None,
    on_day: date | None = None,
) -> list[Attendance]:
    query = db.query(Attendance).join(Attendance.student).join(Attendance.lesson).filter(
        Attendance.school_id == school_id
    )
    condition = search_filter(search, Student.name, Student.surname, Lesson.name)
    if condition is not None:
        query = query.filter(condition)
    if lesson_id is not None:
        query = query.filter(Attendance.lesson_id == lesson_id)
    if on_day is not None:
        school = get_school(db, school_id)
        start, end = day_bounds(on_day, school_zone(school.timezone))
        query = query.filter(Attendance.date >= start, Attendance.date < end)
    return (
        query.options(
            selectinload(Attendance.student),
            selectinload(Attendance.lesson).options(
                selectinload(Lesson.subject), selectinload(Lesson.school_class)
            ),
        )
        .order_by(Attendance.date.desc(), Attendance.id.desc())
        .all()
    )


def _check_links(db: Session, payload: AttendanceUpdate, school_id: int) -> None:
    get_in_school(db, Student, payload.student_id, school_id, "Student")
    get_in_school(db, Lesson, payload.lesson_id, school_id, "Lesson")


def create_attendance(db: Session, payload: AttendanceCreate, *, actor: Account | None = None) -> Attendance:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    _check_links(db, payload, payload.school_id)

    attendance = Attendance(**payload.model_dump())
    db.add(attendance)
    db.commit()
    db.refresh(attendance)
    return attendance


def update_attendance(
    db: Session, *, attendance_id: int, payload: AttendanceUpdate, actor: Account | None = None
) -> Attendance:
    attendance = get_for_write(db, Attendance, attendance_id, "Attendance", actor)
    _check_links(db, payload, attendance.school_id)

    for key, value in payload.model_dump().items():
        setattr(attendance, key, value)
    db.commit()
    db.refresh(attendance)
    return attendance


def delete_attendance(db: Session, *, attendance_id: int, actor: Account | None = None) -> None:
    attendance = get_for_write(db, Attendance, attendance_id, "Attendance", actor)
    delete_row(db, attendance)
