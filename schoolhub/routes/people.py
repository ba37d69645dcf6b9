from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import get_optional_user, school_scope
from ..models import Account
from ..responses import success
from ..schemas import (
    LessonBrief,
    ParentCreate,
    ParentOut,
    ParentUpdate,
    StudentCreate,
    StudentOut,
    StudentUpdate,
    TeacherCount,
    TeacherCreate,
    TeacherDetailOut,
    TeacherOut,
    TeacherUpdate,
)
from ..services import people
from ..services.academics import WEEKDAY_ORDER

students_router = APIRouter(prefix="/students", tags=["Students"])
teachers_router = APIRouter(prefix="/teachers", tags=["Teachers"])
parents_router = APIRouter(prefix="/parents", tags=["Parents"])


@students_router.get("")
def list_students(
    search: str | None = Query(default=None),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    students = people.list_students(db, school_id=school_id, search=search)
    return success([StudentOut.model_validate(student) for student in students])


@students_router.get("/{student_id}")
def get_student(student_id: int, school_id: int = Depends(school_scope), db: Session = Depends(get_db_session)):
    student = people.get_student(db, student_id=student_id, school_id=school_id)
    return success(StudentOut.model_validate(student))


@students_router.post("", status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    student = people.create_student(db, payload, actor=current_user)
    return success(StudentOut.model_validate(student), "Student created successfully")


@students_router.put("/{student_id}")
def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    student = people.update_student(db, student_id=student_id, payload=payload, actor=current_user)
    return success(StudentOut.model_validate(student), "Student updated successfully")


@students_router.delete("/{student_id}")
def delete_student(
    student_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    people.delete_student(db, student_id=student_id, actor=current_user)
    return success(message="Student deleted successfully")


def _teacher_detail(teacher) -> TeacherDetailOut:
    out = TeacherDetailOut.model_validate(teacher)
    out.lessons = [
        LessonBrief.model_validate(lesson)
        for lesson in sorted(teacher.lessons, key=lambda lesson: (WEEKDAY_ORDER[lesson.day], lesson.start_time))
    ]
    out.count = TeacherCount(
        subjects=len(teacher.subjects), classes=len(teacher.classes), lessons=len(teacher.lessons)
    )
    return out


@teachers_router.get("")
def list_teachers(
    search: str | None = Query(default=None),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    teachers = people.list_teachers(db, school_id=school_id, search=search)
    return success([TeacherOut.model_validate(teacher) for teacher in teachers])


@teachers_router.get("/{teacher_id}")
def get_teacher(teacher_id: int, school_id: int = Depends(school_scope), db: Session = Depends(get_db_session)):
    teacher = people.get_teacher(db, teacher_id=teacher_id, school_id=school_id)
    return success(_teacher_detail(teacher))


@teachers_router.post("", status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    teacher = people.create_teacher(db, payload, actor=current_user)
    return success(TeacherOut.model_validate(teacher), "Teacher created successfully")


@teachers_router.put("/{teacher_id}")
def update_teacher(
    teacher_id: int,
    payload: TeacherUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    teacher = people.update_teacher(db, teacher_id=teacher_id, payload=payload, actor=current_user)
    return success(TeacherOut.model_validate(teacher), "Teacher updated successfully")


@teachers_router.delete("/{teacher_id}")
def delete_teacher(
    teacher_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    people.delete_teacher(db, teacher_id=teacher_id, actor=current_user)
    return success(message="Teacher deleted successfully")


@parents_router.get("")
def list_parents(
    search: str | None = Query(default=None),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    parents = people.list_parents(db, school_id=school_id, search=search)
    return success([ParentOut.model_validate(parent) for parent in parents])


@parents_router.post("", status_code=status.HTTP_201_CREATED)
def create_parent(
    payload: ParentCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    parent = people.create_parent(db, payload, actor=current_user)
    return success(ParentOut.model_validate(parent), "Parent created successfully")


@parents_router.put("/{parent_id}")
def update_parent(
    parent_id: int,
    payload: ParentUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    parent = people.update_parent(db, parent_id=parent_id, payload=payload, actor=current_user)
    return success(ParentOut.model_validate(parent), "Parent updated successfully")


@parents_router.delete("/{parent_id}")
def delete_parent(
    parent_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    people.delete_parent(db, parent_id=parent_id, actor=current_user)
    return success(message="Parent deleted successfully")
