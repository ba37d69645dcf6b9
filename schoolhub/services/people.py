import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ..middleware import check_tenant
from ..models import Account, Grade, Parent, SchoolClass, Student, Subject, Teacher
from ..schemas import (
    ParentCreate,
    ParentUpdate,
    StudentCreate,
    StudentUpdate,
    TeacherCreate,
    TeacherUpdate,
)
from .common import (
    blank_to_none,
    delete_row,
    get_for_write,
    get_in_school,
    get_school,
    get_scoped,
    optional_email,
    search_filter,
)


logger = logging.getLogger(__name__)


def _ensure_unique(db: Session, model, school_id: int, *, username: str, email: str | None,
                   phone: str | None, exclude_id: int | None = None) -> None:
    checks = (
        (model.username, username, "Username"),
        (model.email, email, "Email"),
        (model.phone, phone, "Phone"),
    )
    for column, value, label in checks:
        if value is None:
            continue
        query = db.query(model.id).filter(model.school_id == school_id, column == value)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        if query.first():
            raise HTTPException(status_code=409, detail=f"{label} already exists for this school")


def _person_values(payload) -> dict:
    values = {
        "username": payload.username,
        "name": payload.name,
        "surname": payload.surname,
        "email": optional_email(payload.email),
        "phone": blank_to_none(payload.phone),
        "address": payload.address,
    }
    if hasattr(payload, "blood_type"):
        values.update(
            img=blank_to_none(payload.img),
            blood_type=payload.blood_type,
            sex=payload.sex,
            birthday=payload.birthday,
        )
    return values


def _resolve_subjects(db: Session, subject_ids: list[int], school_id: int) -> list[Subject]:
    wanted = set(subject_ids)
    if not wanted:
        return []
    subjects = db.query(Subject).filter(Subject.id.in_(wanted), Subject.school_id == school_id).all()
    if len(subjects) != len(wanted):
        raise HTTPException(
            status_code=400, detail="One or more subjects not found or do not belong to this school"
        )
    return subjects


# Students


def list_students(db: Session, *, school_id: int, search: str | None = None) -> list[Student]:
    query = db.query(Student).filter(Student.school_id == school_id)
    condition = search_filter(search, Student.name, Student.surname, Student.username)
    if condition is not None:
        query = query.filter(condition)
    return (
        query.options(selectinload(Student.parent), selectinload(Student.school_class), selectinload(Student.grade))
        .order_by(Student.created_at.desc(), Student.id.desc())
        .all()
    )


def get_student(db: Session, *, student_id: int, school_id: int) -> Student:
    return get_scoped(db, Student, student_id, school_id, "Student")


def _check_student_links(db: Session, payload: StudentUpdate, school_id: int) -> None:
    get_in_school(db, Parent, payload.parent_id, school_id, "Parent")
    get_in_school(db, SchoolClass, payload.class_id, school_id, "Class")
    get_in_school(db, Grade, payload.grade_id, school_id, "Grade")


def create_student(db: Session, payload: StudentCreate, *, actor: Account | None = None) -> Student:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    _check_student_links(db, payload, payload.school_id)
    values = _person_values(payload)
    _ensure_unique(db, Student, payload.school_id, username=values["username"], email=values["email"],
                   phone=values["phone"])

    student = Student(
        **values,
        parent_id=payload.parent_id,
        class_id=payload.class_id,
        grade_id=payload.grade_id,
        school_id=payload.school_id,
    )
    db.add(student)
    db.commit()
    db.refresh(student)
    return student


def update_student(db: Session, *, student_id: int, payload: StudentUpdate, actor: Account | None = None) -> Student:
    student = get_for_write(db, Student, student_id, "Student", actor)
    _check_student_links(db, payload, student.school_id)
    values = _person_values(payload)
    _ensure_unique(db, Student, student.school_id, username=values["username"], email=values["email"],
                   phone=values["phone"], exclude_id=student.id)

    for key, value in values.items():
        setattr(student, key, value)
    student.parent_id = payload.parent_id
    student.class_id = payload.class_id
    student.grade_id = payload.grade_id
    db.commit()
    db.refresh(student)
    return student


def delete_student(db: Session, *, student_id: int, actor: Account | None = None) -> None:
    student = get_for_write(db, Student, student_id, "Student", actor)
    delete_row(db, student)
    logger.info("Deleted student %s", student_id)


# Teachers


def list_teachers(db: Session, *, school_id: int, search: str | None = None) -> list[Teacher]:
    query = db.query(Teacher).filter(Teacher.school_id == school_id)
    condition = search_filter(search, Teacher.name, Teacher.surname, Teacher.username)
    if condition is not None:
        query = query.filter(condition)
    return (
        query.options(selectinload(Teacher.subjects), selectinload(Teacher.classes))
        .order_by(Teacher.created_at.desc(), Teacher.id.desc())
        .all()
    )


def get_teacher(db: Session, *, teacher_id: int, school_id: int) -> Teacher:
    return get_scoped(db, Teacher, teacher_id, school_id, "Teacher")


def create_teacher(db: Session, payload: TeacherCreate, *, actor: Account | None = None) -> Teacher:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    values = _person_values(payload)
    _ensure_unique(db, Teacher, payload.school_id, username=values["username"], email=values["email"],
                   phone=values["phone"])
    subjects = _resolve_subjects(db, payload.subject_ids, payload.school_id)

    teacher = Teacher(**values, school_id=payload.school_id)
    teacher.subjects = subjects
    db.add(teacher)
    db.commit()
    db.refresh(teacher)
    return teacher


def update_teacher(db: Session, *, teacher_id: int, payload: TeacherUpdate, actor: Account | None = None) -> Teacher:
    teacher = get_for_write(db, Teacher, teacher_id, "Teacher", actor)
    values = _person_values(payload)
    _ensure_unique(db, Teacher, teacher.school_id, username=values["username"], email=values["email"],
                   phone=values["phone"], exclude_id=teacher.id)
    subjects = _resolve_subjects(db, payload.subject_ids, teacher.school_id)

    for key, value in values.items():
        setattr(teacher, key, value)
    teacher.subjects = subjects
    db.commit()
    db.refresh(teacher)
    return teacher


def delete_teacher(db: Session, *, teacher_id: int, actor: Account | None = None) -> None:
    teacher = get_for_write(db, Teacher, teacher_id, "Teacher", actor)
    delete_row(db, teacher)
    logger.info("Deleted teacher %s", teacher_id)


# Parents


def list_parents(db: Session, *, school_id: int, search: str | None = None) -> list[Parent]:
    query = db.query(Parent).filter(Parent.school_id == school_id)
    condition = search_filter(search, Parent.name, Parent.surname, Parent.username, Parent.phone)
    if condition is not None:
        query = query.filter(condition)
    return query.options(selectinload(Parent.students)).order_by(Parent.created_at.desc(), Parent.id.desc()).all()


def create_parent(db: Session, payload: ParentCreate, *, actor: Account | None = None) -> Parent:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    values = _person_values(payload)
    _ensure_unique(db, Parent, payload.school_id, username=values["username"], email=values["email"],
                   phone=values["phone"])

    parent = Parent(**values, school_id=payload.school_id)
    db.add(parent)
    db.commit()
    db.refresh(parent)
    return parent


def update_parent(db: Session, *, parent_id: int, payload: ParentUpdate, actor: Account | None = None) -> Parent:
    parent = get_for_write(db, Parent, parent_id, "Parent", actor)
    values = _person_values(payload)
    _ensure_unique(db, Parent, parent.school_id, username=values["username"], email=values["email"],
                   phone=values["phone"], exclude_id=parent.id)

    for key, value in values.items():
        setattr(parent, key, value)
    db.commit()
    db.refresh(parent)
    return parent


def delete_parent(db: Session, *, parent_id: int, actor: Account | None = None) -> None:
    parent = get_for_write(db, Parent, parent_id, "Parent", actor)
    if parent.students:
        raise HTTPException(status_code=409, detail="Cannot delete a parent who still has students")
    delete_row(db, parent)
    logger.info("Deleted parent %s", parent_id)
