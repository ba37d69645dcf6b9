import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from ..middleware import check_tenant
from ..models import Account, Grade, Lesson, SchoolClass, Subject, Teacher, Weekday
from ..schemas import ClassCreate, ClassUpdate, LessonCreate, LessonUpdate
from .common import delete_row, get_for_write, get_in_school, get_school, require_order, search_filter


logger = logging.getLogger(__name__)

WEEKDAY_ORDER = {day: index for index, day in enumerate(Weekday)}


# Grades


def list_grades(db: Session, *, school_id: int) -> list[Grade]:
    return (
        db.query(Grade)
        .filter(Grade.school_id == school_id)
        .options(selectinload(Grade.students), selectinload(Grade.classes))
        .order_by(Grade.level.asc())
        .all()
    )


def _ensure_level_free(db: Session, *, level: int, school_id: int, exclude_id: int | None = None) -> None:
    query = db.query(Grade.id).filter(Grade.school_id == school_id, Grade.level == level)
    if exclude_id is not None:
        query = query.filter(Grade.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f"Grade level {level} already exists for this school")


def create_grade(db: Session, *, level: int, school_id: int, actor: Account | None = None) -> Grade:
    check_tenant(school_id, actor)
    get_school(db, school_id)
    _ensure_level_free(db, level=level, school_id=school_id)

    grade = Grade(level=level, school_id=school_id)
    db.add(grade)
    db.commit()
    db.refresh(grade)
    return grade


def update_grade(db: Session, *, grade_id: int, level: int, actor: Account | None = None) -> Grade:
    grade = get_for_write(db, Grade, grade_id, "Grade", actor)
    _ensure_level_free(db, level=level, school_id=grade.school_id, exclude_id=grade.id)
    grade.level = level
    db.commit()
    db.refresh(grade)
    return grade


def delete_grade(db: Session, *, grade_id: int, actor: Account | None = None) -> None:
    grade = get_for_write(db, Grade, grade_id, "Grade", actor)
    if grade.students or grade.classes:
        raise HTTPException(status_code=409, detail="Cannot delete a grade that still has classes or students")
    delete_row(db, grade)


# Classes


def list_classes(db: Session, *, school_id: int, search: str | None = None) -> list[SchoolClass]:
    query = db.query(SchoolClass).filter(SchoolClass.school_id == school_id)
    condition = search_filter(search, SchoolClass.name)
    if condition is not None:
        query = query.filter(condition)
    return (
        query.options(
            selectinload(SchoolClass.grade),
            selectinload(SchoolClass.supervisor),
            selectinload(SchoolClass.students),
            selectinload(SchoolClass.lessons),
        )
        .order_by(SchoolClass.name.asc())
        .all()
    )


def _check_class_payload(db: Session, payload: ClassUpdate, school_id: int, exclude_id: int | None = None) -> None:
    get_in_school(db, Grade, payload.grade_id, school_id, "Grade")
    if payload.supervisor_id is not None:
        get_in_school(db, Teacher, payload.supervisor_id, school_id, "Supervisor")
    query = db.query(SchoolClass.id).filter(SchoolClass.school_id == school_id, SchoolClass.name == payload.name)
    if exclude_id is not None:
        query = query.filter(SchoolClass.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f'Class name "{payload.name}" already exists for this school')


def create_class(db: Session, payload: ClassCreate, *, actor: Account | None = None) -> SchoolClass:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    _check_class_payload(db, payload, payload.school_id)

    school_class = SchoolClass(
        name=payload.name,
        capacity=payload.capacity,
        grade_id=payload.grade_id,
        supervisor_id=payload.supervisor_id,
        school_id=payload.school_id,
    )
    db.add(school_class)
    db.commit()
    db.refresh(school_class)
    return school_class


def update_class(db: Session, *, class_id: int, payload: ClassUpdate, actor: Account | None = None) -> SchoolClass:
    school_class = get_for_write(db, SchoolClass, class_id, "Class", actor)
    _check_class_payload(db, payload, school_class.school_id, exclude_id=school_class.id)

    school_class.name = payload.name
    school_class.capacity = payload.capacity
    school_class.grade_id = payload.grade_id
    school_class.supervisor_id = payload.supervisor_id
    db.commit()
    db.refresh(school_class)
    return school_class


def delete_class(db: Session, *, class_id: int, actor: Account | None = None) -> None:
    school_class = get_for_write(db, SchoolClass, class_id, "Class", actor)
    if school_class.students:
        raise HTTPException(status_code=409, detail="Cannot delete a class that still has students")
    delete_row(db, school_class)


# Subjects


def list_subjects(db: Session, *, school_id: int, search: str | None = None) -> list[Subject]:
    query = db.query(Subject).filter(Subject.school_id == school_id)
    condition = search_filter(search, Subject.name)
    if condition is not None:
        query = query.filter(condition)
    return (
        query.options(selectinload(Subject.teachers), selectinload(Subject.lessons))
        .order_by(Subject.name.asc())
        .all()
    )


def _ensure_subject_name_free(db: Session, *, name: str, school_id: int, exclude_id: int | None = None) -> None:
    query = db.query(Subject.id).filter(Subject.school_id == school_id, Subject.name == name)
    if exclude_id is not None:
        query = query.filter(Subject.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f'Subject "{name}" already exists for this school')


def create_subject(db: Session, *, name: str, school_id: int, actor: Account | None = None) -> Subject:
    check_tenant(school_id, actor)
    get_school(db, school_id)
    _ensure_subject_name_free(db, name=name, school_id=school_id)

    subject = Subject(name=name, school_id=school_id)
    db.add(subject)
    db.commit()
    db.refresh(subject)
    return subject


def update_subject(db: Session, *, subject_id: int, name: str, actor: Account | None = None) -> Subject:
    subject = get_for_write(db, Subject, subject_id, "Subject", actor)
    _ensure_subject_name_free(db, name=name, school_id=subject.school_id, exclude_id=subject.id)
    subject.name = name
    db.commit()
    db.refresh(subject)
    return subject


def delete_subject(db: Session, *, subject_id: int, actor: Account | None = None) -> None:
    subject = get_for_write(db, Subject, subject_id, "Subject", actor)
    delete_row(db, subject)


# Lessons


def list_lessons(
    db: Session, *, school_id: int, search: str | None = None, class_id: int | None = None
) -> list[Lesson]:
    query = db.query(Lesson).join(Lesson.subject).filter(Lesson.school_id == school_id)
    condition = search_filter(search, Lesson.name, Subject.name)
    if condition is not None:
        query = query.filter(condition)
    if class_id is not None:
        query = query.filter(Lesson.class_id == class_id)
    lessons = query.options(
        selectinload(Lesson.subject), selectinload(Lesson.school_class), selectinload(Lesson.teacher)
    ).all()
    return sorted(lessons, key=lambda lesson: (WEEKDAY_ORDER[lesson.day], lesson.start_time, lesson.id))


def _check_lesson_payload(db: Session, payload: LessonUpdate, school_id: int) -> None:
    require_order(payload.start_time, payload.end_time, "End time must be after start time")
    get_in_school(db, Subject, payload.subject_id, school_id, "Subject")
    get_in_school(db, SchoolClass, payload.class_id, school_id, "Class")
    get_in_school(db, Teacher, payload.teacher_id, school_id, "Teacher")


def create_lesson(db: Session, payload: LessonCreate, *, actor: Account | None = None) -> Lesson:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    _check_lesson_payload(db, payload, payload.school_id)

    lesson = Lesson(**payload.model_dump())
    db.add(lesson)
    db.commit()
    db.refresh(lesson)
    return lesson


def update_lesson(db: Session, *, lesson_id: int, payload: LessonUpdate, actor: Account | None = None) -> Lesson:
    lesson = get_for_write(db, Lesson, lesson_id, "Lesson", actor)
    _check_lesson_payload(db, payload, lesson.school_id)

    for key, value in payload.model_dump().items():
        setattr(lesson, key, value)
    db.commit()
    db.refresh(lesson)
    return lesson


def delete_lesson(db: Session, *, lesson_id: int, actor: Account | None = None) -> None:
    lesson = get_for_write(db, Lesson, lesson_id, "Lesson", actor)
    delete_row(db, lesson)
    logger.info("Deleted lesson %s", lesson_id)
