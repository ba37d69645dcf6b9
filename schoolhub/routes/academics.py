from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import get_optional_user, school_scope
from ..models import Account
from ..responses import success
from ..schemas import (
    ClassCount,
    ClassCreate,
    ClassOut,
    ClassUpdate,
    GradeCount,
    GradeCreate,
    GradeOut,
    GradeUpdate,
    LessonCreate,
    LessonOut,
    LessonUpdate,
    SubjectCount,
    SubjectCreate,
    SubjectOut,
    SubjectUpdate,
)
from ..services import academics

grades_router = APIRouter(prefix="/grades", tags=["Grades"])
classes_router = APIRouter(prefix="/classes", tags=["Classes"])
subjects_router = APIRouter(prefix="/subjects", tags=["Subjects"])
lessons_router = APIRouter(prefix="/lessons", tags=["Lessons"])


def _grade_out(grade) -> GradeOut:
    out = GradeOut.model_validate(grade)
    out.count = GradeCount(students=len(grade.students), classes=len(grade.classes))
    return out


def _class_out(school_class) -> ClassOut:
    out = ClassOut.model_validate(school_class)
    out.count = ClassCount(students=len(school_class.students), lessons=len(school_class.lessons))
    return out


def _subject_out(subject) -> SubjectOut:
    out = SubjectOut.model_validate(subject)
    out.count = SubjectCount(teachers=len(subject.teachers), lessons=len(subject.lessons))
    return out


@grades_router.get("")
def list_grades(school_id: int = Depends(school_scope), db: Session = Depends(get_db_session)):
    return success([_grade_out(grade) for grade in academics.list_grades(db, school_id=school_id)])


@grades_router.post("", status_code=status.HTTP_201_CREATED)
def create_grade(
    payload: GradeCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    grade = academics.create_grade(db, level=payload.level, school_id=payload.school_id, actor=current_user)
    return success(_grade_out(grade), "Grade created successfully")


@grades_router.put("/{grade_id}")
def update_grade(
    grade_id: int,
    payload: GradeUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    grade = academics.update_grade(db, grade_id=grade_id, level=payload.level, actor=current_user)
    return success(_grade_out(grade), "Grade updated successfully")


@grades_router.delete("/{grade_id}")
def delete_grade(
    grade_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    academics.delete_grade(db, grade_id=grade_id, actor=current_user)
    return success(message="Grade deleted successfully")


@classes_router.get("")
def list_classes(
    search: str | None = Query(default=None),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    classes = academics.list_classes(db, school_id=school_id, search=search)
    return success([_class_out(school_class) for school_class in classes])


@classes_router.post("", status_code=status.HTTP_201_CREATED)
def create_class(
    payload: ClassCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    school_class = academics.create_class(db, payload, actor=current_user)
    return success(_class_out(school_class), "Class created successfully")


@classes_router.put("/{class_id}")
def update_class(
    class_id: int,
    payload: ClassUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    school_class = academics.update_class(db, class_id=class_id, payload=payload, actor=current_user)
    return success(_class_out(school_class), "Class updated successfully")


@classes_router.delete("/{class_id}")
def delete_class(
    class_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    academics.delete_class(db, class_id=class_id, actor=current_user)
    return success(message="Class deleted successfully")


@subjects_router.get("")
def list_subjects(
    search: str | None = Query(default=None),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    subjects = academics.list_subjects(db, school_id=school_id, search=search)
    return success([_subject_out(subject) for subject in subjects])


@subjects_router.post("", status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    subject = academics.create_subject(db, name=payload.name, school_id=payload.school_id, actor=current_user)
    return success(_subject_out(subject), "Subject created successfully")


@subjects_router.put("/{subject_id}")
def update_subject(
    subject_id: int,
    payload: SubjectUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    subject = academics.update_subject(db, subject_id=subject_id, name=payload.name, actor=current_user)
    return success(_subject_out(subject), "Subject updated successfully")


@subjects_router.delete("/{subject_id}")
def delete_subject(
    subject_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    academics.delete_subject(db, subject_id=subject_id, actor=current_user)
    return success(message="Subject deleted successfully")


@lessons_router.get("")
def list_lessons(
    search: str | None = Query(default=None),
    class_id: int | None = Query(default=None, alias="classId"),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    lessons = academics.list_lessons(db, school_id=school_id, search=search, class_id=class_id)
    return success([LessonOut.model_validate(lesson) for lesson in lessons])


@lessons_router.post("", status_code=status.HTTP_201_CREATED)
def create_lesson(
    payload: LessonCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    lesson = academics.create_lesson(db, payload, actor=current_user)
    return success(LessonOut.model_validate(lesson), "Lesson created successfully")


@lessons_router.put("/{lesson_id}")
def update_lesson(
    lesson_id: int,
    payload: LessonUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    lesson = academics.update_lesson(db, lesson_id=lesson_id, payload=payload, actor=current_user)
    return success(LessonOut.model_validate(lesson), "Lesson updated successfully")


@lessons_router.delete("/{lesson_id}")
def delete_lesson(
    lesson_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    academics.delete_lesson(db, lesson_id=lesson_id, actor=current_user)
    return success(message="Lesson deleted successfully")
