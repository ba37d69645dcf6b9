import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from ..middleware import check_tenant
from ..models import Account, AccountRole, Assignment, Exam, Lesson, Result, Student
from ..schemas import AssignmentCreate, AssignmentUpdate, ExamCreate, ExamUpdate, ResultCreate, ResultUpdate
from .common import delete_row, get_for_write, get_in_school, get_school, require_order, search_filter


logger = logging.getLogger(__name__)


def _lesson_detail():
    return (
        selectinload(Lesson.subject),
        selectinload(Lesson.school_class),
        selectinload(Lesson.teacher),
    )


def _ensure_lesson_owner(actor: Account | None, lesson: Lesson, message: str) -> None:
    if actor is None or actor.role != AccountRole.TEACHER:
        return
    if actor.teacher_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Teacher account not found")
    if lesson.teacher_id != actor.teacher_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)


# Exams


def list_exams(
    db: Session, *, school_id: int, search: str | None = None, class_id: int | None = None
) -> list[Exam]:
    query = db.query(Exam).join(Exam.lesson).filter(Exam.school_id == school_id)
    condition = search_filter(search, Exam.title, Lesson.name)
    if condition is not None:
        query = query.filter(condition)
    if class_id is not None:
        query = query.filter(Lesson.class_id == class_id)
    return (
        query.options(selectinload(Exam.lesson).options(*_lesson_detail()))
        .order_by(Exam.start_time.asc(), Exam.id.asc())
        .all()
    )


def _exam_lesson(db: Session, payload: ExamUpdate, school_id: int, actor: Account | None) -> Lesson:
    require_order(payload.start_time, payload.end_time, "endTime must be after startTime")
    lesson = get_in_school(db, Lesson, payload.lesson_id, school_id, "Lesson")
    _ensure_lesson_owner(actor, lesson, "You can only create exams for your own lessons")
    return lesson


def create_exam(db: Session, payload: ExamCreate, *, actor: Account | None = None) -> Exam:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    _exam_lesson(db, payload, payload.school_id, actor)

    exam = Exam(**payload.model_dump())
    db.add(exam)
    db.commit()
    db.refresh(exam)
    return exam


def update_exam(db: Session, *, exam_id: int, payload: ExamUpdate, actor: Account | None = None) -> Exam:
    exam = get_for_write(db, Exam, exam_id, "Exam", actor)
    _ensure_lesson_owner(actor, exam.lesson, "You can only update exams for your own lessons")
    _exam_lesson(db, payload, exam.school_id, actor)

    for key, value in payload.model_dump().items():
        setattr(exam, key, value)
    db.commit()
    db.refresh(exam)
    return exam


def delete_exam(db: Session, *, exam_id: int, actor: Account | None = None) -> None:
    exam = get_for_write(db, Exam, exam_id, "Exam", actor)
    _ensure_lesson_owner(actor, exam.lesson, "You can only delete exams for your own lessons")
    delete_row(db, exam)


# Assignments


def list_assignments(
    db: Session, *, school_id: int, search: str | None = None, class_id: int | None = None
) -> list[Assignment]:
    query = db.query(Assignment).join(Assignment.lesson).filter(Assignment.school_id == school_id)
    condition = search_filter(search, Assignment.title, Lesson.name)
    if condition is not None:
        query = query.filter(condition)
    if class_id is not None:
        query = query.filter(Lesson.class_id == class_id)
    return (
        query.options(selectinload(Assignment.lesson).options(*_lesson_detail()))
        .order_by(Assignment.start_date.desc(), Assignment.id.desc())
        .all()
    )


def _assignment_lesson(db: Session, payload: AssignmentUpdate, school_id: int, actor: Account | None) -> Lesson:
    require_order(payload.start_date, payload.due_date, "dueDate must be after startDate")
    lesson = get_in_school(db, Lesson, payload.lesson_id, school_id, "Lesson")
    _ensure_lesson_owner(actor, lesson, "You can only create assignments for your own lessons")
    return lesson


def create_assignment(db: Session, payload: AssignmentCreate, *, actor: Account | None = None) -> Assignment:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    _assignment_lesson(db, payload, payload.school_id, actor)

    assignment = Assignment(**payload.model_dump())
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


def update_assignment(
    db: Session, *, assignment_id: int, payload: AssignmentUpdate, actor: Account | None = None
) -> Assignment:
    assignment = get_for_write(db, Assignment, assignment_id, "Assignment", actor)
    _ensure_lesson_owner(actor, assignment.lesson, "You can only update assignments for your own lessons")
    _assignment_lesson(db, payload, assignment.school_id, actor)

    for key, value in payload.model_dump().items():
        setattr(assignment, key, value)
    db.commit()
    db.refresh(assignment)
    return assignment


def delete_assignment(db: Session, *, assignment_id: int, actor: Account | None = None) -> None:
    assignment = get_for_write(db, Assignment, assignment_id, "Assignment", actor)
    _ensure_lesson_owner(actor, assignment.lesson, "You can only delete assignments for your own lessons")
    delete_row(db, assignment)


# Results


def list_results(db: Session, *, school_id: int, search: str | None = None) -> list[Result]:
    query = (
        db.query(Result)
        .join(Result.student)
        .outerjoin(Result.exam)
        .outerjoin(Result.assignment)
        .filter(Result.school_id == school_id)
    )
    condition = search_filter(search, Student.name, Student.surname, Exam.title, Assignment.title)
    if condition is not None:
        query = query.filter(condition)
    return (
        query.options(
            selectinload(Result.student),
            selectinload(Result.exam).selectinload(Exam.lesson).options(*_lesson_detail()),
            selectinload(Result.assignment).selectinload(Assignment.lesson).options(*_lesson_detail()),
        )
        .order_by(Result.id.desc())
        .all()
    )


def _check_result_payload(db: Session, payload: ResultUpdate, school_id: int, actor: Account | None) -> None:
    if payload.exam_id is None and payload.assignment_id is None:
        raise HTTPException(status_code=400, detail="Either examId or assignmentId must be provided")
    if payload.exam_id is not None and payload.assignment_id is not None:
        raise HTTPException(status_code=400, detail="Cannot provide both examId and assignmentId")

    get_in_school(db, Student, payload.student_id, school_id, "Student")
    if payload.exam_id is not None:
        exam = get_in_school(db, Exam, payload.exam_id, school_id, "Exam")
        _ensure_lesson_owner(actor, exam.lesson, "You can only add results for your own exams")
    else:
        assignment = get_in_school(db, Assignment, payload.assignment_id, school_id, "Assignment")
        _ensure_lesson_owner(actor, assignment.lesson, "You can only add results for your own assignments")


def create_result(db: Session, payload: ResultCreate, *, actor: Account | None = None) -> Result:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    _check_result_payload(db, payload, payload.school_id, actor)

    result = Result(**payload.model_dump())
    db.add(result)
    db.commit()
    db.refresh(result)
    logger.info("Recorded result %s for student %s", result.id, result.student_id)
    return result


def update_result(db: Session, *, result_id: int, payload: ResultUpdate, actor: Account | None = None) -> Result:
    result = get_for_write(db, Result, result_id, "Result", actor)
    _check_result_payload(db, payload, result.school_id, actor)

    for key, value in payload.model_dump().items():
        setattr(result, key, value)
    db.commit()
    db.refresh(result)
    return result


def delete_result(db: Session, *, result_id: int, actor: Account | None = None) -> None:
    result = get_for_write(db, Result, result_id, "Result", actor)
    delete_row(db, result)
