from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import get_optional_user, school_scope
from ..models import Account
from ..responses import success
from ..schemas import (
    AssignmentCreate,
    AssignmentOut,
    AssignmentUpdate,
    ExamCreate,
    ExamOut,
    ExamUpdate,
    ResultCreate,
    ResultOut,
    ResultUpdate,
)
from ..services import assessments

exams_router = APIRouter(prefix="/exams", tags=["Exams"])
assignments_router = APIRouter(prefix="/assignments", tags=["Assignments"])
results_router = APIRouter(prefix="/results", tags=["Results"])


@exams_router.get("")
def list_exams(
    search: str | None = Query(default=None),
    class_id: int | None = Query(default=None, alias="classId"),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    exams = assessments.list_exams(db, school_id=school_id, search=search, class_id=class_id)
    return success([ExamOut.model_validate(exam) for exam in exams])


@exams_router.post("", status_code=status.HTTP_201_CREATED)
def create_exam(
    payload: ExamCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    exam = assessments.create_exam(db, payload, actor=current_user)
    return success(ExamOut.model_validate(exam), "Exam created successfully")


@exams_router.put("/{exam_id}")
def update_exam(
    exam_id: int,
    payload: ExamUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    exam = assessments.update_exam(db, exam_id=exam_id, payload=payload, actor=current_user)
    return success(ExamOut.model_validate(exam), "Exam updated successfully")


@exams_router.delete("/{exam_id}")
def delete_exam(
    exam_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    assessments.delete_exam(db, exam_id=exam_id, actor=current_user)
    return success(message="Exam deleted successfully")


@assignments_router.get("")
def list_assignments(
    search: str | None = Query(default=None),
    class_id: int | None = Query(default=None, alias="classId"),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    items = assessments.list_assignments(db, school_id=school_id, search=search, class_id=class_id)
    return success([AssignmentOut.model_validate(item) for item in items])


@assignments_router.post("", status_code=status.HTTP_201_CREATED)
def create_assignment(
    payload: AssignmentCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    assignment = assessments.create_assignment(db, payload, actor=current_user)
    return success(AssignmentOut.model_validate(assignment), "Assignment created successfully")


@assignments_router.put("/{assignment_id}")
def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    assignment = assessments.update_assignment(
        db, assignment_id=assignment_id, payload=payload, actor=current_user
    )
    return success(AssignmentOut.model_validate(assignment), "Assignment updated successfully")


@assignments_router.delete("/{assignment_id}")
def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    assessments.delete_assignment(db, assignment_id=assignment_id, actor=current_user)
    return success(message="Assignment deleted successfully")


@results_router.get("")
def list_results(
    search: str | None = Query(default=None),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    results = assessments.list_results(db, school_id=school_id, search=search)
    return success([ResultOut.model_validate(result) for result in results])


@results_router.post("", status_code=status.HTTP_201_CREATED)
def create_result(
    payload: ResultCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    result = assessments.create_result(db, payload, actor=current_user)
    return success(ResultOut.model_validate(result), "Result created successfully")


@results_router.put("/{result_id}")
def update_result(
    result_id: int,
    payload: ResultUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    result = assessments.update_result(db, result_id=result_id, payload=payload, actor=current_user)
    return success(ResultOut.model_validate(result), "Result updated successfully")


@results_router.delete("/{result_id}")
def delete_result(
    result_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    assessments.delete_result(db, result_id=result_id, actor=current_user)
    return success(message="Result deleted successfully")
