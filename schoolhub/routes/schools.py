from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import school_scope
from ..responses import success
from ..schemas import SchoolOut
from ..services.dashboard import build_dashboard
from ..services.schools import list_schools, school_detail

schools_router = APIRouter(prefix="/schools", tags=["Schools"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@schools_router.get("")
def get_schools(db: Session = Depends(get_db_session)):
    return success([SchoolOut.model_validate(school) for school in list_schools(db)])


@schools_router.get("/{school_id}")
def get_school(school_id: int, db: Session = Depends(get_db_session)):
    return success(SchoolOut.model_validate(school_detail(db, school_id=school_id)))


@dashboard_router.get("")
def get_dashboard(school_id: int = Depends(school_scope), db: Session = Depends(get_db_session)):
    return success(build_dashboard(db, school_id=school_id))
