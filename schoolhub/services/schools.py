from sqlalchemy.orm import Session

from ..models import School
from .common import get_school


def list_schools(db: Session) -> list[School]:
    return db.query(School).order_by(School.name.asc(), School.id.asc()).all()


def school_detail(db: Session, *, school_id: int) -> School:
    return get_school(db, school_id)
