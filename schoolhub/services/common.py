import re
from datetime import datetime

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..middleware import check_tenant
from ..models import Account, School


EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


def normalize_email(value: str) -> str:
    normalized = value.lower().strip()
    if not EMAIL_PATTERN.match(normalized):
        raise HTTPException(status_code=400, detail="Invalid email format")
    return normalized


def optional_email(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return normalize_email(value)


def blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_school(db: Session, school_id: int) -> School:
    school = db.query(School).filter(School.id == school_id).first()
    if not school:
        raise HTTPException(status_code=404, detail="School not found")
    return school


def get_in_school(db: Session, model, entity_id: int, school_id: int, label: str):
    """Fetch a referenced row, requiring it to belong to ``school_id``."""
    entity = db.query(model).filter(model.id == entity_id, model.school_id == school_id).first()
    if not entity:
        raise HTTPException(status_code=404, detail=f"{label} not found or does not belong to this school")
    return entity


def get_scoped(db: Session, model, entity_id: int, school_id: int, label: str):
    entity = db.query(model).filter(model.id == entity_id, model.school_id == school_id).first()
    if not entity:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return entity


def get_for_write(db: Session, model, entity_id: int, label: str, actor: Account | None):
    entity = db.query(model).filter(model.id == entity_id).first()
    if not entity:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    check_tenant(entity.school_id, actor)
    return entity


def search_filter(search: str | None, *columns):
    if not search or not search.strip():
        return None
    pattern = f"%{search.strip()}%"
    return or_(*(column.ilike(pattern) for column in columns))


def require_order(start: datetime, end: datetime, message: str) -> None:
    if start >= end:
        raise HTTPException(status_code=400, detail=message)


def delete_row(db: Session, entity) -> None:
    try:
        db.delete(entity)
        db.commit()
    except Exception:
        db.rollback()
        raise
