from sqlalchemy.orm import Session, selectinload

from ..middleware import check_tenant
from ..models import Account, Announcement, Event, SchoolClass
from ..schemas import AnnouncementCreate, AnnouncementUpdate, EventCreate, EventUpdate
from .common import delete_row, get_for_write, get_in_school, get_school, require_order, search_filter


def _check_class(db: Session, class_id: int | None, school_id: int) -> None:
    if class_id is not None:
        get_in_school(db, SchoolClass, class_id, school_id, "Class")


# Events


def list_events(db: Session, *, school_id: int, search: str | None = None) -> list[Event]:
    query = db.query(Event).filter(Event.school_id == school_id)
    condition = search_filter(search, Event.title, Event.description)
    if condition is not None:
        query = query.filter(condition)
    return query.options(selectinload(Event.school_class)).order_by(Event.start_time.asc(), Event.id.asc()).all()


def create_event(db: Session, payload: EventCreate, *, actor: Account | None = None) -> Event:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    require_order(payload.start_time, payload.end_time, "End time must be after start time")
    _check_class(db, payload.class_id, payload.school_id)

    event = Event(**payload.model_dump())
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def update_event(db: Session, *, event_id: int, payload: EventUpdate, actor: Account | None = None) -> Event:
    event = get_for_write(db, Event, event_id, "Event", actor)
    require_order(payload.start_time, payload.end_time, "End time must be after start time")
    _check_class(db, payload.class_id, event.school_id)

    for key, value in payload.model_dump().items():
        setattr(event, key, value)
    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, *, event_id: int, actor: Account | None = None) -> None:
    event = get_for_write(db, Event, event_id, "Event", actor)
    delete_row(db, event)


# Announcements


def list_announcements(db: Session, *, school_id: int, search: str | None = None) -> list[Announcement]:
    query = db.query(Announcement).filter(Announcement.school_id == school_id)
    condition = search_filter(search, Announcement.title, Announcement.description)
    if condition is not None:
        query = query.filter(condition)
    return (
        query.options(selectinload(Announcement.school_class))
        .order_by(Announcement.date.desc(), Announcement.id.desc())
        .all()
    )


def create_announcement(db: Session, payload: AnnouncementCreate, *, actor: Account | None = None) -> Announcement:
    check_tenant(payload.school_id, actor)
    get_school(db, payload.school_id)
    _check_class(db, payload.class_id, payload.school_id)

    announcement = Announcement(**payload.model_dump())
    db.add(announcement)
    db.commit()
    db.refresh(announcement)
    return announcement


def update_announcement(
    db: Session, *, announcement_id: int, payload: AnnouncementUpdate, actor: Account | None = None
) -> Announcement:
    announcement = get_for_write(db, Announcement, announcement_id, "Announcement", actor)
    _check_class(db, payload.class_id, announcement.school_id)

    for key, value in payload.model_dump().items():
        setattr(announcement, key, value)
    db.commit()
    db.refresh(announcement)
    return announcement


def delete_announcement(db: Session, *, announcement_id: int, actor: Account | None = None) -> None:
    announcement = get_for_write(db, Announcement, announcement_id, "Announcement", actor)
    delete_row(db, announcement)
