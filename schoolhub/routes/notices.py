from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db_session
from ..middleware import get_optional_user, school_scope
from ..models import Account
from ..responses import success
from ..schemas import (
    AnnouncementCreate,
    AnnouncementOut,
    AnnouncementUpdate,
    EventCreate,
    EventOut,
    EventUpdate,
)
from ..services import notices

events_router = APIRouter(prefix="/events", tags=["Events"])
announcements_router = APIRouter(prefix="/announcements", tags=["Announcements"])


@events_router.get("")
def list_events(
    search: str | None = Query(default=None),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    events = notices.list_events(db, school_id=school_id, search=search)
    return success([EventOut.model_validate(event) for event in events])


@events_router.post("", status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    event = notices.create_event(db, payload, actor=current_user)
    return success(EventOut.model_validate(event), "Event created successfully")


@events_router.put("/{event_id}")
def update_event(
    event_id: int,
    payload: EventUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    event = notices.update_event(db, event_id=event_id, payload=payload, actor=current_user)
    return success(EventOut.model_validate(event), "Event updated successfully")


@events_router.delete("/{event_id}")
def delete_event(
    event_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    notices.delete_event(db, event_id=event_id, actor=current_user)
    return success(message="Event deleted successfully")


@announcements_router.get("")
def list_announcements(
    search: str | None = Query(default=None),
    school_id: int = Depends(school_scope),
    db: Session = Depends(get_db_session),
):
    items = notices.list_announcements(db, school_id=school_id, search=search)
    return success([AnnouncementOut.model_validate(item) for item in items])


@announcements_router.post("", status_code=status.HTTP_201_CREATED)
def create_announcement(
    payload: AnnouncementCreate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    announcement = notices.create_announcement(db, payload, actor=current_user)
    return success(AnnouncementOut.model_validate(announcement), "Announcement created successfully")


@announcements_router.put("/{announcement_id}")
def update_announcement(
    announcement_id: int,
    payload: AnnouncementUpdate,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    announcement = notices.update_announcement(
        db, announcement_id=announcement_id, payload=payload, actor=current_user
    )
    return success(AnnouncementOut.model_validate(announcement), "Announcement updated successfully")


@announcements_router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: int,
    db: Session = Depends(get_db_session),
    current_user: Account | None = Depends(get_optional_user),
):
    notices.delete_announcement(db, announcement_id=announcement_id, actor=current_user)
    return success(message="Announcement deleted successfully")
