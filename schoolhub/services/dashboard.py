"""Read-only dashboard snapshot for one school.

Each call runs a fixed set of queries and then derives statistics in memory.
Attendance and payments are bucketed by the calendar day they fall on in the
school's own timezone, not by UTC instant.
"""
from datetime import date, datetime

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..dates import isoformat_utc, local_day, month_label, months_window, school_zone, trailing_months, utcnow
from ..holiday_calendar import holidays_for_country
from ..ledger import round_money
from ..models import Announcement, Attendance, Event, Payment, School, Sex, Student, StudentFee, Teacher


ATTENDANCE_MONTHS = 4


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0
    return round(part / whole * 100, 2)


def _school_details(school: School) -> dict:
    return {
        "id": school.id,
        "name": school.name,
        "address": school.address,
        "addressLine1": school.address_line1,
        "state": school.state,
        "pinCode": school.pin_code,
        "country": school.country,
        "timezone": school.timezone,
        "phone": school.phone,
        "email": school.email,
        "createdAt": isoformat_utc(school.created_at),
        "updatedAt": isoformat_utc(school.updated_at),
    }


def _counts(db: Session, school_id: int) -> dict:
    by_sex = dict(
        db.query(Student.sex, func.count(Student.id)).filter(Student.school_id == school_id).group_by(Student.sex).all()
    )
    return {
        "students": sum(by_sex.values()),
        "teachers": db.query(func.count(Teacher.id)).filter(Teacher.school_id == school_id).scalar() or 0,
        "boys": by_sex.get(Sex.MALE, 0),
        "girls": by_sex.get(Sex.FEMALE, 0),
    }


def _upcoming_events(db: Session, school_id: int, now: datetime) -> list[dict]:
    events = (
        db.query(Event)
        .options(selectinload(Event.school_class))
        .filter(Event.school_id == school_id, Event.start_time >= now)
        .order_by(Event.start_time.asc(), Event.id.asc())
        .limit(settings.dashboard_upcoming_events)
        .all()
    )
    return [
        {
            "id": event.id,
            "title": event.title,
            "description": event.description,
            "startTime": isoformat_utc(event.start_time),
            "endTime": isoformat_utc(event.end_time),
            "className": event.school_class.name if event.school_class else None,
        }
        for event in events
    ]


def _announcements(db: Session, school_id: int) -> list[dict]:
    announcements = (
        db.query(Announcement)
        .options(selectinload(Announcement.school_class))
        .filter(Announcement.school_id == school_id)
        .order_by(Announcement.date.desc(), Announcement.id.desc())
        .limit(settings.dashboard_recent_announcements)
        .all()
    )
    return [
        {
            "id": item.id,
            "title": item.title,
            "description": item.description,
            "date": isoformat_utc(item.date),
            "className": item.school_class.name if item.school_class else None,
        }
        for item in announcements
    ]


def summarize_attendance(records: list[Attendance], months: list[tuple[int, int]], zone) -> dict:
    total = len(records)
    present = sum(1 for record in records if record.present)

    buckets = {key: {"present": 0, "absent": 0} for key in months}
    for record in records:
        day = local_day(record.date, zone)
        bucket = buckets.get((day.year, day.month))
        if bucket is None:
            continue
        bucket["present" if record.present else "absent"] += 1

    return {
        "recentRecords": [
            {
                "id": record.id,
                "date": isoformat_utc(record.date),
                "present": record.present,
                "student": {"id": record.student.id, "name": f"{record.student.name} {record.student.surname}"},
                "lesson": {"id": record.lesson.id, "name": record.lesson.name},
            }
            for record in records[: settings.dashboard_recent_attendance]
        ],
        "statistics": {
            "totalRecords": total,
            "present": present,
            "absent": total - present,
            "attendanceRate": percentage(present, total),
        },
        "monthlyAverages": [
            {"month": month_label(month), "present": buckets[(year, month)]["present"],
             "absent": buckets[(year, month)]["absent"]}
            for year, month in months
        ],
    }


def _attendance(db: Session, school_id: int, today: date, zone) -> dict:
    start, end = months_window(today, ATTENDANCE_MONTHS, zone)
    records = (
        db.query(Attendance)
        .options(selectinload(Attendance.student), selectinload(Attendance.lesson))
        .filter(Attendance.school_id == school_id, Attendance.date >= start, Attendance.date < end)
        .order_by(Attendance.date.desc(), Attendance.id.desc())
        .all()
    )
    return summarize_attendance(records, trailing_months(today, ATTENDANCE_MONTHS), zone)


def summarize_fees(
    student_fees: list[StudentFee], payments: list[Payment], today: date, now: datetime, zone
) -> dict:
    """Totals cover fees due in the current calendar year (school-local); open and overdue counts cover every fee."""
    billed = [fee for fee in student_fees if local_day(fee.due_date, zone).year == today.year]
    total_due = round_money(sum(fee.amount for fee in billed))
    total_paid = round_money(sum(fee.paid_amount for fee in billed))
    open_fees = [fee for fee in student_fees if fee.paid_amount < fee.amount]
    overdue = sum(1 for fee in open_fees if now > fee.due_date)

    by_month = {month: 0.0 for month in range(1, 13)}
    this_month = 0.0
    this_year = 0.0
    for payment in payments:
        day = local_day(payment.payment_date, zone)
        if day.year != today.year:
            continue
        this_year += payment.amount
        by_month[day.month] += payment.amount
        if day.month == today.month:
            this_month += payment.amount

    return {
        "totalDue": total_due,
        "totalPaid": total_paid,
        "totalPending": round_money(total_due - total_paid),
        "collectionRate": percentage(total_paid, total_due),
        "pendingCount": len(open_fees) - overdue,
        "overdueCount": overdue,
        "paymentsThisMonth": round_money(this_month),
        "paymentsThisYear": round_money(this_year),
        "monthlyCollection": [
            {"month": month_label(month), "amount": round_money(amount)} for month, amount in by_month.items()
        ],
    }


def _fees(db: Session, school_id: int, today: date, now: datetime, zone) -> dict:
    student_fees = db.query(StudentFee).filter(StudentFee.school_id == school_id).all()
    year_start, year_end = months_window(date(today.year, 12, 1), 12, zone)
    payments = (
        db.query(Payment)
        .filter(Payment.school_id == school_id, Payment.payment_date >= year_start, Payment.payment_date < year_end)
        .all()
    )
    return summarize_fees(student_fees, payments, today, now, zone)


def build_dashboard(db: Session, *, school_id: int, now: datetime | None = None) -> dict:
    """Collect every dashboard section for one school. Queries run in turn on the caller's session."""
    school = db.query(School).filter(School.id == school_id).first()
    if not school:
        raise HTTPException(status_code=404, detail="School not found")

    now = now or utcnow()
    zone = school_zone(school.timezone)
    today = local_day(now, zone)

    return {
        "schoolDetails": _school_details(school),
        "counts": _counts(db, school_id),
        "upcomingEvents": _upcoming_events(db, school_id, now),
        "announcements": _announcements(db, school_id),
        "holidays": holidays_for_country(school.country, today.year),
        "attendance": _attendance(db, school_id, today, zone),
        "fees": _fees(db, school_id, today, now, zone),
    }
