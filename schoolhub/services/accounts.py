import logging

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..models import Account, AccountRole, School, Student, Teacher
from ..schemas import ClassRef, ProfileOut
from ..security import create_access_token, hash_password, verify_password
from .common import blank_to_none, normalize_email


logger = logging.getLogger(__name__)

ACCOUNT_PEOPLE = {"teacher": Teacher, "student": Student}


def issue_token(account: Account) -> str:
    return create_access_token(
        account_id=account.id,
        email=account.email,
        role=account.role.value,
        school_id=account.school_id,
    )


def build_profile(account: Account) -> ProfileOut:
    profile = ProfileOut(
        id=account.id,
        email=account.email,
        username=account.username,
        role=account.role,
        school_id=account.school_id,
        school_name=account.school.name,
    )
    if account.role == AccountRole.STUDENT and account.student:
        profile.student_id = account.student.id
        profile.class_id = account.student.class_id
        profile.class_name = account.student.school_class.name if account.student.school_class else None
    elif account.role == AccountRole.TEACHER and account.teacher:
        profile.teacher_id = account.teacher.id
        classes = [ClassRef(id=item.id, name=item.name) for item in account.teacher.classes]
        if classes:
            profile.classes = classes
            profile.class_ids = [item.id for item in classes]
    return profile


def login_user(db: Session, *, email: str, password: str) -> Account:
    account = db.query(Account).filter(Account.email == email.lower().strip()).first()
    if not account or not verify_password(password, account.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return account


def register_admin(
    db: Session,
    *,
    email: str,
    password: str,
    username: str,
    role: str,
    school_name: str,
    school_country: str,
    school_address_line1: str | None = None,
    school_state: str | None = None,
    school_pin_code: str | None = None,
    school_timezone: str | None = None,
) -> Account:
    if role != AccountRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admin accounts can be created through public registration. "
            "Other accounts must be created by an admin.",
        )
    email = normalize_email(email)
    if db.query(Account).filter(Account.email == email).first():
        raise HTTPException(status_code=409, detail="Admin with this email already exists")

    school = db.query(School).filter(School.name == school_name).first()
    if school:
        existing_admin = (
            db.query(Account).filter(Account.school_id == school.id, Account.role == AccountRole.ADMIN).first()
        )
        if existing_admin:
            raise HTTPException(
                status_code=409,
                detail="An admin already exists for this school. Only one admin is allowed per school.",
            )

    try:
        if not school:
            school = School(
                name=school_name,
                address_line1=blank_to_none(school_address_line1),
                state=blank_to_none(school_state),
                pin_code=blank_to_none(school_pin_code),
                country=school_country,
                timezone=blank_to_none(school_timezone) or "UTC",
            )
            db.add(school)
            db.flush()

        account = Account(
            email=email,
            password_hash=hash_password(password),
            username=username,
            role=AccountRole.ADMIN,
            school_id=school.id,
        )
        db.add(account)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(account)
    logger.info("Registered admin %s for school %s", account.email, school.id)
    return account


def create_person_account(
    db: Session,
    *,
    email: str,
    password: str,
    person_type: str,
    person_id: int,
    school_id: int,
) -> Account:
    if person_type == "parent":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Parent accounts cannot be created. Parents do not have login access.",
        )
    model = ACCOUNT_PEOPLE.get(person_type)
    if model is None:
        raise HTTPException(status_code=400, detail="Invalid person type. Must be 'teacher' or 'student'")

    email = normalize_email(email)
    if db.query(Account).filter(Account.email == email).first():
        raise HTTPException(status_code=409, detail="Account with this email already exists")

    person = db.query(model).filter(model.id == person_id, model.school_id == school_id).first()
    if not person:
        raise HTTPException(status_code=404, detail=f"{person_type} not found or does not belong to this school")

    link_column = Account.teacher_id if person_type == "teacher" else Account.student_id
    if db.query(Account).filter(link_column == person_id).first():
        raise HTTPException(status_code=409, detail=f"This {person_type} already has an account")

    account = Account(
        email=email,
        password_hash=hash_password(password),
        username=person.username,
        role=AccountRole(person_type),
        school_id=school_id,
        teacher_id=person_id if person_type == "teacher" else None,
        student_id=person_id if person_type == "student" else None,
    )
    db.add(account)
    db.commit()
    db.refresh(account)
    logger.info("Created %s account %s for person %s", person_type, account.email, person_id)
    return account


def people_without_accounts(db: Session, *, person_type: str, school_id: int) -> list:
    if person_type == "parent":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Parent accounts are not supported. Parents do not have login access.",
        )
    model = ACCOUNT_PEOPLE.get(person_type)
    if model is None:
        raise HTTPException(status_code=400, detail="Invalid person type. Must be 'teacher' or 'student'")

    link_column = Account.teacher_id if person_type == "teacher" else Account.student_id
    linked = db.query(link_column).filter(Account.school_id == school_id, link_column.isnot(None))
    return (
        db.query(model)
        .filter(model.school_id == school_id, model.id.not_in(linked.scalar_subquery()))
        .order_by(model.name.asc())
        .all()
    )


def list_accounts(db: Session, *, school_id: int) -> list[Account]:
    return (
        db.query(Account)
        .filter(Account.school_id == school_id)
        .order_by(Account.created_at.desc(), Account.id.desc())
        .all()
    )


def admin_exists(db: Session, *, school_id: int) -> bool:
    return (
        db.query(Account).filter(Account.school_id == school_id, Account.role == AccountRole.ADMIN).first()
        is not None
    )


def update_me(
    db: Session,
    account: Account,
    *,
    username: str | None = None,
    current_password: str | None = None,
    new_password: str | None = None,
) -> Account:
    if new_password:
        if not current_password:
            raise HTTPException(status_code=400, detail="Current password is required to change password")
        if not verify_password(current_password, account.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")
        if len(new_password) < 6:
            raise HTTPException(status_code=400, detail="New password must be at least 6 characters")

    if username and username != account.username:
        taken = (
            db.query(Account)
            .filter(Account.username == username, Account.school_id == account.school_id, Account.id != account.id)
            .first()
        )
        if taken:
            raise HTTPException(status_code=409, detail="Username already exists in this school")
        account.username = username

    if new_password:
        account.password_hash = hash_password(new_password)

    db.commit()
    db.refresh(account)
    return account
