import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from schoolhub.app import app  # noqa: E402
from schoolhub.database import Base, SessionLocal, engine  # noqa: E402
from schoolhub.dates import utcnow  # noqa: E402
from schoolhub.models import (  # noqa: E402
    Account,
    AccountRole,
    Assignment,
    Attendance,
    Exam,
    Fee,
    FeeFrequency,
    FeeStatus,
    Grade,
    Lesson,
    Parent,
    School,
    SchoolClass,
    Sex,
    Student,
    StudentFee,
    Subject,
    Teacher,
    Weekday,
)
from schoolhub.security import create_access_token, hash_password  # noqa: E402


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


class Factory:
    """Inserts rows in short-lived sessions and hands back their ids."""

    def _save(self, row) -> int:
        db = SessionLocal()
        try:
            db.add(row)
            db.commit()
            return row.id
        finally:
            db.close()

    def school(self, name="Hillside School", country="India", timezone="UTC") -> int:
        return self._save(School(name=name, country=country, timezone=timezone))

    def account(self, school_id, email="admin@hillside.edu", password="secret123", role=AccountRole.ADMIN, **links):
        return self._save(
            Account(
                email=email,
                password_hash=hash_password(password),
                username=email.split("@")[0],
                role=role,
                school_id=school_id,
                **links,
            )
        )

    def grade(self, school_id, level=1) -> int:
        return self._save(Grade(level=level, school_id=school_id))

    def teacher(self, school_id, username="tmiller") -> int:
        return self._save(
            Teacher(
                username=username,
                name="Tom",
                surname="Miller",
                address="1 School Lane",
                blood_type="A+",
                sex=Sex.MALE,
                birthday=datetime(1985, 4, 2),
                school_id=school_id,
            )
        )

    def parent(self, school_id, username="pjones", phone="555-0100") -> int:
        return self._save(
            Parent(
                username=username,
                name="Pat",
                surname="Jones",
                phone=phone,
                address="2 Elm Street",
                school_id=school_id,
            )
        )

    def school_class(self, school_id, grade_id, name="1A", supervisor_id=None) -> int:
        return self._save(
            SchoolClass(name=name, capacity=25, grade_id=grade_id, supervisor_id=supervisor_id, school_id=school_id)
        )

    def student(self, school_id, parent_id, class_id, grade_id, username="sjones", sex=Sex.MALE) -> int:
        return self._save(
            Student(
                username=username,
                name="Sam",
                surname="Jones",
                address="2 Elm Street",
                blood_type="O+",
                sex=sex,
                birthday=datetime(2016, 9, 1),
                parent_id=parent_id,
                class_id=class_id,
                grade_id=grade_id,
                school_id=school_id,
            )
        )

    def subject(self, school_id, name="Mathematics") -> int:
        return self._save(Subject(name=name, school_id=school_id))

    def lesson(self, school_id, subject_id, class_id, teacher_id, name="Maths 1A", day=Weekday.MONDAY) -> int:
        start = datetime(2024, 1, 1, 9, 0)
        return self._save(
            Lesson(
                name=name,
                day=day,
                start_time=start,
                end_time=start + timedelta(minutes=45),
                subject_id=subject_id,
                class_id=class_id,
                teacher_id=teacher_id,
                school_id=school_id,
            )
        )

    def exam(self, school_id, lesson_id, title="Midterm") -> int:
        start = datetime(2024, 3, 1, 9, 0)
        return self._save(
            Exam(title=title, start_time=start, end_time=start + timedelta(hours=1), lesson_id=lesson_id,
                 school_id=school_id)
        )

    def assignment(self, school_id, lesson_id, title="Worksheet") -> int:
        start = datetime(2024, 3, 1)
        return self._save(
            Assignment(title=title, start_date=start, due_date=start + timedelta(days=7), lesson_id=lesson_id,
                       school_id=school_id)
        )

    def fee(self, school_id, amount=100.0, grade_id=None, name="Tuition", is_active=True) -> int:
        return self._save(
            Fee(name=name, amount=amount, frequency=FeeFrequency.MONTHLY, grade_id=grade_id, is_active=is_active,
                school_id=school_id)
        )

    def student_fee(self, school_id, student_id, fee_id, amount=100.0, due_date=None) -> int:
        return self._save(
            StudentFee(
                student_id=student_id,
                fee_id=fee_id,
                amount=amount,
                paid_amount=0,
                due_date=due_date or utcnow() + timedelta(days=30),
                status=FeeStatus.PENDING,
                school_id=school_id,
            )
        )

    def attendance(self, school_id, student_id, lesson_id, present=True, when=None) -> int:
        return self._save(
            Attendance(date=when or utcnow(), present=present, student_id=student_id, lesson_id=lesson_id,
                       school_id=school_id)
        )


@pytest.fixture
def factory():
    return Factory()


@pytest.fixture
def campus(factory):
    """One school with a single grade, class, teacher, parent, student and lesson."""
    school_id = factory.school()
    grade_id = factory.grade(school_id)
    teacher_id = factory.teacher(school_id)
    class_id = factory.school_class(school_id, grade_id, supervisor_id=teacher_id)
    parent_id = factory.parent(school_id)
    student_id = factory.student(school_id, parent_id, class_id, grade_id)
    subject_id = factory.subject(school_id)
    lesson_id = factory.lesson(school_id, subject_id, class_id, teacher_id)
    admin_id = factory.account(school_id)
    return {
        "school": school_id,
        "grade": grade_id,
        "teacher": teacher_id,
        "class": class_id,
        "parent": parent_id,
        "student": student_id,
        "subject": subject_id,
        "lesson": lesson_id,
        "admin": admin_id,
    }


def bearer(account_id: int, school_id: int, role: str = "admin", email: str = "admin@hillside.edu") -> dict:
    token = create_access_token(account_id=account_id, email=email, role=role, school_id=school_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(campus):
    return bearer(campus["admin"], campus["school"])


def fetch(model, row_id):
    """Reload one row in a fresh session."""
    db = SessionLocal()
    try:
        row = db.query(model).filter(model.id == row_id).first()
        if row is not None:
            db.expunge(row)
        return row
    finally:
        db.close()
