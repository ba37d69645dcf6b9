"""Load a demo school into the configured database.

Run with ``python -m schoolhub.seed``. Nothing is written if the demo school
is already present.
"""
import random
from datetime import datetime, timedelta

from . import init_schoolhub
from .database import SessionLocal
from .dates import utcnow
from .models import (
    Account,
    AccountRole,
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
from .security import hash_password


DEMO_SCHOOL = "Greenfield Primary"
ADMIN_EMAIL = "admin@greenfield.edu"
ADMIN_PASSWORD = "admin123"
SUBJECTS = ("Mathematics", "English", "Science", "History", "Art")
FIRST_NAMES = ("Asha", "Ben", "Chloe", "Dev", "Ella", "Farid", "Grace", "Hiro", "Isla", "Jonah")
SURNAMES = ("Mensah", "Okafor", "Patel", "Silva", "Nguyen", "Kowalski")


def _birthday(age: int) -> datetime:
    return datetime(utcnow().year - age, random.randint(1, 12), random.randint(1, 28))


def seed_demo_school():
    random.seed(42)
    db = SessionLocal()
    try:
        if db.query(School).filter(School.name == DEMO_SCHOOL).first():
            print(f"Demo school already exists: {DEMO_SCHOOL}")
            return

        school = School(name=DEMO_SCHOOL, country="India", timezone="Asia/Kolkata", address_line1="12 Park Road")
        db.add(school)
        db.flush()

        db.add(
            Account(
                email=ADMIN_EMAIL,
                password_hash=hash_password(ADMIN_PASSWORD),
                username="principal",
                role=AccountRole.ADMIN,
                school_id=school.id,
            )
        )
        print(f"Created admin: {ADMIN_EMAIL} / {ADMIN_PASSWORD}")

        subjects = [Subject(name=name, school_id=school.id) for name in SUBJECTS]
        db.add_all(subjects)

        grades = [Grade(level=level, school_id=school.id) for level in range(1, 7)]
        db.add_all(grades)
        db.flush()

        teachers = []
        for i, subject in enumerate(subjects, start=1):
            teacher = Teacher(
                username=f"teacher{i}",
                name=FIRST_NAMES[i % len(FIRST_NAMES)],
                surname=SURNAMES[i % len(SURNAMES)],
                email=f"teacher{i}@greenfield.edu",
                address="Staff quarters",
                blood_type="O+",
                sex=Sex.FEMALE if i % 2 else Sex.MALE,
                birthday=_birthday(30 + i),
                school_id=school.id,
                subjects=[subject],
            )
            teachers.append(teacher)
        db.add_all(teachers)
        db.flush()
        print(f"Created {len(teachers)} teachers")

        classes = []
        for grade in grades:
            school_class = SchoolClass(
                name=f"{grade.level}A",
                capacity=30,
                grade_id=grade.id,
                supervisor_id=teachers[(grade.level - 1) % len(teachers)].id,
                school_id=school.id,
            )
            classes.append(school_class)
        db.add_all(classes)
        db.flush()

        student_count = 0
        for school_class, grade in zip(classes, grades):
            for i in range(1, 6):
                surname = random.choice(SURNAMES)
                parent = Parent(
                    username=f"parent_g{grade.level}_{i}",
                    name=random.choice(FIRST_NAMES),
                    surname=surname,
                    phone=f"+91-90000{grade.level:02d}{i:03d}",
                    address="Greenfield Estate",
                    school_id=school.id,
                )
                db.add(parent)
                db.flush()
                db.add(
                    Student(
                        username=f"student_g{grade.level}_{i}",
                        name=random.choice(FIRST_NAMES),
                        surname=surname,
                        address="Greenfield Estate",
                        blood_type=random.choice(("A+", "B+", "O+", "AB+")),
                        sex=random.choice((Sex.MALE, Sex.FEMALE)),
                        birthday=_birthday(5 + grade.level),
                        parent_id=parent.id,
                        class_id=school_class.id,
                        grade_id=grade.id,
                        school_id=school.id,
                    )
                )
                student_count += 1
        db.flush()
        print(f"Created {student_count} students across {len(classes)} classes")

        monday = datetime(2024, 1, 1)
        for school_class in classes:
            for offset, (day, subject, teacher) in enumerate(zip(Weekday, subjects, teachers)):
                start = monday + timedelta(hours=9 + offset)
                db.add(
                    Lesson(
                        name=f"{subject.name} {school_class.name}",
                        day=day,
                        start_time=start,
                        end_time=start + timedelta(minutes=45),
                        subject_id=subject.id,
                        class_id=school_class.id,
                        teacher_id=teacher.id,
                        school_id=school.id,
                    )
                )

        due_date = utcnow() + timedelta(days=30)
        for grade in grades:
            fee = Fee(
                name=f"Tuition Grade {grade.level}",
                amount=1000.0 + grade.level * 100,
                frequency=FeeFrequency.QUARTERLY,
                grade_id=grade.id,
                school_id=school.id,
            )
            db.add(fee)
            db.flush()
            for student in grade.students:
                db.add(
                    StudentFee(
                        student_id=student.id,
                        fee_id=fee.id,
                        amount=fee.amount,
                        due_date=due_date,
                        status=FeeStatus.PENDING,
                        school_id=school.id,
                        academic_year="2024-2025",
                        term="Term 1",
                    )
                )

        db.commit()
        print(f"Demo school ready (id={school.id})")
    except Exception as e:
        db.rollback()
        print(f"Seeding failed: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    init_schoolhub()
    seed_demo_school()
