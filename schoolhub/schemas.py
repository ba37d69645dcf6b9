from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from .dates import isoformat_utc, parse_datetime
from .models import AccountRole, FeeFrequency, FeeStatus, PaymentMethod, Sex, Weekday


UtcDateTime = Annotated[
    datetime,
    BeforeValidator(parse_datetime),
    PlainSerializer(isoformat_utc, return_type=str, when_used="json"),
]
Name = Annotated[str, Field(min_length=1, max_length=255)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# Auth


class LoginRequest(CamelModel):
    email: Name
    password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
    email: Name
    password: str = Field(min_length=6)
    username: Name
    school_name: Name
    school_country: Name
    school_address_line1: str | None = None
    school_state: str | None = None
    school_pin_code: str | None = None
    school_timezone: str | None = None
    role: str = AccountRole.ADMIN.value


class CreateAccountRequest(CamelModel):
    email: Name
    password: str = Field(min_length=6)
    person_type: Name
    person_id: int
    school_id: int


class CheckAdminRequest(CamelModel):
    school_id: int


class UpdateMeRequest(CamelModel):
    username: str | None = Field(default=None, min_length=1, max_length=120)
    current_password: str | None = None
    new_password: str | None = None


class ClassRef(CamelModel):
    id: int
    name: str


class GradeRef(CamelModel):
    id: int
    level: int


class SubjectRef(CamelModel):
    id: int
    name: str


class PersonRef(CamelModel):
    id: int
    name: str
    surname: str


class PersonBrief(CamelModel):
    id: int
    username: str
    name: str
    surname: str
    email: str | None = None


class ProfileOut(CamelModel):
    id: int
    email: str
    username: str
    role: AccountRole
    school_id: int
    school_name: str
    class_id: int | None = None
    class_ids: list[int] | None = None
    class_name: str | None = None
    classes: list[ClassRef] | None = None
    student_id: int | None = None
    teacher_id: int | None = None


class AccountOut(CamelModel):
    id: int
    email: str
    username: str
    role: AccountRole
    school_id: int
    teacher_id: int | None = None
    student_id: int | None = None
    parent_id: int | None = None
    created_at: UtcDateTime
    updated_at: UtcDateTime
    teacher: PersonRef | None = None
    student: PersonRef | None = None
    parent: PersonRef | None = None


# Schools


class SchoolOut(CamelModel):
    id: int
    name: str
    address: str | None = None
    address_line1: str | None = None
    state: str | None = None
    pin_code: str | None = None
    country: str
    timezone: str
    phone: str | None = None
    email: str | None = None
    created_at: UtcDateTime
    updated_at: UtcDateTime


# People


class PersonFields(CamelModel):
    username: Name
    name: Name
    surname: Name
    email: str | None = None
    phone: str | None = None
    address: Name
    img: str | None = None
    blood_type: str = Field(min_length=1, max_length=10)
    sex: Sex
    birthday: UtcDateTime


class TeacherUpdate(PersonFields):
    subject_ids: list[int] = Field(default_factory=list)


class TeacherCreate(TeacherUpdate):
    school_id: int


class StudentUpdate(PersonFields):
    parent_id: int
    class_id: int
    grade_id: int


class StudentCreate(StudentUpdate):
    school_id: int


class ParentUpdate(CamelModel):
    username: Name
    name: Name
    surname: Name
    email: str | None = None
    phone: str = Field(min_length=1, max_length=50)
    address: Name


class ParentCreate(ParentUpdate):
    school_id: int


class PersonOut(CamelModel):
    id: int
    username: str
    name: str
    surname: str
    email: str | None = None
    phone: str | None = None
    address: str
    school_id: int
    created_at: UtcDateTime


class TeacherCount(CamelModel):
    subjects: int
    classes: int
    lessons: int


class LessonBrief(CamelModel):
    id: int
    name: str
    day: Weekday
    start_time: UtcDateTime
    end_time: UtcDateTime
    subject: SubjectRef
    school_class: ClassRef = Field(serialization_alias="class")


class TeacherOut(PersonOut):
    img: str | None = None
    blood_type: str
    sex: Sex
    birthday: UtcDateTime
    subjects: list[SubjectRef] = Field(default_factory=list)
    classes: list[ClassRef] = Field(default_factory=list)


class TeacherDetailOut(TeacherOut):
    lessons: list[LessonBrief] = Field(default_factory=list)
    count: TeacherCount | None = Field(default=None, serialization_alias="_count")


class StudentOut(PersonOut):
    img: str | None = None
    blood_type: str
    sex: Sex
    birthday: UtcDateTime
    parent_id: int
    class_id: int
    grade_id: int
    parent: PersonRef | None = None
    school_class: ClassRef | None = Field(default=None, serialization_alias="class")
    grade: GradeRef | None = None


class ParentOut(PersonOut):
    students: list[PersonRef] = Field(default_factory=list)


# Academics


class GradeCreate(CamelModel):
    level: int = Field(ge=1)
    school_id: int


class GradeUpdate(CamelModel):
    level: int = Field(ge=1)


class GradeCount(CamelModel):
    students: int
    classes: int


class GradeOut(CamelModel):
    id: int
    level: int
    school_id: int
    count: GradeCount | None = Field(default=None, serialization_alias="_count")


class ClassUpdate(CamelModel):
    name: Name
    capacity: int = Field(ge=1)
    grade_id: int
    supervisor_id: int | None = None


class ClassCreate(ClassUpdate):
    school_id: int


class ClassCount(CamelModel):
    students: int
    lessons: int


class ClassOut(CamelModel):
    id: int
    name: str
    capacity: int
    school_id: int
    grade_id: int
    supervisor_id: int | None = None
    grade: GradeRef | None = None
    supervisor: PersonRef | None = None
    count: ClassCount | None = Field(default=None, serialization_alias="_count")


class SubjectUpdate(CamelModel):
    name: Name


class SubjectCreate(SubjectUpdate):
    school_id: int


class SubjectCount(CamelModel):
    teachers: int
    lessons: int


class SubjectOut(CamelModel):
    id: int
    name: str
    school_id: int
    teachers: list[PersonRef] = Field(default_factory=list)
    count: SubjectCount | None = Field(default=None, serialization_alias="_count")


class LessonUpdate(CamelModel):
    name: Name
    day: Weekday
    start_time: UtcDateTime
    end_time: UtcDateTime
    subject_id: int
    class_id: int
    teacher_id: int


class LessonCreate(LessonUpdate):
    school_id: int


class LessonOut(CamelModel):
    id: int
    name: str
    day: Weekday
    start_time: UtcDateTime
    end_time: UtcDateTime
    school_id: int
    subject_id: int
    class_id: int
    teacher_id: int
    subject: SubjectRef | None = None
    school_class: ClassRef | None = Field(default=None, serialization_alias="class")
    teacher: PersonRef | None = None


class LessonRef(CamelModel):
    id: int
    name: str
    subject: SubjectRef | None = None
    school_class: ClassRef | None = Field(default=None, serialization_alias="class")
    teacher: PersonRef | None = None


# Assessments


class ExamUpdate(CamelModel):
    title: Name
    start_time: UtcDateTime
    end_time: UtcDateTime
    lesson_id: int


class ExamCreate(ExamUpdate):
    school_id: int


class ExamOut(CamelModel):
    id: int
    title: str
    start_time: UtcDateTime
    end_time: UtcDateTime
    school_id: int
    lesson_id: int
    lesson: LessonRef | None = None


class AssignmentUpdate(CamelModel):
    title: Name
    start_date: UtcDateTime
    due_date: UtcDateTime
    lesson_id: int


class AssignmentCreate(AssignmentUpdate):
    school_id: int


class AssignmentOut(CamelModel):
    id: int
    title: str
    start_date: UtcDateTime
    due_date: UtcDateTime
    school_id: int
    lesson_id: int
    lesson: LessonRef | None = None


class ResultUpdate(CamelModel):
    score: float = Field(ge=0, le=100)
    student_id: int
    exam_id: int | None = None
    assignment_id: int | None = None


class ResultCreate(ResultUpdate):
    school_id: int


class AssessmentRef(CamelModel):
    id: int
    title: str
    lesson: LessonRef | None = None


class ResultOut(CamelModel):
    id: int
    score: float
    school_id: int
    student_id: int
    exam_id: int | None = None
    assignment_id: int | None = None
    student: PersonRef | None = None
    exam: AssessmentRef | None = None
    assignment: AssessmentRef | None = None


# Attendance


class AttendanceUpdate(CamelModel):
    date: UtcDateTime
    present: bool
    student_id: int
    lesson_id: int


class AttendanceCreate(AttendanceUpdate):
    school_id: int


class AttendanceOut(CamelModel):
    id: int
    date: UtcDateTime
    present: bool
    school_id: int
    student_id: int
    lesson_id: int
    student: PersonRef | None = None
    lesson: LessonRef | None = None


# Fees and payments


class FeeCreate(CamelModel):
    name: Name
    amount: float = Field(ge=0)
    frequency: FeeFrequency
    grade_id: int | None = None
    is_active: bool = True
    school_id: int


class FeeUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    amount: float | None = Field(default=None, ge=0)
    frequency: FeeFrequency | None = None
    grade_id: int | None = None
    is_active: bool | None = None


class FeeCount(CamelModel):
    student_fees: int


class FeeOut(CamelModel):
    id: int
    name: str
    amount: float
    frequency: FeeFrequency
    school_id: int
    grade_id: int | None = None
    is_active: bool
    created_at: UtcDateTime
    grade: GradeRef | None = None
    count: FeeCount | None = Field(default=None, serialization_alias="_count")


class FeeRef(CamelModel):
    id: int
    name: str
    amount: float
    frequency: FeeFrequency


class StudentFeeCreate(CamelModel):
    student_id: int
    fee_id: int
    amount: float | None = Field(default=None, ge=0)
    due_date: UtcDateTime
    academic_year: str | None = None
    term: str | None = None
    notes: str | None = None
    school_id: int


class AssignByGradeRequest(CamelModel):
    grade_id: int
    school_id: int
    due_date: UtcDateTime
    academic_year: str | None = None
    term: str | None = None


class StudentFeeUpdate(CamelModel):
    amount: float | None = Field(default=None, ge=0)
    due_date: UtcDateTime | None = None
    academic_year: str | None = None
    term: str | None = None
    notes: str | None = None


class StudentRef(PersonRef):
    username: str | None = None
    school_class: ClassRef | None = Field(default=None, serialization_alias="class")


class StudentFeeOut(CamelModel):
    id: int
    student_id: int
    fee_id: int
    amount: float
    paid_amount: float
    due_date: UtcDateTime
    status: FeeStatus
    school_id: int
    academic_year: str | None = None
    term: str | None = None
    notes: str | None = None
    created_at: UtcDateTime
    updated_at: UtcDateTime
    student: StudentRef | None = None
    fee: FeeRef | None = None


class FeeAllocationIn(CamelModel):
    student_fee_id: int
    amount: float = Field(gt=0)


class PaymentCreate(CamelModel):
    student_id: int
    amount: float = Field(gt=0)
    payment_date: UtcDateTime
    payment_method: PaymentMethod
    reference_number: str | None = None
    notes: str | None = None
    school_id: int
    fee_allocations: list[FeeAllocationIn] = Field(default_factory=list)


class PaymentUpdate(CamelModel):
    amount: float | None = Field(default=None, gt=0)
    payment_date: UtcDateTime | None = None
    payment_method: PaymentMethod | None = None
    reference_number: str | None = None
    notes: str | None = None


class StudentFeeRef(CamelModel):
    id: int
    amount: float
    paid_amount: float
    due_date: UtcDateTime
    status: FeeStatus
    fee: FeeRef | None = None


class FeePaymentOut(CamelModel):
    id: int
    amount: float
    student_fee_id: int
    student_fee: StudentFeeRef | None = None


class PaymentOut(CamelModel):
    id: int
    student_id: int
    amount: float
    payment_date: UtcDateTime
    payment_method: PaymentMethod
    reference_number: str | None = None
    notes: str | None = None
    school_id: int
    created_by: int | None = None
    created_at: UtcDateTime
    student: StudentRef | None = None
    fee_payments: list[FeePaymentOut] = Field(default_factory=list)


# Events and announcements


class EventUpdate(CamelModel):
    title: Name
    description: str = Field(min_length=1)
    start_time: UtcDateTime
    end_time: UtcDateTime
    class_id: int | None = None


class EventCreate(EventUpdate):
    school_id: int


class EventOut(CamelModel):
    id: int
    title: str
    description: str
    start_time: UtcDateTime
    end_time: UtcDateTime
    school_id: int
    class_id: int | None = None
    school_class: ClassRef | None = Field(default=None, serialization_alias="class")


class AnnouncementUpdate(CamelModel):
    title: Name
    description: str = Field(min_length=1)
    date: UtcDateTime
    class_id: int | None = None


class AnnouncementCreate(AnnouncementUpdate):
    school_id: int


class AnnouncementOut(CamelModel):
    id: int
    title: str
    description: str
    date: UtcDateTime
    school_id: int
    class_id: int | None = None
    school_class: ClassRef | None = Field(default=None, serialization_alias="class")
