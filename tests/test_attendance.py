from datetime import datetime


def _record(client, campus, when, present=True):
    return client.post(
        "/attendances",
        json={
            "date": when,
            "present": present,
            "studentId": campus["student"],
            "lessonId": campus["lesson"],
            "schoolId": campus["school"],
        },
    )


def test_record_and_list(client, campus):
    response = _record(client, campus, "2024-02-05T09:00:00+02:00")

    assert response.status_code == 201
    record = response.json()["data"]
    assert record["date"] == "2024-02-05T07:00:00Z"
    assert record["lesson"]["name"] == "Maths 1A"


def test_date_filter_uses_school_timezone(client, factory):
    school_id = factory.school(name="Pacific School", timezone="Pacific/Auckland")
    grade_id = factory.grade(school_id)
    teacher_id = factory.teacher(school_id)
    class_id = factory.school_class(school_id, grade_id)
    parent_id = factory.parent(school_id)
    student_id = factory.student(school_id, parent_id, class_id, grade_id)
    subject_id = factory.subject(school_id)
    lesson_id = factory.lesson(school_id, subject_id, class_id, teacher_id)
    # 22:00 UTC on 4 March is the morning of 5 March in Auckland.
    factory.attendance(school_id, student_id, lesson_id, when=datetime(2024, 3, 4, 22, 0))
    factory.attendance(school_id, student_id, lesson_id, when=datetime(2024, 3, 5, 22, 0))

    response = client.get("/attendances", params={"schoolId": school_id, "date": "2024-03-05"})

    assert [item["date"] for item in response.json()["data"]] == ["2024-03-04T22:00:00Z"]


def test_attendance_for_foreign_lesson(client, campus, factory):
    other_school = factory.school(name="Lakeside School")
    other_grade = factory.grade(other_school)
    other_teacher = factory.teacher(other_school)
    other_class = factory.school_class(other_school, other_grade)
    other_subject = factory.subject(other_school)
    campus["lesson"] = factory.lesson(other_school, other_subject, other_class, other_teacher)

    response = _record(client, campus, "2024-02-05")

    assert response.status_code == 404
    assert response.json()["message"] == "Lesson not found or does not belong to this school"
