import pytest

from conftest import bearer

from schoolhub.models import AccountRole


@pytest.fixture
def graded(campus, factory):
    campus["exam"] = factory.exam(campus["school"], campus["lesson"])
    campus["assignment"] = factory.assignment(campus["school"], campus["lesson"])
    return campus


def _result(graded, **fields):
    body = {"score": 88, "studentId": graded["student"], "schoolId": graded["school"]}
    body.update(fields)
    return body


def test_result_needs_exam_or_assignment(client, graded):
    response = client.post("/results", json=_result(graded))

    assert response.status_code == 400
    assert response.json()["message"] == "Either examId or assignmentId must be provided"


def test_result_cannot_reference_both(client, graded):
    response = client.post(
        "/results", json=_result(graded, examId=graded["exam"], assignmentId=graded["assignment"])
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot provide both examId and assignmentId"


def test_result_for_exam(client, graded):
    response = client.post("/results", json=_result(graded, examId=graded["exam"]))

    assert response.status_code == 201
    result = response.json()["data"]
    assert result["examId"] == graded["exam"]
    assert result["assignmentId"] is None

    listed = client.get("/results", params={"schoolId": graded["school"]}).json()["data"]
    assert listed[0]["exam"]["title"] == "Midterm"


def test_update_cannot_add_second_reference(client, graded):
    created = client.post("/results", json=_result(graded, examId=graded["exam"])).json()["data"]

    response = client.put(
        f"/results/{created['id']}",
        json={"score": 90, "studentId": graded["student"], "examId": graded["exam"],
              "assignmentId": graded["assignment"]},
    )

    assert response.status_code == 400


def test_score_out_of_range(client, graded):
    response = client.post("/results", json=_result(graded, score=101, examId=graded["exam"]))

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid value for field(s): score"


def test_teacher_may_only_grade_own_exam(client, graded, factory):
    other_teacher = factory.teacher(graded["school"], username="other")
    account_id = factory.account(
        graded["school"], email="other@hillside.edu", role=AccountRole.TEACHER, teacher_id=other_teacher
    )
    headers = bearer(account_id, graded["school"], role="teacher", email="other@hillside.edu")

    response = client.post("/results", json=_result(graded, examId=graded["exam"]), headers=headers)

    assert response.status_code == 403
    assert response.json()["message"] == "You can only add results for your own exams"


def test_exam_times_must_be_ordered(client, graded):
    response = client.post(
        "/exams",
        json={
            "title": "Final",
            "startTime": "2024-06-01T10:00:00Z",
            "endTime": "2024-06-01T10:00:00Z",
            "lessonId": graded["lesson"],
            "schoolId": graded["school"],
        },
    )

    assert response.status_code == 400
    assert response.json()["message"] == "endTime must be after startTime"
