from conftest import bearer


def test_list_requires_school_id(client, campus):
    response = client.get("/students")

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "schoolId is required as a query parameter."}


def test_list_rejects_non_numeric_school_id(client, campus):
    response = client.get("/students", params={"schoolId": "abc"})

    assert response.status_code == 400
    assert response.json()["message"] == "schoolId must be a valid number."


def test_signed_in_user_cannot_read_another_school(client, campus, factory):
    other_school = factory.school(name="Lakeside School")

    response = client.get("/students", params={"schoolId": other_school}, headers=bearer(campus["admin"], campus["school"]))

    assert response.status_code == 403
    assert response.json()["message"] == "Access denied for this school"


def test_lists_only_show_own_school(client, campus, factory):
    other_school = factory.school(name="Lakeside School")
    other_grade = factory.grade(other_school)
    other_class = factory.school_class(other_school, other_grade, name="1A")
    other_parent = factory.parent(other_school)
    factory.student(other_school, other_parent, other_class, other_grade, username="elsewhere")

    response = client.get("/students", params={"schoolId": campus["school"]})

    assert response.status_code == 200
    usernames = [student["username"] for student in response.json()["data"]]
    assert usernames == ["sjones"]


def test_student_detail_from_other_school_is_not_found(client, campus, factory):
    other_school = factory.school(name="Lakeside School")

    response = client.get(f"/students/{campus['student']}", params={"schoolId": other_school})

    assert response.status_code == 404


def test_student_payload_shape(client, campus):
    response = client.get(f"/students/{campus['student']}", params={"schoolId": campus["school"]})

    student = response.json()["data"]
    assert student["class"] == {"id": campus["class"], "name": "1A"}
    assert student["grade"]["level"] == 1
    assert student["parent"]["id"] == campus["parent"]
    assert student["birthday"].endswith("Z")


def test_write_into_another_school_is_forbidden(client, campus, factory):
    other_school = factory.school(name="Lakeside School")

    response = client.post(
        "/subjects",
        json={"name": "Music", "schoolId": other_school},
        headers=bearer(campus["admin"], campus["school"]),
    )

    assert response.status_code == 403


def test_update_of_foreign_row_is_forbidden(client, campus, factory):
    other_school = factory.school(name="Lakeside School")
    other_admin = factory.account(other_school, email="admin@lakeside.edu")

    response = client.put(
        f"/subjects/{campus['subject']}",
        json={"name": "Algebra"},
        headers=bearer(other_admin, other_school, email="admin@lakeside.edu"),
    )

    assert response.status_code == 403


def test_referenced_row_must_belong_to_school(client, campus, factory):
    other_school = factory.school(name="Lakeside School")
    other_grade = factory.grade(other_school, level=4)

    response = client.post(
        "/classes",
        json={"name": "4B", "capacity": 20, "gradeId": other_grade, "schoolId": campus["school"]},
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Grade not found or does not belong to this school"
