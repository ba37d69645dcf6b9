from conftest import bearer

from schoolhub.models import AccountRole


def _register(client, **overrides):
    body = {
        "email": "head@riverside.edu",
        "password": "secret123",
        "username": "head",
        "schoolName": "Riverside Academy",
        "schoolCountry": "United Kingdom",
        "schoolTimezone": "Europe/London",
    }
    body.update(overrides)
    return client.post("/auth/register", json=body)


def test_register_creates_school_and_admin(client):
    response = _register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["admin"]["role"] == "admin"
    assert body["admin"]["schoolName"] == "Riverside Academy"
    assert "token" in response.cookies


def test_register_rejects_non_admin_role(client):
    response = _register(client, role="teacher")

    assert response.status_code == 403
    assert response.json()["success"] is False


def test_only_one_admin_per_school(client):
    assert _register(client).status_code == 201

    response = _register(client, email="deputy@riverside.edu")

    assert response.status_code == 409
    assert "Only one admin is allowed per school" in response.json()["message"]


def test_register_rejects_bad_email(client):
    response = _register(client, email="not-an-email")

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email format"


def test_login_and_me(client, campus):
    response = client.post("/auth/login", json={"email": "ADMIN@hillside.edu", "password": "secret123"})

    assert response.status_code == 200
    token = response.json()["token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    profile = me.json()["admin"]
    assert profile["email"] == "admin@hillside.edu"
    assert profile["schoolId"] == campus["school"]


def test_login_wrong_password(client, campus):
    response = client.post("/auth/login", json={"email": "admin@hillside.edu", "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Invalid credentials"}


def test_me_requires_token(client):
    response = client.get("/auth/me")

    assert response.status_code == 401
    assert response.json()["message"] == "No token provided"


def test_me_rejects_garbage_token(client):
    response = client.get("/auth/me", headers={"Authorization": "Bearer not.a.token"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token"


def test_me_rejects_wrong_scheme(client):
    response = client.get("/auth/me", headers={"Authorization": "Basic abc"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid auth scheme"


def test_users_listing_is_admin_only(client, campus, factory):
    teacher_account = factory.account(
        campus["school"], email="teacher@hillside.edu", role=AccountRole.TEACHER, teacher_id=campus["teacher"]
    )
    headers = bearer(teacher_account, campus["school"], role="teacher", email="teacher@hillside.edu")

    response = client.get("/auth/users", params={"schoolId": campus["school"]}, headers=headers)

    assert response.status_code == 403
    assert response.json()["message"] == "Access denied. Required role: admin"


def test_create_account_for_student(client, campus, admin_headers):
    response = client.post(
        "/auth/create-account",
        json={
            "email": "sam@hillside.edu",
            "password": "secret123",
            "personType": "student",
            "personId": campus["student"],
            "schoolId": campus["school"],
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    assert response.json()["account"]["role"] == "student"

    again = client.post(
        "/auth/create-account",
        json={
            "email": "sam2@hillside.edu",
            "password": "secret123",
            "personType": "student",
            "personId": campus["student"],
            "schoolId": campus["school"],
        },
        headers=admin_headers,
    )
    assert again.status_code == 409
    assert again.json()["message"] == "This student already has an account"


def test_parent_accounts_are_refused(client, campus, admin_headers):
    response = client.post(
        "/auth/create-account",
        json={
            "email": "pat@hillside.edu",
            "password": "secret123",
            "personType": "parent",
            "personId": campus["parent"],
            "schoolId": campus["school"],
        },
        headers=admin_headers,
    )

    assert response.status_code == 403


def test_student_profile_carries_class(client, campus, factory):
    account_id = factory.account(
        campus["school"], email="sam@hillside.edu", role=AccountRole.STUDENT, student_id=campus["student"]
    )
    headers = bearer(account_id, campus["school"], role="student", email="sam@hillside.edu")

    profile = client.get("/auth/me", headers=headers).json()["admin"]

    assert profile["studentId"] == campus["student"]
    assert profile["classId"] == campus["class"]
    assert profile["className"] == "1A"


def test_change_password_requires_current(client, campus, admin_headers):
    response = client.put("/auth/me", json={"newPassword": "another1"}, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Current password is required to change password"

    response = client.put(
        "/auth/me", json={"newPassword": "another1", "currentPassword": "secret123"}, headers=admin_headers
    )
    assert response.status_code == 200

    login = client.post("/auth/login", json={"email": "admin@hillside.edu", "password": "another1"})
    assert login.status_code == 200


def test_check_admin(client, campus):
    response = client.post("/auth/check-admin", json={"schoolId": campus["school"]})

    assert response.json() == {"success": True, "exists": True}
