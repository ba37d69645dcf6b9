def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"


def test_missing_fields_are_named(client, campus):
    response = client.post("/grades", json={"schoolId": campus["school"]})

    assert response.status_code == 400
    assert response.json() == {"success": False, "message": "Missing required fields: level"}


def test_invalid_enum_value(client, campus):
    response = client.post(
        "/fees",
        json={"name": "Bus", "amount": 10, "frequency": "WEEKLY", "schoolId": campus["school"]},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Invalid value for field(s): frequency"
    assert body["error"]


def test_invalid_date_string(client, campus):
    response = client.post(
        "/announcements",
        json={"title": "Notice", "description": "Read me", "date": "next tuesday", "schoolId": campus["school"]},
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid value for field(s): date"


def test_unknown_entity_uses_failure_envelope(client):
    response = client.delete("/events/999")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Event not found"}


def test_schools_listing(client, campus):
    response = client.get("/schools")

    assert response.status_code == 200
    assert [school["name"] for school in response.json()["data"]] == ["Hillside School"]

    missing = client.get("/schools/999")
    assert missing.status_code == 404
