from datetime import date, datetime, timedelta
from types import SimpleNamespace
from zoneinfo import ZoneInfo

from schoolhub.dates import isoformat_utc, month_label, utcnow
from schoolhub.holiday_calendar import country_code, holidays_for_country
from schoolhub.models import Sex
from schoolhub.services.dashboard import percentage, summarize_fees


UTC = ZoneInfo("UTC")


def test_percentage():
    assert percentage(0, 0) == 0
    assert percentage(1, 3) == 33.33
    assert percentage(3, 4) == 75.0


def test_empty_school_dashboard(client, factory):
    school_id = factory.school(name="Empty School", country="Atlantis")

    response = client.get("/dashboard", params={"schoolId": school_id})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["counts"] == {"students": 0, "teachers": 0, "boys": 0, "girls": 0}
    assert data["attendance"]["statistics"]["attendanceRate"] == 0
    assert data["fees"]["collectionRate"] == 0
    assert data["holidays"] == []
    assert len(data["fees"]["monthlyCollection"]) == 12


def test_dashboard_unknown_school(client):
    response = client.get("/dashboard", params={"schoolId": 4242})

    assert response.status_code == 404
    assert response.json()["message"] == "School not found"


def test_dashboard_counts_and_attendance(client, campus, factory):
    factory.student(
        campus["school"], campus["parent"], campus["class"], campus["grade"], username="girl1", sex=Sex.FEMALE
    )
    for present in (True, True, False):
        factory.attendance(campus["school"], campus["student"], campus["lesson"], present=present)

    data = client.get("/dashboard", params={"schoolId": campus["school"]}).json()["data"]

    assert data["counts"] == {"students": 2, "teachers": 1, "boys": 1, "girls": 1}
    statistics = data["attendance"]["statistics"]
    assert statistics == {"totalRecords": 3, "present": 2, "absent": 1, "attendanceRate": 66.67}

    monthly = data["attendance"]["monthlyAverages"]
    assert len(monthly) == 4
    assert monthly[-1] == {"month": month_label(utcnow().month), "present": 2, "absent": 1}
    assert data["attendance"]["recentRecords"][0]["student"]["name"] == "Sam Jones"


def test_dashboard_fee_summary(client, campus, factory):
    year = utcnow().year
    fee_id = factory.fee(campus["school"], amount=100.0)
    open_fee = factory.student_fee(
        campus["school"], campus["student"], fee_id, amount=100.0, due_date=datetime(year, 12, 31, 12, 0)
    )
    factory.student_fee(campus["school"], campus["student"], fee_id, amount=60.0, due_date=datetime(year, 1, 1))
    client.post(
        "/payments",
        json={
            "studentId": campus["student"],
            "amount": 40,
            "paymentDate": isoformat_utc(utcnow()),
            "paymentMethod": "CARD",
            "schoolId": campus["school"],
            "feeAllocations": [{"studentFeeId": open_fee, "amount": 40}],
        },
    )

    fees = client.get("/dashboard", params={"schoolId": campus["school"]}).json()["data"]["fees"]

    assert fees["totalDue"] == 160
    assert fees["totalPaid"] == 40
    assert fees["totalPending"] == 120
    assert fees["collectionRate"] == 25.0
    assert fees["pendingCount"] == 1
    assert fees["overdueCount"] == 1
    assert fees["paymentsThisMonth"] == 40
    assert fees["paymentsThisYear"] == 40


def test_upcoming_events_skip_past_ones(client, campus):
    for title, offset in (("Sports day", 5), ("Old fair", -5)):
        start = utcnow() + timedelta(days=offset)
        client.post(
            "/events",
            json={
                "title": title,
                "description": "All classes",
                "startTime": isoformat_utc(start),
                "endTime": isoformat_utc(start + timedelta(hours=3)),
                "classId": campus["class"],
                "schoolId": campus["school"],
            },
        )

    events = client.get("/dashboard", params={"schoolId": campus["school"]}).json()["data"]["upcomingEvents"]

    assert [event["title"] for event in events] == ["Sports day"]
    assert events[0]["className"] == "1A"


def test_payments_bucketed_by_school_local_day():
    kolkata = ZoneInfo("Asia/Kolkata")
    # 20:00 UTC on 31 March is already 1 April in Kolkata.
    late_payment = SimpleNamespace(amount=50.0, payment_date=datetime(2024, 3, 31, 20, 0))
    today = date(2024, 4, 10)

    summary = summarize_fees([], [late_payment], today, datetime(2024, 4, 10), kolkata)

    by_month = {item["month"]: item["amount"] for item in summary["monthlyCollection"]}
    assert by_month["Apr"] == 50
    assert by_month["Mar"] == 0
    assert summary["paymentsThisMonth"] == 50


def test_overdue_count_uses_due_date_not_stored_status():
    now = datetime(2024, 4, 10)
    fees = [
        SimpleNamespace(amount=100.0, paid_amount=0.0, due_date=datetime(2024, 4, 1)),
        SimpleNamespace(amount=100.0, paid_amount=100.0, due_date=datetime(2024, 4, 1)),
        SimpleNamespace(amount=100.0, paid_amount=10.0, due_date=datetime(2024, 5, 1)),
    ]

    summary = summarize_fees(fees, [], now.date(), now, UTC)

    assert summary["overdueCount"] == 1
    assert summary["pendingCount"] == 1
    assert summary["collectionRate"] == 36.67


def test_fee_totals_cover_current_year_only():
    now = datetime(2024, 4, 10)
    fees = [
        SimpleNamespace(amount=80.0, paid_amount=0.0, due_date=datetime(2023, 11, 1)),
        SimpleNamespace(amount=100.0, paid_amount=50.0, due_date=datetime(2024, 6, 1)),
        # 20:00 UTC on 31 December 2023 is already 2024 in Kolkata.
        SimpleNamespace(amount=100.0, paid_amount=100.0, due_date=datetime(2023, 12, 31, 20, 0)),
    ]

    summary = summarize_fees(fees, [], now.date(), now, ZoneInfo("Asia/Kolkata"))

    assert summary["totalDue"] == 200
    assert summary["totalPaid"] == 150
    assert summary["totalPending"] == 50
    assert summary["collectionRate"] == 75.0
    assert summary["overdueCount"] == 1
    assert summary["pendingCount"] == 1


def test_holidays_known_and_unknown_country():
    assert country_code("United Kingdom") == "GB"
    assert country_code("fr") == "FR"

    days = holidays_for_country("United Kingdom", 2024)
    assert {"date": "2024-12-25", "name": "Christmas Day"} in days
    assert any(item["date"].startswith("2025-") for item in days)
    assert holidays_for_country("Atlantis", 2024) == []
