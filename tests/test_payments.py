from datetime import timedelta

import pytest

from conftest import fetch
from fastapi.testclient import TestClient

from schoolhub.app import app
from schoolhub.database import SessionLocal
from schoolhub.dates import utcnow
from schoolhub.ledger import apply_allocation
from schoolhub.models import FeePayment, FeeStatus, Payment, StudentFee
from schoolhub.services import payments


@pytest.fixture
def billed(campus, factory):
    fee_id = factory.fee(campus["school"], amount=100.0, grade_id=campus["grade"])
    campus["fee"] = fee_id
    campus["tuition"] = factory.student_fee(campus["school"], campus["student"], fee_id, amount=100.0)
    campus["books"] = factory.student_fee(campus["school"], campus["student"], fee_id, amount=50.0)
    return campus


def _payment(billed, amount, allocations):
    return {
        "studentId": billed["student"],
        "amount": amount,
        "paymentDate": "2024-05-10T08:30:00Z",
        "paymentMethod": "CASH",
        "schoolId": billed["school"],
        "feeAllocations": [{"studentFeeId": fee_id, "amount": value} for fee_id, value in allocations],
    }


def _row_counts():
    db = SessionLocal()
    try:
        return db.query(Payment).count(), db.query(FeePayment).count()
    finally:
        db.close()


def test_allocations_update_fee_balances(client, billed, admin_headers):
    response = client.post(
        "/payments",
        json=_payment(billed, 120, [(billed["tuition"], 100), (billed["books"], 20)]),
        headers=admin_headers,
    )

    assert response.status_code == 201
    payment = response.json()["data"]
    assert payment["amount"] == 120
    assert [item["amount"] for item in payment["feePayments"]] == [100, 20]

    tuition = fetch(StudentFee, billed["tuition"])
    books = fetch(StudentFee, billed["books"])
    assert (tuition.paid_amount, tuition.status) == (100, FeeStatus.PAID)
    assert (books.paid_amount, books.status) == (20, FeeStatus.PARTIAL)


def test_over_allocation_is_rejected_without_writes(client, billed):
    response = client.post("/payments", json=_payment(billed, 50, [(billed["tuition"], 60)]))

    assert response.status_code == 400
    assert response.json()["message"] == "Total allocated amount cannot exceed payment amount"
    assert _row_counts() == (0, 0)
    assert fetch(StudentFee, billed["tuition"]).paid_amount == 0


def test_allocation_cannot_exceed_outstanding_balance(client, billed):
    first = client.post("/payments", json=_payment(billed, 30, [(billed["books"], 30)]))
    assert first.status_code == 201

    response = client.post("/payments", json=_payment(billed, 40, [(billed["books"], 25)]))

    assert response.status_code == 400
    assert response.json()["message"] == f"Allocation for student fee {billed['books']} exceeds its outstanding balance"
    assert fetch(StudentFee, billed["books"]).paid_amount == 30


def test_repeated_allocation_lines_are_summed(client, billed):
    response = client.post(
        "/payments", json=_payment(billed, 60, [(billed["books"], 30), (billed["books"], 30)])
    )

    assert response.status_code == 400
    assert _row_counts() == (0, 0)


def test_allocation_to_another_students_fee(client, billed, factory):
    sibling = factory.student(
        billed["school"], billed["parent"], billed["class"], billed["grade"], username="sibling"
    )
    sibling_fee = factory.student_fee(billed["school"], sibling, billed["fee"])

    response = client.post("/payments", json=_payment(billed, 10, [(sibling_fee, 10)]))

    assert response.status_code == 400
    assert response.json()["message"] == f"Student fee {sibling_fee} does not belong to this student"


def test_unknown_student_fee(client, billed):
    response = client.post("/payments", json=_payment(billed, 10, [(9999, 10)]))

    assert response.status_code == 404
    assert response.json()["message"] == "Student fee 9999 not found"


def test_unallocated_payment_is_allowed(client, billed):
    response = client.post("/payments", json=_payment(billed, 75, []))

    assert response.status_code == 201
    assert response.json()["data"]["feePayments"] == []
    assert _row_counts() == (1, 0)


def test_delete_payment_restores_fee_state(client, billed, factory):
    overdue = factory.student_fee(
        billed["school"], billed["student"], billed["fee"], amount=80.0, due_date=utcnow() - timedelta(days=3)
    )
    created = client.post(
        "/payments", json=_payment(billed, 90, [(billed["tuition"], 40), (overdue, 50)])
    ).json()["data"]
    assert fetch(StudentFee, overdue).status == FeeStatus.PARTIAL

    response = client.delete(f"/payments/{created['id']}")

    assert response.status_code == 200
    assert _row_counts() == (0, 0)
    tuition = fetch(StudentFee, billed["tuition"])
    assert (tuition.paid_amount, tuition.status) == (0, FeeStatus.PENDING)
    reopened = fetch(StudentFee, overdue)
    assert (reopened.paid_amount, reopened.status) == (0, FeeStatus.OVERDUE)


def test_payment_amount_cannot_drop_below_allocations(client, billed):
    created = client.post("/payments", json=_payment(billed, 100, [(billed["tuition"], 80)])).json()["data"]

    response = client.put(f"/payments/{created['id']}", json={"amount": 50})
    assert response.status_code == 400
    assert response.json()["message"] == "Payment amount cannot be less than the total allocated amount"

    response = client.put(f"/payments/{created['id']}", json={"amount": 80, "notes": "corrected"})
    assert response.status_code == 200
    assert response.json()["data"]["amount"] == 80
    assert response.json()["data"]["notes"] == "corrected"


def test_student_fee_amount_cannot_drop_below_paid(client, billed):
    client.post("/payments", json=_payment(billed, 60, [(billed["tuition"], 60)]))

    response = client.put(f"/student-fees/{billed['tuition']}", json={"amount": 40})

    assert response.status_code == 400
    assert response.json()["message"] == "Amount cannot be less than the amount already paid"

    response = client.put(f"/student-fees/{billed['tuition']}", json={"amount": 60})
    assert response.json()["data"]["status"] == "PAID"


def test_payments_listed_newest_first(client, billed):
    older = _payment(billed, 10, [])
    older["paymentDate"] = "2024-01-05T00:00:00Z"
    client.post("/payments", json=older)
    client.post("/payments", json=_payment(billed, 20, []))

    listed = client.get("/payments", params={"schoolId": billed["school"]}).json()["data"]

    assert [payment["amount"] for payment in listed] == [20, 10]
    assert listed[0]["paymentDate"] == "2024-05-10T08:30:00Z"


def test_failure_between_allocations_rolls_back_everything(billed, monkeypatch):
    calls = []

    def failing_second_allocation(*args):
        calls.append(args)
        if len(calls) == 2:
            raise RuntimeError("ledger write failed")
        return apply_allocation(*args)

    monkeypatch.setattr(payments, "apply_allocation", failing_second_allocation)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post(
        "/payments", json=_payment(billed, 120, [(billed["tuition"], 100), (billed["books"], 20)])
    )

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error", "error": "ledger write failed"}
    assert _row_counts() == (0, 0)
    tuition = fetch(StudentFee, billed["tuition"])
    assert (tuition.paid_amount, tuition.status) == (0, FeeStatus.PENDING)
