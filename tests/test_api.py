from datetime import date, timedelta
from decimal import Decimal

from app.core.logging_utils import error_tracker

from tests.conftest import MONDAY

API = "/api/v1"


def booking_payload(court_id: int, **overrides) -> dict:
    payload = {
        "customer_name": "Arjun Mehta",
        "customer_phone": "+91 98765 43210",
        "court_id": court_id,
        "booking_date": MONDAY.isoformat(),
        "start_time": "06:00",
        "end_time": "07:00",
    }
    payload.update(overrides)
    return payload


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["expiry_sweeper"] == "stopped"


async def test_token_is_required(client, court):
    response = await client.get(f"{API}/bookings/")
    assert response.status_code == 401
    assert response.json()["error"] == "AUTHENTICATION_ERROR"


async def test_bookings_are_admin_only(client, court, staff_headers):
    response = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=staff_headers
    )
    assert response.status_code == 403


async def test_create_and_read_booking(client, court, admin_headers):
    response = await client.post(
        f"{API}/bookings/",
        json=booking_payload(court.id, advance_paid="100"),
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    booking_id = body["booking_id"]

    detail = await client.get(f"{API}/bookings/{booking_id}", headers=admin_headers)
    assert detail.status_code == 200
    data = detail.json()
    assert data["court_name"] == court.name
    assert data["customer_phone"] == "+919876543210"
    assert data["final_amount"] == 400
    assert data["total_slots"] == 4
    assert data["display_status"] == "COMPLETED"
    assert data["payment"]["status"] == "PARTIAL"
    assert Decimal(data["payment"]["balance_amount"]) == Decimal("300")


async def test_double_booking_returns_conflict(client, court, admin_headers):
    first = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers
    )
    assert first.status_code == 201

    second = await client.post(
        f"{API}/bookings/",
        json=booking_payload(court.id, start_time="06:45", end_time="07:30"),
        headers=admin_headers,
    )
    assert second.status_code == 409
    body = second.json()
    assert body["error"] == "SLOT_CONFLICT"
    assert body["details"]["conflicts"] == ["06:45"]


async def test_invalid_time_range_is_rejected(client, court, admin_headers):
    response = await client.post(
        f"{API}/bookings/",
        json=booking_payload(court.id, start_time="08:00", end_time="07:00"),
        headers=admin_headers,
    )
    assert response.status_code == 400

    off_grid = await client.post(
        f"{API}/bookings/",
        json=booking_payload(court.id, start_time="06:00", end_time="06:50"),
        headers=admin_headers,
    )
    assert off_grid.status_code == 400
    assert off_grid.json()["error"] == "INVALID_TIME_RANGE"


async def test_check_availability(client, court, admin_headers):
    await client.post(f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers)

    response = await client.post(
        f"{API}/bookings/check-availability",
        json={
            "court_id": court.id,
            "booking_date": MONDAY.isoformat(),
            "start_time": "06:30",
            "end_time": "07:30",
        },
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json() == {"available": False, "conflicts": ["06:30", "06:45"]}


async def test_list_filters_by_date_and_status(client, court, admin_headers):
    await client.post(f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers)
    other_day = (MONDAY + timedelta(days=1)).isoformat()
    await client.post(
        f"{API}/bookings/",
        json=booking_payload(court.id, booking_date=other_day),
        headers=admin_headers,
    )

    response = await client.get(
        f"{API}/bookings/", params={"date": MONDAY.isoformat()}, headers=admin_headers
    )
    assert response.json()["total"] == 1

    response = await client.get(
        f"{API}/bookings/", params={"status": "CANCELLED"}, headers=admin_headers
    )
    assert response.json()["total"] == 0


async def test_cancel_then_rebook(client, court, admin_headers):
    created = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers
    )
    booking_id = created.json()["booking_id"]

    response = await client.patch(
        f"{API}/bookings/{booking_id}/status",
        json={"status": "CANCELLED"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"

    again = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers
    )
    assert again.status_code == 201


async def test_edit_booking_reprices_and_moves_slots(client, court, admin_headers):
    created = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers
    )
    booking_id = created.json()["booking_id"]

    response = await client.put(
        f"{API}/bookings/{booking_id}",
        json={"start_time": "08:00", "end_time": "09:30", "payment_status": "PAID"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_slots"] == 6
    assert data["final_amount"] == 600
    assert data["payment"]["status"] == "PAID"

    availability = await client.post(
        f"{API}/bookings/check-availability",
        json={
            "court_id": court.id,
            "booking_date": MONDAY.isoformat(),
            "start_time": "06:00",
            "end_time": "07:00",
        },
        headers=admin_headers,
    )
    assert availability.json()["available"] is True


async def test_delete_booking(client, court, admin_headers):
    created = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers
    )
    booking_id = created.json()["booking_id"]

    response = await client.delete(f"{API}/bookings/{booking_id}", headers=admin_headers)
    assert response.status_code == 200

    missing = await client.get(f"{API}/bookings/{booking_id}", headers=admin_headers)
    assert missing.status_code == 404


async def test_court_lifecycle(client, admin_headers, staff_headers):
    payload = {
        "name": "Shuttle 1",
        "sport_type": "Badminton",
        "weekday_price": "300",
        "weekend_price": "450",
    }
    created = await client.post(f"{API}/courts/", json=payload, headers=admin_headers)
    assert created.status_code == 201
    court_id = created.json()["id"]
    assert created.json()["status"] == "ACTIVE"

    duplicate = await client.post(
        f"{API}/courts/", json={**payload, "name": "shuttle 1"}, headers=admin_headers
    )
    assert duplicate.status_code == 409

    forbidden = await client.post(f"{API}/courts/", json=payload, headers=staff_headers)
    assert forbidden.status_code == 403

    listed = await client.get(
        f"{API}/courts/", params={"sport_type": "Badminton"}, headers=staff_headers
    )
    assert listed.json()["total"] == 1

    updated = await client.put(
        f"{API}/courts/{court_id}", json={"weekday_price": "350"}, headers=admin_headers
    )
    assert Decimal(updated.json()["weekday_price"]) == Decimal("350")

    status = await client.patch(
        f"{API}/courts/{court_id}/status", json={"status": "INACTIVE"}, headers=admin_headers
    )
    assert status.json()["status"] == "INACTIVE"

    deleted = await client.delete(f"{API}/courts/{court_id}", headers=admin_headers)
    assert deleted.status_code == 204


async def test_booking_on_inactive_court(client, court, admin_headers):
    await client.patch(
        f"{API}/courts/{court.id}/status", json={"status": "INACTIVE"}, headers=admin_headers
    )
    response = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["error"] == "COURT_INACTIVE"


async def test_court_with_bookings_cannot_be_deleted(client, court, admin_headers):
    await client.post(f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers)
    response = await client.delete(f"{API}/courts/{court.id}", headers=admin_headers)
    assert response.status_code == 400


async def test_settings_defaults_and_update(client, staff_headers, admin_headers):
    response = await client.get(f"{API}/settings/", headers=staff_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["slot_duration"] == 15
    assert data["weekend_days"] == ["SAT", "SUN"]

    updated = await client.put(
        f"{API}/settings/",
        json={"weekend_days": ["FRI", "SAT"], "closing_time": "22:00"},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["weekend_days"] == ["FRI", "SAT"]
    assert updated.json()["closing_time"] == "22:00"


async def test_slot_duration_is_not_editable(client, admin_headers):
    response = await client.put(
        f"{API}/settings/", json={"slot_duration": 30}, headers=admin_headers
    )
    assert response.status_code == 422


async def test_calendar_marks_recurring_bookings_read_only(client, court, admin_headers):
    rule = {
        "customer_name": "Weekend Warriors",
        "customer_phone": "9876543210",
        "court_id": court.id,
        "recurrence_type": "WEEKLY",
        "days_of_week": ["MON"],
        "start_time": "20:00",
        "end_time": "21:00",
        "start_date": MONDAY.isoformat(),
        "end_date": (MONDAY + timedelta(days=6)).isoformat(),
    }
    created = await client.post(f"{API}/recurring-bookings/", json=rule, headers=admin_headers)
    assert created.status_code == 201
    assert created.json()["report"]["success"] == 1

    await client.post(f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers)

    response = await client.get(
        f"{API}/calendar/day", params={"date": MONDAY.isoformat()}, headers=admin_headers
    )
    assert response.status_code == 200
    bookings = response.json()["courts"][0]["bookings"]
    assert [(b["start_time"], b["read_only"]) for b in bookings] == [
        ("06:00", False),
        ("20:00", True),
    ]


async def test_payments_list_and_mark_paid(client, court, admin_headers, staff_headers):
    created = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers
    )
    booking_id = created.json()["booking_id"]

    listed = await client.get(f"{API}/payments/", headers=staff_headers)
    payments = listed.json()["payments"]
    assert len(payments) == 1
    assert payments[0]["booking_reference"] == f"BK-{booking_id:04d}"
    assert payments[0]["status"] == "PENDING"

    paid = await client.patch(
        f"{API}/payments/{payments[0]['id']}/mark-paid",
        json={"payment_mode": "UPI"},
        headers=staff_headers,
    )
    assert paid.status_code == 200
    assert paid.json()["status"] == "PAID"
    assert paid.json()["payment_mode"] == "UPI"
    assert Decimal(paid.json()["balance_amount"]) == Decimal("0")
    assert paid.json()["payment_date"] is not None


async def test_cancelled_bookings_are_hidden_from_payments(client, court, admin_headers):
    created = await client.post(
        f"{API}/bookings/", json=booking_payload(court.id), headers=admin_headers
    )
    await client.patch(
        f"{API}/bookings/{created.json()['booking_id']}/status",
        json={"status": "CANCELLED"},
        headers=admin_headers,
    )

    listed = await client.get(f"{API}/payments/", headers=admin_headers)
    assert listed.json()["total"] == 0


async def test_recurring_rule_without_dates_is_bad_request(client, court, admin_headers):
    rule = {
        "customer_name": "Month End Club",
        "customer_phone": "9876543210",
        "court_id": court.id,
        "recurrence_type": "MONTHLY",
        "fixed_date": 31,
        "start_time": "20:00",
        "end_time": "21:00",
        "start_date": date(2024, 4, 1).isoformat(),
        "end_date": date(2024, 4, 30).isoformat(),
    }
    response = await client.post(f"{API}/recurring-bookings/", json=rule, headers=admin_headers)
    assert response.status_code == 400


async def test_middleware_headers_and_error_tracking(client, admin_headers):
    error_tracker.reset_stats()

    response = await client.get(
        f"{API}/bookings/999", headers={**admin_headers, "X-Request-ID": "abc123"}
    )

    assert response.status_code == 404
    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert error_tracker.get_stats()["error_counts"].get("HTTP_404") == 1
    assert error_tracker.get_stats()["last_errors"][-1]["request_id"] == "abc123"
    error_tracker.reset_stats()
