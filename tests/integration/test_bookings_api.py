from sqlalchemy import select

from app.db.models import Booking


def _book(client, service_id: int, start_at: str, resource_id: int | None = None, headers=None, email="grace@example.com"):
    payload = {
        "service_id": service_id,
        "resource_id": resource_id,
        "start_at": start_at,
        "customer": {"name": "Grace Hopper", "email": email, "phone": "+1 555 0100"},
    }
    return client.post("/bookings", json=payload, headers=headers or {})


def test_booking_is_confirmed_immediately_without_confirmation_policy(
    client, staff_headers, make_resource, make_service
):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]], duration_minutes=45)

    response = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"])

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "confirmed"
    assert body["resource_id"] == resource["id"]
    assert body["start_at"] == "2026-03-02T09:00:00Z"
    assert body["end_at"] == "2026-03-02T09:45:00Z"


def test_overlapping_booking_is_a_conflict(client, staff_headers, make_resource, make_service):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]], duration_minutes=60)

    first = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"])
    overlapping = _book(client, service["id"], "2026-03-02T09:30:00Z", resource["id"], email="other@example.com")
    adjacent = _book(client, service["id"], "2026-03-02T10:00:00Z", resource["id"], email="third@example.com")

    assert first.status_code == 201
    assert overlapping.status_code == 409
    assert overlapping.json()["error"]["code"] == "slot_conflict"
    assert adjacent.status_code == 201


def test_booking_outside_working_hours_is_a_conflict(client, staff_headers, make_resource, make_service):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]], duration_minutes=60)

    late = _book(client, service["id"], "2026-03-02T16:30:00Z", resource["id"])
    weekend = _book(client, service["id"], "2026-03-07T10:00:00Z", resource["id"])

    assert late.status_code == 409
    assert weekend.status_code == 409


def test_booking_requires_timezone_offset(client, staff_headers, make_resource, make_service):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]])

    response = _book(client, service["id"], "2026-03-02T09:00:00", resource["id"])

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"
    assert "timezone offset" in response.json()["detail"][0]["msg"]


def test_any_resource_booking_picks_least_loaded_resource(client, staff_headers, make_resource, make_service):
    first = make_resource(staff_headers, name="Room A", sort_order=1)
    second = make_resource(staff_headers, name="Room B", sort_order=2)
    service = make_service(staff_headers, [first["id"], second["id"]], duration_minutes=60, slot_granularity_minutes=60)

    initial = _book(client, service["id"], "2026-03-02T09:00:00Z")
    later = _book(client, service["id"], "2026-03-02T11:00:00Z", email="second@example.com")

    assert initial.json()["resource_id"] == first["id"]
    assert later.json()["resource_id"] == second["id"]


def test_any_resource_booking_without_free_resource_is_a_conflict(
    client, staff_headers, make_resource, make_service
):
    only = make_resource(staff_headers)
    service = make_service(staff_headers, [only["id"]], duration_minutes=60, slot_granularity_minutes=60)

    assert _book(client, service["id"], "2026-03-02T09:00:00Z").status_code == 201
    second = _book(client, service["id"], "2026-03-02T09:00:00Z", email="late@example.com")

    assert second.status_code == 409
    assert second.json()["error"]["code"] == "slot_conflict"


def test_cancelled_booking_frees_its_slot(client, staff_headers, make_resource, make_service):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]], duration_minutes=60)
    booking_id = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"]).json()["booking_id"]

    cancelled = client.patch(f"/bookings/{booking_id}/status", headers=staff_headers, json={"status": "cancelled"})
    rebooked = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"], email="next@example.com")

    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"
    assert cancelled.json()["cancelled_at"] is not None
    assert rebooked.status_code == 201


def test_status_machine_rejects_illegal_transitions(client, staff_headers, make_resource, make_service):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]], duration_minutes=60)
    booking_id = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"]).json()["booking_id"]

    completed = client.patch(f"/bookings/{booking_id}/status", headers=staff_headers, json={"status": "completed"})
    reopened = client.patch(f"/bookings/{booking_id}/status", headers=staff_headers, json={"status": "pending"})
    cancelled = client.patch(f"/bookings/{booking_id}/status", headers=staff_headers, json={"status": "cancelled"})

    assert completed.status_code == 200
    assert reopened.status_code == 409
    assert reopened.json()["error"]["code"] == "invalid_transition"
    assert cancelled.status_code == 409


def test_pending_booking_is_confirmed_once_by_token(client, register_staff, make_resource, make_service, db_session):
    headers = register_staff(requires_booking_confirmation=True)
    resource = make_resource(headers)
    service = make_service(headers, [resource["id"]], duration_minutes=60)

    created = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"])
    assert created.status_code == 201
    assert created.json()["status"] == "pending"
    token = db_session.scalar(select(Booking.confirmation_token).where(Booking.id == created.json()["booking_id"]))
    assert token

    confirmed = client.post("/bookings/confirm", json={"token": token})
    repeated = client.post("/bookings/confirm", json={"token": token})
    unknown = client.post("/bookings/confirm", json={"token": "does-not-exist"})

    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"
    assert repeated.status_code == 404
    assert unknown.status_code == 404
    booking_id = created.json()["booking_id"]
    assert db_session.scalar(select(Booking.confirmation_token).where(Booking.id == booking_id)) is None


def test_pending_hold_blocks_the_slot(client, register_staff, make_resource, make_service):
    headers = register_staff(requires_booking_confirmation=True)
    resource = make_resource(headers)
    service = make_service(headers, [resource["id"]], duration_minutes=60)

    assert _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"]).status_code == 201
    second = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"], email="late@example.com")

    assert second.status_code == 409


def test_idempotency_key_replays_original_booking(client, staff_headers, make_resource, make_service):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]], duration_minutes=60)
    key_headers = {"Idempotency-Key": "booking-retry-1"}

    first = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"], headers=key_headers)
    replay = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"], headers=key_headers)
    reused = _book(client, service["id"], "2026-03-02T11:00:00Z", resource["id"], headers=key_headers)
    blank = _book(client, service["id"], "2026-03-02T13:00:00Z", resource["id"], headers={"Idempotency-Key": "  "})

    assert first.status_code == 201
    assert replay.status_code == 201
    assert replay.json()["booking_id"] == first.json()["booking_id"]
    assert reused.status_code == 409
    assert reused.json()["error"]["code"] == "idempotency_key_reused"
    assert blank.status_code == 400


def test_staff_can_read_and_filter_tenant_bookings(client, staff_headers, make_resource, make_service):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]], duration_minutes=60)
    first_id = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"]).json()["booking_id"]
    second_id = _book(client, service["id"], "2026-03-03T09:00:00Z", resource["id"]).json()["booking_id"]
    client.patch(f"/bookings/{second_id}/status", headers=staff_headers, json={"status": "cancelled"})

    fetched = client.get(f"/bookings/{first_id}", headers=staff_headers)
    confirmed_only = client.get("/bookings", headers=staff_headers, params={"status": "confirmed"})
    by_day = client.get("/bookings", headers=staff_headers, params={"date_from": "2026-03-03", "date_to": "2026-03-03"})

    assert fetched.status_code == 200
    assert fetched.json()["customer_email"] == "grace@example.com"
    assert [booking["id"] for booking in confirmed_only.json()] == [first_id]
    assert [booking["id"] for booking in by_day.json()] == [second_id]


def test_other_tenant_cannot_see_or_change_booking(client, register_staff, make_resource, make_service):
    owner = register_staff(email="owner@example.com", tenant_name="Owner Clinic")
    intruder = register_staff(email="intruder@example.com", tenant_name="Other Clinic")
    resource = make_resource(owner)
    service = make_service(owner, [resource["id"]], duration_minutes=60)
    booking_id = _book(client, service["id"], "2026-03-02T09:00:00Z", resource["id"]).json()["booking_id"]

    read = client.get(f"/bookings/{booking_id}", headers=intruder)
    change = client.patch(f"/bookings/{booking_id}/status", headers=intruder, json={"status": "cancelled"})

    assert read.status_code == 404
    assert change.status_code == 404


def test_booking_endpoints_for_staff_require_auth(client):
    assert client.get("/bookings").status_code == 401
    assert client.patch("/bookings/1/status", json={"status": "cancelled"}).status_code == 401
