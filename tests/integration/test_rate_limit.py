from app.core.config import settings
from app.core.rate_limiter import InMemoryRateLimiter, rate_limiter


def _register_payload(email: str) -> dict:
    return {"email": email, "password": "StrongPass123", "tenant_name": "Limit Clinic"}


def test_register_rate_limit_returns_429(client):
    original_limit = settings.auth_register_max_attempts
    original_window = settings.auth_rate_limit_window_seconds
    settings.auth_register_max_attempts = 2
    settings.auth_rate_limit_window_seconds = 60
    rate_limiter.reset()
    try:
        first = client.post("/auth/register", json=_register_payload("limit1@example.com"))
        second = client.post("/auth/register", json=_register_payload("limit2@example.com"))
        third = client.post("/auth/register", json=_register_payload("limit3@example.com"))

        assert first.status_code == 201
        assert second.status_code == 201
        assert third.status_code == 429
        assert "error" in third.json()
        assert third.headers.get("Retry-After")
    finally:
        settings.auth_register_max_attempts = original_limit
        settings.auth_rate_limit_window_seconds = original_window
        rate_limiter.reset()


def test_login_rate_limit_returns_429(client):
    original_limit = settings.auth_login_max_attempts
    original_window = settings.auth_rate_limit_window_seconds
    settings.auth_login_max_attempts = 2
    settings.auth_rate_limit_window_seconds = 60
    rate_limiter.reset()
    try:
        client.post("/auth/register", json=_register_payload("loglimit@example.com"))

        first = client.post("/auth/login", json={"email": "loglimit@example.com", "password": "WrongPass123"})
        second = client.post("/auth/login", json={"email": "loglimit@example.com", "password": "WrongPass123"})
        third = client.post("/auth/login", json={"email": "loglimit@example.com", "password": "WrongPass123"})

        assert first.status_code == 401
        assert second.status_code == 401
        assert third.status_code == 429
        assert third.json()["error"]["code"] == "http_429"
    finally:
        settings.auth_login_max_attempts = original_limit
        settings.auth_rate_limit_window_seconds = original_window
        rate_limiter.reset()


def test_booking_create_rate_limit_returns_429(client, staff_headers, make_resource, make_service):
    resource = make_resource(staff_headers)
    service = make_service(staff_headers, [resource["id"]], duration_minutes=30)
    original_limit = settings.booking_create_max_attempts
    settings.booking_create_max_attempts = 1
    rate_limiter.reset()
    try:
        payload = {
            "service_id": service["id"],
            "resource_id": resource["id"],
            "start_at": "2026-03-02T09:00:00Z",
            "customer": {"name": "Grace", "email": "grace@example.com"},
        }
        first = client.post("/bookings", json=payload)
        second = client.post("/bookings", json={**payload, "start_at": "2026-03-02T10:00:00Z"})

        assert first.status_code == 201
        assert second.status_code == 429
        assert second.headers.get("Retry-After")
    finally:
        settings.booking_create_max_attempts = original_limit
        rate_limiter.reset()


def test_in_memory_limiter_counts_per_key():
    limiter = InMemoryRateLimiter()

    assert limiter.allow("a", limit=1, window_seconds=60) == (True, 0)
    allowed, retry_after = limiter.allow("a", limit=1, window_seconds=60)
    assert allowed is False
    assert retry_after >= 1
    assert limiter.allow("b", limit=1, window_seconds=60)[0] is True
