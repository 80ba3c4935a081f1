from datetime import date

import pytest

from slotbook.api.deps import get_now
from slotbook.api.routes import public_booking
from slotbook.core.config import Settings
from slotbook.core.timeutils import local_now
from tests.factories import MONDAY_8AM, WEEKDAY_MORNINGS, future_date

API = "/api/v1"


@pytest.fixture
def booking_link(client, admin_headers):
    template = client.post(
        f"{API}/templates",
        json={"name": "Weekday mornings", "schedule": WEEKDAY_MORNINGS, "blackout_days": []},
        headers=admin_headers,
    )
    assert template.status_code == 201, template.text
    link = client.post(
        f"{API}/booking-links",
        json={"name": "Discovery call", "template_id": template.json()["id"], "url_slug": "discovery"},
        headers=admin_headers,
    )
    assert link.status_code == 201, link.text
    return link.json()


def _book(client, selected_date, selected_time="09:00", **overrides):
    body = {
        "selected_date": selected_date,
        "selected_time": selected_time,
        "first_name": "Katherine",
        "last_name": "Johnson",
        "email": "katherine@example.com",
        "phone": "+1 (757) 555-0100",
        "role": "Mathematician",
    }
    body.update(overrides)
    return client.post(f"{API}/public/booking/discovery/book", json=body)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


# --- auth ---


def test_login_rejects_bad_password(client):
    res = client.post(f"{API}/auth/login", json={"username": "admin", "password": "nope"})
    assert res.status_code == 401


def test_me(client, admin_headers):
    res = client.get(f"{API}/auth/me", headers=admin_headers)
    assert res.json() == {"username": "admin"}


def test_admin_routes_require_token(client):
    assert client.get(f"{API}/templates").status_code == 401
    assert client.get(f"{API}/bookings", headers={"Authorization": "Bearer junk"}).status_code == 401


# --- admin CRUD ---


def test_template_crud(client, admin_headers):
    res = client.post(
        f"{API}/templates",
        json={
            "name": "Afternoons",
            "schedule": {"monday": [{"start_time": "14:00", "end_time": "15:00"}]},
            "blackout_days": ["2030-01-02", "2030-01-01", "2030-01-02"],
        },
        headers=admin_headers,
    )
    assert res.status_code == 201, res.text
    template = res.json()
    assert template["id"].startswith("TPL_")
    assert template["blackout_days"] == ["2030-01-01", "2030-01-02"]
    assert template["schedule"]["sunday"] == []

    dup = client.post(f"{API}/templates", json={"name": "Afternoons", "schedule": {}}, headers=admin_headers)
    assert dup.status_code == 409

    updated = client.put(
        f"{API}/templates/{template['id']}",
        json={"booking_cutoff_date": "2030-06-30"},
        headers=admin_headers,
    )
    assert updated.json()["booking_cutoff_date"] == "2030-06-30"
    assert updated.json()["name"] == "Afternoons"

    assert client.delete(f"{API}/templates/{template['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/templates/{template['id']}", headers=admin_headers).status_code == 404


def test_template_rejects_overlapping_ranges(client, admin_headers):
    res = client.post(
        f"{API}/templates",
        json={
            "name": "Broken",
            "schedule": {
                "monday": [
                    {"start_time": "09:00", "end_time": "11:00"},
                    {"start_time": "10:30", "end_time": "12:00"},
                ]
            },
        },
        headers=admin_headers,
    )
    assert res.status_code == 422


def test_booking_link_requires_existing_template(client, admin_headers):
    res = client.post(
        f"{API}/booking-links",
        json={"name": "Orphan", "template_id": "TPL_missing", "url_slug": "orphan"},
        headers=admin_headers,
    )
    assert res.status_code == 404


def test_booking_link_update_and_duplicate_slug(client, admin_headers, booking_link):
    res = client.put(
        f"{API}/booking-links/{booking_link['id']}",
        json={"require_advance_booking": True, "advance_hours": 12},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["advance_hours"] == 12

    bad = client.put(
        f"{API}/booking-links/{booking_link['id']}",
        json={"advance_hours": 5},
        headers=admin_headers,
    )
    assert bad.status_code == 400

    dup = client.post(
        f"{API}/booking-links",
        json={"name": "Another", "template_id": booking_link["template_id"], "url_slug": "discovery"},
        headers=admin_headers,
    )
    assert dup.status_code == 409


def test_enabling_advance_booking_defaults_hours(client, admin_headers, booking_link):
    assert booking_link["advance_hours"] == 0
    res = client.put(
        f"{API}/booking-links/{booking_link['id']}",
        json={"require_advance_booking": True},
        headers=admin_headers,
    )
    assert res.status_code == 200, res.text
    assert res.json()["require_advance_booking"] is True
    assert res.json()["advance_hours"] == 24


def test_booking_link_update_rejects_blank_name(client, admin_headers, booking_link):
    res = client.put(f"{API}/booking-links/{booking_link['id']}", json={"name": "   "}, headers=admin_headers)
    assert res.status_code == 422
    stored = client.get(f"{API}/booking-links/{booking_link['id']}", headers=admin_headers)
    assert stored.json()["name"] == "Discovery call"


# --- public booking ---


def test_directory_lists_active_links(client, admin_headers, booking_link):
    res = client.get(f"{API}/public/directory")
    assert res.json()["count"] == 1
    assert res.json()["booking_links"][0]["url_slug"] == "discovery"

    client.put(f"{API}/booking-links/{booking_link['id']}", json={"is_active": False}, headers=admin_headers)
    assert client.get(f"{API}/public/directory").json()["count"] == 0
    assert client.get(f"{API}/public/booking/discovery").status_code == 404


def test_day_slots_and_booking(client, booking_link):
    day = future_date(14)
    slots = client.get(f"{API}/public/booking/discovery/slots/{day}").json()
    assert [s["start_time"] for s in slots["slots"]] == ["09:00", "09:30", "10:00", "10:30", "11:00", "11:30"]

    res = _book(client, day)
    assert res.status_code == 201, res.text
    booking = res.json()["booking"]
    assert booking["status"] == "confirmed"
    assert booking["cancellation_token"]

    slots = client.get(f"{API}/public/booking/discovery/slots/{day}").json()
    assert "09:00" not in [s["start_time"] for s in slots["slots"]]

    again = _book(client, day)
    assert again.status_code == 409
    assert again.json()["detail"]["details"] == "This time slot is already booked"


def test_book_rejects_bad_payload(client, booking_link):
    assert _book(client, future_date(14), email="not-an-email").status_code == 422
    assert _book(client, future_date(14), selected_time="9:00").status_code == 422


def test_validate_endpoint(client, booking_link):
    ok = client.get(f"{API}/public/booking/discovery/validate/{future_date(14)}/10:00").json()
    assert ok == {"valid": True, "error": None}
    past = client.get(f"{API}/public/booking/discovery/validate/2024-01-01/10:00").json()
    assert past == {"valid": False, "error": "Cannot book appointments in the past"}


def test_month_availability(client, booking_link):
    target = date.fromisoformat(future_date(40))
    res = client.get(f"{API}/public/booking/discovery/availability/{target.year}/{target.month}")
    assert res.status_code == 200
    body = res.json()
    assert body["booking_link_id"] == booking_link["id"]
    day = next(d for d in body["availability"] if d["date"] == target.isoformat())
    assert day == {"date": target.isoformat(), "available": True, "total_slots": 6, "available_slots": 6}


def test_month_availability_range_checks(client, booking_link):
    assert client.get(f"{API}/public/booking/discovery/availability/2031/1").status_code == 400
    assert client.get(f"{API}/public/booking/discovery/availability/2026/13").status_code == 400


# --- manage ---


def test_cancel_and_reschedule_flow(client, admin_headers, booking_link):
    day = future_date(21)
    booking = _book(client, day, "10:00").json()["booking"]
    token = booking["cancellation_token"]
    base = f"{API}/public/bookings/{booking['id']}"

    assert client.get(f"{base}/details").status_code == 400
    assert client.get(f"{base}/details", params={"token": "wrong"}).status_code == 403
    details = client.get(f"{base}/details", params={"token": token}).json()
    assert details["booking_link"]["url_slug"] == "discovery"
    assert "cancellation_token" not in details["booking"]

    moved = client.post(f"{base}/reschedule", json={"token": token, "new_date": day, "new_time": "11:30"})
    assert moved.status_code == 200, moved.text
    assert moved.json()["old_date_time"] == {"date": day, "time": "10:00"}
    assert moved.json()["new_date_time"] == {"date": day, "time": "11:30"}

    cancelled = client.post(f"{base}/cancel", json={"token": token, "reason": "Travel"})
    assert cancelled.json()["booking"]["status"] == "cancelled"
    assert client.post(f"{base}/cancel", json={"token": token}).status_code == 410

    admin_view = client.get(f"{API}/bookings", params={"booking_link_id": booking_link["id"]}, headers=admin_headers)
    assert [b["status"] for b in admin_view.json()] == ["cancelled"]
    assert client.delete(f"{API}/bookings/{booking['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"{API}/bookings/{booking['id']}", headers=admin_headers).status_code == 404


def test_reschedule_into_past_is_rejected(client, booking_link):
    booking = _book(client, future_date(7)).json()["booking"]
    res = client.post(
        f"{API}/public/bookings/{booking['id']}/reschedule",
        json={"token": booking["cancellation_token"], "new_date": "2024-01-01", "new_time": "09:00"},
    )
    assert res.status_code == 400


# --- clock and settings come from the application ---


def test_slots_use_the_request_clock(client, booking_link):
    client.app.dependency_overrides[get_now] = lambda: MONDAY_8AM
    try:
        res = client.get(f"{API}/public/booking/discovery/slots/2025-01-06")
    finally:
        client.app.dependency_overrides.clear()
    assert [s["start_time"] for s in res.json()["slots"]][:2] == ["09:00", "09:30"]
    assert client.get(f"{API}/public/booking/discovery/slots/2025-01-06").json()["slots"] == []


def test_get_now_follows_configured_timezone():
    tokyo = get_now(Settings(timezone="Asia/Tokyo"))
    assert abs((tokyo - local_now("Asia/Tokyo")).total_seconds()) < 60


def test_booking_emails_get_app_settings(client, test_settings, booking_link, monkeypatch):
    calls = []
    monkeypatch.setattr(
        public_booking, "send_booking_confirmation_email", lambda settings, *args: calls.append(settings)
    )
    monkeypatch.setattr(public_booking, "send_admin_booking_notification_email", lambda *args: None)
    assert _book(client, future_date(14)).status_code == 201
    assert calls == [test_settings]
