from datetime import timedelta

import pytest

from glambook.core.config import settings
from glambook.core.security import create_access_token
from tests.conftest import MONDAY, SATURDAY

TEN_UTC = "2030-01-07T10:00:00"
ELEVEN_UTC = "2030-01-07T11:00:00"


def _book_body(artist_id: int, start: str = TEN_UTC) -> dict:
    return {"artist_id": artist_id, "start_utc": start, "service_type": "bridal", "price": 150}


async def _available(client, artist_id: int) -> list[tuple[str, bool]]:
    resp = await client.get(f"/api/v1/artists/{artist_id}/slots", params={"start": MONDAY.isoformat()})
    assert resp.status_code == 200
    return [(s["start_local"], s["available"]) for s in resp.json()["slots"]]


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_me_requires_token(client, customer, auth_header):
    assert (await client.get("/api/v1/auth/me")).status_code == 401
    resp = await client.get("/api/v1/auth/me", headers=auth_header(customer))
    assert resp.status_code == 200
    assert resp.json()["role"] == "CUSTOMER"


@pytest.mark.asyncio
async def test_bad_tokens_are_rejected(client):
    ghost = {"Authorization": f"Bearer {create_access_token(424242)}"}
    assert (await client.get("/api/v1/auth/me", headers=ghost)).status_code == 401
    garbage = {"Authorization": "Bearer not-a-jwt"}
    assert (await client.get("/api/v1/auth/me", headers=garbage)).status_code == 401


@pytest.mark.asyncio
async def test_list_and_get_artists(client, artist):
    resp = await client.get("/api/v1/artists")
    assert resp.status_code == 200
    assert [a["display_name"] for a in resp.json()] == ["Mia Makeup"]
    resp = await client.get(f"/api/v1/artists/{artist.id}")
    assert resp.json()["is_available"] is True
    assert (await client.get("/api/v1/artists/999")).status_code == 404


@pytest.mark.asyncio
async def test_book_then_slot_shows_booked(client, artist, customer, auth_header):
    assert await _available(client, artist.id) == [("10:00", True), ("11:00", True)]

    resp = await client.post("/api/v1/bookings", json=_book_body(artist.id), headers=auth_header(customer))
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "PENDING"
    assert body["customer_id"] == customer.id

    assert await _available(client, artist.id) == [("10:00", False), ("11:00", True)]


@pytest.mark.asyncio
async def test_double_booking_is_409(client, artist, customer, other_customer, auth_header):
    first = await client.post("/api/v1/bookings", json=_book_body(artist.id), headers=auth_header(customer))
    assert first.status_code == 201
    second = await client.post("/api/v1/bookings", json=_book_body(artist.id), headers=auth_header(other_customer))
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "ConflictError"


@pytest.mark.asyncio
async def test_misaligned_booking_is_400(client, artist, customer, auth_header):
    resp = await client.post(
        "/api/v1/bookings", json=_book_body(artist.id, "2030-01-07T10:15:00"), headers=auth_header(customer)
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "InvalidSlotError"


@pytest.mark.asyncio
async def test_booking_requires_login(client, artist):
    resp = await client.post("/api/v1/bookings", json=_book_body(artist.id))
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_cancel_frees_slot(client, artist, customer, other_customer, auth_header):
    booked = await client.post("/api/v1/bookings", json=_book_body(artist.id), headers=auth_header(customer))
    booking_id = booked.json()["id"]

    denied = await client.put(f"/api/v1/bookings/{booking_id}/cancel", headers=auth_header(other_customer))
    assert denied.status_code == 403

    resp = await client.put(f"/api/v1/bookings/{booking_id}/cancel", headers=auth_header(customer))
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"
    assert await _available(client, artist.id) == [("10:00", True), ("11:00", True)]

    again = await client.put(f"/api/v1/bookings/{booking_id}/cancel", headers=auth_header(customer))
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "InvalidTransitionError"


@pytest.mark.asyncio
async def test_status_updates(client, artist, artist_user, customer, admin, auth_header):
    booked = await client.post("/api/v1/bookings", json=_book_body(artist.id), headers=auth_header(customer))
    booking_id = booked.json()["id"]
    url = f"/api/v1/bookings/{booking_id}/status"

    assert (await client.put(url, json={"status": "CONFIRMED"}, headers=auth_header(customer))).status_code == 403

    resp = await client.put(url, json={"status": "CONFIRMED"}, headers=auth_header(artist_user))
    assert resp.json()["status"] == "CONFIRMED"
    resp = await client.put(url, json={"status": "COMPLETED"}, headers=auth_header(artist_user))
    assert resp.json()["status"] == "COMPLETED"

    resp = await client.put(url, json={"status": "CONFIRMED"}, headers=auth_header(admin))
    assert resp.status_code == 409
    resp = await client.put(url, json={"status": "CONFIRMED", "force": True}, headers=auth_header(admin))
    assert resp.status_code == 200
    assert resp.json()["status"] == "CONFIRMED"


@pytest.mark.asyncio
async def test_booking_visibility(client, artist, artist_user, customer, other_customer, auth_header):
    booked = await client.post("/api/v1/bookings", json=_book_body(artist.id), headers=auth_header(customer))
    booking_id = booked.json()["id"]

    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=auth_header(customer))).status_code == 200
    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=auth_header(artist_user))).status_code == 200
    assert (await client.get(f"/api/v1/bookings/{booking_id}", headers=auth_header(other_customer))).status_code == 403

    mine = await client.get("/api/v1/bookings", headers=auth_header(customer))
    assert [b["id"] for b in mine.json()] == [booking_id]
    assert (await client.get("/api/v1/bookings", headers=auth_header(other_customer))).json() == []

    artist_view = await client.get("/api/v1/bookings/artist", headers=auth_header(artist_user))
    assert [b["id"] for b in artist_view.json()] == [booking_id]
    assert (await client.get("/api/v1/bookings/artist", headers=auth_header(customer))).status_code == 403


@pytest.mark.asyncio
async def test_admin_booking_listing(client, artist, customer, admin, auth_header):
    for start in (TEN_UTC, ELEVEN_UTC):
        resp = await client.post("/api/v1/bookings", json=_book_body(artist.id, start), headers=auth_header(customer))
        assert resp.status_code == 201

    resp = await client.get("/api/v1/admin/bookings", params={"page_size": 1}, headers=auth_header(admin))
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 2
    assert body["pages"] == 2
    assert len(body["bookings"]) == 1

    assert (await client.get("/api/v1/admin/bookings", headers=auth_header(customer))).status_code == 403


@pytest.mark.asyncio
async def test_calendar_view(client, artist):
    resp = await client.get(
        f"/api/v1/artists/{artist.id}/availability", params={"date": SATURDAY.isoformat(), "days": 3}
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["is_available"] is True
    assert body["timezone"] == "UTC"
    assert [(d["date"], d["day_label"], d["is_day_off"], len(d["slots"])) for d in body["availability"]] == [
        ("2030-01-05", "Sat", True, 0),
        ("2030-01-06", "Sun", True, 0),
        ("2030-01-07", "Mon", False, 2),
    ]


@pytest.mark.asyncio
async def test_slot_range_too_long_is_400(client, artist):
    resp = await client.get(
        f"/api/v1/artists/{artist.id}/slots",
        params={"start": MONDAY.isoformat(), "end": (MONDAY + timedelta(days=90)).isoformat()},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "InvalidDateRangeError"


@pytest.mark.asyncio
async def test_artist_manages_own_availability(client, artist, artist_user, customer, auth_header):
    resp = await client.get("/api/v1/artists/me/availability", headers=auth_header(artist_user))
    assert resp.status_code == 200
    assert resp.json()["is_default"] is False
    assert resp.json()["availability_settings"]["sessionDuration"] == 60

    new_config = {
        "workingDays": [1],
        "startTime": "10:00",
        "endTime": "12:00",
        "sessionDuration": 30,
        "breakBetweenSessions": 30,
        "isAvailable": True,
    }
    resp = await client.put("/api/v1/artists/me/availability", json=new_config, headers=auth_header(artist_user))
    assert resp.status_code == 200
    assert resp.json()["availability_settings"] == new_config
    assert await _available(client, artist.id) == [("10:00", True), ("11:00", True)]

    bad = dict(new_config, startTime="13:00")
    resp = await client.put("/api/v1/artists/me/availability", json=bad, headers=auth_header(artist_user))
    assert resp.status_code == 422

    resp = await client.put("/api/v1/artists/me/availability", json=new_config, headers=auth_header(customer))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_switching_off_hides_calendar(client, artist, artist_user, auth_header):
    off = {"workingDays": [1], "startTime": "10:00", "endTime": "12:00", "sessionDuration": 60, "isAvailable": False}
    resp = await client.put("/api/v1/artists/me/availability", json=off, headers=auth_header(artist_user))
    assert resp.status_code == 200

    resp = await client.get(f"/api/v1/artists/{artist.id}/availability", params={"date": MONDAY.isoformat()})
    body = resp.json()
    assert body["is_available"] is False
    assert body["availability"] == []
    assert body["message"]
    assert (await client.get(f"/api/v1/artists/{artist.id}")).json()["is_available"] is False


@pytest.mark.asyncio
async def test_admin_overrides_artist_availability(client, unconfigured_artist, admin, artist_user, auth_header):
    url = f"/api/v1/admin/artists/{unconfigured_artist.id}/availability"
    resp = await client.get(url, headers=auth_header(admin))
    assert resp.json()["is_default"] is True

    config = {"workingDays": [6], "startTime": "09:00", "endTime": "10:00", "sessionDuration": 60}
    resp = await client.put(url, json=config, headers=auth_header(admin))
    assert resp.status_code == 200
    assert resp.json()["is_default"] is False

    # Another artist is not an admin
    assert (await client.put(url, json=config, headers=auth_header(artist_user))).status_code == 403


@pytest.mark.asyncio
async def test_unconfigured_artist_not_advertised_under_none_policy(client, unconfigured_artist, monkeypatch):
    monkeypatch.setattr(settings, "missing_availability_policy", "none")
    resp = await client.get(f"/api/v1/artists/{unconfigured_artist.id}")
    assert resp.json()["is_available"] is False
    listed = {a["id"]: a["is_available"] for a in (await client.get("/api/v1/artists")).json()}
    assert listed[unconfigured_artist.id] is False


@pytest.mark.asyncio
async def test_unknown_platform_timezone_is_a_configuration_error(client, artist, monkeypatch):
    monkeypatch.setattr(settings, "platform_timezone", "Mars/Olympus_Mons")
    resp = await client.get(f"/api/v1/artists/{artist.id}/availability")
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "ConfigurationError"
