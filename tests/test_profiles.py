"""
tests/test_profiles.py
Profile onboarding, publication, dashboard, availability and calendar feed.
"""

import io
import uuid
from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.database import get_db_context
from homebirth.models.profile import Profile
from homebirth.services.profile_service import profile_service
from tests.conftest import auth_headers, make_booking, make_midwife

COMPLETE_MIDWIFE = {
    "role": "MIDWIFE",
    "display_name": "Lena Hebamme",
    "city": "Potsdam",
    "postal_code": "14467",
    "radius_km": 40,
    "bio": "Begleitung von Hausgeburten im Raum Potsdam.",
    "qualifications": ["Hebamme B.Sc."],
    "services": ["Hausgeburt"],
    "phone": "0331 9876543",
    "price_model": "QUOTE",
}


# ── Onboarding ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_profile_required_before_reading(client: AsyncClient):
    response = await client.get("/api/v1/profiles/me", headers=auth_headers(uuid.uuid4()))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_first_write_creates_profile(client: AsyncClient):
    subject = uuid.uuid4()
    response = await client.put(
        "/api/v1/profiles/me", headers=auth_headers(subject), json=COMPLETE_MIDWIFE
    )
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == str(subject)
    assert data["role"] == "MIDWIFE"
    assert data["email"] == f"{subject}@example.de"
    assert data["verification_status"] == "DRAFT"
    assert data["plan"] == "FREE"
    assert data["completed"] is False

    again = await client.get("/api/v1/profiles/me", headers=auth_headers(subject))
    assert again.json()["display_name"] == "Lena Hebamme"


@pytest.mark.asyncio
async def test_default_role_is_client(client: AsyncClient):
    response = await client.put(
        "/api/v1/profiles/me", headers=auth_headers(uuid.uuid4()), json={"display_name": "Clara"}
    )
    assert response.json()["role"] == "CLIENT"


@pytest.mark.asyncio
async def test_admin_role_cannot_be_self_assigned(client: AsyncClient):
    response = await client.put(
        "/api/v1/profiles/me", headers=auth_headers(uuid.uuid4()), json={"role": "ADMIN"}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_role_is_fixed_after_creation(client: AsyncClient, client_profile: Profile):
    response = await client.put(
        "/api/v1/profiles/me", headers=auth_headers(client_profile), json={"role": "MIDWIFE"}
    )
    assert response.status_code == 422

    same_role = await client.put(
        "/api/v1/profiles/me", headers=auth_headers(client_profile), json={"role": "CLIENT", "city": "Köln"}
    )
    assert same_role.status_code == 200
    assert same_role.json()["city"] == "Köln"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field,value",
    [("postal_code", "1011"), ("postal_code", "ABCDE"), ("radius_km", 0), ("radius_km", 500), ("price_model", "HOURLY")],
)
async def test_profile_field_validation(client: AsyncClient, midwife: Profile, field, value):
    response = await client.put("/api/v1/profiles/me", headers=auth_headers(midwife), json={field: value})
    assert response.status_code == 422


# ── Publication ────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_submit_incomplete_profile_rejected(client: AsyncClient):
    subject = uuid.uuid4()
    await client.put(
        "/api/v1/profiles/me", headers=auth_headers(subject), json={"role": "MIDWIFE", "city": "Potsdam"}
    )
    response = await client.post("/api/v1/profiles/me/submit", headers=auth_headers(subject))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submit_complete_profile(client: AsyncClient):
    subject = uuid.uuid4()
    await client.put("/api/v1/profiles/me", headers=auth_headers(subject), json=COMPLETE_MIDWIFE)

    response = await client.post("/api/v1/profiles/me/submit", headers=auth_headers(subject))
    assert response.status_code == 200
    assert response.json()["completed"] is True
    assert response.json()["verification_status"] == "PENDING"

    public = await client.get(f"/api/v1/profiles/{subject}")
    assert public.status_code == 200
    assert public.json()["phone_masked"] == "0331 •••• 543"
    assert "phone" not in public.json()


@pytest.mark.asyncio
async def test_clients_cannot_submit(client: AsyncClient, client_profile: Profile):
    response = await client.post("/api/v1/profiles/me/submit", headers=auth_headers(client_profile))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_unpublished_profile_is_hidden(client: AsyncClient, db: AsyncSession, client_profile: Profile):
    draft = await make_midwife(db, completed=False)
    assert (await client.get(f"/api/v1/profiles/{draft.id}")).status_code == 404
    assert (await client.get(f"/api/v1/profiles/{client_profile.id}")).status_code == 404


# ── Dashboard ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_dashboard_counts(
    client: AsyncClient,
    db: AsyncSession,
    client_profile: Profile,
    other_client: Profile,
    midwife: Profile,
):
    await make_booking(db, client_profile, midwife, "REQUESTED")
    await make_booking(db, other_client, midwife, "CONFIRMED")

    response = await client.get("/api/v1/profiles/me/dashboard", headers=auth_headers(midwife))
    assert response.status_code == 200
    assert response.json() == {
        "requested_count": 1,
        "confirmed_count": 1,
        "profile_completion": 100,
        "plan": "FREE",
        "verification_status": "VERIFIED",
    }


# ── Photo ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_photo_upload_stores_url(client: AsyncClient, midwife: Profile):
    urls = {
        "thumbnail": "https://cdn.example.de/profiles/thumb.webp",
        "medium": "https://cdn.example.de/profiles/medium.webp",
    }
    with patch(
        "homebirth.services.profile_service.storage_service.upload_profile_photo",
        new=AsyncMock(return_value=urls),
    ) as upload:
        response = await client.put(
            "/api/v1/profiles/me/photo",
            headers=auth_headers(midwife),
            files={"file": ("portrait.jpg", b"\xff\xd8\xff fake", "image/jpeg")},
        )

    assert response.status_code == 200
    assert response.json()["photo_url"] == urls["medium"]
    upload.assert_awaited_once()


OLD_PHOTO = "https://cdn.example.de/profiles/old/medium.webp"


@pytest.mark.asyncio
async def test_replacing_photo_removes_old_object_after_commit(client: AsyncClient, db: AsyncSession):
    midwife = await make_midwife(db, photo_url=OLD_PHOTO, email="foto@example.de")
    urls = {"thumbnail": "https://cdn.example.de/profiles/new/thumb.webp", "medium": "https://cdn.example.de/profiles/new/medium.webp"}

    with (
        patch("homebirth.services.profile_service.storage_service.upload_profile_photo", new=AsyncMock(return_value=urls)),
        patch("homebirth.services.profile_service.storage_service.delete_file", new=AsyncMock(return_value=True)) as delete,
    ):
        response = await client.put(
            "/api/v1/profiles/me/photo",
            headers=auth_headers(midwife),
            files={"file": ("portrait.png", b"\x89PNG fake", "image/png")},
        )

    assert response.status_code == 200
    delete.assert_awaited_once_with(OLD_PHOTO)
    await db.refresh(midwife)
    assert midwife.photo_url == urls["medium"]


@pytest.mark.asyncio
async def test_old_photo_kept_when_transaction_rolls_back(db: AsyncSession, session_factory):
    midwife = await make_midwife(db, photo_url=OLD_PHOTO, email="foto2@example.de")
    urls = {"thumbnail": "https://cdn.example.de/profiles/new/thumb.webp", "medium": "https://cdn.example.de/profiles/new/medium.webp"}

    with (
        patch("homebirth.services.profile_service.storage_service.upload_profile_photo", new=AsyncMock(return_value=urls)),
        patch("homebirth.services.profile_service.storage_service.delete_file", new=AsyncMock(return_value=True)) as delete,
        pytest.raises(RuntimeError),
    ):
        async with get_db_context(session_factory) as session:
            profile = await session.get(Profile, midwife.id)
            await profile_service.update_photo(session, profile, io.BytesIO(b"\x89PNG fake"), "image/png")
            raise RuntimeError("connection lost before commit")

    delete.assert_not_awaited()
    await db.refresh(midwife)
    assert midwife.photo_url == OLD_PHOTO


# ── Availability ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_availability_crud(client: AsyncClient, midwife: Profile):
    created = await client.post(
        "/api/v1/availability",
        headers=auth_headers(midwife),
        json={"start_date": "2027-03-01", "end_date": "2027-03-31", "note": "März frei"},
    )
    assert created.status_code == 201
    window_id = created.json()["id"]

    listed = await client.get("/api/v1/availability", headers=auth_headers(midwife))
    assert [w["id"] for w in listed.json()] == [window_id]

    deleted = await client.delete(f"/api/v1/availability/{window_id}", headers=auth_headers(midwife))
    assert deleted.status_code == 204
    assert (await client.get("/api/v1/availability", headers=auth_headers(midwife))).json() == []


@pytest.mark.asyncio
async def test_availability_rejects_reversed_range(client: AsyncClient, midwife: Profile):
    response = await client.post(
        "/api/v1/availability",
        headers=auth_headers(midwife),
        json={"start_date": "2027-03-31", "end_date": "2027-03-01"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_availability_owned_by_midwife(client: AsyncClient, db: AsyncSession, midwife: Profile):
    created = await client.post(
        "/api/v1/availability",
        headers=auth_headers(midwife),
        json={"start_date": str(date(2027, 1, 1)), "end_date": str(date(2027, 1, 15))},
    )
    other = await make_midwife(db, email="andere-hebamme@example.de")
    response = await client.delete(f"/api/v1/availability/{created.json()['id']}", headers=auth_headers(other))
    assert response.status_code == 403


# ── Calendar feed ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_calendar_feed_lists_confirmed_and_paid(
    client: AsyncClient,
    db: AsyncSession,
    client_profile: Profile,
    other_client: Profile,
    midwife: Profile,
):
    confirmed = await make_booking(db, client_profile, midwife, "CONFIRMED")
    requested = await make_booking(db, other_client, midwife, "REQUESTED")

    response = await client.get(f"/api/v1/calendar/{midwife.calendar_token}.ics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/calendar")
    body = response.text
    assert "BEGIN:VCALENDAR" in body
    assert f"{confirmed.id}@homebirth-match" in body
    assert str(requested.id) not in body
    assert "Buchung von Maria Muster" in body


@pytest.mark.asyncio
async def test_calendar_feed_unknown_token(client: AsyncClient):
    response = await client.get("/api/v1/calendar/does-not-exist.ics")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_rotating_token_invalidates_old_feed(client: AsyncClient, midwife: Profile):
    old_token = midwife.calendar_token
    response = await client.post("/api/v1/profiles/me/calendar-token", headers=auth_headers(midwife))
    assert response.status_code == 200
    data = response.json()
    assert data["calendar_token"] != old_token
    assert data["feed_url"].endswith(f"/calendar/{data['calendar_token']}.ics")

    assert (await client.get(f"/api/v1/calendar/{old_token}.ics")).status_code == 404
    assert (await client.get(f"/api/v1/calendar/{data['calendar_token']}.ics")).status_code == 200
