"""
tests/test_admin.py
Disputes, verification decisions and the admin overview.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.models.admin import AuditLog
from homebirth.models.profile import Profile
from tests.conftest import auth_headers, make_booking, make_midwife

REASON = "Die Hebamme ist zum vereinbarten Termin nicht erschienen."


# ── Disputes ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_party_opens_dispute(
    client: AsyncClient,
    db: AsyncSession,
    client_profile: Profile,
    midwife: Profile,
):
    booking = await make_booking(db, client_profile, midwife, "PAID")
    response = await client.post(
        "/api/v1/disputes",
        headers=auth_headers(client_profile),
        json={"booking_id": str(booking.id), "reason": REASON},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "OPEN"
    assert data["raised_by"] == str(client_profile.id)

    visible = await client.get(f"/api/v1/disputes/{data['id']}", headers=auth_headers(midwife))
    assert visible.status_code == 200

    logs = (await db.execute(select(AuditLog).where(AuditLog.action == "dispute_open"))).scalars().all()
    assert len(logs) == 1


@pytest.mark.asyncio
async def test_outsider_cannot_open_dispute(
    client: AsyncClient,
    db: AsyncSession,
    client_profile: Profile,
    other_client: Profile,
    midwife: Profile,
):
    booking = await make_booking(db, client_profile, midwife, "PAID")
    response = await client.post(
        "/api/v1/disputes",
        headers=auth_headers(other_client),
        json={"booking_id": str(booking.id), "reason": REASON},
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_resolves_dispute_once(
    client: AsyncClient,
    db: AsyncSession,
    client_profile: Profile,
    admin_profile: Profile,
    midwife: Profile,
):
    booking = await make_booking(db, client_profile, midwife, "PAID")
    opened = await client.post(
        "/api/v1/disputes",
        headers=auth_headers(client_profile),
        json={"booking_id": str(booking.id), "reason": REASON},
    )
    dispute_id = opened.json()["id"]

    listed = await client.get("/api/v1/admin/disputes", headers=auth_headers(admin_profile))
    assert [d["id"] for d in listed.json()] == [dispute_id]

    forbidden = await client.post(
        f"/api/v1/disputes/{dispute_id}/resolve",
        headers=auth_headers(client_profile),
        json={"resolution": "Selbst gelöst, alles gut."},
    )
    assert forbidden.status_code == 403

    resolved = await client.post(
        f"/api/v1/disputes/{dispute_id}/resolve",
        headers=auth_headers(admin_profile),
        json={"resolution": "Rückerstattung über Stripe veranlasst."},
    )
    assert resolved.status_code == 200
    assert resolved.json()["status"] == "RESOLVED"
    assert resolved.json()["resolved_by"] == str(admin_profile.id)

    again = await client.post(
        f"/api/v1/disputes/{dispute_id}/resolve",
        headers=auth_headers(admin_profile),
        json={"resolution": "Nochmals gelöst, doppelt."},
    )
    assert again.status_code == 422

    open_now = await client.get("/api/v1/admin/disputes", headers=auth_headers(admin_profile))
    assert open_now.json() == []


# ── Verification ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_admin_verifies_midwife(client: AsyncClient, db: AsyncSession, admin_profile: Profile):
    pending = await make_midwife(db, verification_status="PENDING")

    queue = await client.get("/api/v1/admin/profiles/pending", headers=auth_headers(admin_profile))
    assert [p["id"] for p in queue.json()] == [str(pending.id)]

    response = await client.patch(
        f"/api/v1/admin/profiles/{pending.id}/verification",
        headers={**auth_headers(admin_profile), "X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
        json={"verification_status": "VERIFIED"},
    )
    assert response.status_code == 200
    assert response.json()["verification_status"] == "VERIFIED"

    log = (await db.execute(select(AuditLog).where(AuditLog.resource_id == pending.id))).scalar_one()
    assert log.user_id == admin_profile.id
    assert log.old_values == {"verification_status": "PENDING"}
    assert log.new_values == {"verification_status": "VERIFIED"}
    assert log.ip_address == "203.0.113.7"


@pytest.mark.asyncio
async def test_verification_of_unknown_midwife(client: AsyncClient, admin_profile: Profile):
    response = await client.patch(
        f"/api/v1/admin/profiles/{uuid.uuid4()}/verification",
        headers=auth_headers(admin_profile),
        json={"verification_status": "VERIFIED"},
    )
    assert response.status_code == 404


# ── Overview ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_overview_requires_admin(client: AsyncClient, midwife: Profile):
    response = await client.get("/api/v1/admin/overview", headers=auth_headers(midwife))
    assert response.status_code == 403
    assert response.json()["code"] == "forbidden"


@pytest.mark.asyncio
async def test_overview_lists_latest_bookings(
    client: AsyncClient,
    db: AsyncSession,
    client_profile: Profile,
    admin_profile: Profile,
    midwife: Profile,
):
    booking = await make_booking(db, client_profile, midwife, "REQUESTED")
    response = await client.get("/api/v1/admin/overview", headers=auth_headers(admin_profile))
    assert response.status_code == 200
    data = response.json()
    assert [b["id"] for b in data["bookings"]] == [str(booking.id)]
    assert data["payments"] == []


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers
    assert response.headers["X-Content-Type-Options"] == "nosniff"
