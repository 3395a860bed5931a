"""
tests/test_search.py
Radius search, wizard matching, the city directory and postal code import.
"""

import io
from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.core.exceptions import ValidationError
from homebirth.models.location import PostalCode
from homebirth.models.profile import Availability
from homebirth.services.postal_code_service import BATCH_SIZE, parse_postal_codes, postal_code_service
from tests.conftest import make_midwife

DUE_DATE = date(2027, 4, 15)


def _ids(response) -> list[str]:
    return [item["profile"]["id"] for item in response.json()["items"]]


# ── Radius ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_radius_search_filters_by_distance(client: AsyncClient, db: AsyncSession, postal_codes):
    berlin = await make_midwife(db, postal_code="10117")
    munich = await make_midwife(db, postal_code="80331", city="München")
    await make_midwife(db, postal_code="10117", completed=False)

    response = await client.get("/api/v1/search/radius", params={"postal_code": "10115", "radius_km": 50})
    assert response.status_code == 200
    assert _ids(response) == [str(berlin.id)]
    hit = response.json()["items"][0]
    assert 1 < hit["distance_km"] < 3
    assert hit["profile"]["phone_masked"] == "0151 •••• 789"
    assert str(munich.id) not in _ids(response)


@pytest.mark.asyncio
async def test_radius_search_ranks_pro_first(client: AsyncClient, db: AsyncSession, postal_codes):
    near_free = await make_midwife(db, postal_code="10117")
    far_pro = await make_midwife(db, postal_code="14467", city="Potsdam", plan="PRO")

    response = await client.get("/api/v1/search/radius", params={"postal_code": "10115", "radius_km": 50})
    assert _ids(response) == [str(far_pro.id), str(near_free.id)]


@pytest.mark.asyncio
async def test_radius_search_unknown_postal_code(client: AsyncClient, postal_codes):
    response = await client.get("/api/v1/search/radius", params={"postal_code": "99999"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_radius_search_validates_postal_code(client: AsyncClient):
    response = await client.get("/api/v1/search/radius", params={"postal_code": "12"})
    assert response.status_code == 422


# ── Wizard matching ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_match_ranks_available_midwives_first(client: AsyncClient, db: AsyncSession, postal_codes):
    covered = await make_midwife(db, postal_code="14467", city="Potsdam", radius_km=50)
    unknown = await make_midwife(db, postal_code="10117", radius_km=30)
    booked_out = await make_midwife(db, postal_code="10117", radius_km=30)
    db.add_all(
        [
            Availability(midwife_id=covered.id, start_date=date(2027, 4, 1), end_date=date(2027, 4, 30)),
            Availability(midwife_id=booked_out.id, start_date=date(2027, 1, 1), end_date=date(2027, 2, 28)),
        ]
    )
    await db.commit()

    response = await client.post(
        "/api/v1/search/match",
        json={"postal_code": "10115", "due_date": str(DUE_DATE), "services": ["hausgeburt"]},
    )
    assert response.status_code == 200
    items = response.json()["items"]
    assert [i["profile"]["id"] for i in items] == [str(covered.id), str(unknown.id)]
    assert items[0]["available_on_due_date"] is True
    assert items[1]["available_on_due_date"] is None


@pytest.mark.asyncio
async def test_match_respects_own_service_radius(client: AsyncClient, db: AsyncSession, postal_codes):
    await make_midwife(db, postal_code="14467", city="Potsdam", radius_km=10)
    response = await client.post(
        "/api/v1/search/match", json={"postal_code": "10115", "due_date": str(DUE_DATE)}
    )
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_match_requires_all_services(client: AsyncClient, db: AsyncSession, postal_codes):
    both = await make_midwife(db, services=["Hausgeburt", "Wochenbett", "Akupunktur"])
    await make_midwife(db, services=["Wochenbett"])

    response = await client.post(
        "/api/v1/search/match",
        json={"postal_code": "10115", "due_date": str(DUE_DATE), "services": ["Hausgeburt", "Akupunktur"]},
    )
    assert _ids(response) == [str(both.id)]


# ── City directory ─────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_city_directory_is_case_insensitive(client: AsyncClient, db: AsyncSession):
    berlin = await make_midwife(db, city="Berlin")
    await make_midwife(db, city="Hamburg", postal_code="20095")

    response = await client.get("/api/v1/search/city/berlin")
    assert response.status_code == 200
    assert _ids(response) == [str(berlin.id)]


# ── Postal code import ─────────────────────────────────────────────────────────

def test_parse_postal_codes_pads_and_skips_blank_rows():
    handle = io.StringIO("plz,lat,lng,city\n1067,51.06,13.72,Dresden\n,0,0,\n14467,52.40,13.06,\n")
    rows = list(parse_postal_codes(handle))
    assert rows == [
        {"postal_code": "01067", "city": "Dresden", "latitude": 51.06, "longitude": 13.72},
        {"postal_code": "14467", "city": None, "latitude": 52.40, "longitude": 13.06},
    ]


def test_parse_postal_codes_rejects_bad_input():
    with pytest.raises(ValidationError):
        list(parse_postal_codes(io.StringIO("plz,lat\n10115,52.5\n")))
    with pytest.raises(ValidationError):
        list(parse_postal_codes(io.StringIO("plz,lat,lng\n10115,north,13.3\n")))


@pytest.mark.asyncio
async def test_import_replaces_existing_postal_codes(db: AsyncSession, postal_codes):
    rows = [
        {"postal_code": f"{n:05d}", "city": None, "latitude": 50.0, "longitude": 10.0}
        for n in range(1000, 1000 + BATCH_SIZE + 3)
    ]
    imported = await postal_code_service.replace_all(db, rows)
    await db.commit()

    assert imported == BATCH_SIZE + 3
    codes = (await db.execute(select(PostalCode.postal_code))).scalars().all()
    assert len(codes) == BATCH_SIZE + 3
    assert "10115" not in codes
