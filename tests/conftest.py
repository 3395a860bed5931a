"""
tests/conftest.py
Shared fixtures: in-memory database, API client, profiles and signed Stripe payloads.
"""

import hashlib
import hmac
import json
import os
import time
import uuid
from datetime import UTC, datetime, timedelta

# Settings are read at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-provider-secret"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["STRIPE_BOOKING_PRICE_ID"] = "price_booking_test"
os.environ["STRIPE_EXPRESS_PRICE_ID"] = "price_express_test"
os.environ["STRIPE_PRO_PRICE_ID"] = "price_pro_test"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import homebirth.models  # noqa: F401
from homebirth.config import settings
from homebirth.core.events import InMemoryEventBus, get_event_bus
from homebirth.database import Base, get_db, get_db_context
from homebirth.main import app
from homebirth.models.booking import Booking
from homebirth.models.location import PostalCode
from homebirth.models.profile import Profile


# ── Database ───────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def event_bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest_asyncio.fixture
async def client(session_factory, event_bus):
    async def override_get_db():
        async with get_db_context(session_factory) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ── Auth ───────────────────────────────────────────────────────────────────────

def auth_headers(profile_or_id) -> dict:
    """Bearer header with a provider-style token for a profile (or bare subject id)."""
    subject = getattr(profile_or_id, "id", profile_or_id)
    claims = {
        "sub": str(subject),
        "aud": settings.jwt_audience,
        "exp": datetime.now(UTC) + timedelta(hours=1),
        "email": getattr(profile_or_id, "email", None) or f"{subject}@example.de",
    }
    token = jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


# ── Stripe ─────────────────────────────────────────────────────────────────────

def signed_webhook(event: dict, secret: str | None = None) -> tuple[bytes, dict]:
    """Body and headers signed the way Stripe signs webhook deliveries."""
    body = json.dumps(event).encode()
    timestamp = int(time.time())
    signed = f"{timestamp}.{body.decode()}".encode()
    signature = hmac.new(
        (secret or settings.stripe_webhook_secret).encode(), signed, hashlib.sha256
    ).hexdigest()
    headers = {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}
    return body, headers


def stripe_event(event_type: str, obj: dict, event_id: str | None = None) -> dict:
    return {
        "id": event_id or f"evt_{uuid.uuid4().hex[:24]}",
        "object": "event",
        "type": event_type,
        "created": int(time.time()),
        "data": {"object": obj},
    }


# ── Profiles ───────────────────────────────────────────────────────────────────

async def make_midwife(db: AsyncSession, **overrides) -> Profile:
    fields = dict(
        id=uuid.uuid4(),
        role="MIDWIFE",
        email="hebamme@example.de",
        display_name="Anna Hebamme",
        city="Berlin",
        postal_code="10117",
        radius_km=30,
        bio="Hausgeburten und Wochenbettbetreuung seit 2010.",
        qualifications=["Staatlich examinierte Hebamme"],
        services=["Hausgeburt", "Wochenbett"],
        phone="0151 23456789",
        price_model="FIX",
        offers_homebirth=True,
        verification_status="VERIFIED",
        completed=True,
        plan="FREE",
        calendar_token=uuid.uuid4().hex,
    )
    fields.update(overrides)
    profile = Profile(**fields)
    db.add(profile)
    await db.commit()
    return profile


@pytest_asyncio.fixture
async def client_profile(db: AsyncSession) -> Profile:
    profile = Profile(
        id=uuid.uuid4(),
        role="CLIENT",
        email="mama@example.de",
        display_name="Maria Muster",
        phone="0170 1112223",
        qualifications=[],
        services=[],
    )
    db.add(profile)
    await db.commit()
    return profile


@pytest_asyncio.fixture
async def other_client(db: AsyncSession) -> Profile:
    profile = Profile(
        id=uuid.uuid4(),
        role="CLIENT",
        email="andere@example.de",
        display_name="Eva Andere",
        qualifications=[],
        services=[],
    )
    db.add(profile)
    await db.commit()
    return profile


@pytest_asyncio.fixture
async def midwife(db: AsyncSession) -> Profile:
    return await make_midwife(db)


@pytest_asyncio.fixture
async def admin_profile(db: AsyncSession) -> Profile:
    profile = Profile(
        id=uuid.uuid4(),
        role="ADMIN",
        email="admin@example.de",
        display_name="Admin",
        qualifications=[],
        services=[],
    )
    db.add(profile)
    await db.commit()
    return profile


@pytest_asyncio.fixture
async def postal_codes(db: AsyncSession) -> None:
    db.add_all(
        [
            PostalCode(postal_code="10115", city="Berlin", latitude=52.5323, longitude=13.3846),
            PostalCode(postal_code="10117", city="Berlin", latitude=52.5170, longitude=13.3889),
            PostalCode(postal_code="14467", city="Potsdam", latitude=52.4009, longitude=13.0591),
            PostalCode(postal_code="80331", city="München", latitude=48.1372, longitude=11.5755),
        ]
    )
    await db.commit()


# ── Bookings ───────────────────────────────────────────────────────────────────

async def make_booking(
    db: AsyncSession,
    client: Profile,
    midwife: Profile,
    status: str = "REQUESTED",
    created_at: datetime | None = None,
    **extra,
) -> Booking:
    now = created_at or datetime.now(UTC)
    if status == "PAID":
        extra.setdefault("paid_at", now)
    booking = Booking(
        id=uuid.uuid4(),
        client_id=client.id,
        midwife_id=midwife.id,
        status=status,
        created_at=now,
        updated_at=now,
        **extra,
    )
    db.add(booking)
    await db.commit()
    return booking
