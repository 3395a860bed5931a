"""Midwife search: radius, wizard matching and city directory."""

import math
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.config import settings
from homebirth.core.exceptions import NotFoundError
from homebirth.domain.geo import haversine_km
from homebirth.domain.profile import ProfileRole
from homebirth.models.location import PostalCode
from homebirth.models.profile import Availability, Profile

KM_PER_DEGREE_LAT = 111.0
MAX_SERVICE_RADIUS_KM = 200


@dataclass
class SearchHit:
    profile: Profile
    distance_km: float | None = None
    available_on_due_date: bool | None = None


class SearchService:
    """Service for finding published midwives."""

    def _published_midwives(self):
        return select(Profile).where(
            Profile.role == ProfileRole.MIDWIFE.value,
            Profile.completed.is_(True),
        )

    async def _origin(self, db: AsyncSession, postal_code: str) -> PostalCode:
        origin = await db.get(PostalCode, postal_code)
        if origin is None:
            raise NotFoundError("Postal code", postal_code)
        return origin

    async def _candidates_near(
        self,
        db: AsyncSession,
        origin: PostalCode,
        radius_km: float,
    ) -> list[tuple[Profile, float]]:
        """Published midwives whose postal code centroid is within radius_km."""
        lat_delta = radius_km / KM_PER_DEGREE_LAT
        lng_delta = radius_km / (KM_PER_DEGREE_LAT * max(math.cos(math.radians(origin.latitude)), 0.01))

        query = (
            self._published_midwives()
            .add_columns(PostalCode.latitude, PostalCode.longitude)
            .join(PostalCode, PostalCode.postal_code == Profile.postal_code)
            .where(
                PostalCode.latitude.between(origin.latitude - lat_delta, origin.latitude + lat_delta),
                PostalCode.longitude.between(origin.longitude - lng_delta, origin.longitude + lng_delta),
            )
        )
        result = await db.execute(query)

        hits = []
        for profile, lat, lng in result.all():
            distance = haversine_km(origin.latitude, origin.longitude, lat, lng)
            if distance <= radius_km:
                hits.append((profile, round(distance, 1)))
        return hits

    async def search_by_radius(
        self,
        db: AsyncSession,
        postal_code: str,
        radius_km: float | None = None,
    ) -> list[SearchHit]:
        """Midwives around a postal code; PRO first, then nearest."""
        origin = await self._origin(db, postal_code)
        radius = radius_km or settings.default_search_radius_km
        hits = await self._candidates_near(db, origin, radius)
        hits.sort(key=lambda h: (not h[0].is_pro, h[1]))
        return [SearchHit(profile=p, distance_km=d) for p, d in hits]

    async def match(
        self,
        db: AsyncSession,
        postal_code: str,
        due_date: date,
        services: list[str],
    ) -> list[SearchHit]:
        """Wizard matching.

        A midwife matches when the client lives inside the midwife's own service
        radius and the midwife offers every requested service. Midwives with an
        availability window covering the due date rank first; those who
        never entered availability follow; those whose windows all miss
        the due date are dropped.
        """
        origin = await self._origin(db, postal_code)
        wanted = {s.strip().lower() for s in services if s.strip()}

        candidates = []
        for profile, distance in await self._candidates_near(db, origin, MAX_SERVICE_RADIUS_KM):
            if distance > (profile.radius_km or 0):
                continue
            offered = {s.lower() for s in (profile.services or [])}
            if not wanted.issubset(offered):
                continue
            candidates.append((profile, distance))
        if not candidates:
            return []

        result = await db.execute(
            select(Availability).where(Availability.midwife_id.in_([p.id for p, _ in candidates]))
        )
        windows: dict = {}
        for window in result.scalars().all():
            windows.setdefault(window.midwife_id, []).append(window)

        hits = []
        for profile, distance in candidates:
            own = windows.get(profile.id)
            if own is None:
                available = None
            elif any(w.covers(due_date) for w in own):
                available = True
            else:
                continue
            hits.append(SearchHit(profile=profile, distance_km=distance, available_on_due_date=available))

        hits.sort(key=lambda h: (h.available_on_due_date is not True, not h.profile.is_pro, h.distance_km))
        return hits

    async def search_by_city(self, db: AsyncSession, city: str) -> list[SearchHit]:
        """City directory, case-insensitive."""
        query = self._published_midwives().where(func.lower(Profile.city) == city.strip().lower())
        result = await db.execute(query)
        profiles = list(result.scalars().all())
        profiles.sort(key=lambda p: (not p.is_pro, (p.display_name or "").lower()))
        return [SearchHit(profile=p) for p in profiles]


search_service = SearchService()
