"""Midwife search endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_db
from homebirth.schemas.search import MatchRequest, SearchResponse, SearchResult
from homebirth.services.profile_service import to_public_profile
from homebirth.services.search_service import SearchHit, search_service

router = APIRouter()


def _to_response(hits: list[SearchHit]) -> SearchResponse:
    items = [
        SearchResult(
            profile=to_public_profile(hit.profile),
            distance_km=hit.distance_km,
            available_on_due_date=hit.available_on_due_date,
        )
        for hit in hits
    ]
    return SearchResponse(items=items, total=len(items))


@router.get("/radius", response_model=SearchResponse)
async def search_by_radius(
    db: Annotated[AsyncSession, Depends(get_db)],
    postal_code: str = Query(..., pattern=r"^\d{5}$"),
    radius_km: float | None = Query(None, gt=0, le=200),
) -> SearchResponse:
    """Midwives around a postal code."""
    hits = await search_service.search_by_radius(db, postal_code, radius_km)
    return _to_response(hits)


@router.post("/match", response_model=SearchResponse)
async def match_midwives(
    data: MatchRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SearchResponse:
    """Wizard: midwives serving the client's address on the due date."""
    hits = await search_service.match(db, data.postal_code, data.due_date, data.services)
    return _to_response(hits)


@router.get("/city/{city}", response_model=SearchResponse)
async def search_by_city(
    city: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SearchResponse:
    """City directory."""
    hits = await search_service.search_by_city(db, city)
    return _to_response(hits)
