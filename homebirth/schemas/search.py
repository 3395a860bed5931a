"""Search and matching Pydantic schemas."""

from datetime import date

from pydantic import BaseModel, Field

from homebirth.schemas.profile import PublicProfileResponse


class MatchRequest(BaseModel):
    """Wizard input: where, when and what the client needs."""

    postal_code: str = Field(..., pattern=r"^\d{5}$")
    due_date: date
    services: list[str] = Field(default_factory=list, max_length=20)


class SearchResult(BaseModel):
    """A midwife in a result list with their distance to the query."""

    profile: PublicProfileResponse
    distance_km: float | None = None
    available_on_due_date: bool | None = None


class SearchResponse(BaseModel):
    items: list[SearchResult]
    total: int
