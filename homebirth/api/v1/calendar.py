"""Public iCal feed endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_db
from homebirth.services.calendar_service import calendar_service

router = APIRouter()


@router.get("/{token}.ics", response_class=Response)
async def calendar_feed(
    token: str,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Response:
    """Subscription feed of confirmed and paid bookings; the token is the credential."""
    body = await calendar_service.build_feed(db, token)
    return Response(
        content=body,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="calendar.ics"'},
    )
