"""Webhook endpoints for payment gateways."""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_db
from homebirth.core.events import EventBus, get_event_bus
from homebirth.schemas.payment import WebhookAck
from homebirth.services.payment_service import payment_service

router = APIRouter()


@router.post("/stripe", response_model=WebhookAck, status_code=status.HTTP_200_OK)
async def stripe_webhook(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    events: Annotated[EventBus, Depends(get_event_bus)],
    stripe_signature: str | None = Header(None, alias="Stripe-Signature"),
) -> WebhookAck:
    """Handle Stripe webhook events."""
    # Raw body for signature verification
    payload = await request.body()
    processed = await payment_service.handle_webhook(db, payload, stripe_signature, events)
    return WebhookAck(received=True, duplicate=not processed)
