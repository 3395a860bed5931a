"""Subscription and express booking billing endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_current_midwife, get_current_profile, get_db
from homebirth.core.middleware import checkout_limiter
from homebirth.models.profile import Profile
from homebirth.schemas.booking import CheckoutSessionResponse
from homebirth.schemas.payment import ExpressCheckoutRequest
from homebirth.services.payment_service import payment_service

router = APIRouter()


@router.post("/checkout", response_model=CheckoutSessionResponse)
async def create_subscription_checkout(
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    _: Annotated[None, Depends(checkout_limiter)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CheckoutSessionResponse:
    """Start the PRO subscription checkout."""
    result = await payment_service.create_subscription_checkout(db, midwife)
    return CheckoutSessionResponse(session_id=result.session_id, url=result.url)


@router.post("/portal", response_model=CheckoutSessionResponse)
async def open_billing_portal(
    midwife: Annotated[Profile, Depends(get_current_midwife)],
) -> CheckoutSessionResponse:
    """Open the Stripe billing portal."""
    result = await payment_service.create_billing_portal(midwife)
    return CheckoutSessionResponse(session_id=result.session_id, url=result.url)


@router.post("/express-checkout", response_model=CheckoutSessionResponse)
async def create_express_checkout(
    data: ExpressCheckoutRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    _: Annotated[None, Depends(checkout_limiter)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CheckoutSessionResponse:
    """Pay once to request several midwives."""
    result = await payment_service.create_express_checkout(db, profile, data.midwife_ids)
    return CheckoutSessionResponse(session_id=result.session_id, url=result.url)
