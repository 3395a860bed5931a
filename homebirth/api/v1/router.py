"""Main API router that includes all endpoint routers."""

from fastapi import APIRouter

from homebirth.api.v1 import (
    admin,
    availability,
    billing,
    bookings,
    calendar,
    disputes,
    profiles,
    search,
    webhooks,
)

api_router = APIRouter()

# Profiles
api_router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])

# Availability
api_router.include_router(availability.router, prefix="/availability", tags=["Availability"])

# Search
api_router.include_router(search.router, prefix="/search", tags=["Search"])

# Bookings
api_router.include_router(bookings.router, prefix="/bookings", tags=["Bookings"])

# Billing
api_router.include_router(billing.router, prefix="/billing", tags=["Billing"])

# Calendar
api_router.include_router(calendar.router, prefix="/calendar", tags=["Calendar"])

# Disputes
api_router.include_router(disputes.router, prefix="/disputes", tags=["Disputes"])

# Admin
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])

# Webhooks
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
