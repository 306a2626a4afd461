# File: campus_events/api/v1/api.py
from fastapi import APIRouter
from campus_events.api.v1.endpoints import events, registrations, orders, attendance

# Create main API router
api_router = APIRouter()

api_router.include_router(
    events.router,
    prefix="/events",
    tags=["events"]
)

api_router.include_router(
    registrations.router,
    tags=["registrations"]
)

api_router.include_router(
    orders.router,
    tags=["orders"]
)

api_router.include_router(
    attendance.router,
    tags=["attendance"]
)
