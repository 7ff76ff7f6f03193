# app/routes/__init__.py
from fastapi import APIRouter
from app.routes.requests import user_requests
from app.routes.tour_guide import guide_requests
from app.routes.admin import admin_requests, tour_guides, admin_analytics
from app.routes.packages import packages
from app.routes.bookings import bookings

api_router = APIRouter()

# Customer requests
api_router.include_router(user_requests.router)

# Tour guide work queue
api_router.include_router(guide_requests.router)

# Admin
api_router.include_router(admin_requests.router)
api_router.include_router(tour_guides.router)
api_router.include_router(admin_analytics.router)

# Catalogue and bookings
api_router.include_router(packages.router)
api_router.include_router(bookings.router)
