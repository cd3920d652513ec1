"""API router composition for all route groups."""

from fastapi import APIRouter

from .routes import tasteid

api_router = APIRouter()
api_router.include_router(tasteid.router, prefix="/tasteid", tags=["tasteid"])
