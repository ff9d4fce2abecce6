"""API for the record viewer."""

from fastapi import APIRouter

from recordview.api.v1.endpoints import auth, viewer

api_router = APIRouter()
api_router.include_router(
    auth.router, prefix="/auth", tags=["auth"]
)
api_router.include_router(
    viewer.router, prefix="/viewers", tags=["viewers"]
)
