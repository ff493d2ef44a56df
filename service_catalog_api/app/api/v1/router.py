"""
Top-level router for version 1 of the API.

Aggregates the endpoint routers under their prefixes.  When a new area
is added, include its router here.
"""

from fastapi import APIRouter

from .endpoints import admin, auth, glossary, provider, saved_configurations, services, user

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(glossary.router, prefix="/glossary", tags=["glossary"])
router.include_router(services.router, prefix="/services", tags=["services"])
router.include_router(provider.router, prefix="/provider", tags=["provider"])
router.include_router(user.router, prefix="/user", tags=["user"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(
    saved_configurations.router, prefix="/saved-configurations", tags=["saved-configurations"]
)
