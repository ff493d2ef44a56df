"""
Consumer dashboard endpoints for API v1.

Available to every authenticated user.  Saved configurations have
their own router (``saved_configurations``); these routes only read
summaries of them.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from service_catalog_api.app.core.security import get_current_user
from service_catalog_api.app.schemas.user import ProfileUpdate
from service_catalog_api.app.services.catalog_service import CatalogService
from service_catalog_api.app.services.configuration_service import ConfigurationService
from service_catalog_api.app.services.user_service import UserService

router = APIRouter()


@router.get("/recent-services")
async def recent_services(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    return {"success": True, "services": await ConfigurationService.recent_services(current_user["user_id"])}


@router.get("/available-services")
async def available_services(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    services = await CatalogService.list_services(status="active")
    return {"success": True, "services": sorted(services, key=lambda service: service.name)}


@router.get("/catalogue")
async def catalogue(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    return {"success": True, "items": await ConfigurationService.catalogue(current_user["user_id"])}


@router.get("/service-status")
async def service_status(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    """Status of the services the user has active configurations for."""
    return {"success": True, "services": await ConfigurationService.service_status(current_user["user_id"])}


@router.get("/profile")
async def get_profile(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        profile = await UserService.get_profile(current_user["user_id"])
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "user": profile}


@router.post("/profile")
async def update_profile(
    updates: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """Update the caller's own profile.

    Only non-empty fields are written; an empty update is rejected with
    400.  Changing the e-mail invalidates existing tokens, since tokens
    identify the user by e-mail.
    """
    try:
        profile = await UserService.update_profile(current_user["user_id"], updates)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return {"success": True, "message": "Profile updated successfully", "user": profile}
