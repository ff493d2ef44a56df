"""
Administration endpoints for API v1.

User management, the system-wide service list, dashboard statistics and
the security event log.  Every route requires the ``admin`` role.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from service_catalog_api.app.core.security import ROLE_ADMIN, require_roles
from service_catalog_api.app.schemas.user import AdminUserUpdate
from service_catalog_api.app.services.catalog_service import CatalogService
from service_catalog_api.app.services.security_event_service import SecurityEventService
from service_catalog_api.app.services.statistics_service import StatisticsService
from service_catalog_api.app.services.user_service import UserService

router = APIRouter()

admin_only = require_roles(ROLE_ADMIN)


@router.get("/users")
async def list_users(current_user: dict = Depends(admin_only)) -> Dict[str, Any]:
    return {"success": True, "users": await UserService.list_users_for_admin()}


@router.put("/users/{user_id}")
async def update_user(
    user_id: int,
    updates: AdminUserUpdate,
    current_user: dict = Depends(admin_only),
) -> Dict[str, Any]:
    """Change a user's name, e-mail, role or status.

    Promoting a user to ``service_provider`` creates their company
    record.  Admins cannot disable or demote themselves.
    """
    if user_id == current_user["user_id"] and (
        updates.status == "disabled" or (updates.role is not None and updates.role != ROLE_ADMIN)
    ):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot demote or disable themselves")
    try:
        user = await UserService.admin_update_user(user_id, updates, current_user["user_id"])
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return {"success": True, "user": user}


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, current_user: dict = Depends(admin_only)) -> Dict[str, Any]:
    if user_id == current_user["user_id"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot delete themselves")
    try:
        await UserService.delete_user(user_id, current_user["user_id"])
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "message": "User deleted successfully"}


@router.get("/services")
async def list_services(current_user: dict = Depends(admin_only)) -> Dict[str, Any]:
    """Every service regardless of status or provider."""
    return {"success": True, "services": await CatalogService.list_services()}


@router.get("/stats")
async def stats(current_user: dict = Depends(admin_only)) -> Dict[str, Any]:
    return {"success": True, "stats": await StatisticsService.overview()}


@router.get("/security-events")
async def security_events(
    event_type: Optional[str] = Query(None, alias="type"),
    severity: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: dict = Depends(admin_only),
) -> Dict[str, Any]:
    events = await SecurityEventService.list_events(event_type, severity, limit=limit, offset=offset)
    return {"success": True, "events": events}
