"""
Saved configuration endpoints for API v1.

A user can only see and change their own configurations; anyone
else's id is answered with 404.  Selections are validated and priced
on the server, so invalid nodes, units, quantities or paths come back
as 422 with the matching error code.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from service_catalog_api.app.api.deps import get_unit_costs
from service_catalog_api.app.core.pricing import UnitCostTable
from service_catalog_api.app.core.security import get_current_user
from service_catalog_api.app.schemas.configuration import (
    SavedConfigurationCreate,
    SavedConfigurationUpdate,
    StatusUpdate,
)
from service_catalog_api.app.services.configuration_service import ConfigurationService

router = APIRouter()


@router.get("/")
async def list_configurations(current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    configurations = await ConfigurationService.list_configurations(current_user["user_id"])
    return {"success": True, "configurations": configurations}


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_configuration(
    payload: SavedConfigurationCreate,
    costs: UnitCostTable = Depends(get_unit_costs),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """Save a configuration snapshot.

    The total is recomputed from the selections; ``totalEstimate`` sent
    by the client is only compared against it.
    """
    try:
        configuration = await ConfigurationService.create_configuration(current_user["user_id"], payload, costs)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "configuration": configuration}


@router.get("/{config_id}")
async def get_configuration(config_id: int, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        configuration = await ConfigurationService.get_configuration(current_user["user_id"], config_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "configuration": configuration}


@router.put("/{config_id}")
async def update_configuration(
    config_id: int,
    payload: SavedConfigurationUpdate,
    costs: UnitCostTable = Depends(get_unit_costs),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    try:
        configuration = await ConfigurationService.update_configuration(
            current_user["user_id"], config_id, payload, costs
        )
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "configuration": configuration}


@router.put("/{config_id}/status")
async def change_status(
    config_id: int,
    payload: StatusUpdate,
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """Move a configuration through ``draft -> saved -> active``.

    Saved configurations can go back to draft; active ones cannot
    change status any more.
    """
    try:
        configuration = await ConfigurationService.change_status(current_user["user_id"], config_id, payload.status)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "configuration": configuration}


@router.delete("/{config_id}")
async def delete_configuration(config_id: int, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        await ConfigurationService.delete_configuration(current_user["user_id"], config_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "message": "Configuration deleted successfully"}


@router.get("/{config_id}/verify")
async def verify_configuration(config_id: int, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    """Re-price the stored snapshot with the unit prices it was saved with."""
    try:
        verification = await ConfigurationService.verify_snapshot(current_user["user_id"], config_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "verification": verification}
