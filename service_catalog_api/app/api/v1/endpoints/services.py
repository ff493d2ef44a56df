"""
Service catalog endpoints for API v1.

Browsing services, fetching a service's configuration tree, pricing a
selection and checking a selected path.  Tree, pricing and path errors
are answered with 422 by the application's ``CatalogError`` handler.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from service_catalog_api.app.api.deps import get_unit_costs
from service_catalog_api.app.core.pricing import UnitCostTable
from service_catalog_api.app.core.security import get_current_user
from service_catalog_api.app.core.tree import tree_to_json
from service_catalog_api.app.schemas.service import ServiceStatus
from service_catalog_api.app.schemas.tree import EstimateRequest, PathRequest
from service_catalog_api.app.services.catalog_service import CatalogService

router = APIRouter()


@router.get("/")
async def list_services(
    service_status: Optional[ServiceStatus] = Query("active", alias="status"),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """List services; only active ones unless another ``status`` is asked for."""
    return {"success": True, "services": await CatalogService.list_services(status=service_status)}


@router.get("/{service_id}")
async def get_service(service_id: int, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        service = await CatalogService.get_service(service_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "service": service}


@router.get("/{service_id}/tree")
async def get_tree(service_id: int, current_user: dict = Depends(get_current_user)) -> Dict[str, Any]:
    try:
        tree = await CatalogService.get_tree(service_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "tree": tree_to_json(tree)}


@router.post("/{service_id}/estimate")
async def estimate(
    service_id: int,
    payload: EstimateRequest,
    costs: UnitCostTable = Depends(get_unit_costs),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """Price a selection against the service's current tree.

    Nothing is stored.  The response carries the rounded total and one
    line per selection.
    """
    try:
        result = await CatalogService.estimate(service_id, costs, payload.selections, payload.selected_path)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "estimate": result}


@router.post("/{service_id}/resolve-path")
async def resolve_path(
    service_id: int,
    payload: PathRequest,
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """Check a root-to-node path and return the node it ends at."""
    try:
        node = await CatalogService.resolve_path(service_id, payload.path)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "node": node}
