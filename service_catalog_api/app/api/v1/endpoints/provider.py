"""
Provider dashboard endpoints for API v1.

All routes require the ``service_provider`` role and act on the
provider record of the logged-in user.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from service_catalog_api.app.core.security import ROLE_PROVIDER, require_roles
from service_catalog_api.app.schemas.service import CompanyInfoUpdate, ServiceCreate, ServiceUpdate, TreeUpdate
from service_catalog_api.app.services.catalog_service import CatalogService
from service_catalog_api.app.services.provider_service import ProviderService

router = APIRouter()

provider_only = require_roles(ROLE_PROVIDER)


@router.get("/company-info")
async def get_company_info(current_user: dict = Depends(provider_only)) -> Dict[str, Any]:
    try:
        company = await ProviderService.get_company_info(current_user["user_id"])
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "company": company}


@router.put("/company-info")
async def update_company_info(
    payload: CompanyInfoUpdate,
    current_user: dict = Depends(provider_only),
) -> Dict[str, Any]:
    try:
        company = await ProviderService.update_company_info(current_user["user_id"], payload)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "message": "Company info updated successfully", "company": company}


@router.get("/stats")
async def provider_stats(current_user: dict = Depends(provider_only)) -> Dict[str, Any]:
    try:
        stats = await ProviderService.stats(current_user["user_id"])
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "stats": stats}


@router.get("/recent-services")
async def recent_services(current_user: dict = Depends(provider_only)) -> Dict[str, Any]:
    try:
        services = await ProviderService.recent_services(current_user["user_id"])
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "services": services}


@router.get("/service-types")
async def service_types(current_user: dict = Depends(provider_only)) -> Dict[str, Any]:
    return {"success": True, "types": await ProviderService.service_types()}


@router.get("/all-services")
async def all_services(current_user: dict = Depends(provider_only)) -> Dict[str, Any]:
    try:
        services = await ProviderService.all_services(current_user["user_id"])
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "services": services}


@router.post("/services", status_code=status.HTTP_201_CREATED)
async def create_service(
    payload: ServiceCreate,
    current_user: dict = Depends(provider_only),
) -> Dict[str, Any]:
    """Create a service, optionally with its tree.

    A submitted tree is validated first; a malformed one is answered
    with 422 and the violated rule.
    """
    try:
        service = await CatalogService.create_service(current_user["user_id"], payload)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "service": service}


@router.put("/services/{service_id}")
async def update_service(
    service_id: int,
    payload: ServiceUpdate,
    current_user: dict = Depends(provider_only),
) -> Dict[str, Any]:
    try:
        service = await CatalogService.update_service(current_user["user_id"], service_id, payload)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "service": service}


@router.put("/services/{service_id}/tree")
async def replace_tree(
    service_id: int,
    payload: TreeUpdate,
    current_user: dict = Depends(provider_only),
) -> Dict[str, Any]:
    """Replace a service's tree.  Existing saved configurations keep their snapshots."""
    try:
        service = await CatalogService.replace_tree(current_user["user_id"], service_id, payload)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "service": service}


@router.delete("/services/{service_id}")
async def delete_service(service_id: int, current_user: dict = Depends(provider_only)) -> Dict[str, Any]:
    try:
        await CatalogService.delete_service(current_user["user_id"], service_id)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return {"success": True, "message": "Service deleted successfully"}
