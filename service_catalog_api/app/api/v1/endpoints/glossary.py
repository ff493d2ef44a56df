"""Reference data shared by all portals."""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from service_catalog_api.app.api.deps import get_unit_costs
from service_catalog_api.app.core.pricing import UnitCostTable
from service_catalog_api.app.core.security import get_current_user

router = APIRouter()


@router.get("/uom-costs")
async def uom_costs(
    costs: UnitCostTable = Depends(get_unit_costs),
    current_user: dict = Depends(get_current_user),
) -> Dict[str, Any]:
    """Price per unit of measurement used by every estimate."""
    return {"success": True, "uomCosts": costs.as_json()}
