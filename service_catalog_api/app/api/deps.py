"""Shared request dependencies."""

from fastapi import Request

from service_catalog_api.app.core.pricing import UnitCostTable


def get_unit_costs(request: Request) -> UnitCostTable:
    """Return the unit cost table loaded when the application was created."""
    return request.app.state.unit_costs
