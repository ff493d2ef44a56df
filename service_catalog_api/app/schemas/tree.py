"""
Pydantic models for service configuration trees and cost estimates.

A tree travels over the wire as a JSON object mapping node ids to
nodes.  Field names use camelCase on the wire (``unitOfMeasurement``,
``nodeId``, ``lineTotal``) and snake_case in Python; both spellings are
accepted on input.

Monetary values and quantities are held as ``Decimal`` and written out
as JSON numbers.
"""

from decimal import Decimal
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

DecimalNumber = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NodeData(CamelModel):
    """Pricing metadata attached to a configurable node."""

    unit_of_measurement: List[str] = Field(default_factory=list, examples=[["Mbps", "month"]])
    description: str = ""

    @field_validator("unit_of_measurement")
    @classmethod
    def _dedupe_units(cls, units: List[str]) -> List[str]:
        # Units form a set; keep the first spelling of each in order.
        return list(dict.fromkeys(units))


class TreeNode(CamelModel):
    """One selectable option in a service tree."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    id: Optional[str] = None
    label: str = ""
    description: str = ""
    children: List[str] = Field(default_factory=list)
    data: Optional[NodeData] = None

    @property
    def units(self) -> List[str]:
        return self.data.unit_of_measurement if self.data else []


Tree = Dict[str, TreeNode]


class Selection(CamelModel):
    """A consumer's choice of node, quantity and unit."""

    node_id: str = Field(..., examples=["fiber_100"])
    quantity: DecimalNumber = Field(..., examples=[100])
    unit: str = Field(..., examples=["Mbps"])


class LineItem(CamelModel):
    node_id: str
    quantity: DecimalNumber
    unit: str
    unit_price: DecimalNumber
    line_total: DecimalNumber


class Estimate(CamelModel):
    """Result of pricing a list of selections."""

    total: DecimalNumber
    breakdown: List[LineItem] = Field(default_factory=list)


class EstimateRequest(CamelModel):
    selections: List[Selection] = Field(default_factory=list)
    selected_path: Optional[List[str]] = None


class PathRequest(CamelModel):
    path: List[str] = Field(..., examples=[["root", "wired", "fiber", "fiber_100"]])
