"""
Pydantic models for saved configurations.

A saved configuration is a snapshot: the selections, the path the
consumer walked, the computed total with its breakdown and the unit
prices that were in force are all copied into the ``configuration``
JSON column.  Later edits to the service tree or the price table never
change a stored snapshot.
"""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import Field

from .tree import CamelModel, DecimalNumber, LineItem, Selection


class ConfigurationSnapshot(CamelModel):
    """Shape of the JSON stored in ``user_configurations.configuration``."""

    selected_nodes: List[Selection] = Field(default_factory=list)
    selected_path: List[str] = Field(default_factory=list)
    total_estimate: DecimalNumber
    breakdown: List[LineItem] = Field(default_factory=list)
    unit_costs: Dict[str, DecimalNumber] = Field(default_factory=dict)
    timestamp: str


class SavedConfigurationCreate(CamelModel):
    service_id: int
    name: str = Field(..., min_length=1, examples=["Home fiber"])
    selected_nodes: List[Selection] = Field(..., min_length=1)
    selected_path: List[str] = Field(default_factory=list)
    # Total computed by the client.  The server always recomputes; a
    # mismatch is logged and the server figure is stored.
    total_estimate: Optional[float] = None
    status: Literal["draft", "saved"] = "saved"


class SavedConfigurationUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    selected_nodes: Optional[List[Selection]] = Field(None, min_length=1)
    selected_path: Optional[List[str]] = None
    total_estimate: Optional[float] = None


class StatusUpdate(CamelModel):
    status: Literal["draft", "saved", "active"]


class SavedConfigurationRead(CamelModel):
    id: int
    name: str
    service_id: Optional[int] = None
    user_id: int
    service_name: Optional[str] = None
    service_description: Optional[str] = None
    provider: Optional[str] = None
    selected_nodes: List[Selection] = Field(default_factory=list)
    selected_path: List[str] = Field(default_factory=list)
    total_estimate: DecimalNumber
    breakdown: List[LineItem] = Field(default_factory=list)
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SnapshotVerification(CamelModel):
    id: int
    stored_total: DecimalNumber
    recomputed_total: DecimalNumber
    matches: bool
